from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from prode.config import DEFAULT_CONFIG, ScoringConfig
from prode.models import (
    Game,
    GameGuess,
    GameResult,
    HonorRoll,
    ResolvedTeams,
    TeamStats,
)
from prode.outcome import has_final_score, loser_of, outcome_sign, winner_of
from prode.standings import group_is_complete


def _identity_mismatch(guess: GameGuess, actual_teams: Optional[ResolvedTeams]) -> bool:
    if actual_teams is None:
        return False
    return (
        guess.home_team != actual_teams.home_team
        or guess.away_team != actual_teams.away_team
    )


def score_game(
    result: Optional[GameResult],
    guess: Optional[GameGuess],
    is_playoff: bool,
    actual_teams: Optional[ResolvedTeams] = None,
    config: Optional[ScoringConfig] = None,
) -> int:
    """
    Points for one guess against the actual result.

    Knockout guesses made for a different pair of teams than the one that actually
    played score nothing, including guesses stored before their teams were known.
    Pass `actual_teams=None` for knockout games whose teams are fixed in the
    schedule. When a knockout tie went to penalties, an exact or same outcome guess
    must also name the shootout winner.
    """
    config = config or DEFAULT_CONFIG
    if not has_final_score(result) or not has_final_score(guess):
        return 0
    if is_playoff and _identity_mismatch(guess, actual_teams):
        return 0

    home, away = int(result.home_score), int(result.away_score)
    guess_home, guess_away = int(guess.home_score), int(guess.away_score)
    is_tie = home == away
    guess_tie = guess_home == guess_away

    home_penalty_win = is_playoff and is_tie and result.home_penalty_winner
    away_penalty_win = is_playoff and is_tie and result.away_penalty_winner
    missed_penalty = (home_penalty_win and not guess.home_penalty_winner) or (
        away_penalty_win and not guess.away_penalty_winner
    )

    if home == guess_home and away == guess_away:
        return 0 if missed_penalty else config.game_exact_score_points

    if outcome_sign(home, away) == outcome_sign(guess_home, guess_away):
        return 0 if missed_penalty else config.game_correct_outcome_points

    # Right team advances with a different score shape.
    if is_playoff and is_tie:
        if home_penalty_win and (guess.home_penalty_winner or guess_home > guess_away):
            return config.game_correct_outcome_points
        if away_penalty_win and (guess.away_penalty_winner or guess_home < guess_away):
            return config.game_correct_outcome_points

    if is_playoff and guess_tie:
        if guess.home_penalty_winner and home > away:
            return config.game_correct_outcome_points
        if guess.away_penalty_winner and home < away:
            return config.game_correct_outcome_points

    return 0


def boosted_score(
    base_score: int,
    boost: Optional[str],
    config: Optional[ScoringConfig] = None,
) -> int:
    config = config or DEFAULT_CONFIG
    return int(round(base_score * config.boost_multiplier(boost)))


def score_qualifiers(
    group_id: str,
    actual_standings: Optional[Sequence[TeamStats]],
    guessed_standings: Optional[Sequence[TeamStats]],
    config: Optional[ScoringConfig] = None,
) -> int:
    config = config or DEFAULT_CONFIG
    if not group_is_complete(actual_standings) or not guessed_standings:
        return 0
    actual_top_two = {ts.team_id for ts in actual_standings[:2]}
    return sum(
        config.qualified_team_points
        for ts in guessed_standings[:2]
        if ts.team_id in actual_top_two
    )


@dataclass(frozen=True)
class TeamPositionPrediction:
    team_id: str
    group_id: str
    predicted_position: int
    predicted_to_qualify: bool = False


@dataclass(frozen=True)
class TeamQualificationScore:
    team_id: str
    group_id: str
    predicted_position: int
    actual_position: Optional[int]
    predicted_to_qualify: bool
    actually_qualified: bool
    points: int
    reason: str


def qualified_positions(
    standings_by_group: Mapping[str, Sequence[TeamStats]],
    qualified_third_placed: Sequence[str] = (),
) -> Dict[str, int]:
    """Team id -> final position for every team already through to the knockouts."""
    positions: Dict[str, int] = {}
    thirds = set(qualified_third_placed)
    for standings in standings_by_group.values():
        if not group_is_complete(standings):
            continue
        for ts in standings[:2]:
            positions[ts.team_id] = ts.position
        if len(standings) >= 3 and standings[2].team_id in thirds:
            positions[standings[2].team_id] = standings[2].position
    return positions


def score_team_prediction(
    prediction: TeamPositionPrediction,
    qualified: Mapping[str, int],
    config: Optional[ScoringConfig] = None,
) -> TeamQualificationScore:
    config = config or DEFAULT_CONFIG
    actual_position = qualified.get(prediction.team_id)
    actually_qualified = actual_position is not None

    if not prediction.predicted_to_qualify:
        points = 0
        reason = (
            "qualified, but not predicted to qualify"
            if actually_qualified
            else "not predicted to qualify"
        )
    elif not actually_qualified:
        points = 0
        reason = "predicted to qualify, but did not qualify"
    elif actual_position == prediction.predicted_position:
        points = config.qualified_team_points + config.exact_position_qualified_points
        reason = "qualified + exact position"
    else:
        points = config.qualified_team_points
        reason = "qualified, wrong position"

    return TeamQualificationScore(
        team_id=prediction.team_id,
        group_id=prediction.group_id,
        predicted_position=prediction.predicted_position,
        actual_position=actual_position,
        predicted_to_qualify=prediction.predicted_to_qualify,
        actually_qualified=actually_qualified,
        points=points,
        reason=reason,
    )


def score_qualified_teams(
    predictions: Sequence[TeamPositionPrediction],
    qualified: Mapping[str, int],
    config: Optional[ScoringConfig] = None,
) -> List[TeamQualificationScore]:
    return [score_team_prediction(p, qualified, config) for p in predictions]


def resolve_honor_roll(
    final_game: Optional[Game],
    third_place_game: Optional[Game],
    results: Mapping[str, GameResult],
    bracket: Mapping[str, ResolvedTeams],
) -> Optional[HonorRoll]:
    if final_game is None:
        return None
    final_result = results.get(final_game.id)
    if not has_final_score(final_result):
        return None
    final_teams = bracket.get(final_game.id, ResolvedTeams())
    champion = winner_of(final_result, final_teams.home_team, final_teams.away_team)
    runner_up = loser_of(final_result, final_teams.home_team, final_teams.away_team)
    if champion is None or runner_up is None:
        return None

    third_place = None
    if third_place_game is not None:
        third_result = results.get(third_place_game.id)
        if not has_final_score(third_result):
            return None
        third_teams = bracket.get(third_place_game.id, ResolvedTeams())
        third_place = winner_of(third_result, third_teams.home_team, third_teams.away_team)
        if third_place is None:
            return None

    return HonorRoll(champion=champion, runner_up=runner_up, third_place=third_place)


def score_honor_roll(
    guess: Optional[HonorRoll],
    actual: Optional[HonorRoll],
    config: Optional[ScoringConfig] = None,
) -> int:
    config = config or DEFAULT_CONFIG
    if guess is None or actual is None:
        return 0
    points = 0
    if actual.champion is not None and guess.champion == actual.champion:
        points += config.champion_points
    if actual.runner_up is not None and guess.runner_up == actual.runner_up:
        points += config.runner_up_points
    if actual.third_place is not None and guess.third_place == actual.third_place:
        points += config.third_place_points
    return points
