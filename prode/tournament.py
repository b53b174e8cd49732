from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from prode.bracket import ThirdPlaceRules, refresh_guess_teams, resolve_bracket
from prode.config import DEFAULT_CONFIG, ScoringConfig
from prode.leaderboard import calculate_ranks, calculate_ranks_with_change
from prode.models import (
    Game,
    GameGuess,
    GameResult,
    GroupPositionRule,
    HonorRoll,
    ResolvedTeams,
    Team,
    TeamRule,
    TeamStats,
)
from prode.outcome import has_final_score
from prode.scoring import (
    boosted_score,
    resolve_honor_roll,
    score_game,
    score_honor_roll,
    score_qualifiers,
)
from prode.simulation import ScoreSimulator, simulate_missing_results
from prode.standings import compute_standings, group_is_complete

logger = logging.getLogger(__name__)

FINAL_STAGE = "final"
THIRD_PLACE_STAGE = "third_place"


@dataclass
class UserScore:
    user_id: Optional[str] = None
    group_stage_points: int = 0
    playoff_points: int = 0
    qualifier_points: int = 0
    honor_roll_points: int = 0

    @property
    def total(self) -> int:
        return (
            self.group_stage_points
            + self.playoff_points
            + self.qualifier_points
            + self.honor_roll_points
        )

    def as_row(self) -> Dict:
        return {
            "user_id": self.user_id,
            "group_stage_points": self.group_stage_points,
            "playoff_points": self.playoff_points,
            "qualifier_points": self.qualifier_points,
            "honor_roll_points": self.honor_roll_points,
            "total": self.total,
        }


class Tournament:
    """
    Caller-side composition of standings, bracket resolution and scoring for one
    tournament.

    Holds the schedule, the actual results and each user's guesses. Predicted
    brackets are cached per user and dropped whenever that user's guesses change.
    """

    def __init__(
        self,
        teams: Sequence[Team],
        games: Sequence[Game],
        groups: Mapping[str, Sequence[str]],
        results: Optional[Mapping[str, GameResult]] = None,
        conduct_scores: Optional[Mapping[str, int]] = None,
        sort_by_head_to_head: bool = False,
        config: Optional[ScoringConfig] = None,
        third_place_rules: Optional[ThirdPlaceRules] = None,
        name: str = "Tournament",
    ):
        self.name = name
        self.teams: Dict[str, Team] = {t.id: t for t in teams}
        self.games: List[Game] = sorted(games, key=lambda g: g.game_number)
        numbers = [g.game_number for g in self.games]
        dupes = sorted({n for n in numbers if numbers.count(n) > 1})
        if dupes:
            raise ValueError(f"Tournament {name} contains duplicate game numbers: {dupes}")
        self.groups: Dict[str, List[str]] = {g: list(ts) for g, ts in groups.items()}
        self.results: Dict[str, GameResult] = dict(results or {})
        self.conduct_scores: Dict[str, int] = dict(conduct_scores or {})
        self.sort_by_head_to_head = bool(sort_by_head_to_head)
        self.config = config or DEFAULT_CONFIG
        self.third_place_rules = third_place_rules
        self._guesses: Dict[str, Dict[str, GameGuess]] = {}
        self._bracket_cache: Dict[str, Dict[str, ResolvedTeams]] = {}
        self._check_references()

    def _check_references(self) -> None:
        numbers = {g.game_number for g in self.games}
        for game in self.games:
            for slot in game.slots():
                if isinstance(slot, TeamRule):
                    if slot.source_game_number not in numbers:
                        logger.warning(
                            "Game %s references unknown game number %s",
                            game.game_number,
                            slot.source_game_number,
                        )
                elif isinstance(slot, GroupPositionRule):
                    if slot.group_id not in self.groups and not (
                        slot.position == 3 and self.third_place_rules is not None
                    ):
                        logger.warning(
                            "Game %s references unknown group %s",
                            game.game_number,
                            slot.group_id,
                        )
                elif isinstance(slot, str) and slot not in self.teams:
                    logger.warning(
                        "Game %s references team %s outside the roster",
                        game.game_number,
                        slot,
                    )
        for group, team_ids in self.groups.items():
            for team_id in team_ids:
                if team_id not in self.teams:
                    logger.warning("Group %s lists unknown team %s", group, team_id)

    # Standings

    def group_games(self, group_id: str) -> List[Game]:
        return [
            g
            for g in self.games
            if not g.is_playoff and g.group_id in (group_id, None)
        ]

    def _standings(self, group_id: str, results: Mapping) -> List[TeamStats]:
        return compute_standings(
            self.groups[group_id],
            self.group_games(group_id),
            results,
            self.sort_by_head_to_head,
            self.conduct_scores,
        )

    def group_standings(
        self, guesses: Optional[Mapping[str, GameGuess]] = None
    ) -> Dict[str, List[TeamStats]]:
        """
        Standings per group from actual results. With `guesses`, a group whose results
        are not complete is computed from the guesses instead, once every game of that
        group has been guessed.
        """
        standings: Dict[str, List[TeamStats]] = {}
        for group in self.groups:
            actual = self._standings(group, self.results)
            if guesses is None or group_is_complete(actual):
                standings[group] = actual
                continue
            predicted = self._standings(group, guesses)
            standings[group] = predicted if group_is_complete(predicted) else actual
        return standings

    def predicted_group_standings(
        self, guesses: Mapping[str, GameGuess]
    ) -> Dict[str, List[TeamStats]]:
        return {group: self._standings(group, guesses) for group in self.groups}

    # Bracket

    def actual_bracket(self) -> Dict[str, ResolvedTeams]:
        return resolve_bracket(
            self.games,
            self.group_standings(),
            results=self.results,
            third_place_rules=self.third_place_rules,
        )

    def guesses_for(self, user_id: str) -> Dict[str, GameGuess]:
        return dict(self._guesses.get(user_id, {}))

    def predicted_bracket(self, user_id: str) -> Dict[str, ResolvedTeams]:
        if user_id not in self._bracket_cache:
            guesses = self._guesses.get(user_id, {})
            self._bracket_cache[user_id] = resolve_bracket(
                self.games,
                self.group_standings(guesses),
                results=self.results,
                guesses=guesses,
                third_place_rules=self.third_place_rules,
            )
        return dict(self._bracket_cache[user_id])

    def update_guesses(
        self, user_id: str, guesses: Mapping[str, GameGuess]
    ) -> Dict[str, GameGuess]:
        merged = {**self._guesses.get(user_id, {}), **guesses}
        refreshed = refresh_guess_teams(
            self.games,
            merged,
            self.group_standings(merged),
            results=self.results,
            third_place_rules=self.third_place_rules,
        )
        if refreshed:
            logger.debug(
                "Refreshed bracket teams of %d guesses for user %s",
                len(refreshed),
                user_id,
            )
        merged.update(refreshed)
        self._guesses[user_id] = merged
        self._bracket_cache.pop(user_id, None)
        return dict(merged)

    def record_results(self, results: Mapping[str, GameResult]) -> None:
        """Store actual results. Stored guesses keep the bracket identities they had."""
        self.results.update(results)
        self._bracket_cache.clear()
        logger.debug("Recorded %d results for %s", len(results), self.name)

    def _stage_game(self, stage: str) -> Optional[Game]:
        matches = [g for g in self.games if g.stage == stage]
        return matches[-1] if matches else None

    def honor_roll(self) -> Optional[HonorRoll]:
        return resolve_honor_roll(
            self._stage_game(FINAL_STAGE),
            self._stage_game(THIRD_PLACE_STAGE),
            self.results,
            self.actual_bracket(),
        )

    # Scoring

    def score_user(
        self,
        guesses: Optional[Mapping[str, GameGuess]] = None,
        group_predictions: Optional[Mapping[str, Sequence[TeamStats]]] = None,
        honor_roll_guess: Optional[HonorRoll] = None,
        user_id: Optional[str] = None,
    ) -> UserScore:
        """
        Score one user. Without `guesses`, the guesses stored for `user_id` through
        `update_guesses` are scored, with their bracket identities as last refreshed.
        """
        if guesses is None:
            guesses = self.guesses_for(user_id) if user_id is not None else {}
        bracket = self.actual_bracket()
        actual_standings = self.group_standings()
        if group_predictions is None:
            # Only groups the user has guessed in full count as a prediction.
            group_predictions = {
                group: standings
                for group, standings in self.predicted_group_standings(guesses).items()
                if group_is_complete(standings)
            }

        score = UserScore(user_id=user_id)
        for game in self.games:
            guess = guesses.get(game.id)
            if guess is None:
                continue
            # Fixed pairings need no identity check.
            fixed = isinstance(game.home_team, str) and isinstance(game.away_team, str)
            base = score_game(
                self.results.get(game.id),
                guess,
                game.is_playoff,
                actual_teams=None if fixed else bracket.get(game.id, ResolvedTeams()),
                config=self.config,
            )
            points = boosted_score(base, guess.boost, self.config)
            if game.is_playoff:
                score.playoff_points += points
            else:
                score.group_stage_points += points

        for group in self.groups:
            score.qualifier_points += score_qualifiers(
                group,
                actual_standings.get(group),
                group_predictions.get(group),
                self.config,
            )
        score.honor_roll_points = score_honor_roll(
            honor_roll_guess, self.honor_roll(), self.config
        )
        return score

    def leaderboard(
        self,
        guesses_by_user: Optional[Mapping[str, Mapping[str, GameGuess]]] = None,
        honor_roll_guesses: Optional[Mapping[str, HonorRoll]] = None,
        previous_totals: Optional[Mapping[str, int]] = None,
    ) -> pd.DataFrame:
        if guesses_by_user is None:
            guesses_by_user = self._guesses
        honor_roll_guesses = honor_roll_guesses or {}
        rows = []
        for user_id, guesses in guesses_by_user.items():
            row = self.score_user(
                guesses,
                honor_roll_guess=honor_roll_guesses.get(user_id),
                user_id=user_id,
            ).as_row()
            if previous_totals is not None:
                row["previous_total"] = previous_totals.get(user_id)
            rows.append(row)
        ranked = calculate_ranks(rows, "total")
        if previous_totals is not None:
            ranked = calculate_ranks_with_change(ranked, "previous_total")
        return ranked

    # Simulation

    def simulate(self, simulator: ScoreSimulator) -> "Tournament":
        missing = [g for g in self.games if not has_final_score(self.results.get(g.id))]
        results = simulate_missing_results(self.games, self.results, simulator)
        logger.debug("Simulated %d missing results for %s", len(missing), self.name)
        return Tournament(
            teams=list(self.teams.values()),
            games=self.games,
            groups=self.groups,
            results=results,
            conduct_scores=self.conduct_scores,
            sort_by_head_to_head=self.sort_by_head_to_head,
            config=self.config,
            third_place_rules=self.third_place_rules,
            name=self.name,
        )

    def results_frame(self) -> pd.DataFrame:
        bracket = self.actual_bracket()
        rows = []
        for game in self.games:
            res = self.results.get(game.id)
            teams = bracket.get(game.id)
            rows.append(
                {
                    "game_number": game.game_number,
                    "stage": game.stage,
                    "group": game.group_id,
                    "home_team": teams.home_team if teams else game.home_team,
                    "away_team": teams.away_team if teams else game.away_team,
                    "home_score": res.home_score if res else None,
                    "away_score": res.away_score if res else None,
                    "home_penalty_score": res.home_penalty_score if res else None,
                    "away_penalty_score": res.away_penalty_score if res else None,
                }
            )
        return pd.DataFrame(rows)
