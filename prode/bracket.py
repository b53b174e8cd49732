from __future__ import annotations

from dataclasses import replace
from typing import Dict, Mapping, Optional, Sequence

from prode.models import (
    Game,
    GameGuess,
    GameResult,
    GroupPositionRule,
    ResolvedTeams,
    ResultOrGuess,
    Slot,
    TeamRule,
    TeamStats,
)
from prode.outcome import has_final_score, loser_of, winner_of
from prode.standings import group_is_complete, rank_third_placed

MAX_RESOLUTION_DEPTH = 16

ThirdPlaceRules = Mapping[str, Mapping[str, str]]

# Six groups, four best thirds: combination of qualifying groups -> slot -> group.
LEGACY_THIRD_PLACE_RULES: Dict[str, Dict[str, str]] = {
    "ABCD": {"A/D/E/F": "A", "D/E/F": "D", "A/B/C/D": "B", "A/B/C": "C"},
    "ABCE": {"A/D/E/F": "A", "D/E/F": "E", "A/B/C/D": "B", "A/B/C": "C"},
    "ABCF": {"A/D/E/F": "A", "D/E/F": "F", "A/B/C/D": "B", "A/B/C": "C"},
    "ABDE": {"A/D/E/F": "D", "D/E/F": "E", "A/B/C/D": "A", "A/B/C": "B"},
    "ABDF": {"A/D/E/F": "D", "D/E/F": "F", "A/B/C/D": "A", "A/B/C": "B"},
    "ABEF": {"A/D/E/F": "E", "D/E/F": "F", "A/B/C/D": "B", "A/B/C": "A"},
    "ACDE": {"A/D/E/F": "E", "D/E/F": "D", "A/B/C/D": "C", "A/B/C": "A"},
    "ACDF": {"A/D/E/F": "F", "D/E/F": "D", "A/B/C/D": "C", "A/B/C": "A"},
    "ACEF": {"A/D/E/F": "E", "D/E/F": "F", "A/B/C/D": "C", "A/B/C": "A"},
    "ADEF": {"A/D/E/F": "E", "D/E/F": "F", "A/B/C/D": "D", "A/B/C": "A"},
    "BCDE": {"A/D/E/F": "E", "D/E/F": "D", "A/B/C/D": "B", "A/B/C": "C"},
    "BCDF": {"A/D/E/F": "F", "D/E/F": "D", "A/B/C/D": "C", "A/B/C": "B"},
    "BCEF": {"A/D/E/F": "F", "D/E/F": "E", "A/B/C/D": "C", "A/B/C": "B"},
    "BDEF": {"A/D/E/F": "F", "D/E/F": "E", "A/B/C/D": "D", "A/B/C": "B"},
    "CDEF": {"A/D/E/F": "F", "D/E/F": "E", "A/B/C/D": "D", "A/B/C": "C"},
}


class BracketResolver:
    """
    Resolves the teams of knockout games for one set of inputs.

    Slots are resolved recursively through the games they reference and memoized by
    game number for the lifetime of the resolver. A finished result for a source game
    takes precedence over a guess for it. Anything that cannot be resolved (missing
    scores, incomplete groups, unknown game numbers, cycles) yields None.
    """

    def __init__(
        self,
        all_games: Sequence[Game],
        standings: Optional[Mapping[str, Sequence[TeamStats]]] = None,
        results: Optional[Mapping[str, GameResult]] = None,
        guesses: Optional[Mapping[str, GameGuess]] = None,
        third_place_rules: Optional[ThirdPlaceRules] = None,
    ):
        self.all_games = list(all_games)
        self.games_by_number: Dict[int, Game] = {}
        for game in self.all_games:
            self.games_by_number.setdefault(game.game_number, game)
        self.standings = dict(standings or {})
        self.results = results or {}
        self.guesses = guesses or {}
        self.third_place_rules = third_place_rules
        self.third_place_slot_count = sum(
            1
            for game in self.all_games
            for slot in game.slots()
            if isinstance(slot, GroupPositionRule) and slot.position == 3
        )
        self._memo: Dict[int, ResolvedTeams] = {}
        self._in_progress: set[int] = set()
        self._third_place_groups: Optional[Dict[str, str]] = None

    def resolve(self, game: Game) -> ResolvedTeams:
        return self._resolve(game, 0)

    def resolve_all(self) -> Dict[str, ResolvedTeams]:
        ordered = sorted(self.all_games, key=lambda g: g.game_number)
        return {g.id: self.resolve(g) for g in ordered if g.is_playoff}

    def outcome_source(self, game: Game) -> Optional[ResultOrGuess]:
        result = self.results.get(game.id)
        if has_final_score(result):
            return result
        guess = self.guesses.get(game.id)
        if has_final_score(guess):
            return guess
        return None

    def _resolve(self, game: Game, depth: int) -> ResolvedTeams:
        key = game.game_number
        if key in self._memo:
            return self._memo[key]
        if depth > MAX_RESOLUTION_DEPTH or key in self._in_progress:
            return ResolvedTeams()
        self._in_progress.add(key)
        try:
            resolved = ResolvedTeams(
                home_team=self._resolve_slot(game.home_team, depth),
                away_team=self._resolve_slot(game.away_team, depth),
            )
        finally:
            self._in_progress.discard(key)
        self._memo[key] = resolved
        return resolved

    def _resolve_slot(self, slot: Slot, depth: int) -> Optional[str]:
        if slot is None:
            return None
        if isinstance(slot, str):
            return slot
        if isinstance(slot, GroupPositionRule):
            return self._resolve_group_position(slot)
        if isinstance(slot, TeamRule):
            return self._resolve_team_rule(slot, depth)
        return None

    def _resolve_team_rule(self, rule: TeamRule, depth: int) -> Optional[str]:
        source = self.games_by_number.get(rule.source_game_number)
        if source is None:
            return None
        outcome = self.outcome_source(source)
        if outcome is None:
            return None
        teams = self._resolve(source, depth + 1)
        if rule.wants_winner:
            return winner_of(outcome, teams.home_team, teams.away_team)
        return loser_of(outcome, teams.home_team, teams.away_team)

    def _resolve_group_position(self, rule: GroupPositionRule) -> Optional[str]:
        group_id: Optional[str] = rule.group_id
        if rule.position == 3 and self.third_place_rules is not None:
            group_id = self._third_place_assignments().get(rule.group_id)
            if group_id is None:
                return None
        standings = self.standings.get(group_id)
        if not group_is_complete(standings):
            return None
        idx = rule.position - 1
        if idx < 0 or idx >= len(standings):
            return None
        return standings[idx].team_id

    def _third_place_assignments(self) -> Dict[str, str]:
        if self._third_place_groups is not None:
            return self._third_place_groups
        self._third_place_groups = {}
        if self.standings and all(
            group_is_complete(s) for s in self.standings.values()
        ):
            best_third = rank_third_placed(self.standings)[: self.third_place_slot_count]
            combo_key = "".join(sorted(group for group, _ in best_third))
            self._third_place_groups = dict(self.third_place_rules.get(combo_key, {}))
        return self._third_place_groups


def _split_results_and_guesses(results_or_guesses: Mapping[str, ResultOrGuess]):
    results: Dict[str, GameResult] = {}
    guesses: Dict[str, GameGuess] = {}
    for game_id, value in results_or_guesses.items():
        if isinstance(value, GameResult):
            results[game_id] = value
        elif isinstance(value, GameGuess):
            guesses[game_id] = value
    return results, guesses


def resolve_teams(
    game: Game,
    results_or_guesses: Mapping[str, ResultOrGuess],
    all_games: Sequence[Game],
    standings: Mapping[str, Sequence[TeamStats]],
    third_place_rules: Optional[ThirdPlaceRules] = None,
) -> ResolvedTeams:
    results, guesses = _split_results_and_guesses(results_or_guesses)
    resolver = BracketResolver(
        all_games,
        standings,
        results=results,
        guesses=guesses,
        third_place_rules=third_place_rules,
    )
    return resolver.resolve(game)


def resolve_bracket(
    all_games: Sequence[Game],
    standings: Mapping[str, Sequence[TeamStats]],
    results: Optional[Mapping[str, GameResult]] = None,
    guesses: Optional[Mapping[str, GameGuess]] = None,
    third_place_rules: Optional[ThirdPlaceRules] = None,
) -> Dict[str, ResolvedTeams]:
    resolver = BracketResolver(
        all_games,
        standings,
        results=results,
        guesses=guesses,
        third_place_rules=third_place_rules,
    )
    return resolver.resolve_all()


def refresh_guess_teams(
    all_games: Sequence[Game],
    guesses: Mapping[str, GameGuess],
    standings: Mapping[str, Sequence[TeamStats]],
    results: Optional[Mapping[str, GameResult]] = None,
    third_place_rules: Optional[ThirdPlaceRules] = None,
) -> Dict[str, GameGuess]:
    """
    Return copies of the knockout guesses whose stored teams no longer match the
    bracket resolved from `guesses`. Guesses for games with fixed teams are left out.
    """
    resolver = BracketResolver(
        all_games,
        standings,
        results=results,
        guesses=guesses,
        third_place_rules=third_place_rules,
    )
    updated: Dict[str, GameGuess] = {}
    for game in sorted(all_games, key=lambda g: g.game_number):
        if not game.is_playoff:
            continue
        if isinstance(game.home_team, str) and isinstance(game.away_team, str):
            continue
        guess = guesses.get(game.id)
        if guess is None:
            continue
        resolved = resolver.resolve(game)
        if (guess.home_team, guess.away_team) != (resolved.home_team, resolved.away_team):
            updated[game.id] = replace(
                guess, home_team=resolved.home_team, away_team=resolved.away_team
            )
    return updated
