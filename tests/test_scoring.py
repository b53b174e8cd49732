"""Tests for prode.scoring: per-game points, boosts, qualifiers and the honor roll."""

import pytest

from prode.bracket import resolve_bracket
from prode.config import ScoringConfig
from prode.models import GameGuess, GameResult, HonorRoll, ResolvedTeams, TeamStats
from prode.scoring import (
    TeamPositionPrediction,
    boosted_score,
    qualified_positions,
    resolve_honor_roll,
    score_game,
    score_honor_roll,
    score_qualified_teams,
    score_qualifiers,
    score_team_prediction,
)


def _result(home, away, home_pen=None, away_pen=None):
    return GameResult("g", home, away, home_penalty_score=home_pen, away_penalty_score=away_pen)


def _guess(home, away, **kwargs):
    return GameGuess("g", home, away, **kwargs)


class TestScoreGame:
    def test_exact_score(self):
        assert score_game(_result(2, 1), _guess(2, 1), is_playoff=False) == 2

    def test_correct_outcome(self):
        assert score_game(_result(2, 1), _guess(3, 1), is_playoff=False) == 1

    def test_correct_draw(self):
        assert score_game(_result(1, 1), _guess(0, 0), is_playoff=False) == 1

    def test_wrong_outcome(self):
        assert score_game(_result(2, 1), _guess(1, 2), is_playoff=False) == 0
        assert score_game(_result(2, 1), _guess(1, 1), is_playoff=False) == 0

    def test_incomplete_inputs(self):
        assert score_game(None, _guess(1, 0), is_playoff=False) == 0
        assert score_game(_result(1, 0), None, is_playoff=False) == 0
        assert score_game(_result(1, None), _guess(1, 0), is_playoff=False) == 0
        assert score_game(_result(1, 0), _guess(None, 0), is_playoff=False) == 0

    def test_exact_tie_with_shootout_winner(self):
        result = _result(1, 1, home_pen=4, away_pen=3)
        guess = _guess(1, 1, home_penalty_winner=True)

        assert score_game(result, guess, is_playoff=True) == 2

    def test_exact_tie_with_wrong_shootout_winner(self):
        result = _result(1, 1, home_pen=4, away_pen=3)

        assert score_game(result, _guess(1, 1, away_penalty_winner=True), is_playoff=True) == 0
        assert score_game(result, _guess(1, 1), is_playoff=True) == 0

    def test_other_tie_with_shootout_winner(self):
        result = _result(1, 1, home_pen=4, away_pen=3)

        assert score_game(result, _guess(2, 2, home_penalty_winner=True), is_playoff=True) == 1
        assert score_game(result, _guess(0, 0, away_penalty_winner=True), is_playoff=True) == 0

    def test_guessed_winner_went_through_on_penalties(self):
        result = _result(1, 1, home_pen=4, away_pen=3)

        assert score_game(result, _guess(2, 0), is_playoff=True) == 1
        assert score_game(result, _guess(0, 2), is_playoff=True) == 0

    def test_away_side_went_through_on_penalties(self):
        result = _result(0, 0, home_pen=2, away_pen=4)

        assert score_game(result, _guess(1, 3), is_playoff=True) == 1
        assert score_game(result, _guess(1, 0), is_playoff=True) == 0

    def test_guessed_shootout_winner_won_outright(self):
        assert score_game(_result(2, 0), _guess(1, 1, home_penalty_winner=True), is_playoff=True) == 1
        assert score_game(_result(2, 0), _guess(1, 1, away_penalty_winner=True), is_playoff=True) == 0
        assert score_game(_result(0, 1), _guess(0, 0, away_penalty_winner=True), is_playoff=True) == 1

    def test_penalty_rules_only_apply_to_knockouts(self):
        result = _result(1, 1, home_pen=4, away_pen=3)

        assert score_game(result, _guess(1, 1), is_playoff=False) == 2
        assert score_game(result, _guess(2, 0), is_playoff=False) == 0

    def test_wrong_teams_score_nothing(self):
        guess = _guess(2, 0, home_team="A", away_team="B")

        assert score_game(_result(2, 0), guess, True, ResolvedTeams("A", "C")) == 0
        assert score_game(_result(2, 0), guess, True, ResolvedTeams("A", "B")) == 2

    def test_guess_stored_before_teams_were_known(self):
        assert score_game(_result(2, 0), _guess(2, 0), True, ResolvedTeams("A", "C")) == 0
        assert score_game(_result(2, 0), _guess(2, 0, home_team="A"), True, ResolvedTeams("A", "C")) == 0

    def test_fixed_pairing_skips_identity(self):
        assert score_game(_result(2, 0), _guess(2, 0), True) == 2

    def test_identity_ignored_for_group_games(self):
        guess = _guess(2, 0, home_team="A", away_team="B")

        assert score_game(_result(2, 0), guess, False, ResolvedTeams("A", "C")) == 2

    def test_exact_never_below_outcome(self):
        for home, away in [(0, 0), (1, 0), (0, 3), (2, 2), (4, 1)]:
            result = _result(home, away)
            exact = score_game(result, _guess(home, away), is_playoff=False)
            assert exact == 2
            for guess_home, guess_away in [(0, 0), (1, 0), (0, 1), (3, 3), (5, 0)]:
                points = score_game(result, _guess(guess_home, guess_away), is_playoff=False)
                assert 0 <= points <= exact

    def test_custom_config(self):
        config = ScoringConfig(game_exact_score_points=5, game_correct_outcome_points=2)

        assert score_game(_result(2, 1), _guess(2, 1), False, config=config) == 5
        assert score_game(_result(2, 1), _guess(3, 0), False, config=config) == 2


class TestBoostedScore:
    def test_multipliers(self):
        assert boosted_score(2, None) == 2
        assert boosted_score(2, "silver") == 4
        assert boosted_score(2, "golden") == 6
        assert boosted_score(0, "golden") == 0

    def test_unknown_boost(self):
        with pytest.raises(ValueError):
            boosted_score(1, "platinum")


def _stats(team_ids, complete=True):
    return [
        TeamStats(team_id, position=i, is_complete=complete)
        for i, team_id in enumerate(team_ids, start=1)
    ]


class TestQualifiers:
    def test_both_qualifiers_guessed(self):
        actual = _stats(["A1", "A2", "A3", "A4"])
        guessed = _stats(["A2", "A1", "A4", "A3"])

        assert score_qualifiers("A", actual, guessed) == 2

    def test_one_qualifier_guessed(self):
        actual = _stats(["A1", "A2", "A3", "A4"])
        guessed = _stats(["A1", "A3", "A2", "A4"])

        assert score_qualifiers("A", actual, guessed) == 1

    def test_group_not_finished(self):
        actual = _stats(["A1", "A2", "A3", "A4"], complete=False)
        guessed = _stats(["A1", "A2", "A3", "A4"])

        assert score_qualifiers("A", actual, guessed) == 0
        assert score_qualifiers("A", None, guessed) == 0

    def test_qualified_positions(self):
        standings = {
            "A": _stats(["A1", "A2", "A3"]),
            "B": _stats(["B1", "B2", "B3"]),
            "C": _stats(["C1", "C2", "C3"], complete=False),
        }
        positions = qualified_positions(standings, qualified_third_placed=["B3"])

        assert positions == {"A1": 1, "A2": 2, "B1": 1, "B2": 2, "B3": 3}

    def test_team_predictions(self):
        qualified = {"A1": 1, "A2": 2}
        scores = score_qualified_teams(
            [
                TeamPositionPrediction("A1", "A", 1, predicted_to_qualify=True),
                TeamPositionPrediction("A2", "A", 1, predicted_to_qualify=True),
                TeamPositionPrediction("A3", "A", 2, predicted_to_qualify=True),
                TeamPositionPrediction("A4", "A", 4),
            ],
            qualified,
        )

        assert [s.points for s in scores] == [2, 1, 0, 0]
        assert scores[0].reason == "qualified + exact position"
        assert scores[1].reason == "qualified, wrong position"
        assert scores[2].reason == "predicted to qualify, but did not qualify"
        assert scores[3].reason == "not predicted to qualify"
        assert not scores[2].actually_qualified

    def test_qualified_but_not_predicted(self):
        score = score_team_prediction(TeamPositionPrediction("A1", "A", 3), {"A1": 1})

        assert score.points == 0
        assert score.actually_qualified
        assert score.actual_position == 1


class TestHonorRoll:
    @pytest.fixture
    def stage_games(self, games):
        by_id = {g.id: g for g in games}
        return by_id["final"], by_id["third"]

    def test_resolve(self, games, results, standings, stage_games):
        final, third = stage_games
        bracket = resolve_bracket(games, standings, results=results)

        assert resolve_honor_roll(final, third, results, bracket) == HonorRoll("A1", "A2", "B1")

    def test_unplayed_third_place_game(self, games, results, standings, stage_games):
        final, third = stage_games
        results = dict(results)
        del results["third"]
        bracket = resolve_bracket(games, standings, results=results)

        assert resolve_honor_roll(final, third, results, bracket) is None

    def test_no_third_place_game(self, games, results, standings, stage_games):
        final, _ = stage_games
        bracket = resolve_bracket(games, standings, results=results)

        assert resolve_honor_roll(final, None, results, bracket) == HonorRoll("A1", "A2", None)

    def test_unplayed_final(self, games, group_results, standings, stage_games):
        final, third = stage_games
        bracket = resolve_bracket(games, standings, results=group_results)

        assert resolve_honor_roll(final, third, group_results, bracket) is None
        assert resolve_honor_roll(None, third, group_results, bracket) is None

    def test_score(self):
        actual = HonorRoll("A1", "A2", "B1")

        assert score_honor_roll(HonorRoll("A1", "A2", "B1"), actual) == 9
        assert score_honor_roll(HonorRoll("A1", "B2", "B1"), actual) == 6
        assert score_honor_roll(HonorRoll("A2", "A1", "B2"), actual) == 0
        assert score_honor_roll(None, actual) == 0
        assert score_honor_roll(HonorRoll("A1", "A2", "B1"), None) == 0
