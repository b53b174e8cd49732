"""Shared fixtures: a two-group, four-team tournament with semis, third place and final.

Group A: A1 beats A2 2-0.  Group B: B2 beats B1 1-0 away.
Semi 3: 1A v 2B (A1 v B1), A1 through on penalties after 1-1.
Semi 4: 1B v 2A (B2 v A2), A2 wins 2-0 away.
Game 5 (third place): loser 3 v loser 4 (B1 v B2), B1 wins 3-1.
Game 6 (final): winner 3 v winner 4 (A1 v A2), A1 wins 2-1.
"""

import pytest

from prode.models import Game, GameResult, GroupPositionRule, Team, TeamRule
from prode.standings import compute_standings


@pytest.fixture
def teams():
    return [Team(t, name=f"Team {t}", short_name=t) for t in ("A1", "A2", "B1", "B2")]


@pytest.fixture
def groups():
    return {"A": ["A1", "A2"], "B": ["B1", "B2"]}


@pytest.fixture
def games():
    return [
        Game("gA", 1, "group", "A", "A1", "A2"),
        Game("gB", 2, "group", "B", "B1", "B2"),
        Game("sf1", 3, "semi_final", None, GroupPositionRule("A", 1), GroupPositionRule("B", 2)),
        Game("sf2", 4, "semi_final", None, GroupPositionRule("B", 1), GroupPositionRule("A", 2)),
        Game("third", 5, "third_place", None, TeamRule(3, wants_winner=False), TeamRule(4, wants_winner=False)),
        Game("final", 6, "final", None, TeamRule(3), TeamRule(4)),
    ]


@pytest.fixture
def group_results():
    return {
        "gA": GameResult("gA", 2, 0),
        "gB": GameResult("gB", 0, 1),
    }


@pytest.fixture
def results(group_results):
    return {
        **group_results,
        "sf1": GameResult("sf1", 1, 1, home_penalty_score=4, away_penalty_score=3),
        "sf2": GameResult("sf2", 0, 2),
        "third": GameResult("third", 3, 1),
        "final": GameResult("final", 2, 1),
    }


@pytest.fixture
def standings(games, groups, group_results):
    return {
        group: compute_standings(team_ids, games, group_results)
        for group, team_ids in groups.items()
    }
