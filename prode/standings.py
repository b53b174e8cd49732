from __future__ import annotations

from dataclasses import fields
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from prode.models import Game, ResultOrGuess, TeamStats
from prode.outcome import has_final_score

TABLE_COLUMNS = ["played", "points", "w", "d", "l", "gf", "ga", "gd"]
SORT_COLUMNS = [
    "points",
    "gd",
    "gf",
    "h2h_points",
    "h2h_gd",
    "h2h_gf",
    "conduct",
    "team_id",
]
SORT_ASCENDING = [False, False, False, False, False, False, True, True]


def _empty_table(teams: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(index=list(teams), columns=TABLE_COLUMNS, data=0)


def _accumulate(
    table: pd.DataFrame,
    games: Iterable[Game],
    results: Mapping[str, ResultOrGuess],
) -> None:
    for game in games:
        res = results[game.id]
        home = game.home_team
        away = game.away_team
        hs = int(res.home_score)
        as_ = int(res.away_score)
        table.loc[home, "played"] += 1
        table.loc[away, "played"] += 1
        table.loc[home, "gf"] += hs
        table.loc[home, "ga"] += as_
        table.loc[away, "gf"] += as_
        table.loc[away, "ga"] += hs
        if hs > as_:
            table.loc[home, "points"] += 3
            table.loc[home, "w"] += 1
            table.loc[away, "l"] += 1
        elif hs < as_:
            table.loc[away, "points"] += 3
            table.loc[away, "w"] += 1
            table.loc[home, "l"] += 1
        else:
            table.loc[home, "points"] += 1
            table.loc[away, "points"] += 1
            table.loc[home, "d"] += 1
            table.loc[away, "d"] += 1
    table["gd"] = table["gf"] - table["ga"]


def _games_among(games: Iterable[Game], teams: Iterable[str]) -> List[Game]:
    team_set = set(teams)
    return [
        g
        for g in games
        if isinstance(g.home_team, str)
        and isinstance(g.away_team, str)
        and g.home_team in team_set
        and g.away_team in team_set
        and g.home_team != g.away_team
    ]


def compute_standings(
    team_ids: Sequence[str],
    games: Sequence[Game],
    results: Mapping[str, ResultOrGuess],
    sort_by_head_to_head: bool = False,
    conduct_scores: Optional[Mapping[str, int]] = None,
) -> List[TeamStats]:
    """
    Rank a group from its finished games.

    `results` maps game id to a GameResult or a GameGuess, so the same call yields
    actual or predicted standings. Ordering: points, goal difference, goals for,
    head-to-head among teams level on all three (when enabled), conduct score
    (lower first), team id.
    """
    teams = list(dict.fromkeys(team_ids))
    if not teams:
        return []
    conduct_scores = conduct_scores or {}

    scheduled = _games_among(games, teams)
    scored = [g for g in scheduled if has_final_score(results.get(g.id))]

    table = _empty_table(teams)
    _accumulate(table, scored, results)

    scheduled_count = {t: 0 for t in teams}
    for g in scheduled:
        scheduled_count[g.home_team] += 1
        scheduled_count[g.away_team] += 1

    table["team_id"] = table.index
    table["conduct"] = [int(conduct_scores.get(t, 0) or 0) for t in teams]
    table["h2h_points"] = 0
    table["h2h_gd"] = 0
    table["h2h_gf"] = 0

    if sort_by_head_to_head:
        for _, block in table.groupby(["points", "gd", "gf"]):
            if len(block) < 2:
                continue
            tied = block.index.tolist()
            h2h = _empty_table(tied)
            _accumulate(h2h, _games_among(scored, tied), results)
            table.loc[tied, "h2h_points"] = h2h.loc[tied, "points"].values
            table.loc[tied, "h2h_gd"] = h2h.loc[tied, "gd"].values
            table.loc[tied, "h2h_gf"] = h2h.loc[tied, "gf"].values

    ranked = table.sort_values(by=SORT_COLUMNS, ascending=SORT_ASCENDING)

    standings: List[TeamStats] = []
    for position, team in enumerate(ranked.index.tolist(), start=1):
        row = ranked.loc[team]
        played = int(row["played"])
        standings.append(
            TeamStats(
                team_id=team,
                games_played=played,
                points=int(row["points"]),
                win=int(row["w"]),
                draw=int(row["d"]),
                loss=int(row["l"]),
                goals_for=int(row["gf"]),
                goals_against=int(row["ga"]),
                goal_difference=int(row["gd"]),
                conduct_score=int(row["conduct"]),
                position=position,
                is_complete=scheduled_count[team] > 0
                and played == scheduled_count[team],
            )
        )
    return standings


def group_is_complete(standings: Optional[Sequence[TeamStats]]) -> bool:
    return bool(standings) and all(ts.is_complete for ts in standings)


def rank_third_placed(
    standings_by_group: Mapping[str, Sequence[TeamStats]],
) -> List[Tuple[str, TeamStats]]:
    third_place = [
        (group, standings[2])
        for group, standings in standings_by_group.items()
        if group_is_complete(standings) and len(standings) >= 3
    ]
    third_place.sort(
        key=lambda x: (
            -x[1].points,
            -x[1].goal_difference,
            -x[1].goals_for,
            x[1].conduct_score,
            x[0],
        )
    )
    return third_place


def standings_frame(standings: Sequence[TeamStats]) -> pd.DataFrame:
    columns = [f.name for f in fields(TeamStats)]
    return pd.DataFrame([vars(ts) for ts in standings], columns=columns)


def standings_by_group(
    groups: Mapping[str, Sequence[str]],
    games: Sequence[Game],
    results: Mapping[str, ResultOrGuess],
    sort_by_head_to_head: bool = False,
    conduct_scores: Optional[Mapping[str, int]] = None,
) -> Dict[str, List[TeamStats]]:
    return {
        group: compute_standings(
            teams, games, results, sort_by_head_to_head, conduct_scores
        )
        for group, teams in groups.items()
    }
