from __future__ import annotations

from typing import Mapping, Sequence, Union

import pandas as pd

Rows = Union[pd.DataFrame, Sequence[Mapping]]


def _as_frame(rows: Rows) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows.copy()
    return pd.DataFrame(list(rows))


def calculate_ranks(rows: Rows, score_field: str) -> pd.DataFrame:
    """Competition ranking, highest score first: [50, 45, 45, 40] -> [1, 2, 2, 4]."""
    df = _as_frame(rows)
    if df.empty:
        df["current_rank"] = pd.Series(dtype="int64")
        return df
    if score_field not in df.columns:
        df[score_field] = 0
    scores = pd.to_numeric(df[score_field], errors="coerce").fillna(0)
    df["current_rank"] = scores.rank(method="min", ascending=False).astype(int)
    order = scores.sort_values(ascending=False, kind="mergesort").index
    return df.loc[order].reset_index(drop=True)


def calculate_ranks_with_change(
    ranked: Rows,
    previous_score_field: str,
    id_field: str = "user_id",
) -> pd.DataFrame:
    df = _as_frame(ranked)
    if df.empty or previous_score_field not in df.columns:
        df["rank_change"] = 0
        return df
    has_previous = df[previous_score_field].notna()
    previous = calculate_ranks(
        df.loc[has_previous, [id_field, previous_score_field]], previous_score_field
    )
    previous_rank = dict(zip(previous[id_field], previous["current_rank"]))
    df["rank_change"] = [
        int(previous_rank[user] - current) if user in previous_rank else 0
        for user, current in zip(df[id_field], df["current_rank"])
    ]
    return df
