from __future__ import annotations

from typing import Optional

from prode.models import ResultOrGuess


def is_score(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return value is not None and int(value) == value
    except (TypeError, ValueError, OverflowError):
        return False


def has_final_score(result_or_guess: Optional[ResultOrGuess]) -> bool:
    if result_or_guess is None:
        return False
    return is_score(result_or_guess.home_score) and is_score(result_or_guess.away_score)


def penalty_flags(result_or_guess: ResultOrGuess) -> tuple[bool, bool]:
    return (
        bool(result_or_guess.home_penalty_winner),
        bool(result_or_guess.away_penalty_winner),
    )


def get_winner(
    home_score,
    away_score,
    home_penalty_winner: bool,
    away_penalty_winner: bool,
    home_team: Optional[str],
    away_team: Optional[str],
) -> Optional[str]:
    if not is_score(home_score) or not is_score(away_score):
        return None
    if home_score > away_score:
        return home_team
    if home_score < away_score:
        return away_team
    if home_penalty_winner:
        return home_team
    if away_penalty_winner:
        return away_team
    return None


def get_loser(
    home_score,
    away_score,
    home_penalty_winner: bool,
    away_penalty_winner: bool,
    home_team: Optional[str],
    away_team: Optional[str],
) -> Optional[str]:
    if not is_score(home_score) or not is_score(away_score):
        return None
    if home_score > away_score:
        return away_team
    if home_score < away_score:
        return home_team
    if home_penalty_winner:
        return away_team
    if away_penalty_winner:
        return home_team
    return None


def winner_of(
    result_or_guess: Optional[ResultOrGuess],
    home_team: Optional[str],
    away_team: Optional[str],
) -> Optional[str]:
    if result_or_guess is None:
        return None
    home_pen, away_pen = penalty_flags(result_or_guess)
    return get_winner(
        result_or_guess.home_score,
        result_or_guess.away_score,
        home_pen,
        away_pen,
        home_team,
        away_team,
    )


def loser_of(
    result_or_guess: Optional[ResultOrGuess],
    home_team: Optional[str],
    away_team: Optional[str],
) -> Optional[str]:
    if result_or_guess is None:
        return None
    home_pen, away_pen = penalty_flags(result_or_guess)
    return get_loser(
        result_or_guess.home_score,
        result_or_guess.away_score,
        home_pen,
        away_pen,
        home_team,
        away_team,
    )


def outcome_sign(home_score: int, away_score: int) -> int:
    if home_score > away_score:
        return 1
    if home_score < away_score:
        return -1
    return 0
