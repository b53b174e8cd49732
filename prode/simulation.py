from __future__ import annotations

from dataclasses import replace
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import poisson

from prode.models import Game, GameGuess, GameResult
from prode.outcome import has_final_score

DEFAULT_GOAL_RATE = 1.35
DEFAULT_PENALTY_RATE = 3.0
MAX_PENALTY_SCORE = 5
MAX_GOALS = 10


def outcome_probabilities(
    home_lam: float,
    away_lam: float,
    max_goals: int = MAX_GOALS,
) -> Tuple[float, float, float, np.ndarray]:
    goals = np.arange(max_goals + 1)
    joint = np.outer(poisson.pmf(goals, home_lam), poisson.pmf(goals, away_lam))
    total = float(joint.sum())
    if total <= 0.0:
        return 0.0, 0.0, 0.0, joint
    joint = joint / total
    p_home = float(np.tril(joint, k=-1).sum())
    p_draw = float(np.trace(joint))
    p_away = float(np.triu(joint, k=1).sum())
    return p_home, p_draw, p_away, joint


class ScoreSimulator:
    """Strategy producing a result for a game that has not been played."""

    def generate(self, game: Game) -> GameResult:
        raise NotImplementedError


class PoissonScoreSimulator(ScoreSimulator):
    def __init__(
        self,
        lam: float = DEFAULT_GOAL_RATE,
        penalty_lam: float = DEFAULT_PENALTY_RATE,
        random_state: Optional[int] = None,
    ):
        if lam <= 0.0:
            raise ValueError("lam must be greater than 0")
        if penalty_lam <= 0.0:
            raise ValueError("penalty_lam must be greater than 0")
        self.lam = float(lam)
        self.penalty_lam = float(penalty_lam)
        self.rng = np.random.default_rng(random_state)

    def _sample_shootout(self) -> Tuple[int, int]:
        home = min(MAX_PENALTY_SCORE, int(self.rng.poisson(self.penalty_lam)))
        away = min(MAX_PENALTY_SCORE, int(self.rng.poisson(self.penalty_lam)))
        if home == away:
            # Both capped at the maximum: the other side has to miss.
            if home == MAX_PENALTY_SCORE:
                if self.rng.random() < 0.5:
                    away -= 1
                else:
                    home -= 1
            elif self.rng.random() < 0.5:
                home += 1
            else:
                away += 1
        return home, away

    def generate(self, game: Game) -> GameResult:
        home = int(self.rng.poisson(self.lam))
        away = int(self.rng.poisson(self.lam))
        if game.is_playoff and home == away:
            home_pen, away_pen = self._sample_shootout()
            return GameResult(
                game_id=game.id,
                home_score=home,
                away_score=away,
                home_penalty_score=home_pen,
                away_penalty_score=away_pen,
            )
        return GameResult(game_id=game.id, home_score=home, away_score=away)


class ModalScoreSimulator(ScoreSimulator):
    def __init__(
        self,
        home_lam: float = DEFAULT_GOAL_RATE,
        away_lam: float = DEFAULT_GOAL_RATE,
        max_goals: int = MAX_GOALS,
    ):
        if home_lam <= 0.0 or away_lam <= 0.0:
            raise ValueError("Goal rates must be greater than 0")
        self.home_lam = float(home_lam)
        self.away_lam = float(away_lam)
        _, _, _, joint = outcome_probabilities(self.home_lam, self.away_lam, max_goals)
        home, away = np.unravel_index(int(np.argmax(joint)), joint.shape)
        self.home_score = int(home)
        self.away_score = int(away)

    def generate(self, game: Game) -> GameResult:
        if game.is_playoff and self.home_score == self.away_score:
            home_wins = self.home_lam >= self.away_lam
            return GameResult(
                game_id=game.id,
                home_score=self.home_score,
                away_score=self.away_score,
                home_penalty_score=MAX_PENALTY_SCORE if home_wins else MAX_PENALTY_SCORE - 1,
                away_penalty_score=MAX_PENALTY_SCORE - 1 if home_wins else MAX_PENALTY_SCORE,
            )
        return GameResult(
            game_id=game.id, home_score=self.home_score, away_score=self.away_score
        )


def simulate_missing_results(
    games: Sequence[Game],
    results: Mapping[str, GameResult],
    simulator: ScoreSimulator,
) -> Dict[str, GameResult]:
    filled = dict(results)
    for game in sorted(games, key=lambda g: g.game_number):
        if not has_final_score(filled.get(game.id)):
            filled[game.id] = simulator.generate(game)
    return filled


def autofill_guesses(
    games: Sequence[Game],
    guesses: Mapping[str, GameGuess],
    simulator: ScoreSimulator,
) -> Dict[str, GameGuess]:
    """Return generated guesses for the games the user has not predicted."""
    generated: Dict[str, GameGuess] = {}
    for game in sorted(games, key=lambda g: g.game_number):
        existing = guesses.get(game.id)
        if has_final_score(existing):
            continue
        result = simulator.generate(game)
        scores = dict(
            home_score=result.home_score,
            away_score=result.away_score,
            home_penalty_winner=result.home_penalty_winner,
            away_penalty_winner=result.away_penalty_winner,
        )
        if existing is None:
            generated[game.id] = GameGuess(game_id=game.id, **scores)
        else:
            generated[game.id] = replace(existing, **scores)
    return generated
