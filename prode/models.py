from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

GROUP_STAGE = "group"


@dataclass(frozen=True)
class Team:
    id: str
    name: str = ""
    short_name: str = ""


@dataclass(frozen=True)
class TeamRule:
    source_game_number: int
    wants_winner: bool = True


@dataclass(frozen=True)
class GroupPositionRule:
    group_id: str
    position: int


# A slot is a concrete team id, a rule, or None while undetermined.
Slot = Union[str, TeamRule, GroupPositionRule, None]


@dataclass(frozen=True)
class Game:
    id: str
    game_number: int
    stage: str = GROUP_STAGE
    group_id: Optional[str] = None
    home_team: Slot = None
    away_team: Slot = None

    @property
    def is_playoff(self) -> bool:
        return self.stage != GROUP_STAGE

    def slots(self):
        return self.home_team, self.away_team


@dataclass(frozen=True)
class GameResult:
    game_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_penalty_score: Optional[int] = None
    away_penalty_score: Optional[int] = None

    @property
    def home_penalty_winner(self) -> bool:
        if self.home_penalty_score is None or self.away_penalty_score is None:
            return False
        return self.home_penalty_score > self.away_penalty_score

    @property
    def away_penalty_winner(self) -> bool:
        if self.home_penalty_score is None or self.away_penalty_score is None:
            return False
        return self.away_penalty_score > self.home_penalty_score


@dataclass(frozen=True)
class GameGuess:
    game_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_penalty_winner: bool = False
    away_penalty_winner: bool = False
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    boost: Optional[str] = None


ResultOrGuess = Union[GameResult, GameGuess]


@dataclass
class TeamStats:
    team_id: str
    games_played: int = 0
    points: int = 0
    win: int = 0
    draw: int = 0
    loss: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    conduct_score: int = 0
    position: int = 0
    is_complete: bool = False


@dataclass(frozen=True)
class ResolvedTeams:
    home_team: Optional[str] = None
    away_team: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.home_team is not None and self.away_team is not None


@dataclass(frozen=True)
class HonorRoll:
    champion: Optional[str] = None
    runner_up: Optional[str] = None
    third_place: Optional[str] = None
