from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Mapping, Optional

SILVER = "silver"
GOLDEN = "golden"
BOOST_TYPES = (SILVER, GOLDEN)


@dataclass(frozen=True)
class ScoringConfig:
    game_exact_score_points: int = 2
    game_correct_outcome_points: int = 1
    champion_points: int = 5
    runner_up_points: int = 3
    third_place_points: int = 1
    qualified_team_points: int = 1
    exact_position_qualified_points: int = 1
    silver_multiplier: float = 2.0
    golden_multiplier: float = 3.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping]) -> "ScoringConfig":
        """Build a config from a tournament row; None or missing keys keep defaults."""
        if not mapping:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs = {
            key: value
            for key, value in mapping.items()
            if key in known and value is not None
        }
        return cls(**kwargs)

    def boost_multiplier(self, boost: Optional[str]) -> float:
        if boost is None:
            return 1.0
        if boost == SILVER:
            return float(self.silver_multiplier)
        if boost == GOLDEN:
            return float(self.golden_multiplier)
        raise ValueError(f"Unknown boost type: {boost}")


DEFAULT_CONFIG = ScoringConfig()
