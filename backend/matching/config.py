from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MatchingConfig:
    interests_weight: float = 30.0
    cuisine_weight: float = 25.0
    atmosphere_weight: float = 20.0
    food_weight: float = 15.0
    price_bonus: float = 10.0
    default_min_score: int = 40
    default_limit: int = 20


DEFAULT_MATCHING_CONFIG = MatchingConfig()
