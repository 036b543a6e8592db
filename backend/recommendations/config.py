from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RecommendationConfig:
    cuisine_weight: float = 40.0
    atmosphere_weight: float = 25.0
    price_exact: float = 15.0
    price_adjacent: float = 7.5
    study_bonus: float = 10.0
    rating_weight: float = 10.0
    high_rating_threshold: float = 4.5
    default_min_score: int = 40
    default_limit: int = 10
    default_similar_limit: int = 5


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
