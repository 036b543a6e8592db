from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..attributes import overlap, round_half_up
from .config import DEFAULT_MATCHING_CONFIG, MatchingConfig


@dataclass(frozen=True)
class MatchScore:
    score: int
    shared_interests: list[str] = field(default_factory=list)
    shared_cuisines: list[str] = field(default_factory=list)
    shared_atmospheres: list[str] = field(default_factory=list)


def _category_points(left: list[str], right: list[str], weight: float) -> float:
    """Overlap over the larger set, times *weight*. Two empty sets score 0."""
    if not left and not right:
        return 0.0
    return len(overlap(left, right)) / max(len(left), len(right)) * weight


def calculate_match_score(
    user_a: Any,
    user_b: Any,
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> MatchScore:
    """Compatibility of two user profiles on a 0-100 scale.

    Callers must not pass the same user twice.
    """
    interests_a, interests_b = user_a.interests or [], user_b.interests or []
    cuisines_a, cuisines_b = user_a.cuisine_preferences or [], user_b.cuisine_preferences or []
    atmos_a, atmos_b = user_a.atmosphere_preferences or [], user_b.atmosphere_preferences or []
    food_a, food_b = user_a.food_preferences or [], user_b.food_preferences or []

    total = (
        _category_points(interests_a, interests_b, config.interests_weight)
        + _category_points(cuisines_a, cuisines_b, config.cuisine_weight)
        + _category_points(atmos_a, atmos_b, config.atmosphere_weight)
        + _category_points(food_a, food_b, config.food_weight)
    )

    if user_a.price_range and user_a.price_range == user_b.price_range:
        total += config.price_bonus

    return MatchScore(
        score=round_half_up(total),
        shared_interests=overlap(interests_a, interests_b),
        shared_cuisines=overlap(cuisines_a, cuisines_b),
        shared_atmospheres=overlap(atmos_a, atmos_b),
    )
