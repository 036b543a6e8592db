from __future__ import annotations

from typing import Any

from ..attributes import overlap, price_tier, round_half_up
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig


def _matching_cuisines(restaurant: Any, user: Any) -> list[str]:
    """User cuisines found (case-insensitively) inside any restaurant cuisine."""
    offered = [c.lower() for c in restaurant.cuisine_type or []]
    return [
        wanted for wanted in user.cuisine_preferences or []
        if any(wanted.lower() in c for c in offered)
    ]


def _matching_atmospheres(restaurant: Any, user: Any) -> list[str]:
    return overlap(user.atmosphere_preferences or [], restaurant.atmosphere or [])


def _rating(restaurant: Any) -> float:
    return float(restaurant.average_rating or 0)


def score_restaurant(
    restaurant: Any,
    user: Any,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> int:
    """Heuristic fit of *restaurant* for *user*.

    Not clamped: a perfect match with bonuses can exceed 100.
    """
    score = 0.0

    user_cuisines = user.cuisine_preferences or []
    if user_cuisines:
        score += len(_matching_cuisines(restaurant, user)) / len(user_cuisines) * config.cuisine_weight

    user_atmospheres = user.atmosphere_preferences or []
    if user_atmospheres:
        score += (
            len(_matching_atmospheres(restaurant, user)) / len(user_atmospheres)
            * config.atmosphere_weight
        )

    if restaurant.price_range == user.price_range:
        score += config.price_exact
    elif abs(price_tier(restaurant.price_range) - price_tier(user.price_range)) == 1:
        score += config.price_adjacent

    if user.study_spot_preference and restaurant.is_study_friendly:
        score += config.study_bonus

    score += _rating(restaurant) / 5 * config.rating_weight

    return round_half_up(score)


def match_reasons(
    restaurant: Any,
    user: Any,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[str]:
    reasons: list[str] = []

    cuisines = _matching_cuisines(restaurant, user)
    if cuisines:
        reasons.append(f"Matches your cuisine preferences: {', '.join(cuisines)}")

    atmospheres = _matching_atmospheres(restaurant, user)
    if atmospheres:
        reasons.append(f"{', '.join(atmospheres)} atmosphere")

    if restaurant.price_range == user.price_range:
        price = getattr(restaurant.price_range, "value", restaurant.price_range)
        reasons.append(f"Within your price range ({price})")

    if user.study_spot_preference and restaurant.is_study_friendly:
        reasons.append("Great for studying")

    food = user.food_preferences or []
    if "vegetarian" in food and restaurant.is_vegetarian_friendly:
        reasons.append("Vegetarian-friendly")
    if "vegan" in food and restaurant.is_vegan_friendly:
        reasons.append("Vegan options available")

    if restaurant.has_wifi:
        reasons.append("Has WiFi")

    rating = _rating(restaurant)
    if rating >= config.high_rating_threshold:
        reasons.append(f"Highly rated ({rating:g} stars)")

    return reasons
