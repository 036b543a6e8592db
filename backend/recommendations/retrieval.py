from __future__ import annotations

import time
from typing import Any

from ..analytics.store import record_event
from ..errors import NotFoundError
from ..storage import store
from .config import DEFAULT_RECOMMENDATION_CONFIG
from .models import (
    RecommendationItem,
    RecommendationResponse,
    SimilarRestaurantsResponse,
)
from .scoring import match_reasons, score_restaurant

_CONFIG = DEFAULT_RECOMMENDATION_CONFIG


def rank_restaurants(
    user: Any,
    restaurants: list[Any],
    min_score: int = _CONFIG.default_min_score,
    limit: int = _CONFIG.default_limit,
) -> list[RecommendationItem]:
    """Score and explain each restaurant, keep those above *min_score*, best first."""
    items: list[RecommendationItem] = []
    for restaurant in restaurants:
        score = score_restaurant(restaurant, user)
        if score < min_score:
            continue
        items.append(RecommendationItem(
            restaurant=restaurant,
            recommendation_score=score,
            match_reasons=match_reasons(restaurant, user),
        ))
    items.sort(key=lambda i: i.recommendation_score, reverse=True)
    return items[:limit]


def find_similar(
    reference: Any,
    restaurants: list[Any],
    limit: int = _CONFIG.default_similar_limit,
) -> list[Any]:
    """Coarse recall filter: any shared price range, cuisine or atmosphere.

    Survivors are ordered by average rating only.
    """
    base_cuisines = set(reference.cuisine_type or [])
    base_atmosphere = set(reference.atmosphere or [])

    def _is_similar(r: Any) -> bool:
        return (
            r.price_range == reference.price_range
            or bool(base_cuisines & set(r.cuisine_type or []))
            or bool(base_atmosphere & set(r.atmosphere or []))
        )

    similar = [
        r for r in restaurants
        if r.id != reference.id and r.is_active and _is_similar(r)
    ]
    similar.sort(key=lambda r: float(r.average_rating or 0), reverse=True)
    return similar[:limit]


def get_recommendations(
    user_id: str,
    min_score: int = _CONFIG.default_min_score,
    limit: int = _CONFIG.default_limit,
    exclude_favorites: bool = False,
) -> RecommendationResponse:
    start_time = time.perf_counter()

    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    excluded = set(store.list_favorite_restaurant_ids(user_id)) if exclude_favorites else set()
    candidates = store.list_restaurants(
        lambda r: r.is_active and r.id not in excluded
    )
    items = rank_restaurants(user, candidates, min_score=min_score, limit=limit)

    record_event("recommendations", {
        "subject_id": user_id,
        "min_score": min_score,
        "exclude_favorites": exclude_favorites,
        "total_candidates": len(candidates),
        "results_returned": len(items),
        "response_time_ms": round((time.perf_counter() - start_time) * 1000, 3),
    })
    return RecommendationResponse(recommendations=items, total_candidates=len(candidates))


def get_similar_restaurants(
    restaurant_id: str,
    limit: int = _CONFIG.default_similar_limit,
) -> SimilarRestaurantsResponse:
    start_time = time.perf_counter()

    reference = store.get_restaurant(restaurant_id)
    if reference is None:
        raise NotFoundError("Restaurant not found")

    candidates = store.list_restaurants(lambda r: r.id != restaurant_id and r.is_active)
    similar = find_similar(reference, candidates, limit=limit)

    record_event("similar_restaurants", {
        "subject_id": restaurant_id,
        "total_candidates": len(candidates),
        "results_returned": len(similar),
        "response_time_ms": round((time.perf_counter() - start_time) * 1000, 3),
    })
    return SimilarRestaurantsResponse(restaurants=similar, total_candidates=len(candidates))
