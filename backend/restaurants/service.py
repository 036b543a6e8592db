from __future__ import annotations

import logging

from ..attributes import PRICE_ORDER, price_tier
from ..errors import NotFoundError
from ..storage import store
from .models import FEATURE_FLAGS, FilterOptions, Restaurant, RestaurantCreate, RestaurantPage

logger = logging.getLogger(__name__)


def _sort_key(sort_by: str | None):
    if sort_by == "name":
        return lambda r: r.name.lower(), False
    if sort_by == "price_low":
        return lambda r: price_tier(r.price_range), False
    if sort_by == "price_high":
        return lambda r: price_tier(r.price_range), True
    if sort_by == "rating":
        return lambda r: r.average_rating, True
    if sort_by == "popular":
        return lambda r: (r.total_likes, r.total_reviews), True
    return lambda r: (r.average_rating, r.total_reviews), True


def search_restaurants(
    price_ranges: list[str] | None = None,
    cuisine_types: list[str] | None = None,
    atmospheres: list[str] | None = None,
    features: dict[str, bool] | None = None,
    min_rating: float | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> RestaurantPage:
    restaurants = store.list_restaurants(lambda r: r.is_active)

    if price_ranges:
        wanted = set(price_ranges)
        restaurants = [r for r in restaurants if r.price_range.value in wanted]
    if cuisine_types:
        wanted = set(cuisine_types)
        restaurants = [r for r in restaurants if wanted & set(r.cuisine_type)]
    if atmospheres:
        wanted = set(atmospheres)
        restaurants = [r for r in restaurants if wanted & set(r.atmosphere)]
    for flag, required in (features or {}).items():
        if required and flag in FEATURE_FLAGS:
            restaurants = [r for r in restaurants if getattr(r, flag)]
    if min_rating:
        restaurants = [r for r in restaurants if r.average_rating >= min_rating]
    if search:
        q = search.strip().lower()
        restaurants = [
            r for r in restaurants
            if q in r.name.lower()
            or q in (r.description or "").lower()
            or q in (r.address or "").lower()
        ]

    key, reverse = _sort_key(sort_by)
    restaurants.sort(key=key, reverse=reverse)

    page = restaurants[offset:offset + limit]
    return RestaurantPage(
        items=page,
        total=len(restaurants),
        limit=limit,
        offset=offset,
        has_more=offset + len(page) < len(restaurants),
    )


def get_restaurant(restaurant_id: str) -> Restaurant:
    restaurant = store.get_restaurant(restaurant_id)
    if restaurant is None:
        raise NotFoundError("Restaurant not found")
    return restaurant


def filter_options() -> FilterOptions:
    cuisines: set[str] = set()
    atmospheres: set[str] = set()
    for r in store.list_restaurants(lambda r: r.is_active):
        cuisines.update(r.cuisine_type)
        atmospheres.update(r.atmosphere)
    return FilterOptions(
        price_ranges=list(PRICE_ORDER),
        cuisine_types=sorted(cuisines),
        atmospheres=sorted(atmospheres),
        features=list(FEATURE_FLAGS),
    )


def create_restaurant(body: RestaurantCreate) -> Restaurant:
    restaurant = store.insert(store.RESTAURANTS, Restaurant(**body.model_dump()))
    logger.info("Created restaurant %s (%s)", restaurant.id, restaurant.name)
    return restaurant
