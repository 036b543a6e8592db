from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..storage import store
from .models import Favorite, FavoriteRequest, FavoriteWithRestaurant


def _find(user_id: str, restaurant_id: str) -> Favorite | None:
    for fav in store.list_records(store.FAVORITES, lambda f: f.user_id == user_id):
        if fav.restaurant_id == restaurant_id:
            return fav
    return None


def list_favorites(user_id: str) -> list[FavoriteWithRestaurant]:
    favorites = store.list_records(store.FAVORITES, lambda f: f.user_id == user_id)
    favorites.sort(key=lambda f: f.created_at, reverse=True)
    return [
        FavoriteWithRestaurant(**f.model_dump(), restaurant=store.get_restaurant(f.restaurant_id))
        for f in favorites
    ]


def add_favorite(body: FavoriteRequest) -> Favorite:
    if not body.user_id or not body.restaurant_id:
        raise ValidationError("user_id and restaurant_id are required")
    if store.get_restaurant(body.restaurant_id) is None:
        raise NotFoundError("Restaurant not found")

    favorite = store.insert_unique(
        store.FAVORITES,
        Favorite(user_id=body.user_id, restaurant_id=body.restaurant_id, notes=body.notes),
        lambda f: f.user_id == body.user_id and f.restaurant_id == body.restaurant_id,
    )
    if favorite is None:
        raise ConflictError("Restaurant already in favorites")

    store.atomic_increment(store.RESTAURANTS, body.restaurant_id, "total_likes", 1)
    return favorite


def remove_favorite(body: FavoriteRequest) -> None:
    if not body.user_id or not body.restaurant_id:
        raise ValidationError("user_id and restaurant_id are required")

    favorite = _find(body.user_id, body.restaurant_id)
    if favorite is None:
        raise NotFoundError("Favorite not found")

    store.delete(store.FAVORITES, favorite.id)
    if store.get_restaurant(body.restaurant_id) is not None:
        store.atomic_increment(store.RESTAURANTS, body.restaurant_id, "total_likes", -1, floor=0)


def is_favorited(user_id: str, restaurant_id: str) -> bool:
    return _find(user_id, restaurant_id) is not None
