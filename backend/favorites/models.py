from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..restaurants.models import Restaurant
from ..storage.store import new_id, utcnow


class Favorite(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    restaurant_id: str
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FavoriteWithRestaurant(Favorite):
    restaurant: Restaurant | None = None


class FavoriteRequest(BaseModel):
    user_id: str | None = None
    restaurant_id: str | None = None
    notes: str | None = None


class FavoriteCheck(BaseModel):
    is_favorited: bool
