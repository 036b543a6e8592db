from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from ..restaurants.models import Restaurant
from ..storage.store import new_id, utcnow
from ..users.models import UserProfile


class Review(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    restaurant_id: str
    rating: int = Field(..., ge=1, le=5)
    title: str | None = None
    content: str = ""

    food_quality: int | None = Field(default=None, ge=1, le=5)
    service_quality: int | None = Field(default=None, ge=1, le=5)
    atmosphere_rating: int | None = Field(default=None, ge=1, le=5)
    value_rating: int | None = Field(default=None, ge=1, le=5)

    visit_date: date | None = None
    dishes_ordered: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    helpful_count: int = Field(default=0, ge=0)
    is_verified: bool = False
    is_flagged: bool = False

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ReviewWithUser(Review):
    user: UserProfile | None = None


class ReviewWithRestaurant(Review):
    restaurant: Restaurant | None = None


class ReviewCreate(BaseModel):
    user_id: str | None = None
    restaurant_id: str | None = None
    rating: int | None = None
    title: str | None = None
    content: str | None = None
    food_quality: int | None = None
    service_quality: int | None = None
    atmosphere_rating: int | None = None
    value_rating: int | None = None
    visit_date: date | None = None
    dishes_ordered: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)


class ReviewUpdate(BaseModel):
    rating: int | None = None
    title: str | None = None
    content: str | None = None
    food_quality: int | None = None
    service_quality: int | None = None
    atmosphere_rating: int | None = None
    value_rating: int | None = None
    dishes_ordered: list[str] | None = None
    images: list[str] | None = None


class ReviewPage(BaseModel):
    items: list[ReviewWithUser]
    total: int
    limit: int
    offset: int
    has_more: bool
