from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..attributes import AttributeSet, PriceRange
from ..storage.store import new_id, utcnow

FEATURE_FLAGS = [
    "is_study_friendly",
    "has_wifi",
    "has_outdoor_seating",
    "has_parking",
    "is_vegetarian_friendly",
    "is_vegan_friendly",
    "is_gluten_free_friendly",
]


class Restaurant(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str | None = None

    address: str | None = None
    city: str = "Gainesville"
    state: str = "FL"
    zip_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    phone: str | None = None
    website: str | None = None

    cuisine_type: AttributeSet = Field(default_factory=list)
    price_range: PriceRange = PriceRange.moderate
    atmosphere: AttributeSet = Field(default_factory=list)

    is_study_friendly: bool = False
    has_wifi: bool = False
    has_outdoor_seating: bool = False
    has_parking: bool = False
    is_vegetarian_friendly: bool = False
    is_vegan_friendly: bool = False
    is_gluten_free_friendly: bool = False

    hours_of_operation: str | None = None
    image_url: str | None = None

    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    total_reviews: int = Field(default=0, ge=0)
    total_likes: int = Field(default=0, ge=0)

    is_active: bool = True
    is_verified: bool = False

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    address: str | None = None
    city: str = "Gainesville"
    state: str = "FL"
    zip_code: str | None = None
    phone: str | None = None
    website: str | None = None
    cuisine_type: list[str] = Field(default_factory=list)
    price_range: PriceRange = PriceRange.moderate
    atmosphere: list[str] = Field(default_factory=list)
    is_study_friendly: bool = False
    has_wifi: bool = False
    has_outdoor_seating: bool = False
    has_parking: bool = False
    is_vegetarian_friendly: bool = False
    is_vegan_friendly: bool = False
    is_gluten_free_friendly: bool = False
    hours_of_operation: str | None = None
    image_url: str | None = None


class RestaurantPage(BaseModel):
    items: list[Restaurant]
    total: int
    limit: int
    offset: int
    has_more: bool


class FilterOptions(BaseModel):
    price_ranges: list[str]
    cuisine_types: list[str]
    atmospheres: list[str]
    features: list[str]
