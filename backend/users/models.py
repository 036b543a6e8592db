from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..attributes import AttributeSet, PriceRange
from ..storage.store import new_id, utcnow


class Role(str, Enum):
    member = "member"
    admin = "admin"


class UserProfile(BaseModel):
    id: str = Field(default_factory=new_id)
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    role: Role = Role.member

    interests: AttributeSet = Field(default_factory=list)
    food_preferences: AttributeSet = Field(default_factory=list)
    dietary_restrictions: AttributeSet = Field(default_factory=list)
    cuisine_preferences: AttributeSet = Field(default_factory=list)
    price_range: PriceRange = PriceRange.moderate
    atmosphere_preferences: AttributeSet = Field(default_factory=list)
    study_spot_preference: bool = False
    social_preference: bool = True

    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    is_active: bool = True
    open_to_matching: bool = True

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserRecord(UserProfile):
    """Stored user, including the password hash that never leaves the service."""

    password_hash: str

    def public(self) -> UserProfile:
        return UserProfile(**self.model_dump(exclude={"password_hash"}))


class PreferencesUpdate(BaseModel):
    interests: list[str] | None = None
    food_preferences: list[str] | None = None
    dietary_restrictions: list[str] | None = None
    cuisine_preferences: list[str] | None = None
    price_range: PriceRange | None = None
    atmosphere_preferences: list[str] | None = None
    study_spot_preference: bool | None = None
    social_preference: bool | None = None


class ProfileUpdate(PreferencesUpdate):
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    open_to_matching: bool | None = None


class RegisterRequest(PreferencesUpdate):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    open_to_matching: bool | None = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RoleUpdate(BaseModel):
    role: str | None = None


class ActiveUpdate(BaseModel):
    is_active: bool


class UserPage(BaseModel):
    items: list[UserProfile]
    total: int
    limit: int
    offset: int
    has_more: bool
