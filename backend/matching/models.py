from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..restaurants.models import Restaurant
from ..storage.store import new_id, utcnow
from ..users.models import UserProfile


class MatchStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    blocked = "blocked"


class Match(BaseModel):
    id: str = Field(default_factory=new_id)
    user1_id: str
    user2_id: str
    match_score: int = Field(..., ge=0, le=100)

    # Snapshot taken at creation; not recomputed when profiles change.
    shared_interests: list[str] = Field(default_factory=list)
    shared_cuisine_preferences: list[str] = Field(default_factory=list)
    shared_atmosphere_preferences: list[str] = Field(default_factory=list)

    status: MatchStatus = MatchStatus.pending
    user2_status: MatchStatus = MatchStatus.pending
    is_connected: bool = False

    suggested_restaurant_id: str | None = None
    meetup_date: datetime | None = None
    meetup_notes: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MatchDetail(Match):
    user1: UserProfile | None = None
    user2: UserProfile | None = None
    suggested_restaurant: Restaurant | None = None


class PotentialMatch(BaseModel):
    user: UserProfile
    match_score: int
    shared_interests: list[str]
    shared_cuisine_preferences: list[str]
    shared_atmosphere_preferences: list[str]


class PotentialMatchResponse(BaseModel):
    matches: list[PotentialMatch]
    total_candidates: int
    message: str | None = None


class MatchCreateRequest(BaseModel):
    user1_id: str | None = None
    user2_id: str | None = None
    suggested_restaurant_id: str | None = None
    meetup_notes: str | None = None


class MatchStatusUpdate(BaseModel):
    user_id: str | None = None
    status: MatchStatus | None = None


class MeetupUpdate(BaseModel):
    suggested_restaurant_id: str | None = None
    meetup_date: datetime | None = None
    meetup_notes: str | None = None
