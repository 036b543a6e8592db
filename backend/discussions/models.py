from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..attributes import AttributeSet
from ..storage.store import new_id, utcnow


class DiscussionCategory(str, Enum):
    question = "question"
    tip = "tip"
    experience = "experience"
    recommendation = "recommendation"
    meetup = "meetup"
    other = "other"


class Discussion(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    restaurant_id: str
    title: str
    content: str
    category: DiscussionCategory = DiscussionCategory.experience
    tags: AttributeSet = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    reply_count: int = Field(default=0, ge=0)

    is_pinned: bool = False
    is_flagged: bool = False
    is_locked: bool = False

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DiscussionReply(BaseModel):
    id: str = Field(default_factory=new_id)
    discussion_id: str
    user_id: str
    parent_reply_id: str | None = None
    content: str
    images: list[str] = Field(default_factory=list)
    like_count: int = Field(default=0, ge=0)
    is_flagged: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DiscussionCreate(BaseModel):
    user_id: str | None = None
    restaurant_id: str | None = None
    title: str | None = None
    content: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)


class DiscussionUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    images: list[str] | None = None


class ReplyCreate(BaseModel):
    user_id: str | None = None
    content: str | None = None
    parent_reply_id: str | None = None


class DiscussionPage(BaseModel):
    items: list[Discussion]
    total: int
    limit: int
    offset: int
    has_more: bool
