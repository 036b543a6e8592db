from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..storage import store
from .models import (
    Discussion,
    DiscussionCategory,
    DiscussionCreate,
    DiscussionPage,
    DiscussionReply,
    DiscussionUpdate,
    ReplyCreate,
)


def _category(value: str | None, fallback: DiscussionCategory) -> DiscussionCategory:
    try:
        return DiscussionCategory(value)
    except ValueError:
        return fallback


def _require(discussion_id: str) -> Discussion:
    discussion = store.get(store.DISCUSSIONS, discussion_id)
    if discussion is None:
        raise NotFoundError("Discussion not found")
    return discussion


def sort_discussions(discussions: list[Discussion], sort_by: str | None) -> list[Discussion]:
    """Pinned threads first, then by the requested ordering (newest by default)."""
    ordered = sorted(discussions, key=lambda d: d.created_at, reverse=True)
    if sort_by == "popular":
        ordered.sort(key=lambda d: (d.like_count, d.reply_count), reverse=True)
    elif sort_by == "active":
        ordered.sort(key=lambda d: d.reply_count, reverse=True)
    ordered.sort(key=lambda d: d.is_pinned, reverse=True)
    return ordered


def list_discussions(
    restaurant_id: str,
    category: str | None = None,
    sort_by: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> DiscussionPage:
    discussions = store.list_records(
        store.DISCUSSIONS, lambda d: d.restaurant_id == restaurant_id
    )
    if category and category != "all":
        discussions = [d for d in discussions if d.category.value == category]

    ordered = sort_discussions(discussions, sort_by)
    page = ordered[offset:offset + limit]
    return DiscussionPage(
        items=page,
        total=len(ordered),
        limit=limit,
        offset=offset,
        has_more=offset + len(page) < len(ordered),
    )


def view_discussion(discussion_id: str) -> Discussion:
    _require(discussion_id)
    return store.atomic_increment(store.DISCUSSIONS, discussion_id, "view_count", 1)


def get_discussion(discussion_id: str) -> Discussion:
    return _require(discussion_id)


def create_discussion(body: DiscussionCreate) -> Discussion:
    if not body.user_id or not body.restaurant_id or not body.title or not body.content:
        raise ValidationError("user_id, restaurant_id, title, and content are required")
    return store.insert(store.DISCUSSIONS, Discussion(
        user_id=body.user_id,
        restaurant_id=body.restaurant_id,
        title=body.title,
        content=body.content,
        category=_category(body.category, DiscussionCategory.experience),
        tags=body.tags,
        images=body.images,
    ))


def update_discussion(discussion_id: str, changes: DiscussionUpdate) -> Discussion:
    existing = _require(discussion_id)
    data = changes.model_dump(exclude_none=True)
    if "category" in data:
        data["category"] = _category(data["category"], existing.category)
    return store.update(store.DISCUSSIONS, discussion_id, data)


def delete_discussion(discussion_id: str) -> None:
    _require(discussion_id)
    with store.locked():
        for reply in store.list_records(
            store.DISCUSSION_REPLIES, lambda r: r.discussion_id == discussion_id
        ):
            store.delete(store.DISCUSSION_REPLIES, reply.id)
        store.delete(store.DISCUSSIONS, discussion_id)


def like_discussion(discussion_id: str) -> Discussion:
    _require(discussion_id)
    return store.atomic_increment(store.DISCUSSIONS, discussion_id, "like_count", 1)


def add_reply(discussion_id: str, body: ReplyCreate) -> DiscussionReply:
    if not body.user_id or not body.content:
        raise ValidationError("user_id and content are required")
    _require(discussion_id)

    reply = store.insert(store.DISCUSSION_REPLIES, DiscussionReply(
        discussion_id=discussion_id,
        user_id=body.user_id,
        content=body.content,
        parent_reply_id=body.parent_reply_id,
    ))
    store.atomic_increment(store.DISCUSSIONS, discussion_id, "reply_count", 1)
    return reply


def list_replies(discussion_id: str) -> list[DiscussionReply]:
    _require(discussion_id)
    replies = store.list_records(
        store.DISCUSSION_REPLIES, lambda r: r.discussion_id == discussion_id
    )
    return sorted(replies, key=lambda r: r.created_at)
