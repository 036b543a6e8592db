from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..reviews.service import recalculate_restaurant_rating
from ..storage import store
from .models import PreferencesUpdate, ProfileUpdate, Role, UserPage, UserProfile, UserRecord

logger = logging.getLogger(__name__)


def _require(user_id: str) -> UserRecord:
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def paginate_users(users: list[UserRecord], limit: int, offset: int) -> UserPage:
    users = sorted(users, key=lambda u: u.created_at, reverse=True)
    page = users[offset:offset + limit]
    return UserPage(
        items=[u.public() for u in page],
        total=len(users),
        limit=limit,
        offset=offset,
        has_more=offset + len(page) < len(users),
    )


def get_profile(user_id: str) -> UserProfile:
    return _require(user_id).public()


def update_profile(user_id: str, changes: ProfileUpdate | PreferencesUpdate) -> UserProfile:
    _require(user_id)
    updated = store.update(store.USERS, user_id, changes.model_dump(exclude_none=True))
    return updated.public()


def list_active_users(
    limit: int = 50, offset: int = 0, open_to_matching: bool | None = None,
) -> UserPage:
    users = store.list_users(lambda u: u.is_active)
    if open_to_matching:
        users = [u for u in users if u.open_to_matching]
    return paginate_users(users, limit, offset)


# ── Admin operations ─────────────────────────────────────────────────────


def list_all_users(
    limit: int = 50,
    offset: int = 0,
    role: str | None = None,
    is_active: bool | None = None,
) -> UserPage:
    users = store.list_users()
    if role in (Role.member.value, Role.admin.value):
        users = [u for u in users if u.role == Role(role)]
    if is_active is not None:
        users = [u for u in users if u.is_active == is_active]
    return paginate_users(users, limit, offset)


def delete_user(user_id: str) -> None:
    """Delete a user with everything they own and re-derive affected ratings."""
    with store.locked():
        reviewed = store.delete_user_cascade(user_id)
        if reviewed is None:
            raise NotFoundError("User not found")
        for restaurant_id in reviewed:
            recalculate_restaurant_rating(restaurant_id)
    logger.info("Deleted user %s and their matches, favorites, reviews and discussions", user_id)


def set_role(user_id: str, role: str | None) -> UserProfile:
    if role not in (Role.member.value, Role.admin.value):
        raise ValidationError("Valid role required (member or admin)")
    _require(user_id)
    updated = store.update(store.USERS, user_id, {"role": role})
    logger.info("User %s role set to %s", user_id, role)
    return updated.public()


def set_active(user_id: str, is_active: bool) -> UserProfile:
    _require(user_id)
    updated = store.update(store.USERS, user_id, {"is_active": is_active})
    logger.info("User %s %s", user_id, "activated" if is_active else "deactivated")
    return updated.public()
