from __future__ import annotations

from fastapi import HTTPException, Request

from ..errors import ForbiddenError
from ..storage import store
from ..users.models import Role, UserRecord


def _session_record(request: Request) -> tuple[dict, UserRecord]:
    """The session payload and its live store record.

    Raise 401 if nobody is logged in, or the account was since deleted
    or deactivated.
    """
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    record = store.get_user(user.get("id", ""))
    if record is None or not record.is_active:
        request.session.clear()
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user, record


def require_user(request: Request) -> dict:
    """Raise 401 if no active user is logged in."""
    user, _ = _session_record(request)
    return user


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin.

    The role is re-read from the store so promotions and demotions apply
    without a fresh login.
    """
    user, record = _session_record(request)
    if record.role != Role.admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def is_admin(actor: dict) -> bool:
    record = store.get_user(actor.get("id", ""))
    return record is not None and record.role == Role.admin


def ensure_owner_or_admin(actor: dict, owner_id: str) -> None:
    if actor.get("id") != owner_id and not is_admin(actor):
        raise ForbiddenError("You may only modify your own records")
