from __future__ import annotations

import logging
from typing import Any

import bcrypt

from ..errors import ConflictError, ValidationError
from ..storage import store
from ..users.models import RegisterRequest, UserProfile, UserRecord

logger = logging.getLogger(__name__)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _find_by(field: str, value: str) -> UserRecord | None:
    wanted = value.strip().lower()
    for user in store.list_users():
        if str(getattr(user, field)).strip().lower() == wanted:
            return user
    return None


def register_user(body: RegisterRequest) -> UserProfile:
    """Create an account. Email and username are unique, case-insensitively."""
    if not body.username or not body.email or not body.password:
        raise ValidationError("Username, email, and password are required")

    if _find_by("email", body.email) or _find_by("username", body.username):
        raise ConflictError("User with this email or username already exists")

    fields = body.model_dump(exclude={"password"}, exclude_none=True)
    user = store.insert(store.USERS, UserRecord(
        **fields,
        password_hash=hash_password(body.password),
    ))
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user.public()


def authenticate(email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns the session payload or ``None``."""
    record = _find_by("email", email)
    if record is None or not record.is_active:
        return None
    if not _verify_password(password, record.password_hash):
        return None
    return {
        "id": record.id,
        "username": record.username,
        "email": record.email,
        "role": record.role.value,
    }
