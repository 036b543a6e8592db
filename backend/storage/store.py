"""
In-memory persistence layer.

Every table maps record id -> pydantic model.  All reads and writes go
through one re-entrant lock so read-modify-write helpers (``transaction``,
``atomic_increment``) cannot lose updates when two requests race.

Scans are full-table and O(n); callers paginate the final result only.
"""
from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel

from ..errors import ForbiddenError, NotFoundError

USERS = "users"
RESTAURANTS = "restaurants"
MATCHES = "matches"
REVIEWS = "reviews"
FAVORITES = "favorites"
DISCUSSIONS = "discussions"
DISCUSSION_REPLIES = "discussion_replies"

TABLES = (USERS, RESTAURANTS, MATCHES, REVIEWS, FAVORITES, DISCUSSIONS, DISCUSSION_REPLIES)

M = TypeVar("M", bound=BaseModel)

_lock = threading.RLock()
_tables: dict[str, dict[str, BaseModel]] = {name: {} for name in TABLES}


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _table(name: str) -> dict[str, BaseModel]:
    try:
        return _tables[name]
    except KeyError:
        raise KeyError(f"Unknown table: {name}") from None


def _revalidate(record: M, changes: dict[str, Any]) -> M:
    data = record.model_dump()
    data.update(changes)
    if "updated_at" in data:
        data["updated_at"] = utcnow()
    return type(record).model_validate(data)


# ── Generic table access ────────────────────────────────────────────────


def insert(table: str, record: M) -> M:
    with _lock:
        _table(table)[record.id] = record
    return record


def insert_unique(
    table: str, record: M, clashes: Callable[[Any], bool],
) -> M | None:
    """Insert *record* unless an existing row satisfies *clashes*.

    Returns ``None`` when a clash is found. The check and the insert run
    under the same lock.
    """
    with _lock:
        if any(clashes(r) for r in _table(table).values()):
            return None
        return insert(table, record)


def get(table: str, record_id: str) -> BaseModel | None:
    with _lock:
        return _table(table).get(record_id)


def list_records(
    table: str, predicate: Callable[[Any], bool] | None = None,
) -> list[Any]:
    """Return records in insertion order, optionally filtered."""
    with _lock:
        records = list(_table(table).values())
    if predicate is None:
        return records
    return [r for r in records if predicate(r)]


def update(table: str, record_id: str, changes: dict[str, Any]) -> Any:
    """Merge *changes* into a record, re-running model validation."""
    return transaction(table, record_id, lambda current: _revalidate(current, changes))


def delete(table: str, record_id: str) -> bool:
    with _lock:
        return _table(table).pop(record_id, None) is not None


def transaction(table: str, record_id: str, fn: Callable[[Any], Any]) -> Any:
    """Atomically replace a record with ``fn(current)``.

    Raises ``NotFoundError`` when the record does not exist.
    """
    with _lock:
        rows = _table(table)
        current = rows.get(record_id)
        if current is None:
            raise NotFoundError(f"{table} record {record_id} not found")
        replacement = fn(current)
        rows[record_id] = replacement
        return replacement


def atomic_increment(
    table: str,
    record_id: str,
    field: str,
    delta: int | float = 1,
    floor: int | float | None = None,
) -> Any:
    def _bump(current: BaseModel) -> BaseModel:
        value = (getattr(current, field) or 0) + delta
        if floor is not None:
            value = max(floor, value)
        return _revalidate(current, {field: value})

    return transaction(table, record_id, _bump)


def clear_store() -> None:
    with _lock:
        for rows in _tables.values():
            rows.clear()


# ── Named helpers used by the ranking services ──────────────────────────


def list_users(predicate: Callable[[Any], bool] | None = None) -> list[Any]:
    return list_records(USERS, predicate)


def get_user(user_id: str) -> Any | None:
    return get(USERS, user_id)


def list_restaurants(predicate: Callable[[Any], bool] | None = None) -> list[Any]:
    return list_records(RESTAURANTS, predicate)


def get_restaurant(restaurant_id: str) -> Any | None:
    return get(RESTAURANTS, restaurant_id)


def list_favorite_restaurant_ids(user_id: str) -> list[str]:
    return [f.restaurant_id for f in list_records(FAVORITES, lambda f: f.user_id == user_id)]


def find_match_between(user_a: str, user_b: str) -> Any | None:
    """Return the match for the unordered pair, whichever order it was stored in."""
    pair = {user_a, user_b}
    for match in list_records(MATCHES):
        if {match.user1_id, match.user2_id} == pair:
            return match
    return None


def create_match(record: M) -> M | None:
    """Insert a match unless the unordered pair already has one."""
    pair = {record.user1_id, record.user2_id}
    return insert_unique(MATCHES, record, lambda m: {m.user1_id, m.user2_id} == pair)


MATCH_SIDES = ("user1", "user2")


def update_match_status(
    match_id: str,
    side: str,
    status: Any,
    acting_user_id: str,
    on_connect: Callable[[Any], None] | None = None,
) -> Any:
    """Write one half of a match's status and recompute ``is_connected``.

    ``user1`` writes ``status`` and ``user2`` writes ``user2_status``; the
    acting user must own the half being written. *on_connect* is called
    with the updated match, under the lock, only by the write that turns
    ``is_connected`` from false to true.
    """
    if side not in MATCH_SIDES:
        raise ValueError(f"Unknown match side: {side}")

    def _apply(match: BaseModel) -> BaseModel:
        owner = match.user1_id if side == "user1" else match.user2_id
        if acting_user_id != owner:
            raise ForbiddenError("Only the owning user may change this side of the match")
        field = "status" if side == "user1" else "user2_status"
        merged = _revalidate(match, {field: status})
        connected = merged.status == "accepted" and merged.user2_status == "accepted"
        updated = _revalidate(merged, {"is_connected": connected})
        if connected and not match.is_connected and on_connect is not None:
            on_connect(updated)
        return updated

    return transaction(MATCHES, match_id, _apply)


def bulk_insert(table: str, records: Iterable[BaseModel]) -> int:
    count = 0
    with _lock:
        for record in records:
            _table(table)[record.id] = record
            count += 1
    return count


def locked() -> threading.RLock:
    """The store lock, for callers that chain several store calls atomically."""
    return _lock


def delete_user_cascade(user_id: str) -> set[str] | None:
    """Remove a user and every row they own.

    Matches on either side, favorites, reviews, discussions (with their
    replies) and the user's replies elsewhere are deleted. Favorites give
    back ``total_likes`` and foreign replies give back ``reply_count``.

    Returns the ids of restaurants that lost reviews, or ``None`` when the
    user does not exist.
    """
    with _lock:
        if _table(USERS).pop(user_id, None) is None:
            return None

        for match in list_records(MATCHES, lambda m: user_id in (m.user1_id, m.user2_id)):
            delete(MATCHES, match.id)

        for favorite in list_records(FAVORITES, lambda f: f.user_id == user_id):
            delete(FAVORITES, favorite.id)
            if get_restaurant(favorite.restaurant_id) is not None:
                atomic_increment(RESTAURANTS, favorite.restaurant_id, "total_likes", -1, floor=0)

        reviewed: set[str] = set()
        for review in list_records(REVIEWS, lambda r: r.user_id == user_id):
            delete(REVIEWS, review.id)
            reviewed.add(review.restaurant_id)

        threads = {d.id for d in list_records(DISCUSSIONS, lambda d: d.user_id == user_id)}
        for reply in list_records(
            DISCUSSION_REPLIES,
            lambda r: r.user_id == user_id or r.discussion_id in threads,
        ):
            delete(DISCUSSION_REPLIES, reply.id)
            if reply.discussion_id not in threads and get(DISCUSSIONS, reply.discussion_id) is not None:
                atomic_increment(DISCUSSIONS, reply.discussion_id, "reply_count", -1, floor=0)
        for discussion_id in threads:
            delete(DISCUSSIONS, discussion_id)

        return reviewed
