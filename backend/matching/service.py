from __future__ import annotations

import logging
import time
from datetime import datetime

from ..analytics.store import record_event
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..storage import store
from .config import DEFAULT_MATCHING_CONFIG
from .models import (
    Match,
    MatchDetail,
    MatchStatus,
    PotentialMatchResponse,
)
from .ranker import rank_candidates
from .scoring import calculate_match_score

logger = logging.getLogger(__name__)


def _require_user(user_id: str):
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_match(match_id: str) -> Match:
    match = store.get(store.MATCHES, match_id)
    if match is None:
        raise NotFoundError("Match not found")
    return match


def _with_details(match: Match) -> MatchDetail:
    user1 = store.get_user(match.user1_id)
    user2 = store.get_user(match.user2_id)
    restaurant = (
        store.get_restaurant(match.suggested_restaurant_id)
        if match.suggested_restaurant_id else None
    )
    return MatchDetail(
        **match.model_dump(),
        user1=user1.public() if user1 else None,
        user2=user2.public() if user2 else None,
        suggested_restaurant=restaurant,
    )


def get_potential_matches(
    user_id: str,
    min_score: int = DEFAULT_MATCHING_CONFIG.default_min_score,
    limit: int = DEFAULT_MATCHING_CONFIG.default_limit,
) -> PotentialMatchResponse:
    start_time = time.perf_counter()
    user = _require_user(user_id)

    if not user.open_to_matching:
        return PotentialMatchResponse(
            matches=[], total_candidates=0, message="User is not open to matching",
        )

    candidates = store.list_users(
        lambda u: u.id != user_id and u.open_to_matching and u.is_active
    )
    matches = rank_candidates(user, candidates, min_score=min_score, limit=limit)

    record_event("potential_matches", {
        "subject_id": user_id,
        "min_score": min_score,
        "total_candidates": len(candidates),
        "results_returned": len(matches),
        "response_time_ms": round((time.perf_counter() - start_time) * 1000, 3),
    })
    return PotentialMatchResponse(matches=matches, total_candidates=len(candidates))


def create_match_request(
    user1_id: str | None,
    user2_id: str | None,
    suggested_restaurant_id: str | None = None,
    meetup_notes: str | None = None,
) -> MatchDetail:
    if not user1_id or not user2_id:
        raise ValidationError("user1_id and user2_id are required")
    if user1_id == user2_id:
        raise ValidationError("Cannot create a match with yourself")

    user1 = store.get_user(user1_id)
    user2 = store.get_user(user2_id)
    if user1 is None or user2 is None:
        raise NotFoundError("One or both users not found")

    if store.find_match_between(user1_id, user2_id) is not None:
        raise ConflictError("Match already exists between these users")

    result = calculate_match_score(user1, user2)
    match = store.create_match(Match(
        user1_id=user1_id,
        user2_id=user2_id,
        match_score=result.score,
        shared_interests=result.shared_interests,
        shared_cuisine_preferences=result.shared_cuisines,
        shared_atmosphere_preferences=result.shared_atmospheres,
        suggested_restaurant_id=suggested_restaurant_id,
        meetup_notes=meetup_notes,
    ))
    if match is None:
        # Lost a race with a concurrent request for the same pair.
        raise ConflictError("Match already exists between these users")

    logger.info("Created match %s between %s and %s (score %d)",
                match.id, user1_id, user2_id, match.match_score)
    record_event("match_created", {"match_id": match.id, "match_score": match.match_score})
    return _with_details(match)


def _record_connected(match: Match) -> None:
    logger.info("Match %s is now connected", match.id)
    record_event("match_connected", {"match_id": match.id})


def update_match_status(
    match_id: str,
    acting_user_id: str | None,
    new_status: MatchStatus | str | None,
) -> Match:
    """Record one side's decision.

    The acting user's role in the match decides which half is written.
    ``declined`` and ``blocked`` are not terminal; a later write replaces them.
    """
    if not acting_user_id or not new_status:
        raise ValidationError("user_id and status are required")
    try:
        status = MatchStatus(new_status)
    except ValueError:
        raise ValidationError(f"Invalid match status: {new_status}") from None

    match = get_match(match_id)
    if acting_user_id == match.user1_id:
        side = "user1"
    elif acting_user_id == match.user2_id:
        side = "user2"
    else:
        raise ForbiddenError("User is not part of this match")

    return store.update_match_status(
        match_id, side, status, acting_user_id, on_connect=_record_connected,
    )


def get_user_matches(
    user_id: str,
    status: MatchStatus | str | None = None,
    connected_only: bool = False,
) -> list[MatchDetail]:
    """All matches involving *user_id*, best score first then newest first.

    *status* is compared against the user's own half of each match.
    """
    matches = store.list_records(
        store.MATCHES, lambda m: user_id in (m.user1_id, m.user2_id)
    )
    if connected_only:
        matches = [m for m in matches if m.is_connected]
    if status:
        wanted = MatchStatus(status)
        matches = [
            m for m in matches
            if (m.status if m.user1_id == user_id else m.user2_status) == wanted
        ]

    matches.sort(key=lambda m: m.created_at, reverse=True)
    matches.sort(key=lambda m: m.match_score, reverse=True)
    return [_with_details(m) for m in matches]


def update_meetup(
    match_id: str,
    suggested_restaurant_id: str | None = None,
    meetup_date: datetime | None = None,
    meetup_notes: str | None = None,
) -> MatchDetail:
    get_match(match_id)
    updated = store.update(store.MATCHES, match_id, {
        "suggested_restaurant_id": suggested_restaurant_id or None,
        "meetup_date": meetup_date,
        "meetup_notes": meetup_notes or None,
    })
    return _with_details(updated)
