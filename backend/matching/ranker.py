from __future__ import annotations

from typing import Any

from .config import DEFAULT_MATCHING_CONFIG
from .models import PotentialMatch
from .scoring import calculate_match_score


def rank_candidates(
    user: Any,
    candidates: list[Any],
    min_score: int = DEFAULT_MATCHING_CONFIG.default_min_score,
    limit: int = DEFAULT_MATCHING_CONFIG.default_limit,
) -> list[PotentialMatch]:
    """Score every candidate against *user* and return the best ones.

    Ties keep the candidate pool order.
    """
    scored: list[PotentialMatch] = []
    for candidate in candidates:
        result = calculate_match_score(user, candidate)
        if result.score < min_score:
            continue
        profile = candidate.public() if hasattr(candidate, "public") else candidate
        scored.append(PotentialMatch(
            user=profile,
            match_score=result.score,
            shared_interests=result.shared_interests,
            shared_cuisine_preferences=result.shared_cuisines,
            shared_atmosphere_preferences=result.shared_atmospheres,
        ))

    scored.sort(key=lambda m: m.match_score, reverse=True)
    return scored[:limit]
