from __future__ import annotations

from collections import Counter
from typing import Any

from .store import RANKING_EVENTS


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    type_counter: Counter[str] = Counter(e["type"] for e in events)

    per_type: dict[str, dict[str, Any]] = {}
    for event_type in RANKING_EVENTS:
        searches = [e for e in events if e["type"] == event_type]
        total = len(searches)
        times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
        returned = [s.get("results_returned", 0) for s in searches]
        empty = sum(1 for r in returned if r == 0)
        per_type[event_type] = {
            "total": total,
            "avg_response_time_ms": round(sum(times) / len(times), 3) if times else 0.0,
            "avg_results_returned": round(sum(returned) / total, 1) if total else 0.0,
            "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        }

    # Most requested users / restaurants
    subject_counter: Counter[str] = Counter()
    for e in events:
        if e["type"] in RANKING_EVENTS and e.get("subject_id"):
            subject_counter[e["subject_id"]] += 1
    top_subjects = [{"id": i, "count": c} for i, c in subject_counter.most_common(10)]

    created = type_counter.get("match_created", 0)
    connected = type_counter.get("match_connected", 0)

    return {
        "total_requests": sum(type_counter[t] for t in RANKING_EVENTS),
        "requests": per_type,
        "top_subjects": top_subjects,
        "match_funnel": {
            "created": created,
            "connected": connected,
            "connection_rate": round(connected / created * 100, 1) if created else 0.0,
        },
    }
