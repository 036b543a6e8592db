from __future__ import annotations

from fastapi.testclient import TestClient

from backend.analytics.aggregator import compute_analytics
from backend.analytics.store import clear_events, get_events, record_event
from backend.app import app
from backend.restaurants.models import Restaurant
from backend.storage import store
from backend.users.service import set_role


def _admin_client():
    c = TestClient(app)
    admin = c.post("/api/auth/register", json={
        "username": "admin", "email": "admin@example.com", "password": "admin123",
    }).json()
    set_role(admin["id"], "admin")
    return c, admin


def test_analytics_returns_empty_initially():
    store.clear_store()
    clear_events()
    c, _ = _admin_client()
    resp = c.get("/api/admin/analytics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_requests"] == 0
    assert body["requests"]["recommendations"]["avg_response_time_ms"] == 0.0
    assert body["match_funnel"]["connection_rate"] == 0.0


def test_analytics_tracks_ranking_requests():
    store.clear_store()
    clear_events()
    c, admin = _admin_client()
    r = store.insert(store.RESTAURANTS, Restaurant(name="Only One"))

    c.get(f"/api/recommendations/user/{admin['id']}")
    c.get(f"/api/recommendations/user/{admin['id']}")
    c.get(f"/api/recommendations/similar/{r.id}")

    body = c.get("/api/admin/analytics").json()
    assert body["total_requests"] == 3
    recs = body["requests"]["recommendations"]
    assert recs["total"] == 2
    assert recs["empty_result_rate"] == 100.0
    assert body["requests"]["similar_restaurants"]["total"] == 1
    assert body["top_subjects"][0] == {"id": admin["id"], "count": 2}


def test_failed_lookup_is_not_recorded():
    store.clear_store()
    clear_events()
    c, _ = _admin_client()
    c.get("/api/recommendations/similar/ghost")
    assert c.get("/api/admin/analytics").json()["total_requests"] == 0


def test_match_funnel():
    events = [
        {"type": "match_created", "match_id": "m1"},
        {"type": "match_created", "match_id": "m2"},
        {"type": "match_connected", "match_id": "m1"},
    ]
    funnel = compute_analytics(events)["match_funnel"]
    assert funnel == {"created": 2, "connected": 1, "connection_rate": 50.0}


def test_average_response_time_and_results():
    clear_events()
    record_event("potential_matches", {"subject_id": "u1", "response_time_ms": 2.0, "results_returned": 3})
    record_event("potential_matches", {"subject_id": "u1", "response_time_ms": 4.0, "results_returned": 0})
    stats = compute_analytics(get_events())["requests"]["potential_matches"]
    assert stats["avg_response_time_ms"] == 3.0
    assert stats["avg_results_returned"] == 1.5
    assert stats["empty_result_rate"] == 50.0
