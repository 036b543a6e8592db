from __future__ import annotations

from fastapi.testclient import TestClient

from backend.app import app
from backend.restaurants.models import Restaurant
from backend.storage import store
from backend.storage.store import clear_store
from backend.users.service import set_role

client = TestClient(app)


def _register(username: str, **fields):
    c = TestClient(app)
    resp = c.post("/api/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": "secret123",
        **fields,
    })
    return c, resp.json()


def _admin():
    c, admin = _register("admin")
    set_role(admin["id"], "admin")
    return c, admin


# ── Profiles ─────────────────────────────────────────────────────────────


def test_get_profile():
    clear_store()
    _, alice = _register("alice", interests=["coffee", "coffee", " hiking "])
    resp = client.get(f"/api/users/{alice['id']}")
    assert resp.status_code == 200
    assert resp.json()["interests"] == ["coffee", "hiking"]


def test_get_unknown_profile():
    clear_store()
    assert client.get("/api/users/ghost").status_code == 404


def test_update_own_profile():
    clear_store()
    c, alice = _register("alice")
    resp = c.put(f"/api/users/{alice['id']}", json={"bio": "Coffee first", "open_to_matching": False})
    assert resp.status_code == 200
    body = resp.json()
    assert body["bio"] == "Coffee first"
    assert body["open_to_matching"] is False
    assert body["username"] == "alice"


def test_update_preferences_normalizes_sets():
    clear_store()
    c, alice = _register("alice")
    resp = c.put(f"/api/users/{alice['id']}/preferences", json={
        "cuisine_preferences": ["Thai", "Thai", ""],
        "price_range": "$",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["cuisine_preferences"] == ["Thai"]
    assert body["price_range"] == "$"


def test_update_preferences_invalid_price():
    clear_store()
    c, alice = _register("alice")
    resp = c.put(f"/api/users/{alice['id']}/preferences", json={"price_range": "$$$$$"})
    assert resp.status_code == 422


def test_cannot_update_someone_else():
    clear_store()
    c, _ = _register("alice")
    _, bob = _register("bob")
    resp = c.put(f"/api/users/{bob['id']}", json={"bio": "hacked"})
    assert resp.status_code == 403


def test_admin_can_update_anyone():
    clear_store()
    c, _ = _admin()
    _, bob = _register("bob")
    resp = c.put(f"/api/users/{bob['id']}/preferences", json={"interests": ["chess"]})
    assert resp.status_code == 200
    assert resp.json()["interests"] == ["chess"]


def test_update_requires_login():
    resp = TestClient(app).put("/api/users/anyone", json={"bio": "x"})
    assert resp.status_code == 401


# ── Listing ──────────────────────────────────────────────────────────────


def test_list_users_newest_first_with_paging():
    clear_store()
    for name in ("u1", "u2", "u3"):
        _register(name)
    resp = client.get("/api/users", params={"limit": 2})
    body = resp.json()
    assert body["total"] == 3
    assert body["has_more"] is True
    assert [u["username"] for u in body["items"]] == ["u3", "u2"]

    rest = client.get("/api/users", params={"limit": 2, "offset": 2}).json()
    assert [u["username"] for u in rest["items"]] == ["u1"]
    assert rest["has_more"] is False


def test_list_users_open_to_matching_filter():
    clear_store()
    _register("open")
    _register("closed", open_to_matching=False)
    body = client.get("/api/users", params={"open_to_matching": True}).json()
    assert [u["username"] for u in body["items"]] == ["open"]


# ── Admin ────────────────────────────────────────────────────────────────


def test_admin_list_all_includes_inactive():
    clear_store()
    c, _ = _admin()
    _, bob = _register("bob")
    c.put(f"/api/users/{bob['id']}/status", json={"is_active": False})

    public = client.get("/api/users").json()
    assert "bob" not in [u["username"] for u in public["items"]]

    everyone = c.get("/api/users/admin/all").json()
    assert everyone["total"] == 2
    inactive = c.get("/api/users/admin/all", params={"is_active": False}).json()
    assert [u["username"] for u in inactive["items"]] == ["bob"]


def test_admin_list_all_by_role():
    clear_store()
    c, _ = _admin()
    _register("bob")
    body = c.get("/api/users/admin/all", params={"role": "admin"}).json()
    assert [u["username"] for u in body["items"]] == ["admin"]


def test_admin_list_all_forbidden_for_members():
    clear_store()
    c, _ = _register("bob")
    assert c.get("/api/users/admin/all").status_code == 403


def test_set_role():
    clear_store()
    c, _ = _admin()
    _, bob = _register("bob")
    resp = c.put(f"/api/users/{bob['id']}/role", json={"role": "admin"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"


def test_set_role_invalid():
    clear_store()
    c, _ = _admin()
    _, bob = _register("bob")
    resp = c.put(f"/api/users/{bob['id']}/role", json={"role": "owner"})
    assert resp.status_code == 400


def test_delete_user():
    clear_store()
    c, _ = _admin()
    _, bob = _register("bob")
    assert c.delete(f"/api/users/{bob['id']}").status_code == 200
    assert client.get(f"/api/users/{bob['id']}").status_code == 404
    assert c.delete(f"/api/users/{bob['id']}").status_code == 404


def test_delete_user_removes_their_activity():
    clear_store()
    c, _ = _admin()
    c_bob, bob = _register("bob")
    c_carol, carol = _register("carol")
    r = store.insert(store.RESTAURANTS, Restaurant(name="Shared Spot"))

    c_bob.post("/api/favorites", json={"user_id": bob["id"], "restaurant_id": r.id})
    c_bob.post("/api/reviews", json={
        "user_id": bob["id"], "restaurant_id": r.id, "rating": 1, "content": "Meh",
    })
    c_carol.post("/api/reviews", json={
        "user_id": carol["id"], "restaurant_id": r.id, "rating": 5, "content": "Lovely",
    })
    c_bob.post("/api/matches", json={"user1_id": bob["id"], "user2_id": carol["id"]})
    assert store.get_restaurant(r.id).average_rating == 3.0

    assert c.delete(f"/api/users/{bob['id']}").status_code == 200

    restaurant = store.get_restaurant(r.id)
    assert restaurant.total_likes == 0
    assert restaurant.total_reviews == 1
    assert restaurant.average_rating == 5.0
    assert client.get(f"/api/reviews/user/{bob['id']}").json() == []
    assert c_carol.get(f"/api/matches/user/{carol['id']}").json() == []
