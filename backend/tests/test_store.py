from __future__ import annotations

import threading

import pytest

from backend.discussions.models import Discussion, DiscussionReply
from backend.errors import ForbiddenError, NotFoundError
from backend.favorites.models import Favorite
from backend.matching.models import Match, MatchStatus
from backend.restaurants.models import Restaurant
from backend.reviews.models import Review
from backend.storage import store
from backend.users.models import UserRecord


def _restaurant(**fields) -> Restaurant:
    return store.insert(store.RESTAURANTS, Restaurant(name=fields.pop("name", "Cafe"), **fields))


def _match(user1="u1", user2="u2") -> Match:
    return store.create_match(Match(user1_id=user1, user2_id=user2, match_score=50))


def _user(name: str) -> UserRecord:
    return store.insert(store.USERS, UserRecord(username=name, email=f"{name}@example.com", password_hash="x"))


def test_insert_get_and_delete():
    store.clear_store()
    r = _restaurant()
    assert store.get_restaurant(r.id) is r
    assert store.delete(store.RESTAURANTS, r.id) is True
    assert store.get_restaurant(r.id) is None
    assert store.delete(store.RESTAURANTS, r.id) is False


def test_list_records_keeps_insertion_order_and_filters():
    store.clear_store()
    first = _restaurant(name="A", is_active=True)
    second = _restaurant(name="B", is_active=False)
    assert [r.name for r in store.list_restaurants()] == ["A", "B"]
    assert store.list_restaurants(lambda r: r.is_active) == [first]
    assert second not in store.list_restaurants(lambda r: r.is_active)


def test_update_revalidates_and_bumps_timestamp():
    store.clear_store()
    r = _restaurant(cuisine_type=["Thai"])
    updated = store.update(store.RESTAURANTS, r.id, {"cuisine_type": ["Thai", "Thai", "Asian"]})
    assert updated.cuisine_type == ["Thai", "Asian"]
    assert updated.updated_at >= r.updated_at


def test_update_missing_record_raises_not_found():
    store.clear_store()
    with pytest.raises(NotFoundError):
        store.update(store.RESTAURANTS, "missing", {"name": "x"})


def test_atomic_increment_with_floor():
    store.clear_store()
    r = _restaurant()
    store.atomic_increment(store.RESTAURANTS, r.id, "total_likes", 2)
    assert store.get_restaurant(r.id).total_likes == 2
    store.atomic_increment(store.RESTAURANTS, r.id, "total_likes", -5, floor=0)
    assert store.get_restaurant(r.id).total_likes == 0


def test_concurrent_increments_are_not_lost():
    store.clear_store()
    r = _restaurant()

    def _bump():
        for _ in range(200):
            store.atomic_increment(store.RESTAURANTS, r.id, "total_likes", 1)

    threads = [threading.Thread(target=_bump) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.get_restaurant(r.id).total_likes == 1600


def test_insert_unique_rejects_clash():
    store.clear_store()
    _restaurant(name="Unique")
    dup = store.insert_unique(
        store.RESTAURANTS, Restaurant(name="Unique"), lambda r: r.name == "Unique",
    )
    assert dup is None
    assert len(store.list_restaurants()) == 1


def test_clear_store_empties_every_table():
    store.clear_store()
    _restaurant()
    _match()
    store.clear_store()
    assert all(store.list_records(t) == [] for t in store.TABLES)


# ── Match helpers ────────────────────────────────────────────────────────


def test_find_match_between_either_order():
    store.clear_store()
    m = _match("u1", "u2")
    assert store.find_match_between("u1", "u2").id == m.id
    assert store.find_match_between("u2", "u1").id == m.id
    assert store.find_match_between("u1", "u3") is None


def test_create_match_refuses_reversed_pair():
    store.clear_store()
    assert _match("u1", "u2") is not None
    assert _match("u2", "u1") is None


@pytest.mark.parametrize("status,user2_status,connected", [
    (MatchStatus.pending, MatchStatus.pending, False),
    (MatchStatus.accepted, MatchStatus.pending, False),
    (MatchStatus.pending, MatchStatus.accepted, False),
    (MatchStatus.accepted, MatchStatus.declined, False),
    (MatchStatus.blocked, MatchStatus.accepted, False),
    (MatchStatus.accepted, MatchStatus.accepted, True),
])
def test_is_connected_only_when_both_accept(status, user2_status, connected):
    store.clear_store()
    m = _match()
    store.update_match_status(m.id, "user1", status, "u1")
    updated = store.update_match_status(m.id, "user2", user2_status, "u2")
    assert updated.is_connected is connected


def test_connection_drops_when_one_side_changes_mind():
    store.clear_store()
    m = _match()
    store.update_match_status(m.id, "user1", MatchStatus.accepted, "u1")
    assert store.update_match_status(m.id, "user2", MatchStatus.accepted, "u2").is_connected
    after = store.update_match_status(m.id, "user1", MatchStatus.declined, "u1")
    assert after.is_connected is False


def test_writing_other_side_is_forbidden():
    store.clear_store()
    m = _match()
    with pytest.raises(ForbiddenError):
        store.update_match_status(m.id, "user2", MatchStatus.accepted, "u1")
    assert store.get(store.MATCHES, m.id).user2_status == MatchStatus.pending


def test_unknown_side_rejected():
    store.clear_store()
    m = _match()
    with pytest.raises(ValueError):
        store.update_match_status(m.id, "user3", MatchStatus.accepted, "u1")


def test_on_connect_fires_only_on_the_connecting_write():
    store.clear_store()
    m = _match()
    connected = []
    store.update_match_status(m.id, "user1", MatchStatus.accepted, "u1", on_connect=connected.append)
    store.update_match_status(m.id, "user2", MatchStatus.accepted, "u2", on_connect=connected.append)
    store.update_match_status(m.id, "user2", MatchStatus.accepted, "u2", on_connect=connected.append)
    assert [match.id for match in connected] == [m.id]


def test_concurrent_accepts_connect_once():
    store.clear_store()
    connected = []
    for _ in range(20):
        m = _match()
        barrier = threading.Barrier(2)

        def accept(side, user_id, match_id=m.id, barrier=barrier):
            barrier.wait()
            store.update_match_status(
                match_id, side, MatchStatus.accepted, user_id, on_connect=connected.append,
            )

        threads = [
            threading.Thread(target=accept, args=("user1", "u1")),
            threading.Thread(target=accept, args=("user2", "u2")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get(store.MATCHES, m.id).is_connected is True
        store.delete(store.MATCHES, m.id)
    assert len(connected) == 20


def test_delete_user_cascade_removes_owned_rows():
    store.clear_store()
    gone = _user("gone")
    stays = _user("stays")
    r = _restaurant(total_likes=3)
    store.insert(store.FAVORITES, Favorite(user_id=gone.id, restaurant_id=r.id))
    store.insert(store.REVIEWS, Review(user_id=gone.id, restaurant_id=r.id, rating=5))
    _match(gone.id, stays.id)
    own = store.insert(store.DISCUSSIONS, Discussion(
        user_id=gone.id, restaurant_id=r.id, title="Mine", content="x", reply_count=1,
    ))
    store.insert(store.DISCUSSION_REPLIES, DiscussionReply(
        discussion_id=own.id, user_id=stays.id, content="reply on a deleted thread",
    ))
    other = store.insert(store.DISCUSSIONS, Discussion(
        user_id=stays.id, restaurant_id=r.id, title="Theirs", content="y", reply_count=1,
    ))
    store.insert(store.DISCUSSION_REPLIES, DiscussionReply(
        discussion_id=other.id, user_id=gone.id, content="reply elsewhere",
    ))

    assert store.delete_user_cascade(gone.id) == {r.id}
    assert store.get_user(gone.id) is None
    assert store.list_records(store.MATCHES) == []
    assert store.list_records(store.FAVORITES) == []
    assert store.list_records(store.REVIEWS) == []
    assert store.list_records(store.DISCUSSION_REPLIES) == []
    assert [d.id for d in store.list_records(store.DISCUSSIONS)] == [other.id]
    assert store.get(store.DISCUSSIONS, other.id).reply_count == 0
    assert store.get_restaurant(r.id).total_likes == 2
    assert store.delete_user_cascade(gone.id) is None
