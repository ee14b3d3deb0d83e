"""
HTTP surface with the service layer swapped for in-memory fakes.

TestClient is used without a `with` block so startup hooks (scheduler,
catalog subscription) never run.
"""

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from NEARBY.core import config
from NEARBY.core.deps import (
    get_catalog,
    get_catalog_cache,
    get_follow_service,
    get_heartbeat,
    get_notification_store,
    get_presence_store,
    get_proximity_service,
    get_reconciler,
    get_review_service,
    get_visit_log,
)
from NEARBY.core.security import get_current_user
from NEARBY.main import app
from NEARBY.PLACES.reviews import ReviewService
from NEARBY.USERS.follow import FollowService

ALICE = {"user_id": "alice", "role": "user"}
AT_CAFE = {"latitude": 40.000063, "longitude": -74.0}


@pytest.fixture
def client(service, catalog, reconciler, presence, profiles, heartbeat, visits, notifications):
    profiles.add("alice")
    profiles.add("bob")
    overrides = {
        get_current_user: lambda: ALICE,
        get_proximity_service: lambda: service,
        get_catalog_cache: lambda: catalog,
        get_catalog: lambda: catalog,
        get_reconciler: lambda: reconciler,
        get_review_service: lambda: ReviewService(catalog, profiles),
        get_visit_log: lambda: visits,
        get_heartbeat: lambda: heartbeat,
        get_presence_store: lambda: presence,
        get_follow_service: lambda: FollowService(profiles, notifications),
        get_notification_store: lambda: notifications,
    }
    app.dependency_overrides.update(overrides)
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# /fine_me
# ============================================================================

def test_full_confirmation_flow(client, presence):
    res = client.post("/fine_me/session", json={"device_id": "d1"})
    assert res.status_code == 200
    assert res.json()["state"] == "idle"

    res = client.post("/fine_me/location", json={"device_id": "d1", **AT_CAFE})
    assert res.status_code == 200
    body = res.json()
    assert body["moved"] is True
    assert body["prompt"] == {"id": "cafe", "name": "Corner Cafe"}
    assert [v["id"] for v in body["nearby"]] == ["cafe", "bar"]
    assert body["session"]["state"] == "awaiting_confirmation"

    res = client.post("/fine_me/confirm", json={"device_id": "d1", "venue_id": "cafe", "accept": True})
    assert res.status_code == 200
    assert res.json()["state"] == "confirmed"
    assert res.json()["active_venue_id"] == "cafe"

    res = client.get("/places/cafe/active_users")
    assert [u["id"] for u in res.json()] == ["alice"]

    res = client.get("/fine_me/session/d1")
    assert res.json()["active_venue_id"] == "cafe"

    res = client.post("/fine_me/sign_out", json={"device_id": "d1"})
    assert res.json() == {"ok": True, "left_venue_id": "cafe"}
    assert presence.entry_ids("cafe") == set()


def test_reject_and_leave(client):
    client.post("/fine_me/session", json={"device_id": "d1"})
    client.post("/fine_me/location", json={"device_id": "d1", **AT_CAFE})

    res = client.post("/fine_me/confirm", json={"device_id": "d1", "venue_id": "cafe", "accept": False})
    assert res.json()["rejected_venue_ids"] == ["cafe"]
    assert res.json()["state"] == "idle"

    res = client.post("/fine_me/leave", json={"device_id": "d1"})
    assert res.json()["left_venue_id"] is None


def test_answer_without_prompt_conflicts(client):
    client.post("/fine_me/session", json={"device_id": "d1"})
    res = client.post("/fine_me/confirm", json={"device_id": "d1", "venue_id": "cafe", "accept": True})
    assert res.status_code == 409


def test_unknown_device_is_404(client):
    res = client.post("/fine_me/location", json={"device_id": "ghost", **AT_CAFE})
    assert res.status_code == 404


def test_invalid_coordinates_are_rejected(client):
    client.post("/fine_me/session", json={"device_id": "d1"})
    res = client.post("/fine_me/location", json={"device_id": "d1", "latitude": 123, "longitude": 0})
    assert res.status_code == 422


def test_store_outage_maps_to_503(client, catalog):
    catalog.fail = True
    res = client.get("/places")
    assert res.status_code == 503
    assert "temporarily unavailable" in res.json()["detail"]


# ============================================================================
# /places
# ============================================================================

def test_nearby_places_with_distance(client):
    res = client.get("/places/nearby", params={"latitude": 40.0, "longitude": -74.0})
    assert res.status_code == 200
    body = res.json()
    assert [v["id"] for v in body] == ["cafe", "bar"]
    assert body[0]["distance_m"] == 0
    assert 35 < body[1]["distance_m"] < 45


def test_place_details_and_missing_place(client):
    res = client.get("/places/museum")
    assert res.status_code == 200
    assert res.json()["venue"]["name"] == "City Museum"
    assert res.json()["active_users"] == []

    assert client.get("/places/nowhere").status_code == 404


def test_add_review(client):
    res = client.post("/places/cafe/reviews", json={"rating": 5, "comment": "Great espresso"})
    assert res.status_code == 201
    assert res.json()["user_id"] == "alice"
    assert client.post("/places/nowhere/reviews", json={"rating": 5}).status_code == 404


def test_creating_a_venue_needs_admin(client):
    payload = {"name": "Bakery", "latitude": 1.0, "longitude": 2.0}
    assert client.post("/places", json=payload).status_code == 403

    app.dependency_overrides[get_current_user] = lambda: {"user_id": "root", "role": "admin"}
    res = client.post("/places", json=payload)
    assert res.status_code == 201
    assert res.json()["id"]


def test_recent_visitors(client, visits):
    visits.visits.append(("cafe", "bob"))
    res = client.get("/places/cafe/visitors")
    assert [v["id"] for v in res.json()] == ["bob"]


# ============================================================================
# /presence and /users
# ============================================================================

def test_heartbeat_and_status(client):
    assert client.post("/presence/heartbeat", json={"online": False}).json()["online"] is False
    res = client.get("/presence/status/alice")
    assert res.status_code == 200
    assert res.json()["is_online"] is False
    assert client.get("/presence/status/nobody").status_code == 404


def test_follow_endpoints(client):
    assert client.post("/users/bob/follow").json()["following"] is True
    assert [u["id"] for u in client.get("/users/bob/followers").json()] == ["alice"]
    assert client.get("/users/alice/follow_counts").json() == {"followers": 0, "following": 1}
    assert client.post("/users/alice/follow").status_code == 400
    assert client.delete("/users/bob/follow").json()["following"] is False


def test_follow_request_endpoints(client):
    assert client.post("/users/bob/follow_requests").json()["ok"] is True
    assert client.post("/users/bob/follow_requests").json()["ok"] is False

    app.dependency_overrides[get_current_user] = lambda: {"user_id": "bob", "role": "user"}
    assert [u["id"] for u in client.get("/users/me/follow_requests").json()] == ["alice"]
    assert client.post("/users/follow_requests/alice/accept").json() == {"ok": True}
    assert [u["id"] for u in client.get("/users/bob/followers").json()] == ["alice"]


def test_accepting_without_a_request_is_404(client, profiles):
    res = client.post("/users/follow_requests/bob/accept")
    assert res.status_code == 404
    assert client.post("/users/follow_requests/bob/reject").status_code == 404
    assert profiles.docs["alice"].get("followers", []) == []
    assert profiles.docs["bob"].get("following", []) == []


def test_follow_status(client):
    assert client.get("/users/bob/follow_status").json() == {"following": False, "requested": False}
    client.post("/users/bob/follow_requests")
    assert client.get("/users/bob/follow_status").json() == {"following": False, "requested": True}

    app.dependency_overrides[get_current_user] = lambda: {"user_id": "bob", "role": "user"}
    client.post("/users/follow_requests/alice/accept")

    app.dependency_overrides[get_current_user] = lambda: ALICE
    assert client.get("/users/bob/follow_status").json() == {"following": True, "requested": False}


def test_notification_feed(client):
    client.post("/users/bob/follow_requests")

    app.dependency_overrides[get_current_user] = lambda: {"user_id": "bob", "role": "user"}
    feed = client.get("/users/me/notifications").json()
    assert [(n["type"], n["from_user_id"], n["read"]) for n in feed] == [("FOLLOW_REQUEST", "alice", False)]

    notification_id = feed[0]["id"]
    assert client.post(f"/users/notifications/{notification_id}/read").json() == {"ok": True}
    assert client.get("/users/me/notifications").json()[0]["read"] is True

    client.post("/users/follow_requests/alice/accept")

    app.dependency_overrides[get_current_user] = lambda: ALICE
    feed = client.get("/users/me/notifications").json()
    assert [(n["type"], n["from_user_id"]) for n in feed] == [("FOLLOW_ACCEPT", "bob")]
    # addressed to bob, not alice
    assert client.post(f"/users/notifications/{notification_id}/read").status_code == 404


def test_ping(client):
    assert client.get("/ping").json() == {"message": "pong"}


# ============================================================================
# AUTH
# ============================================================================

def test_bearer_token_is_required(client):
    del app.dependency_overrides[get_current_user]

    assert client.get("/presence/status/alice").status_code in (401, 403)

    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/presence/status/alice", headers=bad).status_code == 401

    token = jwt.encode({"sub": "alice"}, config.SECRET_KEY, algorithm=config.ALGORITHM)
    good = {"Authorization": f"Bearer {token}"}
    client.post("/presence/heartbeat", json={"online": True}, headers=good)
    assert client.get("/presence/status/alice", headers=good).json()["is_online"] is True
