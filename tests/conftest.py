"""
Shared fixtures: in-memory stand-ins for the Firebase-backed stores.

The fakes keep the async interfaces of PresenceStore / ProfileStore /
CatalogCache / VisitLog so the real services run unchanged on top of them.
"""

import os

import pytest

# security.get_secret_key() needs a 32+ char key before any token is decoded
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-1234")

from NEARBY.core.errors import StoreError
from NEARBY.core.subscription import Subscription
from NEARBY.ProxyLocation.confirmation_state import ConfirmationStateStore
from NEARBY.ProxyLocation.models import Coordinate
from NEARBY.ProxyLocation.service import ProximityService
from NEARBY.PLACES.models import Venue, Visitor
from NEARBY.PRESENCE.heartbeat import PresenceHeartbeat
from NEARBY.PRESENCE.models import CurrentPlace, PresenceEntry, UserOnlineStatus
from NEARBY.PRESENCE.reconciler import PresenceReconciler
from NEARBY.USERS.models import Notification, NotificationType, UserProfile

NOW_MS = 1_700_000_000_000


def make_venue(venue_id: str, latitude: float, longitude: float, name: str = None) -> Venue:
    return Venue(
        id=venue_id,
        name=name or venue_id.title(),
        coordinate=Coordinate(latitude=latitude, longitude=longitude),
    )


# ============================================================================
# FAKES
# ============================================================================

class FakeClock:
    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakePresenceStore:
    """places/{venue}/activeUsers, status/{uid} and userPlaces/{uid} in dicts."""

    def __init__(self):
        self.active = {}  # venue_id -> {user_id: timestamp or None}
        self.status = {}  # user_id -> dict
        self.user_places = {}
        self.fail_ops = set()
        self.calls = []
        self._listeners = {}

    def _check(self, op: str):
        self.calls.append(op)
        if op in self.fail_ops:
            raise StoreError(f"{op} failed", operation=op)

    async def get_active_entries(self, venue_id):
        self._check("get_active_entries")
        return [
            PresenceEntry(venue_id=venue_id, user_id=uid, entered_at_ms=ts)
            for uid, ts in self.active.get(venue_id, {}).items()
        ]

    async def set_entry(self, entry):
        self._check("set_entry")
        self.active.setdefault(entry.venue_id, {})[entry.user_id] = entry.entered_at_ms
        self._notify(entry.venue_id)

    async def delete_entry(self, venue_id, user_id):
        self._check("delete_entry")
        self.active.get(venue_id, {}).pop(user_id, None)
        self._notify(venue_id)

    def subscribe_active_users(self, venue_id, on_change):
        subscription = Subscription(name=venue_id)
        handler = subscription.guard(on_change)
        self._listeners.setdefault(venue_id, []).append(handler)
        subscription.bind(lambda: self._listeners[venue_id].remove(handler))
        return subscription

    def _notify(self, venue_id):
        for handler in list(self._listeners.get(venue_id, [])):
            handler()

    async def get_status(self, user_id):
        self._check("get_status")
        raw = self.status.get(user_id)
        if raw is None:
            return None
        return UserOnlineStatus(user_id=user_id, **raw)

    async def set_status(self, user_id, is_online, current_place=None):
        self._check("set_status")
        self.status[user_id] = {"is_online": is_online, "current_place": current_place}

    async def delete_status(self, user_id):
        self._check("delete_status")
        self.status.pop(user_id, None)

    async def delete_user_places(self, user_id):
        self._check("delete_user_places")
        self.user_places.pop(user_id, None)

    # helpers
    def entry_ids(self, venue_id):
        return set(self.active.get(venue_id, {}))

    def set_online(self, user_id, online=True, place: CurrentPlace = None):
        self.status[user_id] = {"is_online": online, "current_place": place}


class FakeProfileStore:
    """users/{uid} documents kept as plain dicts with Firestore field names."""

    def __init__(self):
        self.docs = {}
        self.failing_users = set()

    def add(self, user_id, name=None, **fields):
        doc = {"name": name or user_id.title()}
        doc.update(fields)
        self.docs[user_id] = doc
        return doc

    async def get_profile(self, user_id):
        if user_id in self.failing_users:
            raise StoreError(f"profile {user_id} unavailable", operation="profile.get")
        doc = self.docs.get(user_id)
        return UserProfile.from_doc(user_id, doc) if doc is not None else None

    async def add_visited_place(self, user_id, venue_id):
        await self.array_union(user_id, "visitedPlaces", [venue_id])

    async def set_last_visited_place(self, user_id, venue_id, visit_date):
        self.docs.setdefault(user_id, {})["lastVisitedPlace"] = {
            "placeId": venue_id,
            "visitDate": visit_date,
        }

    async def clear_active_place(self, user_id):
        self.docs.setdefault(user_id, {})["activePlace"] = None

    async def array_union(self, user_id, field, values):
        current = self.docs.setdefault(user_id, {}).setdefault(field, [])
        for value in values:
            if value not in current:
                current.append(value)

    async def array_remove(self, user_id, field, values):
        current = self.docs.setdefault(user_id, {}).setdefault(field, [])
        self.docs[user_id][field] = [v for v in current if v not in values]


class FakeNotificationStore:
    """notifications/{id} as a list, oldest first."""

    def __init__(self):
        self.items = []

    async def _send(self, kind, from_user_id, to_user_id, data):
        notification = Notification(
            id=f"n-{len(self.items) + 1}",
            type=kind,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            data=data,
        )
        self.items.append(notification)
        return notification.id

    async def send_follow_request(self, from_user_id, to_user_id, sender=None):
        data = {"status": "pending", "fromUserName": sender.name if sender else "Someone"}
        return await self._send(NotificationType.FOLLOW_REQUEST, from_user_id, to_user_id, data)

    async def send_follow_accept(self, from_user_id, to_user_id):
        return await self._send(NotificationType.FOLLOW_ACCEPT, from_user_id, to_user_id, {})

    async def list_for_user(self, user_id):
        return [n for n in reversed(self.items) if n.to_user_id == user_id]

    async def mark_read(self, notification_id, user_id):
        for n in self.items:
            if n.id == notification_id and n.to_user_id == user_id:
                n.read = True
                return True
        return False


class FakeCatalog:
    """Covers both VenueCatalog reads and CatalogCache.get_venues()."""

    def __init__(self, venues=None):
        self.venues = list(venues or [])
        self.fail = False
        self.reviews = {}

    async def get_venues(self):
        if self.fail:
            raise StoreError("catalog unavailable", operation="catalog.list")
        return list(self.venues)

    async def list_venues(self):
        return await self.get_venues()

    async def get_venue(self, venue_id):
        for venue in await self.get_venues():
            if venue.id == venue_id:
                return venue
        return None

    async def add_venue(self, payload):
        venue = make_venue(f"venue-{len(self.venues) + 1}", payload.latitude, payload.longitude, payload.name)
        self.venues.append(venue)
        return venue.id

    async def append_review(self, venue_id, review, new_rating):
        self.reviews.setdefault(venue_id, []).append(review)
        self.venues = [
            v.model_copy(update={"rating": new_rating}) if v.id == venue_id else v
            for v in self.venues
        ]


class FakeVisitLog:
    def __init__(self):
        self.visits = []
        self.fail = False

    async def record_visit(self, venue_id, user_id):
        if self.fail:
            raise StoreError("visit write failed", operation="visits.record")
        self.visits.append((venue_id, user_id))
        return f"visit-{len(self.visits)}"

    async def recent_visitors(self, venue_id, days=30, now=None):
        return [Visitor(id=uid, visited_at="2024-01-01T00:00:00+00:00") for vid, uid in self.visits if vid == venue_id]


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def presence():
    return FakePresenceStore()


@pytest.fixture
def profiles():
    return FakeProfileStore()


@pytest.fixture
def notifications():
    return FakeNotificationStore()


@pytest.fixture
def cafe():
    return make_venue("cafe", 40.0, -74.0, "Corner Cafe")


@pytest.fixture
def bar():
    # ~40 m north of the cafe
    return make_venue("bar", 40.00036, -74.0, "Night Bar")


@pytest.fixture
def museum():
    # ~1.1 km north of the cafe
    return make_venue("museum", 40.01, -74.0, "City Museum")


@pytest.fixture
def catalog(cafe, bar, museum):
    return FakeCatalog([cafe, bar, museum])


@pytest.fixture
def visits():
    return FakeVisitLog()


@pytest.fixture
def state_store(tmp_path):
    return ConfirmationStateStore(str(tmp_path / "state"))


@pytest.fixture
def heartbeat(presence, profiles):
    return PresenceHeartbeat(presence, profiles)


@pytest.fixture
def reconciler(presence, profiles, clock):
    return PresenceReconciler(presence, profiles, clock=clock)


@pytest.fixture
def service(catalog, presence, heartbeat, visits, state_store, clock):
    return ProximityService(
        venues=catalog,
        presence=presence,
        heartbeat=heartbeat,
        visits=visits,
        state_store=state_store,
        clock=clock,
    )
