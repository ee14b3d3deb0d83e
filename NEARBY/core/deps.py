# file: NEARBY/core/deps.py
"""
Process-wide service instances, handed to routes through FastAPI `Depends`.

Nothing touches Firebase until a store actually runs a query, so importing
the app (and overriding these in tests) needs no credentials.
"""
from functools import lru_cache

from NEARBY.ProxyLocation.confirmation_state import ConfirmationStateStore
from NEARBY.ProxyLocation.service import ProximityService
from NEARBY.PLACES.catalog import CatalogCache, VenueCatalog
from NEARBY.PLACES.reviews import ReviewService
from NEARBY.PLACES.visits import VisitLog
from NEARBY.PRESENCE.heartbeat import PresenceHeartbeat
from NEARBY.PRESENCE.reconciler import PresenceReconciler
from NEARBY.PRESENCE.store import PresenceStore
from NEARBY.USERS.follow import FollowService
from NEARBY.USERS.notifications import NotificationStore
from NEARBY.USERS.profile import ProfileStore


@lru_cache(maxsize=None)
def get_presence_store() -> PresenceStore:
    return PresenceStore()


@lru_cache(maxsize=None)
def get_profile_store() -> ProfileStore:
    return ProfileStore()


@lru_cache(maxsize=None)
def get_catalog() -> VenueCatalog:
    return VenueCatalog()


@lru_cache(maxsize=None)
def get_catalog_cache() -> CatalogCache:
    return CatalogCache(get_catalog())


@lru_cache(maxsize=None)
def get_visit_log() -> VisitLog:
    return VisitLog(get_profile_store())


@lru_cache(maxsize=None)
def get_heartbeat() -> PresenceHeartbeat:
    return PresenceHeartbeat(get_presence_store(), get_profile_store())


@lru_cache(maxsize=None)
def get_reconciler() -> PresenceReconciler:
    return PresenceReconciler(get_presence_store(), get_profile_store())


@lru_cache(maxsize=None)
def get_review_service() -> ReviewService:
    return ReviewService(get_catalog(), get_profile_store())


@lru_cache(maxsize=None)
def get_notification_store() -> NotificationStore:
    return NotificationStore()


@lru_cache(maxsize=None)
def get_follow_service() -> FollowService:
    return FollowService(get_profile_store(), get_notification_store())


@lru_cache(maxsize=None)
def get_proximity_service() -> ProximityService:
    return ProximityService(
        venues=get_catalog_cache(),
        presence=get_presence_store(),
        heartbeat=get_heartbeat(),
        visits=get_visit_log(),
        state_store=ConfirmationStateStore(),
    )
