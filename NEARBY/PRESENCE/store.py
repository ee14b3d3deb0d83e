# PRESENCE/store.py
import logging
from typing import Callable, List, Optional

from NEARBY.core.firebase import call_store, get_rtdb_root
from NEARBY.core.subscription import Subscription
from NEARBY.PRESENCE.models import PresenceEntry, UserOnlineStatus, CurrentPlace

logger = logging.getLogger("presence.store")

# Realtime Database server-side timestamp placeholder
SERVER_TIMESTAMP = {".sv": "timestamp"}


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


class PresenceStore:
    """
    Ephemeral presence tree in the Realtime Database.

        places/{venueId}/activeUsers/{userId} -> {timestamp}
        status/{userId}                       -> {isOnline, lastSeen, currentPlace}
        userPlaces/{userId}

    Set and delete are keyed writes, so repeating them is harmless.
    """

    def __init__(self, root=None):
        self._root = root

    @property
    def root(self):
        if self._root is None:
            self._root = get_rtdb_root()
        return self._root

    def _active_users_ref(self, venue_id: str):
        return self.root.child("places").child(venue_id).child("activeUsers")

    def _status_ref(self, user_id: str):
        return self.root.child("status").child(user_id)

    # ==============================
    # Active users per venue
    # ==============================
    async def get_active_entries(self, venue_id: str) -> List[PresenceEntry]:
        raw = await call_store("presence.get_active_entries", self._active_users_ref(venue_id).get)
        entries = []
        for user_id, data in (raw or {}).items():
            timestamp = _as_int(data.get("timestamp")) if isinstance(data, dict) else None
            entries.append(PresenceEntry(venue_id=venue_id, user_id=user_id, entered_at_ms=timestamp))
        return entries

    async def set_entry(self, entry: PresenceEntry) -> None:
        ref = self._active_users_ref(entry.venue_id).child(entry.user_id)
        await call_store("presence.set_entry", ref.set, {"timestamp": entry.entered_at_ms})
        logger.debug("Presence set venue=%s user=%s", entry.venue_id, entry.user_id)

    async def delete_entry(self, venue_id: str, user_id: str) -> None:
        # deleting a missing key is a no-op in the Realtime Database
        ref = self._active_users_ref(venue_id).child(user_id)
        await call_store("presence.delete_entry", ref.delete)
        logger.debug("Presence deleted venue=%s user=%s", venue_id, user_id)

    def subscribe_active_users(self, venue_id: str, on_change: Callable[[], None]) -> Subscription:
        """Call `on_change` (on an SDK thread) whenever the venue's active users change."""
        subscription = Subscription(name=f"places/{venue_id}/activeUsers")
        handler = subscription.guard(lambda event: on_change())
        registration = self._active_users_ref(venue_id).listen(handler)
        subscription.bind(registration.close)
        return subscription

    # ==============================
    # Online status
    # ==============================
    async def get_status(self, user_id: str) -> Optional[UserOnlineStatus]:
        raw = await call_store("presence.get_status", self._status_ref(user_id).get)
        if not isinstance(raw, dict):
            return None

        place = raw.get("currentPlace")
        return UserOnlineStatus(
            user_id=user_id,
            is_online=bool(raw.get("isOnline", False)),
            last_seen_ms=_as_int(raw.get("lastSeen")),
            current_place=CurrentPlace(**place) if isinstance(place, dict) and place.get("id") else None,
        )

    async def set_status(self, user_id: str, is_online: bool, current_place: Optional[CurrentPlace] = None) -> None:
        value = {
            "isOnline": is_online,
            "lastSeen": SERVER_TIMESTAMP,
            "currentPlace": current_place.model_dump() if current_place else None,
        }
        await call_store("presence.set_status", self._status_ref(user_id).set, value)

    async def delete_status(self, user_id: str) -> None:
        await call_store("presence.delete_status", self._status_ref(user_id).delete)

    async def delete_user_places(self, user_id: str) -> None:
        ref = self.root.child("userPlaces").child(user_id)
        await call_store("presence.delete_user_places", ref.delete)
