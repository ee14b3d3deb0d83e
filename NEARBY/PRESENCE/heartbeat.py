# PRESENCE/heartbeat.py
import logging
from typing import Optional

from NEARBY.PRESENCE.models import CurrentPlace
from NEARBY.PRESENCE.store import PresenceStore
from NEARBY.USERS.profile import ProfileStore

logger = logging.getLogger("presence.heartbeat")


class PresenceHeartbeat:
    """Maintains `status/{uid}` for connected clients."""

    def __init__(self, presence: PresenceStore, profiles: ProfileStore):
        self.presence = presence
        self.profiles = profiles

    async def set_online(self, user_id: str, current_place: Optional[CurrentPlace] = None) -> None:
        await self.presence.set_status(user_id, True, current_place)
        logger.debug("User %s online", user_id)

    async def set_offline(self, user_id: str) -> None:
        await self.presence.set_status(user_id, False)
        logger.debug("User %s offline", user_id)

    async def update_user_place(self, user_id: str, place: Optional[CurrentPlace]) -> None:
        """Entering a venue (place) or leaving it (None) keeps the user online."""
        await self.presence.set_status(user_id, True, place)

    async def cleanup_user_presence(self, user_id: str) -> None:
        """Sign-out: drop the status node, the userPlaces node and Firestore activePlace."""
        try:
            await self.presence.delete_status(user_id)
            await self.presence.delete_user_places(user_id)
            await self.profiles.clear_active_place(user_id)
        except Exception:
            logger.exception("Error cleaning up user presence for %s", user_id)
            raise
