# PRESENCE/reconciler.py
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from NEARBY.core.clock import now_ms as clock_now_ms
from NEARBY.core.config import PRESENCE_FRESHNESS_MS
from NEARBY.core.errors import StoreError
from NEARBY.core.subscription import Subscription
from NEARBY.PRESENCE.models import ActiveUser, PresenceEntry
from NEARBY.PRESENCE.store import PresenceStore
from NEARBY.USERS.profile import ProfileStore

logger = logging.getLogger("presence.reconciler")


class PresenceReconciler:
    """
    Joins the presence tree with online status and Firestore profiles.

    Reconciling is destructive: rows that are too old, or whose user is not
    online, are deleted from the presence tree while they are filtered out.
    """

    def __init__(
        self,
        presence: PresenceStore,
        profiles: ProfileStore,
        freshness_ms: int = PRESENCE_FRESHNESS_MS,
        clock: Callable[[], int] = clock_now_ms,
    ):
        self.presence = presence
        self.profiles = profiles
        self.freshness_ms = freshness_ms
        self.clock = clock

    def is_stale(self, entry: PresenceEntry, now_ms: int) -> bool:
        if entry.entered_at_ms is None:
            return True
        return now_ms - entry.entered_at_ms >= self.freshness_ms

    async def _validate(self, entry: PresenceEntry, now_ms: int) -> bool:
        """True if the row survives; prunes it otherwise."""
        if self.is_stale(entry, now_ms):
            await self.presence.delete_entry(entry.venue_id, entry.user_id)
            logger.info("Pruned stale presence venue=%s user=%s", entry.venue_id, entry.user_id)
            return False

        status = await self.presence.get_status(entry.user_id)
        if status is None or not status.is_online:
            await self.presence.delete_entry(entry.venue_id, entry.user_id)
            logger.info("Pruned offline presence venue=%s user=%s", entry.venue_id, entry.user_id)
            return False

        return True

    async def _active_user(self, entry: PresenceEntry, now_ms: int) -> Optional[ActiveUser]:
        if not await self._validate(entry, now_ms):
            return None

        try:
            profile = await self.profiles.get_profile(entry.user_id)
        except StoreError as e:
            logger.debug("Profile lookup failed for user=%s: %s", entry.user_id, e)
            return None
        if profile is None:
            logger.debug("No profile for active user=%s", entry.user_id)
            return None

        return ActiveUser(
            id=entry.user_id,
            name=profile.name,
            photo_url=profile.photo_url,
            status=profile.status,
            last_seen_ms=entry.entered_at_ms,
            allow_messages=profile.allow_messages,
            is_online=True,
        )

    async def reconcile(self, venue_id: str, now_ms: Optional[int] = None) -> List[ActiveUser]:
        now_ms = self.clock() if now_ms is None else now_ms
        entries = await self.presence.get_active_entries(venue_id)
        entries.sort(key=lambda e: (e.entered_at_ms or 0, e.user_id))

        results = await asyncio.gather(*(self._active_user(e, now_ms) for e in entries))
        return [user for user in results if user is not None]

    async def prune(self, venue_id: str, now_ms: Optional[int] = None) -> int:
        """Staleness/online pruning only (no profile reads). Returns rows removed."""
        now_ms = self.clock() if now_ms is None else now_ms
        entries = await self.presence.get_active_entries(venue_id)
        kept = await asyncio.gather(*(self._validate(e, now_ms) for e in entries))
        return sum(1 for ok in kept if not ok)

    async def prune_all(self, venue_ids: Iterable[str], now_ms: Optional[int] = None) -> Dict[str, int]:
        now_ms = self.clock() if now_ms is None else now_ms
        removed = {}
        for venue_id in venue_ids:
            try:
                removed[venue_id] = await self.prune(venue_id, now_ms)
            except StoreError as e:
                logger.warning("Prune skipped for venue=%s: %s", venue_id, e)
        return removed

    def watch(
        self,
        venue_id: str,
        on_update: Callable[[List[ActiveUser]], Awaitable[None]],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> Subscription:
        """
        Re-run `reconcile` on every change under the venue's active users and
        hand the result to `on_update` on the event loop.
        """
        loop = loop or asyncio.get_running_loop()

        async def _refresh():
            try:
                users = await self.reconcile(venue_id)
            except StoreError as e:
                logger.warning("Live reconcile failed for venue=%s: %s", venue_id, e)
                return
            if subscription.active:
                await on_update(users)

        def _report(fut):
            if not fut.cancelled() and fut.exception() is not None:
                logger.error(
                    "Live update for venue=%s failed: %r", venue_id, fut.exception()
                )

        def _on_change():
            fut = asyncio.run_coroutine_threadsafe(_refresh(), loop)
            fut.add_done_callback(_report)

        subscription = self.presence.subscribe_active_users(venue_id, _on_change)
        return subscription
