# ProxyLocation/service.py
import logging
from typing import Callable, List, Optional

from NEARBY.core.clock import now_ms
from NEARBY.core.config import LOCATION_DISTANCE_INTERVAL_M, PROXIMITY_RADIUS_M
from NEARBY.core.errors import StoreError
from NEARBY.ProxyLocation.confirmation_state import ConfirmationStateStore
from NEARBY.ProxyLocation.matcher import find_nearby
from NEARBY.ProxyLocation.models import (
    ConfirmationState,
    Coordinate,
    ProximityView,
    SessionView,
    VenuePrompt,
)
from NEARBY.ProxyLocation.sessions import DeviceSession, ProximityResult, SessionRegistry
from NEARBY.ProxyLocation.throttle import ConfirmationThrottle, SessionContext
from NEARBY.ProxyLocation.watcher import LocationWatcher
from NEARBY.PLACES.catalog import CatalogCache
from NEARBY.PLACES.models import Venue
from NEARBY.PLACES.visits import VisitLog
from NEARBY.PRESENCE.heartbeat import PresenceHeartbeat
from NEARBY.PRESENCE.models import CurrentPlace, PresenceEntry
from NEARBY.PRESENCE.store import PresenceStore

logger = logging.getLogger("proxylocation.service")


class ProximityService:
    """
    Location fix -> nearby venues -> confirmation prompt -> presence write.

    One DeviceSession per signed-in device; its LocationWatcher feeds
    `handle_location` with fixes that moved far enough.
    """

    def __init__(
        self,
        venues: CatalogCache,
        presence: PresenceStore,
        heartbeat: PresenceHeartbeat,
        visits: VisitLog,
        state_store: ConfirmationStateStore,
        throttle: Optional[ConfirmationThrottle] = None,
        radius_m: float = PROXIMITY_RADIUS_M,
        distance_interval_m: float = LOCATION_DISTANCE_INTERVAL_M,
        clock: Callable[[], int] = now_ms,
    ):
        self.venues = venues
        self.presence = presence
        self.heartbeat = heartbeat
        self.visits = visits
        self.state_store = state_store
        self.throttle = throttle or ConfirmationThrottle()
        self.radius_m = radius_m
        self.distance_interval_m = distance_interval_m
        self.clock = clock
        self.sessions = SessionRegistry()

    # ===============================
    # SESSIONS
    # ===============================
    async def start_session(self, device_id: str, user_id: str) -> DeviceSession:
        existing = self.sessions.get(device_id)
        if existing is not None and existing.user_id == user_id:
            return existing
        if existing is not None:
            logger.info("Device %s switched user %s -> %s", device_id, existing.user_id, user_id)
            try:
                await self.sign_out(existing)
            except StoreError as e:
                logger.warning("Sign-out of previous user %s failed: %s", existing.user_id, e)

        await self.heartbeat.set_online(user_id)

        session = DeviceSession(
            context=SessionContext(device_id=device_id, user_id=user_id),
            watcher=LocationWatcher(self.distance_interval_m),
        )

        async def _on_fix(coordinate: Coordinate) -> None:
            session.last_result = await self.handle_location(session, coordinate)

        session.location_subscription = session.watcher.watch(_on_fix)
        self.sessions.add(session)
        logger.info("✅ Session started device=%s user=%s", device_id, user_id)
        return session

    async def push_location(self, session: DeviceSession, coordinate: Coordinate) -> ProximityResult:
        session.last_location = coordinate
        moved = await session.watcher.push(coordinate)
        if not moved:
            return ProximityResult(moved=False)
        return session.last_result or ProximityResult(moved=True)

    # ===============================
    # LOCATION
    # ===============================
    async def handle_location(self, session: DeviceSession, coordinate: Coordinate) -> ProximityResult:
        ctx = session.context
        now = self.clock()
        try:
            state = await self.state_store.load(ctx.device_id)
            if state.is_active and not self.throttle.cooldown_elapsed(state, now):
                return ProximityResult(moved=True)

            venues = await self.venues.get_venues()
            nearby = find_nearby(coordinate, venues, self.radius_m)

            left_venue_id = None
            if state.is_active and state.active_venue_id not in {v.id for v in nearby}:
                left_venue_id = state.active_venue_id
                await self._leave(ctx, state)
                state = ConfirmationState()

            prompt = self.throttle.evaluate(ctx, nearby, state, now)
            return ProximityResult(
                moved=True, nearby=nearby, prompt=prompt, left_venue_id=left_venue_id
            )
        except StoreError as e:
            logger.warning("Location cycle skipped for device=%s: %s", ctx.device_id, e)
            return ProximityResult(moved=True, skipped=True)

    # ===============================
    # CONFIRMATION
    # ===============================
    async def respond(self, session: DeviceSession, venue_id: str, accept: bool) -> ConfirmationState:
        ctx = session.context
        if not accept:
            self.throttle.reject(ctx, venue_id)
            return await self.state_store.load(ctx.device_id)

        venue = self.throttle.pending_for(ctx, venue_id)
        now = self.clock()
        previous = await self.state_store.load(ctx.device_id)

        if previous.is_active and previous.active_venue_id != venue.id:
            await self.presence.delete_entry(previous.active_venue_id, ctx.user_id)
        await self.presence.set_entry(
            PresenceEntry(venue_id=venue.id, user_id=ctx.user_id, entered_at_ms=now)
        )
        state = await self.state_store.save(ctx.device_id, venue.id, now)
        self.throttle.mark_confirmed(ctx)
        logger.info("🔥 Presence confirmed user=%s venue=%s", ctx.user_id, venue.id)

        try:
            await self.heartbeat.update_user_place(ctx.user_id, CurrentPlace(id=venue.id, name=venue.name))
            await self.visits.record_visit(venue.id, ctx.user_id)
        except StoreError:
            logger.exception("Visit bookkeeping failed for user=%s venue=%s", ctx.user_id, venue.id)
        return state

    # ===============================
    # LEAVE / SIGN OUT
    # ===============================
    async def _leave(self, ctx: SessionContext, state: ConfirmationState) -> None:
        """Delete the presence row and clear the pair; both are attempted."""
        errors: List[Exception] = []
        try:
            await self.presence.delete_entry(state.active_venue_id, ctx.user_id)
        except StoreError as e:
            logger.error("Presence delete failed user=%s venue=%s: %s", ctx.user_id, state.active_venue_id, e)
            errors.append(e)
        try:
            await self.state_store.clear(ctx.device_id)
        except OSError as e:
            logger.error("Clearing confirmation state failed device=%s: %s", ctx.device_id, e)
            errors.append(e)

        if errors:
            raise errors[0]
        logger.info("User %s left venue %s", ctx.user_id, state.active_venue_id)

    async def leave(self, session: DeviceSession) -> Optional[str]:
        """
        Explicit leave. Returns the venue left, if there was one.

        A confirmed session stays CONFIRMED; only sign-out resets it.
        """
        ctx = session.context
        state = await self.state_store.load(ctx.device_id)
        ctx.pending = None
        if not state.is_active:
            return None

        await self._leave(ctx, state)
        await self.heartbeat.update_user_place(ctx.user_id, None)
        return state.active_venue_id

    async def sign_out(self, session: DeviceSession) -> Optional[str]:
        ctx = session.context
        try:
            return await self.leave(session)
        finally:
            ctx.reset()
            session.close()
            self.sessions.remove(ctx.device_id)
            await self.heartbeat.cleanup_user_presence(ctx.user_id)
            logger.info("Session closed device=%s user=%s", ctx.device_id, ctx.user_id)

    def close_all(self) -> None:
        for session in self.sessions.all():
            session.close()
            self.sessions.remove(session.device_id)

    # ===============================
    # VIEWS
    # ===============================
    async def session_view(self, session: DeviceSession) -> SessionView:
        ctx = session.context
        state = await self.state_store.load(ctx.device_id)
        return SessionView(
            device_id=ctx.device_id,
            user_id=ctx.user_id,
            state=ctx.state.value,
            pending=_prompt(ctx.pending),
            rejected_venue_ids=sorted(ctx.rejected_venue_ids),
            active_venue_id=state.active_venue_id,
            last_confirm_ms=state.last_confirm_ms,
        )

    async def proximity_view(self, session: DeviceSession, result: ProximityResult) -> ProximityView:
        return ProximityView(
            moved=result.moved,
            skipped=result.skipped,
            nearby=[_prompt(v) for v in result.nearby],
            prompt=_prompt(result.prompt),
            left_venue_id=result.left_venue_id,
            session=await self.session_view(session),
        )


def _prompt(venue: Optional[Venue]) -> Optional[VenuePrompt]:
    if venue is None:
        return None
    return VenuePrompt(id=venue.id, name=venue.name)
