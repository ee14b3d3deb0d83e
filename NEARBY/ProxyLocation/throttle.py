# ProxyLocation/throttle.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Set

from NEARBY.core.config import CONFIRM_COOLDOWN_MS
from NEARBY.core.errors import ConfirmationError
from NEARBY.ProxyLocation.models import ConfirmationState
from NEARBY.PLACES.models import Venue

logger = logging.getLogger("proxylocation.throttle")


class ThrottleState(str, Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"


@dataclass
class SessionContext:
    """Everything the throttle remembers for one signed-in device session."""
    device_id: str
    user_id: str
    rejected_venue_ids: Set[str] = field(default_factory=set)
    has_confirmed_once: bool = False
    pending: Optional[Venue] = None

    @property
    def state(self) -> ThrottleState:
        if self.has_confirmed_once:
            return ThrottleState.CONFIRMED
        if self.pending is not None:
            return ThrottleState.AWAITING_CONFIRMATION
        return ThrottleState.IDLE

    def reset(self) -> None:
        self.rejected_venue_ids = set()
        self.has_confirmed_once = False
        self.pending = None


class ConfirmationThrottle:
    """
    Decides when a "are you at <venue>?" prompt may be shown.

    The throttle only moves the session between states; the presence write
    and the persisted pair are done by the caller between `pending_for()` and
    `mark_confirmed()`.
    """

    def __init__(self, cooldown_ms: int = CONFIRM_COOLDOWN_MS):
        self.cooldown_ms = cooldown_ms

    def cooldown_elapsed(self, state: ConfirmationState, now_ms: int) -> bool:
        if not state.is_active:
            return True
        return now_ms - state.last_confirm_ms >= self.cooldown_ms

    def evaluate(
        self,
        session: SessionContext,
        nearby: Sequence[Venue],
        state: ConfirmationState,
        now_ms: int,
    ) -> Optional[Venue]:
        """IDLE -> AWAITING_CONFIRMATION. Returns the venue to prompt for, if any."""
        if not nearby:
            return None
        if session.pending is not None or session.has_confirmed_once:
            return None
        if not self.cooldown_elapsed(state, now_ms):
            logger.debug(
                "Cooldown active for device=%s (active=%s)", session.device_id, state.active_venue_id
            )
            return None

        candidate = next((v for v in nearby if v.id not in session.rejected_venue_ids), None)
        if candidate is None:
            return None

        session.pending = candidate
        logger.info("Prompting device=%s for venue=%s", session.device_id, candidate.id)
        return candidate

    def pending_for(self, session: SessionContext, venue_id: str) -> Venue:
        if session.pending is None or session.pending.id != venue_id:
            raise ConfirmationError(f"No pending confirmation for venue {venue_id}")
        return session.pending

    def reject(self, session: SessionContext, venue_id: str) -> None:
        """AWAITING_CONFIRMATION -> IDLE; the venue is not offered again this session."""
        self.pending_for(session, venue_id)
        session.rejected_venue_ids.add(venue_id)
        session.pending = None
        logger.info("Device=%s rejected venue=%s", session.device_id, venue_id)

    def mark_confirmed(self, session: SessionContext) -> None:
        """AWAITING_CONFIRMATION -> CONFIRMED, after the presence row and pair are written."""
        session.has_confirmed_once = True
        session.pending = None
