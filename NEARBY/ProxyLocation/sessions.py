# ProxyLocation/sessions.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from NEARBY.core.errors import ConfirmationError
from NEARBY.core.subscription import Subscription
from NEARBY.ProxyLocation.models import Coordinate
from NEARBY.ProxyLocation.throttle import SessionContext
from NEARBY.ProxyLocation.watcher import LocationWatcher
from NEARBY.PLACES.models import Venue


@dataclass
class ProximityResult:
    moved: bool
    skipped: bool = False
    nearby: List[Venue] = field(default_factory=list)
    prompt: Optional[Venue] = None
    left_venue_id: Optional[str] = None


@dataclass
class DeviceSession:
    context: SessionContext
    watcher: LocationWatcher
    location_subscription: Optional[Subscription] = None
    last_location: Optional[Coordinate] = None
    last_result: Optional[ProximityResult] = None

    @property
    def device_id(self) -> str:
        return self.context.device_id

    @property
    def user_id(self) -> str:
        return self.context.user_id

    def close(self) -> None:
        if self.location_subscription is not None:
            self.location_subscription.unsubscribe()
            self.location_subscription = None
        self.watcher.close()


class SessionRegistry:
    """In-memory device sessions, keyed by device id."""

    def __init__(self):
        self._sessions: Dict[str, DeviceSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, device_id: str) -> Optional[DeviceSession]:
        return self._sessions.get(device_id)

    def require(self, device_id: str, user_id: str) -> DeviceSession:
        session = self._sessions.get(device_id)
        if session is None:
            raise ConfirmationError(f"No session for device {device_id}", status_code=404)
        if session.user_id != user_id:
            raise ConfirmationError("Device session belongs to another user", status_code=403)
        return session

    def add(self, session: DeviceSession) -> None:
        self._sessions[session.device_id] = session

    def remove(self, device_id: str) -> Optional[DeviceSession]:
        return self._sessions.pop(device_id, None)

    def all(self) -> List[DeviceSession]:
        return list(self._sessions.values())
