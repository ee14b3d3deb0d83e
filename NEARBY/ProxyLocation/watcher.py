# ProxyLocation/watcher.py
import logging
from typing import Awaitable, Callable, List, Optional

from NEARBY.core.config import LOCATION_DISTANCE_INTERVAL_M
from NEARBY.core.subscription import Subscription
from NEARBY.ProxyLocation.distance import distance
from NEARBY.ProxyLocation.models import Coordinate

logger = logging.getLogger("proxylocation.watcher")

LocationCallback = Callable[[Coordinate], Awaitable[None]]


class LocationWatcher:
    """
    Per-device feed of position fixes.

    A fix is emitted only once the device has moved at least
    `distance_interval_m` from the last emitted fix; the first fix always goes
    through. Subscribers are awaited one after another.
    """

    def __init__(self, distance_interval_m: float = LOCATION_DISTANCE_INTERVAL_M):
        self.distance_interval_m = distance_interval_m
        self.last_emitted: Optional[Coordinate] = None
        self._watches: List[tuple] = []

    def watch(self, callback: LocationCallback) -> Subscription:
        subscription = Subscription(name="location")
        entry = (subscription, callback)
        self._watches.append(entry)
        subscription.bind(lambda: self._remove(entry))
        return subscription

    def _remove(self, entry) -> None:
        if entry in self._watches:
            self._watches.remove(entry)

    def should_emit(self, coordinate: Coordinate) -> bool:
        if self.last_emitted is None:
            return True
        return distance(self.last_emitted, coordinate) >= self.distance_interval_m

    async def push(self, coordinate: Coordinate) -> bool:
        if not self.should_emit(coordinate):
            logger.debug("Fix within %.1fm of last emitted fix, ignored", self.distance_interval_m)
            return False

        self.last_emitted = coordinate
        for subscription, callback in list(self._watches):
            if subscription.active:
                await callback(coordinate)
        return True

    def close(self) -> None:
        for subscription, _ in list(self._watches):
            subscription.unsubscribe()
        self._watches.clear()
