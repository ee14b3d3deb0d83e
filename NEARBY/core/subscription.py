# file: NEARBY/core/subscription.py
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger("core.subscription")


class Subscription:
    """
    Handle returned by every watch/subscribe call.

    `unsubscribe()` is idempotent. Once it has been called `active` is False and
    callbacks wrapped with `guard()` stop firing, even if the underlying SDK
    delivers one more event.
    """

    def __init__(self, on_unsubscribe: Optional[Callable[[], None]] = None, name: str = ""):
        self._on_unsubscribe = on_unsubscribe
        self._lock = threading.Lock()
        self._active = True
        self.name = name

    @property
    def active(self) -> bool:
        return self._active

    def bind(self, on_unsubscribe: Callable[[], None]) -> None:
        self._on_unsubscribe = on_unsubscribe

    def guard(self, callback: Callable) -> Callable:
        def _guarded(*args, **kwargs):
            if not self._active:
                return None
            return callback(*args, **kwargs)

        return _guarded

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            release = self._on_unsubscribe
            self._on_unsubscribe = None

        if release is not None:
            release()
        logger.debug("Unsubscribed %s", self.name or "subscription")
