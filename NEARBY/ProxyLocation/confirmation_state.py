# ProxyLocation/confirmation_state.py
import os
import re
import json
import asyncio
import logging

from pydantic import ValidationError

from NEARBY.core.config import STATE_DIR
from NEARBY.ProxyLocation.models import ConfirmationState

logger = logging.getLogger("proxylocation.state")

ACTIVE_PLACE_KEY = "activePlaceId"
LAST_CONFIRM_KEY = "lastPlaceConfirm"

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


class ConfirmationStateStore:
    """
    Device-local persistence of the activePlaceId / lastPlaceConfirm pair.

    One JSON file per device; the pair is always written, read and removed as
    a unit so it can never be half-cleared.
    """

    def __init__(self, state_dir: str = STATE_DIR):
        self.state_dir = state_dir

    def _path(self, device_id: str) -> str:
        return os.path.join(self.state_dir, f"{_SAFE_NAME.sub('_', device_id)}.json")

    # ---------------------------
    # sync helpers (run in a worker thread)
    # ---------------------------
    def _read(self, device_id: str) -> ConfirmationState:
        path = self._path(device_id)
        if not os.path.exists(path):
            return ConfirmationState()

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError(f"expected an object, got {type(raw).__name__}")
            last_confirm = raw.get(LAST_CONFIRM_KEY)
            return ConfirmationState(
                active_venue_id=raw.get(ACTIVE_PLACE_KEY),
                last_confirm_ms=int(last_confirm) if last_confirm else 0,
            )
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Discarding unreadable state for device=%s: %s", device_id, e)
            self._remove(device_id)
            return ConfirmationState()

    def _write(self, device_id: str, state: ConfirmationState) -> None:
        os.makedirs(self.state_dir, exist_ok=True)
        path = self._path(device_id)
        tmp_path = path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    ACTIVE_PLACE_KEY: state.active_venue_id,
                    LAST_CONFIRM_KEY: str(state.last_confirm_ms),
                },
                f,
            )
        os.replace(tmp_path, path)

    def _remove(self, device_id: str) -> None:
        try:
            os.remove(self._path(device_id))
        except FileNotFoundError:
            pass

    # ---------------------------
    # async API
    # ---------------------------
    async def load(self, device_id: str) -> ConfirmationState:
        return await asyncio.to_thread(self._read, device_id)

    async def save(self, device_id: str, venue_id: str, confirmed_at_ms: int) -> ConfirmationState:
        state = ConfirmationState(active_venue_id=venue_id, last_confirm_ms=confirmed_at_ms)
        await asyncio.to_thread(self._write, device_id, state)
        logger.debug("Saved state for device=%s venue=%s", device_id, venue_id)
        return state

    async def clear(self, device_id: str) -> None:
        await asyncio.to_thread(self._remove, device_id)
        logger.debug("Cleared state for device=%s", device_id)
