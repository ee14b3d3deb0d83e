# PRESENCE/routes.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from NEARBY.core.deps import get_heartbeat, get_presence_store
from NEARBY.core.security import get_current_user
from NEARBY.PRESENCE.heartbeat import PresenceHeartbeat
from NEARBY.PRESENCE.models import HeartbeatRequest, UserOnlineStatus
from NEARBY.PRESENCE.store import PresenceStore

logger = logging.getLogger("presence.routes")

router = APIRouter(prefix="/presence", tags=["presence"])


@router.post("/heartbeat")
async def heartbeat(
    payload: HeartbeatRequest,
    current_user: dict = Depends(get_current_user),
    beat: PresenceHeartbeat = Depends(get_heartbeat),
):
    user_id = current_user["user_id"]
    if payload.online:
        await beat.set_online(user_id)
    else:
        await beat.set_offline(user_id)
    return {"ok": True, "online": payload.online}


@router.get("/status/{user_id}", response_model=UserOnlineStatus)
async def get_status(
    user_id: str,
    presence: PresenceStore = Depends(get_presence_store),
):
    status = await presence.get_status(user_id)
    if status is None:
        raise HTTPException(status_code=404, detail="No status for user")
    return status
