# Proxylocation/fine_me.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from NEARBY.core.config import LOCATION_RATE_LIMIT
from NEARBY.core.deps import get_proximity_service
from NEARBY.core.rate_limit import limiter
from NEARBY.core.security import get_current_user
from NEARBY.ProxyLocation.models import (
    ConfirmationResponse,
    DeviceRequest,
    LocationUpdate,
    ProximityView,
    SessionView,
    StartSessionRequest,
)
from NEARBY.ProxyLocation.service import ProximityService

logger = logging.getLogger("proxylocation.routes")

router = APIRouter(prefix="/fine_me", tags=["ProxyLocation"])


# ==============================
# Session lifecycle
# ==============================
@router.post("/session", response_model=SessionView)
async def start_session(
    payload: StartSessionRequest,
    current_user: dict = Depends(get_current_user),
    service: ProximityService = Depends(get_proximity_service),
):
    session = await service.start_session(payload.device_id, current_user["user_id"])
    return await service.session_view(session)


@router.get("/session/{device_id}", response_model=SessionView)
async def get_session(
    device_id: str,
    current_user: dict = Depends(get_current_user),
    service: ProximityService = Depends(get_proximity_service),
):
    session = service.sessions.require(device_id, current_user["user_id"])
    return await service.session_view(session)


# ==============================
# Location feed
# ==============================
@router.post("/location", response_model=ProximityView)
@limiter.limit(LOCATION_RATE_LIMIT)
async def update_location(
    request: Request,
    payload: LocationUpdate,
    current_user: dict = Depends(get_current_user),
    service: ProximityService = Depends(get_proximity_service),
):
    session = service.sessions.require(payload.device_id, current_user["user_id"])
    result = await service.push_location(session, payload.coordinate())
    return await service.proximity_view(session, result)


# ==============================
# Confirmation prompt answer
# ==============================
@router.post("/confirm", response_model=SessionView)
async def confirm_venue(
    payload: ConfirmationResponse,
    current_user: dict = Depends(get_current_user),
    service: ProximityService = Depends(get_proximity_service),
):
    session = service.sessions.require(payload.device_id, current_user["user_id"])
    try:
        await service.respond(session, payload.venue_id, payload.accept)
    except OSError as e:
        logger.exception("❌ Could not persist confirmation for device=%s: %s", payload.device_id, e)
        raise HTTPException(status_code=500, detail="Could not save confirmation state")
    return await service.session_view(session)


# ==============================
# Leave / sign out
# ==============================
@router.post("/leave")
async def leave_venue(
    payload: DeviceRequest,
    current_user: dict = Depends(get_current_user),
    service: ProximityService = Depends(get_proximity_service),
):
    session = service.sessions.require(payload.device_id, current_user["user_id"])
    try:
        left = await service.leave(session)
    except OSError as e:
        logger.exception("❌ Leave failed for device=%s: %s", payload.device_id, e)
        raise HTTPException(status_code=500, detail="Could not clear confirmation state")
    return {"left_venue_id": left, "session": await service.session_view(session)}


@router.post("/sign_out")
async def sign_out(
    payload: DeviceRequest,
    current_user: dict = Depends(get_current_user),
    service: ProximityService = Depends(get_proximity_service),
):
    session = service.sessions.require(payload.device_id, current_user["user_id"])
    try:
        left = await service.sign_out(session)
    except OSError as e:
        logger.exception("❌ Sign-out cleanup failed for device=%s: %s", payload.device_id, e)
        raise HTTPException(status_code=500, detail="Could not clear confirmation state")
    return {"ok": True, "left_venue_id": left}
