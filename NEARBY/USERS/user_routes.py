# USERS/user_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from NEARBY.core.deps import get_follow_service, get_notification_store
from NEARBY.core.security import get_current_user
from NEARBY.USERS.follow import FollowService
from NEARBY.USERS.models import FollowCounts, Notification, UserCard
from NEARBY.USERS.notifications import NotificationStore

logger = logging.getLogger("users.routes")

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------
# FOLLOW REQUESTS
# ---------------------------
# static paths before the `{user_id}` routes
@router.get("/me/follow_requests", response_model=List[UserCard])
async def my_follow_requests(
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    return await follows.pending_requests(current_user["user_id"])


@router.post("/follow_requests/{requester_id}/accept")
async def accept_follow_request(
    requester_id: str,
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    if not await follows.accept_request(requester_id, current_user["user_id"]):
        raise HTTPException(status_code=404, detail="No pending follow request")
    return {"ok": True}


@router.post("/follow_requests/{requester_id}/reject")
async def reject_follow_request(
    requester_id: str,
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    if not await follows.reject_request(requester_id, current_user["user_id"]):
        raise HTTPException(status_code=404, detail="No pending follow request")
    return {"ok": True}


# ---------------------------
# NOTIFICATIONS
# ---------------------------
@router.get("/me/notifications", response_model=List[Notification])
async def my_notifications(
    current_user: dict = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    return await notifications.list_for_user(current_user["user_id"])


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_user: dict = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    if not await notifications.mark_read(notification_id, current_user["user_id"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"ok": True}


@router.post("/{user_id}/follow_requests")
async def send_follow_request(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    try:
        sent = await follows.send_request(current_user["user_id"], user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": sent, "message": "Request sent" if sent else "Request already pending"}


# ---------------------------
# FOLLOW GRAPH
# ---------------------------
@router.post("/{user_id}/follow")
async def follow_user(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    try:
        await follows.follow(current_user["user_id"], user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "following": True}


@router.delete("/{user_id}/follow")
async def unfollow_user(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    await follows.unfollow(current_user["user_id"], user_id)
    return {"ok": True, "following": False}


@router.get("/{user_id}/follow_status")
async def get_follow_status(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    follows: FollowService = Depends(get_follow_service),
):
    me = current_user["user_id"]
    return {
        "following": await follows.is_following(me, user_id),
        "requested": await follows.has_pending_request(me, user_id),
    }


@router.get("/{user_id}/followers", response_model=List[UserCard])
async def get_followers(user_id: str, follows: FollowService = Depends(get_follow_service)):
    return await follows.get_followers(user_id)


@router.get("/{user_id}/following", response_model=List[UserCard])
async def get_following(user_id: str, follows: FollowService = Depends(get_follow_service)):
    return await follows.get_following(user_id)


@router.get("/{user_id}/follow_counts", response_model=FollowCounts)
async def get_follow_counts(user_id: str, follows: FollowService = Depends(get_follow_service)):
    return await follows.counts(user_id)
