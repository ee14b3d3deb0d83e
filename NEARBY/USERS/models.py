from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, List

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    id: str
    name: str = "Unnamed user"
    photo_url: Optional[str] = None
    status: Optional[str] = None
    allow_messages: bool = True
    visited_places: List[str] = Field(default_factory=list)
    followers: List[str] = Field(default_factory=list)
    following: List[str] = Field(default_factory=list)
    follow_requests: List[str] = Field(default_factory=list)

    @classmethod
    def from_doc(cls, user_id: str, data: dict) -> "UserProfile":
        return cls(
            id=user_id,
            name=data.get("name") or "Unnamed user",
            photo_url=data.get("photoURL") or None,
            status=data.get("status"),
            allow_messages=data.get("allowMessages", True),
            visited_places=data.get("visitedPlaces") or [],
            followers=data.get("followers") or [],
            following=data.get("following") or [],
            follow_requests=data.get("followRequests") or [],
        )


class UserCard(BaseModel):
    id: str
    name: str = "Unnamed user"
    photo_url: Optional[str] = None


class FollowCounts(BaseModel):
    followers: int = 0
    following: int = 0


class NotificationType(str, Enum):
    FOLLOW_REQUEST = "FOLLOW_REQUEST"
    FOLLOW_ACCEPT = "FOLLOW_ACCEPT"
    PLACE_VISIT = "PLACE_VISIT"


class Notification(BaseModel):
    id: str
    type: NotificationType
    from_user_id: str
    to_user_id: str
    read: bool = False
    created_at: Optional[datetime] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_doc(cls, notification_id: str, data: dict) -> "Notification":
        return cls(
            id=notification_id,
            type=data.get("type"),
            from_user_id=data.get("fromUserId", ""),
            to_user_id=data.get("toUserId", ""),
            read=bool(data.get("read", False)),
            created_at=data.get("createdAt"),
            data=data.get("data") or {},
        )
