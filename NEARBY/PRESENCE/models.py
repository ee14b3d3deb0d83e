from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PresenceEntry(BaseModel):
    """`places/{venue_id}/activeUsers/{user_id} -> {timestamp}`"""
    model_config = ConfigDict(frozen=True)

    venue_id: str
    user_id: str
    entered_at_ms: Optional[int] = None


class CurrentPlace(BaseModel):
    id: str
    name: str


class UserOnlineStatus(BaseModel):
    """`status/{user_id} -> {isOnline, lastSeen, currentPlace}`"""
    user_id: str
    is_online: bool = False
    last_seen_ms: Optional[int] = None
    current_place: Optional[CurrentPlace] = None


class ActiveUser(BaseModel):
    id: str
    name: str = "Unnamed user"
    photo_url: Optional[str] = None
    status: Optional[str] = None
    last_seen_ms: int
    allow_messages: bool = True
    is_online: bool = True


class HeartbeatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    online: bool = True


class PruneReport(BaseModel):
    venue_id: str
    removed: int = Field(0, ge=0)
