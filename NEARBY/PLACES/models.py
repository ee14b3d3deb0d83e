from datetime import datetime
from typing import Optional, List, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from NEARBY.ProxyLocation.models import Coordinate
from NEARBY.PRESENCE.models import ActiveUser
from NEARBY.utils.sanitize import SanitizedModel


# ---------------------------
# REVIEWS
# ---------------------------
class Review(BaseModel):
    id: str
    user_id: str
    user_name: str = "Unnamed user"
    user_photo: str = ""
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""
    date: str


class ReviewCreate(SanitizedModel):
    model_config = ConfigDict(extra="forbid")

    rating: int = Field(..., ge=1, le=5)
    comment: str = Field("", max_length=1000)


# ---------------------------
# VENUES
# ---------------------------
class Venue(BaseModel):
    id: str
    name: str
    coordinate: Coordinate
    active_user_ids: Set[str] = Field(default_factory=set)
    rating: float = Field(0, ge=0, le=5)
    reviews: List[Review] = Field(default_factory=list)
    description: Optional[str] = None
    address: Optional[str] = None
    photos: List[str] = Field(default_factory=list)

    @field_validator("active_user_ids", mode="before")
    @classmethod
    def coerce_legacy_users(cls, v):
        # legacy `activeUsers` is either a list of ids or a list of user maps
        if v is None:
            return set()
        ids = set()
        for item in v:
            if isinstance(item, dict):
                if item.get("id"):
                    ids.add(item["id"])
            elif item:
                ids.add(str(item))
        return ids


class VenueCreate(SanitizedModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=2, max_length=100)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    description: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = Field(None, max_length=200)
    photos: List[str] = Field(default_factory=list, max_length=10)


class VenueSummary(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    rating: float = 0
    distance_m: Optional[float] = None


class VenueDetails(BaseModel):
    venue: Venue
    active_users: List[ActiveUser] = Field(default_factory=list)


# ---------------------------
# VISITS
# ---------------------------
class Visitor(BaseModel):
    id: str
    name: str = "Unnamed user"
    photo_url: Optional[str] = None
    visited_at: datetime
