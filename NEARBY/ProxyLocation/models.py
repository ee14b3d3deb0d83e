from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------
# GEOMETRY
# ---------------------------
class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


# ---------------------------
# DEVICE CONFIRMATION STATE
# ---------------------------
class ConfirmationState(BaseModel):
    """
    Persisted per device as the `activePlaceId` / `lastPlaceConfirm` pair.
    Both values are written and cleared together.
    """
    model_config = ConfigDict(frozen=True)

    active_venue_id: Optional[str] = None
    last_confirm_ms: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_pair(self):
        if self.active_venue_id and not self.last_confirm_ms:
            raise ValueError("last_confirm_ms must be set when active_venue_id is set")
        return self

    @property
    def is_active(self) -> bool:
        return bool(self.active_venue_id)


# ---------------------------
# API SCHEMAS
# ---------------------------
class StartSessionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    device_id: str = Field(..., min_length=1, max_length=128)


class LocationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    device_id: str = Field(..., min_length=1, max_length=128)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class ConfirmationResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    device_id: str = Field(..., min_length=1, max_length=128)
    venue_id: str = Field(..., min_length=1, max_length=128)
    accept: bool


class DeviceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    device_id: str = Field(..., min_length=1, max_length=128)


class VenuePrompt(BaseModel):
    id: str
    name: str


class SessionView(BaseModel):
    device_id: str
    user_id: str
    state: str
    pending: Optional[VenuePrompt] = None
    rejected_venue_ids: List[str] = Field(default_factory=list)
    active_venue_id: Optional[str] = None
    last_confirm_ms: int = 0


class ProximityView(BaseModel):
    moved: bool
    skipped: bool = False
    nearby: List[VenuePrompt] = Field(default_factory=list)
    prompt: Optional[VenuePrompt] = None
    left_venue_id: Optional[str] = None
    session: SessionView
