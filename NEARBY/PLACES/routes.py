# PLACES/routes.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from NEARBY.core.config import PROXIMITY_RADIUS_M, RECENT_VISITORS_DAYS, REVIEW_RATE_LIMIT
from NEARBY.core.deps import (
    get_catalog,
    get_catalog_cache,
    get_reconciler,
    get_review_service,
    get_visit_log,
)
from NEARBY.core.rate_limit import limiter
from NEARBY.core.security import get_current_admin, get_current_user
from NEARBY.ProxyLocation.distance import distance
from NEARBY.ProxyLocation.matcher import find_nearby
from NEARBY.ProxyLocation.models import Coordinate
from NEARBY.PLACES.catalog import CatalogCache, VenueCatalog
from NEARBY.PLACES.models import (
    Review,
    ReviewCreate,
    Venue,
    VenueCreate,
    VenueDetails,
    VenueSummary,
    Visitor,
)
from NEARBY.PLACES.reviews import ReviewService, VenueNotFound
from NEARBY.PLACES.visits import VisitLog
from NEARBY.PRESENCE.models import ActiveUser
from NEARBY.PRESENCE.reconciler import PresenceReconciler

logger = logging.getLogger("places.routes")

router = APIRouter(prefix="/places", tags=["places"])


def _summary(venue: Venue, origin: Optional[Coordinate] = None) -> VenueSummary:
    return VenueSummary(
        id=venue.id,
        name=venue.name,
        latitude=venue.coordinate.latitude,
        longitude=venue.coordinate.longitude,
        rating=venue.rating,
        distance_m=round(distance(origin, venue.coordinate), 1) if origin else None,
    )


# ---------------------------
# CATALOG
# ---------------------------
@router.get("", response_model=List[VenueSummary])
async def list_places(cache: CatalogCache = Depends(get_catalog_cache)):
    return [_summary(v) for v in await cache.get_venues()]


@router.get("/nearby", response_model=List[VenueSummary])
async def nearby_places(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_m: float = Query(PROXIMITY_RADIUS_M, ge=0, le=50_000),
    cache: CatalogCache = Depends(get_catalog_cache),
):
    origin = Coordinate(latitude=latitude, longitude=longitude)
    nearby = find_nearby(origin, await cache.get_venues(), radius_m)
    return [_summary(v, origin) for v in nearby]


@router.post("", status_code=201)
async def create_place(
    payload: VenueCreate,
    current_user: dict = Depends(get_current_admin),
    catalog: VenueCatalog = Depends(get_catalog),
):
    venue_id = await catalog.add_venue(payload)
    logger.info("Venue %s created by %s", venue_id, current_user["user_id"])
    return {"id": venue_id, "message": "Venue created"}


@router.get("/{venue_id}", response_model=VenueDetails)
async def get_place(
    venue_id: str,
    catalog: VenueCatalog = Depends(get_catalog),
    reconciler: PresenceReconciler = Depends(get_reconciler),
):
    venue = await catalog.get_venue(venue_id)
    if venue is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return VenueDetails(venue=venue, active_users=await reconciler.reconcile(venue_id))


# ---------------------------
# PRESENCE & VISITS
# ---------------------------
@router.get("/{venue_id}/active_users", response_model=List[ActiveUser])
async def get_active_users(
    venue_id: str,
    reconciler: PresenceReconciler = Depends(get_reconciler),
):
    return await reconciler.reconcile(venue_id)


@router.get("/{venue_id}/visitors", response_model=List[Visitor])
async def get_recent_visitors(
    venue_id: str,
    days: int = Query(RECENT_VISITORS_DAYS, ge=1, le=365),
    visits: VisitLog = Depends(get_visit_log),
):
    return await visits.recent_visitors(venue_id, days=days)


# ---------------------------
# REVIEWS
# ---------------------------
@router.post("/{venue_id}/reviews", response_model=Review, status_code=201)
@limiter.limit(REVIEW_RATE_LIMIT)
async def add_review(
    request: Request,
    venue_id: str,
    payload: ReviewCreate,
    current_user: dict = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        return await reviews.add_review(venue_id, current_user["user_id"], payload)
    except VenueNotFound:
        raise HTTPException(status_code=404, detail="Venue not found")
