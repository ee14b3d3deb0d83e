# PLACES/catalog.py
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from google.cloud import firestore

from NEARBY.core.firebase import call_store, get_firestore
from NEARBY.core.subscription import Subscription
from NEARBY.ProxyLocation.models import Coordinate
from NEARBY.PLACES.models import Review, Venue, VenueCreate

logger = logging.getLogger("places.catalog")

PLACES_COLLECTION = "places"


def venue_from_doc(doc_id: str, data: dict) -> Optional[Venue]:
    """Build a Venue from a `places/{id}` document; None if it has no usable location."""
    location = data.get("location")
    if location is None:
        logger.warning("Venue %s has no location, skipped", doc_id)
        return None

    reviews = []
    for raw in data.get("reviews") or []:
        try:
            reviews.append(
                Review(
                    id=raw.get("id", ""),
                    user_id=raw.get("userId", ""),
                    user_name=raw.get("userName") or "Unnamed user",
                    user_photo=raw.get("userPhoto") or "",
                    rating=raw.get("rating"),
                    comment=raw.get("comment", ""),
                    date=raw.get("date", ""),
                )
            )
        except (AttributeError, ValueError) as e:
            logger.warning("Bad review on venue %s: %s", doc_id, e)

    return Venue(
        id=doc_id,
        name=data.get("name") or "Unnamed venue",
        coordinate=Coordinate(latitude=location.latitude, longitude=location.longitude),
        active_user_ids=data.get("activeUsers") or [],
        rating=data.get("rating") or 0,
        reviews=reviews,
        description=data.get("description"),
        address=data.get("address"),
        photos=data.get("photos") or [],
    )


class VenueCatalog:
    """Seeded venue documents in Firestore `places/{venueId}`."""

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_firestore()
        return self._db

    def _collection(self):
        return self.db.collection(PLACES_COLLECTION)

    @staticmethod
    def _from_snapshots(docs) -> List[Venue]:
        venues = []
        for doc in docs:
            venue = venue_from_doc(doc.id, doc.to_dict() or {})
            if venue is not None:
                venues.append(venue)
        return venues

    async def list_venues(self) -> List[Venue]:
        docs = await call_store("catalog.list", lambda: list(self._collection().stream()))
        return self._from_snapshots(docs)

    async def get_venue(self, venue_id: str) -> Optional[Venue]:
        doc = await call_store("catalog.get", self._collection().document(venue_id).get)
        if not doc.exists:
            return None
        return venue_from_doc(doc.id, doc.to_dict() or {})

    async def add_venue(self, payload: VenueCreate) -> str:
        doc_ref = self._collection().document()
        data = {
            "name": payload.name,
            "location": firestore.GeoPoint(payload.latitude, payload.longitude),
            "description": payload.description,
            "address": payload.address,
            "photos": payload.photos,
            "rating": 0,
            "reviews": [],
            "activeUsers": [],
            "createdAt": datetime.now(timezone.utc),
        }
        await call_store("catalog.add", doc_ref.set, data)
        logger.info("Venue %s created: %s", doc_ref.id, payload.name)
        return doc_ref.id

    def subscribe(
        self,
        on_update: Callable[[List[Venue]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        """Live catalog updates (called on a Firestore watch thread)."""
        subscription = Subscription(name=PLACES_COLLECTION)

        def _on_snapshot(docs, changes, read_time):
            try:
                on_update(self._from_snapshots(docs))
            except Exception as e:
                logger.exception("Catalog update handler failed: %s", e)
                if on_error is not None:
                    on_error(e)

        watch = self._collection().on_snapshot(subscription.guard(_on_snapshot))
        subscription.bind(watch.unsubscribe)
        return subscription

    async def append_review(self, venue_id: str, review: dict, new_rating: float) -> None:
        ref = self._collection().document(venue_id)
        await call_store(
            "catalog.append_review",
            ref.update,
            {"reviews": firestore.ArrayUnion([review]), "rating": new_rating},
        )


class CatalogCache:
    """Keeps the latest catalog snapshot from a live subscription."""

    def __init__(self, catalog: VenueCatalog):
        self.catalog = catalog
        self.venues: Optional[List[Venue]] = None
        self._subscription: Optional[Subscription] = None

    def _on_update(self, venues: List[Venue]) -> None:
        self.venues = venues
        logger.debug("Catalog cache refreshed (%d venues)", len(venues))

    def _on_error(self, error: Exception) -> None:
        # fall back to direct reads until the next good snapshot
        self.venues = None

    def start(self) -> None:
        if self._subscription is None:
            self._subscription = self.catalog.subscribe(self._on_update, self._on_error)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.venues = None

    async def get_venues(self) -> List[Venue]:
        if self.venues is not None:
            return list(self.venues)
        return await self.catalog.list_venues()
