# PLACES/visits.py
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from google.cloud import firestore

from NEARBY.core.config import RECENT_VISITORS_DAYS
from NEARBY.core.firebase import call_store, get_firestore
from NEARBY.PLACES.models import Visitor
from NEARBY.USERS.profile import ProfileStore

logger = logging.getLogger("places.visits")

VISITS_COLLECTION = "placeVisits"


def _visit_time(data: dict) -> Optional[datetime]:
    stamp = data.get("timestamp")
    if isinstance(stamp, datetime):
        return stamp if stamp.tzinfo else stamp.replace(tzinfo=timezone.utc)
    visit_date = data.get("visitDate")
    if visit_date:
        if visit_date.endswith("Z"):
            visit_date = visit_date[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(visit_date)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def recent_unique_visitors(rows: List[dict], since: datetime) -> List[Visitor]:
    """Newest visit first, one row per user, only visits at or after `since`."""
    dated = [(t, row) for row in rows if (t := _visit_time(row)) is not None]
    dated.sort(key=lambda pair: pair[0], reverse=True)

    visitors = {}
    for visited_at, row in dated:
        user_id = row.get("userId")
        if not user_id or visited_at < since or user_id in visitors:
            continue
        visitors[user_id] = Visitor(
            id=user_id,
            name=row.get("userName") or "Unnamed user",
            photo_url=row.get("photoURL"),
            visited_at=visited_at,
        )
    return list(visitors.values())


class VisitLog:
    """`placeVisits` rows plus the user's `visitedPlaces` / `lastVisitedPlace`."""

    def __init__(self, profiles: ProfileStore, db=None):
        self.profiles = profiles
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_firestore()
        return self._db

    async def record_visit(self, venue_id: str, user_id: str) -> str:
        profile = await self.profiles.get_profile(user_id)
        visit_date = datetime.now(timezone.utc).isoformat()

        visit_ref = self.db.collection(VISITS_COLLECTION).document()
        await call_store(
            "visits.record",
            visit_ref.set,
            {
                "placeId": venue_id,
                "userId": user_id,
                "userName": profile.name if profile else "Unnamed user",
                "photoURL": profile.photo_url if profile else None,
                "timestamp": firestore.SERVER_TIMESTAMP,
                "visitDate": visit_date,
            },
        )
        await self.profiles.add_visited_place(user_id, venue_id)
        await self.profiles.set_last_visited_place(user_id, venue_id, visit_date)
        logger.info("Visit %s recorded venue=%s user=%s", visit_ref.id, venue_id, user_id)
        return visit_ref.id

    async def recent_visitors(
        self,
        venue_id: str,
        days: int = RECENT_VISITORS_DAYS,
        now: Optional[datetime] = None,
    ) -> List[Visitor]:
        now = now or datetime.now(timezone.utc)
        query = self.db.collection(VISITS_COLLECTION).where("placeId", "==", venue_id)
        docs = await call_store("visits.recent", lambda: list(query.stream()))
        rows = [doc.to_dict() or {} for doc in docs]
        return recent_unique_visitors(rows, now - timedelta(days=days))
