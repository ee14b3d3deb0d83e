# USERS/profile.py
import logging
from typing import Optional

from google.cloud import firestore

from NEARBY.core.firebase import call_store, get_firestore
from NEARBY.USERS.models import UserProfile

logger = logging.getLogger("users.profile")

USERS_COLLECTION = "users"


class ProfileStore:
    """Durable per-user documents in Firestore `users/{uid}`."""

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_firestore()
        return self._db

    def _ref(self, user_id: str):
        return self.db.collection(USERS_COLLECTION).document(user_id)

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        doc = await call_store("profile.get", self._ref(user_id).get)
        if not doc.exists:
            return None
        return UserProfile.from_doc(user_id, doc.to_dict() or {})

    async def add_visited_place(self, user_id: str, venue_id: str) -> None:
        """Union the venue into `visitedPlaces`; adding it twice changes nothing."""
        await call_store(
            "profile.add_visited_place",
            self._ref(user_id).set,
            {"visitedPlaces": firestore.ArrayUnion([venue_id])},
            merge=True,
        )

    async def set_last_visited_place(self, user_id: str, venue_id: str, visit_date: str) -> None:
        await call_store(
            "profile.set_last_visited_place",
            self._ref(user_id).set,
            {
                "lastVisitedPlace": {
                    "placeId": venue_id,
                    "timestamp": firestore.SERVER_TIMESTAMP,
                    "visitDate": visit_date,
                }
            },
            merge=True,
        )

    async def clear_active_place(self, user_id: str) -> None:
        await call_store(
            "profile.clear_active_place",
            self._ref(user_id).set,
            {"activePlace": None, "lastSeen": firestore.SERVER_TIMESTAMP},
            merge=True,
        )

    async def array_union(self, user_id: str, field: str, values: list) -> None:
        await call_store(
            f"profile.array_union.{field}",
            self._ref(user_id).set,
            {field: firestore.ArrayUnion(values)},
            merge=True,
        )

    async def array_remove(self, user_id: str, field: str, values: list) -> None:
        await call_store(
            f"profile.array_remove.{field}",
            self._ref(user_id).set,
            {field: firestore.ArrayRemove(values)},
            merge=True,
        )
