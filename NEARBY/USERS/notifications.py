# USERS/notifications.py
import logging
from typing import List, Optional

from google.cloud import firestore

from NEARBY.core.firebase import call_store, get_firestore
from NEARBY.USERS.models import Notification, NotificationType, UserProfile

logger = logging.getLogger("users.notifications")

NOTIFICATIONS_COLLECTION = "notifications"


class NotificationStore:
    """In-app notification feed in Firestore `notifications/{id}`."""

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_firestore()
        return self._db

    def _collection(self):
        return self.db.collection(NOTIFICATIONS_COLLECTION)

    async def _send(self, kind: NotificationType, from_user_id: str, to_user_id: str, data: dict) -> str:
        ref = self._collection().document()
        await call_store(
            "notifications.add",
            ref.set,
            {
                "type": kind.value,
                "fromUserId": from_user_id,
                "toUserId": to_user_id,
                "read": False,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "data": data,
            },
        )
        logger.info("🔔 %s notification %s -> %s", kind.value, from_user_id, to_user_id)
        return ref.id

    async def send_follow_request(
        self, from_user_id: str, to_user_id: str, sender: Optional[UserProfile] = None
    ) -> str:
        return await self._send(
            NotificationType.FOLLOW_REQUEST,
            from_user_id,
            to_user_id,
            {
                "status": "pending",
                "fromUserName": sender.name if sender else "Someone",
                "fromUserPhoto": sender.photo_url if sender else None,
            },
        )

    async def send_follow_accept(self, from_user_id: str, to_user_id: str) -> str:
        return await self._send(NotificationType.FOLLOW_ACCEPT, from_user_id, to_user_id, {})

    async def list_for_user(self, user_id: str) -> List[Notification]:
        """Newest first."""
        query = (
            self._collection()
            .where("toUserId", "==", user_id)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
        )
        docs = await call_store("notifications.list", lambda: list(query.stream()))
        return [Notification.from_doc(doc.id, doc.to_dict() or {}) for doc in docs]

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """False when the notification is missing or addressed to someone else."""
        ref = self._collection().document(notification_id)
        doc = await call_store("notifications.get", ref.get)
        if not doc.exists or (doc.to_dict() or {}).get("toUserId") != user_id:
            return False
        await call_store("notifications.mark_read", ref.update, {"read": True})
        return True
