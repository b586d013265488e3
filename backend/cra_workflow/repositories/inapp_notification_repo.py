"""In-App Notification Repository - rows behind the notification bell"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection, INAPP_NOTIFICATIONS
from ..domain.models import InAppNotification
from ..domain.errors import NotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)

_NO_ID = {"_id": 0}


def _read_update() -> Dict[str, Any]:
    return {"$set": {"is_read": True, "read_at": utc_now()}}


class InAppNotificationRepository:
    """One row per (recipient user, event); only the owner can read or mark it"""

    def __init__(self, db: Optional[Database] = None):
        self._collection: Collection = get_collection(INAPP_NOTIFICATIONS, db)

    def create_notifications(self, notifications: List[InAppNotification]) -> List[InAppNotification]:
        if not notifications:
            return []

        self._collection.insert_many(
            [{"_id": n.notification_id, **n.model_dump()} for n in notifications]
        )
        first = notifications[0]
        logger.info(
            f"Queued {len(notifications)} in-app notification(s)",
            extra={"request_id": first.request_id, "event_type": first.type}
        )
        return notifications

    def get_notifications_for_user(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 50,
        unread_only: bool = False
    ) -> List[InAppNotification]:
        """Page of a user's notifications, newest first"""
        query: Dict[str, Any] = {"user_id": user_id}
        if unread_only:
            query["is_read"] = False

        cursor = self._collection.find(query, _NO_ID).sort("created_at", DESCENDING).skip(skip).limit(limit)
        return [InAppNotification.model_validate(doc) for doc in cursor]

    def get_notifications_for_request(self, request_id: str) -> List[InAppNotification]:
        cursor = self._collection.find({"request_id": request_id}, _NO_ID)
        return [InAppNotification.model_validate(doc) for doc in cursor]

    def get_unread_count(self, user_id: str) -> int:
        return self._collection.count_documents({"user_id": user_id, "is_read": False})

    def mark_as_read(self, notification_id: str, user_id: str) -> InAppNotification:
        """Mark one row read; another user's row is reported as not found"""
        doc = self._collection.find_one_and_update(
            {"notification_id": notification_id, "user_id": user_id},
            _read_update(),
            projection=_NO_ID,
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError(
                f"Notification {notification_id} not found",
                details={"notification_id": notification_id}
            )
        return InAppNotification.model_validate(doc)

    def mark_all_as_read(self, user_id: str) -> int:
        """Returns how many unread rows were flipped"""
        result = self._collection.update_many({"user_id": user_id, "is_read": False}, _read_update())
        logger.info(
            f"Marked {result.modified_count} notification(s) read",
            extra={"user_id": user_id}
        )
        return result.modified_count
