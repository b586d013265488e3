"""Notification Repository - the immediate e-mail outbox

Rows are written once here and drained by the external mail sender.
"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ASCENDING

from .mongo_client import get_collection, NOTIFICATION_OUTBOX
from ..domain.models import NotificationOutbox
from ..domain.enums import NotificationStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository:
    """Outbox rows: one per (event, language group)"""

    def __init__(self, db: Optional[Database] = None):
        self._outbox: Collection = get_collection(NOTIFICATION_OUTBOX, db)

    def create_notification(self, notification: NotificationOutbox) -> NotificationOutbox:
        # Datetimes stay native so the sender can query next_attempt_at
        self._outbox.insert_one({"_id": notification.notification_id, **notification.model_dump()})
        logger.info(
            f"Queued email: {notification.event_type}",
            extra={
                "notification_id": notification.notification_id,
                "request_id": notification.request_id,
                "lang": notification.lang.value,
            }
        )
        return notification

    def get_notifications_for_request(self, request_id: str) -> List[NotificationOutbox]:
        """All outbox rows for a request, oldest first"""
        cursor = self._outbox.find({"request_id": request_id}, {"_id": 0}).sort("created_at", ASCENDING)
        return [NotificationOutbox.model_validate(doc) for doc in cursor]

    def count_pending(self) -> int:
        """Rows still waiting for the sender"""
        return self._outbox.count_documents({"status": NotificationStatus.PENDING.value})
