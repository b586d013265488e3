"""Digest Repository - Data access for the admin digest queue"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ASCENDING

from .mongo_client import get_collection, DIGEST_QUEUE
from ..domain.models import DigestQueueEntry
from ..domain.enums import NotificationStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DigestRepository:
    """Repository for admin digest queue operations"""

    def __init__(self, db: Optional[Database] = None):
        self._queue: Collection = get_collection(DIGEST_QUEUE, db)

    def enqueue(self, entry: DigestQueueEntry) -> DigestQueueEntry:
        """Add an event to the digest of its day"""
        doc = entry.model_dump()
        doc["_id"] = entry.entry_id

        self._queue.insert_one(doc)
        logger.info(
            f"Queued digest entry for {entry.digest_date}",
            extra={
                "request_id": entry.request_id,
                "status": entry.status,
                "lang": entry.lang.value,
            }
        )
        return entry

    def get_pending_for_day(self, digest_date: str) -> List[DigestQueueEntry]:
        """Pending entries of one digest day, in event order"""
        cursor = self._queue.find({
            "digest_date": digest_date,
            "delivery_status": NotificationStatus.PENDING.value,
        }).sort([("lang", ASCENDING), ("event_at", ASCENDING)])

        entries = []
        for doc in cursor:
            doc.pop("_id", None)
            entries.append(DigestQueueEntry.model_validate(doc))
        return entries

    def get_entries_for_request(self, request_id: str) -> List[DigestQueueEntry]:
        cursor = self._queue.find({"request_id": request_id}).sort("created_at", ASCENDING)

        entries = []
        for doc in cursor:
            doc.pop("_id", None)
            entries.append(DigestQueueEntry.model_validate(doc))
        return entries
