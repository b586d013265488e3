"""Counter Repository - Atomic per-day sequence numbers"""
from typing import Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ReturnDocument

from .mongo_client import get_collection, COUNTERS
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CounterRepository:
    """Named monotonically increasing counters"""

    def __init__(self, db: Optional[Database] = None):
        self._counters: Collection = get_collection(COUNTERS, db)

    def next_value(self, name: str) -> int:
        """Increment and return the counter (starts at 1)"""
        doc = self._counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        seq = int(doc["seq"])
        logger.debug(f"Counter {name} -> {seq}")
        return seq
