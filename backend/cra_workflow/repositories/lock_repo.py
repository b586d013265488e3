"""Lock Repository - Advisory leases for cross-process mutual exclusion

A lock is a document in the ``locks`` collection whose ``_id`` is the lock
key. Inserting it acquires the lock; the unique ``_id`` makes the insert the
atomic test-and-set. Every lock carries a lease so a holder that died is
taken over once ``expires_at`` has passed.
"""
import time
from contextlib import contextmanager
from datetime import timedelta
from typing import Callable, Iterator, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection, LOCKS
from ..config.settings import settings
from ..utils.logger import get_logger
from ..utils.time import utc_now
from ..utils.idgen import generate_lock_holder_id

logger = get_logger(__name__)


def draft_lock_key(created_by: str, draft_session_key: str) -> str:
    """Lock key for one creator's draft session"""
    return f"draft:{created_by}:{draft_session_key}"


class LockRepository:
    """Repository for advisory lock operations"""

    def __init__(
        self,
        db: Optional[Database] = None,
        lease_seconds: Optional[int] = None,
        poll_interval_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self._locks: Collection = get_collection(LOCKS, db)
        self._lease_seconds = lease_seconds or settings.draft_lock_lease_seconds
        self._poll_interval = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else settings.draft_lock_poll_interval_seconds
        )
        self._sleep = sleep

    @staticmethod
    def _now():
        # Stored naive UTC, as BSON dates are
        return utc_now().replace(tzinfo=None)

    def try_acquire(self, key: str, holder: str) -> bool:
        """
        Try to take the lock once.

        Returns:
            True if this holder now owns the lock, False if someone else does
        """
        now = self._now()
        doc = {
            "_id": key,
            "holder": holder,
            "acquired_at": now,
            "expires_at": now + timedelta(seconds=self._lease_seconds),
        }
        try:
            self._locks.insert_one(doc)
            return True
        except DuplicateKeyError:
            pass

        # Held: take it over only if the lease ran out
        stale = self._locks.delete_one({"_id": key, "expires_at": {"$lt": now}})
        if stale.deleted_count:
            logger.warning(f"Took over expired lock {key}")
            try:
                self._locks.insert_one(doc)
                return True
            except DuplicateKeyError:
                return False
        return False

    def release(self, key: str, holder: str) -> bool:
        """Release the lock if this holder still owns it"""
        result = self._locks.delete_one({"_id": key, "holder": holder})
        if not result.deleted_count:
            logger.warning(f"Lock {key} was no longer held by {holder} at release")
        return result.deleted_count > 0

    def is_locked(self, key: str) -> bool:
        return self._locks.count_documents({"_id": key}) > 0

    @contextmanager
    def hold(self, key: str) -> Iterator[str]:
        """
        Hold the lock for the duration of the block, waiting for it if needed.

        Yields the holder token.
        """
        holder = generate_lock_holder_id()
        waited = 0
        while not self.try_acquire(key, holder):
            waited += 1
            self._sleep(self._poll_interval)
        if waited:
            logger.debug(f"Acquired lock {key} after {waited} polls")
        try:
            yield holder
        finally:
            self.release(key, holder)
