"""Audit Repository - append-only trail of lifecycle actions"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import DESCENDING

from .mongo_client import get_collection, AUDIT_EVENTS
from ..domain.models import AuditEvent
from ..domain.enums import AuditAction
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditRepository:
    """Audit events are inserted once and never updated"""

    def __init__(self, db: Optional[Database] = None):
        self._events: Collection = get_collection(AUDIT_EVENTS, db)

    def create_event(self, event: AuditEvent) -> AuditEvent:
        self._events.insert_one({"_id": event.audit_event_id, **event.model_dump()})
        logger.debug(
            f"Audit {event.action.value}",
            extra={"request_id": event.request_id, "actor_id": event.actor_id}
        )
        return event

    def get_events_for_request(
        self,
        request_id: str,
        actions: Optional[List[AuditAction]] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AuditEvent]:
        """Events for one request, newest first, optionally filtered by action"""
        query: Dict[str, Any] = {"request_id": request_id}
        if actions:
            query["action"] = {"$in": [a.value for a in actions]}

        cursor = (
            self._events.find(query, {"_id": 0})
            .sort([("timestamp", DESCENDING), ("audit_event_id", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return [AuditEvent.model_validate(doc) for doc in cursor]
