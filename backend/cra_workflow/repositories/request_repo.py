"""Request Repository - Data access for customer requests"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ReturnDocument

from .mongo_client import get_collection, REQUESTS
from ..domain.models import Request, HistoryEntry
from ..domain.enums import RequestStatus
from ..domain.errors import RequestNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RequestRepository:
    """Repository for request operations"""

    def __init__(self, db: Optional[Database] = None):
        self._requests: Collection = get_collection(REQUESTS, db)

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> Request:
        doc.pop("_id", None)
        return Request.model_validate(doc)

    def create_request(self, request: Request) -> Request:
        """Insert a new request"""
        doc = request.model_dump(mode="json")
        doc["_id"] = request.request_id

        self._requests.insert_one(doc)
        logger.info(
            f"Created request: {request.request_id}",
            extra={"request_id": request.request_id, "status": request.status.value}
        )
        return request

    def get_request(self, request_id: str) -> Optional[Request]:
        """Get request by ID"""
        doc = self._requests.find_one({"request_id": request_id})
        if doc:
            return self._to_model(doc)
        return None

    def get_request_or_raise(self, request_id: str) -> Request:
        """Get request by ID or raise error"""
        request = self.get_request(request_id)
        if not request:
            raise RequestNotFoundError(
                f"Request {request_id} not found",
                details={"request_id": request_id}
            )
        return request

    def find_draft(self, created_by: str, draft_session_key: str) -> Optional[Request]:
        """Find the live draft for a (creator, session key) pair"""
        doc = self._requests.find_one({
            "created_by": created_by,
            "draft_session_key": draft_session_key,
            "status": RequestStatus.DRAFT.value,
        })
        if doc:
            return self._to_model(doc)
        return None

    def replace_fields(self, request_id: str, fields: Dict[str, Any]) -> Request:
        """Overwrite payload fields of a request in place"""
        result = self._requests.find_one_and_update(
            {"request_id": request_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise RequestNotFoundError(
                f"Request {request_id} not found",
                details={"request_id": request_id}
            )
        logger.info(f"Updated request: {request_id}", extra={"request_id": request_id})
        return self._to_model(result)

    def append_history(
        self,
        request_id: str,
        entries: List[HistoryEntry],
        status: Optional[RequestStatus],
        updated_at: str,
        fields: Optional[Dict[str, Any]] = None
    ) -> Request:
        """
        Append history entries and persist the status in a single update.

        With ``status=None`` the persisted status is left unchanged (edit
        markers). Extra ``fields`` are set in the same update.
        """
        to_set: Dict[str, Any] = dict(fields or {})
        to_set["updated_at"] = updated_at
        if status is not None:
            to_set["status"] = status.value

        result = self._requests.find_one_and_update(
            {"request_id": request_id},
            {
                "$push": {"history": {"$each": [e.model_dump(mode="json") for e in entries]}},
                "$set": to_set,
            },
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise RequestNotFoundError(
                f"Request {request_id} not found",
                details={"request_id": request_id}
            )

        logger.info(
            f"Appended {len(entries)} history entries to {request_id}",
            extra={"request_id": request_id, "status": to_set.get("status")}
        )
        return self._to_model(result)

    def delete_drafts(
        self,
        created_by: str,
        draft_session_key: str,
        exclude_request_id: Optional[str] = None
    ) -> int:
        """Delete sibling drafts for a (creator, session key) pair"""
        query: Dict[str, Any] = {
            "created_by": created_by,
            "draft_session_key": draft_session_key,
            "status": RequestStatus.DRAFT.value,
        }
        if exclude_request_id:
            query["request_id"] = {"$ne": exclude_request_id}

        result = self._requests.delete_many(query)
        if result.deleted_count:
            logger.info(
                f"Purged {result.deleted_count} sibling drafts",
                extra={"request_id": exclude_request_id}
            )
        return result.deleted_count

    def count_requests(self, query: Optional[Dict[str, Any]] = None) -> int:
        """Count requests matching a raw query"""
        return self._requests.count_documents(query or {})
