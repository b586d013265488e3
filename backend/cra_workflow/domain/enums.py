"""Domain Enumerations - All status and type definitions"""
from enum import Enum
from typing import Optional


class RequestStatus(str, Enum):
    """Request lifecycle status (closed set)"""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    EDITED = "edited"  # History-only marker for field edits after submission
    UNDER_REVIEW = "under_review"
    CLARIFICATION_NEEDED = "clarification_needed"
    FEASIBILITY_CONFIRMED = "feasibility_confirmed"
    DESIGN_RESULT = "design_result"
    IN_COSTING = "in_costing"
    COSTING_COMPLETE = "costing_complete"
    SALES_FOLLOWUP = "sales_followup"
    GM_APPROVAL_PENDING = "gm_approval_pending"
    GM_APPROVED = "gm_approved"
    GM_REJECTED = "gm_rejected"
    CANCELLED = "cancelled"
    CLOSED = "closed"

    @classmethod
    def parse(cls, value: object) -> "RequestStatus":
        """Parse a raw status code; raises ValueError for unknown codes"""
        if isinstance(value, cls):
            return value
        return cls(str(value or "").strip())


class Role(str, Enum):
    """Addressable notification groups"""
    SALES = "sales"
    DESIGN = "design"
    COSTING = "costing"
    ADMIN = "admin"


class Language(str, Enum):
    """Supported notification languages, in grouping order"""
    EN = "en"
    FR = "fr"
    ZH = "zh"

    @classmethod
    def normalize(cls, value: object) -> Optional["Language"]:
        """Map a stored preference to a supported language, or None"""
        if isinstance(value, cls):
            return value
        raw = str(value or "").strip().lower()
        for lang in cls:
            if lang.value == raw:
                return lang
        return None


BASE_LANGUAGE = Language.EN


class NotificationEventType(str, Enum):
    """Lifecycle events that produce notifications"""
    REQUEST_CREATED = "request_created"
    REQUEST_STATUS_CHANGED = "request_status_changed"


class NotificationStatus(str, Enum):
    """Outbox / digest queue delivery status (driven by the external sender)"""
    PENDING = "PENDING"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class HistoryEvent(str, Enum):
    """Extra history markers accepted on direct field edits"""
    EDITED = "edited"


class AuditAction(str, Enum):
    """Audit trail actions"""
    REQUEST_CREATED = "request.created"
    REQUEST_DRAFT_REUSED = "request.draft_reused"
    REQUEST_STATUS_CHANGED = "request.status_changed"
    REQUEST_UPDATED = "request.updated"
    REQUEST_RENOTIFIED = "request.renotified"
    DRAFTS_PURGED = "request.drafts_purged"
