"""Domain Models - Pydantic schemas for all entities"""
import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .enums import (
    RequestStatus, Role, Language, NotificationStatus, AuditAction, BASE_LANGUAGE
)


_EMAIL_SPLIT_RE = re.compile(r"[,;\n]+")


def parse_email_list(value: Any) -> List[str]:
    """Split a stored recipient list ("a@x, b@y; c@z") into trimmed addresses"""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        parts = [str(v) for v in value]
    else:
        parts = _EMAIL_SPLIT_RE.split(str(value))
    return [p.strip() for p in parts if p and p.strip()]


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from the bearer token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Application user ID")
    email: str = Field(default="", description="User email")
    display_name: str = Field(default="", description="User display name")
    role: Optional[Role] = Field(None, description="Role of the actor")


class AppUser(BaseModel):
    """Directory entry for a user of the application"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    email: str
    name: str = ""
    role: Role
    is_active: bool = True
    preferred_language: Language = Field(default=BASE_LANGUAGE)

    @field_validator("preferred_language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> Language:
        return Language.normalize(value) or BASE_LANGUAGE


# ============================================================================
# Request
# ============================================================================

class HistoryEntry(BaseModel):
    """One append-only status history entry"""
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str = Field(..., description="Raw status code at the time of the event")
    timestamp: str = Field(..., description="ISO timestamp assigned by the engine")
    user_id: str = ""
    user_name: str = ""
    comment: Optional[str] = None


class Request(BaseModel):
    """
    A customer request ("case").

    Core lifecycle fields are typed; everything else the sales form collects
    (client_name, country, products, pricing, bom_folder_link, ...) is kept
    as extra fields and round-trips untouched.
    """
    model_config = ConfigDict(extra="allow")

    request_id: str
    status: RequestStatus
    history: List[HistoryEntry] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    draft_session_key: Optional[str] = None
    created_at: str
    updated_at: str

    def payload_value(self, name: str) -> Any:
        """Read a free-form payload field (None when absent)"""
        return (self.model_extra or {}).get(name)

    def has_history_status(self, status: RequestStatus) -> bool:
        """True if the status occurs anywhere in history"""
        return any(entry.status == status.value for entry in self.history)

    @property
    def last_history_timestamp(self) -> Optional[str]:
        return self.history[-1].timestamp if self.history else None


# Fields a direct edit may never touch; they belong to the lifecycle engine
PROTECTED_REQUEST_FIELDS = frozenset({
    "request_id", "status", "history", "created_at", "updated_at",
})


class DraftResult(BaseModel):
    """Outcome of create-or-reuse"""
    request: Request
    created: bool


# ============================================================================
# Notification Policy
# ============================================================================

class RoleFlags(BaseModel):
    """Which role groups are addressed for a status"""
    model_config = ConfigDict(extra="ignore")

    sales: bool = False
    design: bool = False
    costing: bool = False
    admin: bool = False

    def roles(self) -> List[Role]:
        return [role for role in Role if getattr(self, role.value)]

    @classmethod
    def of(cls, *roles: Role) -> "RoleFlags":
        return cls(**{role.value: True for role in roles})


class NotificationPolicy(BaseModel):
    """Per-deployment notification settings (mail_settings document)"""
    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    sender_upn: str = ""
    app_base_url: str = ""
    recipients_sales: List[str] = Field(default_factory=list)
    recipients_design: List[str] = Field(default_factory=list)
    recipients_costing: List[str] = Field(default_factory=list)
    recipients_admin: List[str] = Field(default_factory=list)
    flow_map: Dict[str, RoleFlags] = Field(default_factory=dict)
    test_mode: bool = False
    test_email: str = ""
    templates: Dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "recipients_sales", "recipients_design", "recipients_costing", "recipients_admin",
        mode="before"
    )
    @classmethod
    def _split_recipients(cls, value: Any) -> List[str]:
        return parse_email_list(value)

    @field_validator("flow_map", mode="before")
    @classmethod
    def _clean_flow_map(cls, value: Any) -> Dict[str, Any]:
        if isinstance(value, str):
            try:
                value = json.loads(value) if value.strip() else {}
            except ValueError:
                return {}
        if not isinstance(value, dict):
            return {}
        # Entries that are not objects are ignored, not rejected
        return {str(k): v for k, v in value.items() if isinstance(v, (dict, RoleFlags))}

    @field_validator("templates", mode="before")
    @classmethod
    def _clean_templates(cls, value: Any) -> Dict[str, Any]:
        if isinstance(value, str):
            try:
                value = json.loads(value) if value.strip() else {}
            except ValueError:
                return {}
        return value if isinstance(value, dict) else {}

    def recipients_for(self, role: Role) -> List[str]:
        return list(getattr(self, f"recipients_{role.value}"))


class MailTokenState(BaseModel):
    """What the core needs to know about the OAuth token store"""
    model_config = ConfigDict(extra="ignore")

    has_refresh_token: bool = False


class ResolvedRecipients(BaseModel):
    """Immediate addresses plus per-role addresses deferred to the digest"""
    immediate_emails: List[str] = Field(default_factory=list)
    digest_role_groups: Dict[Role, List[str]] = Field(default_factory=dict)

    @property
    def digest_emails(self) -> List[str]:
        seen = set()
        out: List[str] = []
        for emails in self.digest_role_groups.values():
            for email in emails:
                if email.lower() not in seen:
                    seen.add(email.lower())
                    out.append(email)
        return out


class RenderedEmail(BaseModel):
    """Subject and HTML body for one language group"""
    subject: str
    html: str


# ============================================================================
# Dispatch
# ============================================================================

class NotificationEvent(BaseModel):
    """Input to the notification dispatcher"""
    model_config = ConfigDict(extra="forbid")

    request: Request
    request_id: str
    event_type: str
    status: str
    previous_status: str = ""
    actor_id: str = ""
    actor_name: str = ""
    comment: Optional[str] = None
    occurred_at: Optional[datetime] = None


class DispatchOutcome(BaseModel):
    """What a dispatch call actually queued"""
    immediate_email_enqueued: bool = False
    outbox_entries: int = 0
    digest_enqueued: int = 0
    inapp_enqueued: int = 0
    skipped_reason: Optional[str] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def anything_enqueued(self) -> bool:
        return self.immediate_email_enqueued or self.digest_enqueued > 0 or self.inapp_enqueued > 0


# ============================================================================
# Queues
# ============================================================================

class NotificationOutbox(BaseModel):
    """Immediate email waiting for the external sender"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    event_type: str
    request_id: str
    to_emails: List[str]
    subject: str
    body_html: str
    lang: Language = Field(default=BASE_LANGUAGE)
    status: NotificationStatus = Field(default=NotificationStatus.PENDING)
    attempts: int = 0
    next_attempt_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime
    sent_at: Optional[datetime] = None


class DigestQueueEntry(BaseModel):
    """One event waiting to be merged into a daily admin digest"""
    model_config = ConfigDict(extra="ignore")

    entry_id: str
    event_type: str
    request_id: str
    status: str
    previous_status: Optional[str] = None
    actor_name: Optional[str] = None
    comment: Optional[str] = None
    to_emails: List[str]
    lang: Language = Field(default=BASE_LANGUAGE)
    digest_date: str = Field(..., description="YYYY-MM-DD")
    event_at: datetime
    delivery_status: NotificationStatus = Field(default=NotificationStatus.PENDING)
    attempts: int = 0
    created_at: datetime


class InAppNotification(BaseModel):
    """
    In-app notification for the notification bell.
    Each notification targets a specific user and tracks read status.
    """
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    user_id: str
    type: str = Field(..., description="Event type that produced it")
    title: str
    body: str
    request_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime
    read_at: Optional[datetime] = None


# ============================================================================
# Audit Event
# ============================================================================

class AuditEvent(BaseModel):
    """Audit event (append-only)"""
    model_config = ConfigDict(extra="forbid")

    audit_event_id: str
    action: AuditAction
    request_id: str
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    correlation_id: Optional[str] = None
