"""Request Service - Orchestrates request mutations for the API"""
from typing import Any, Dict, Optional

from ..domain.models import ActorContext, DispatchOutcome, DraftResult, Request, HistoryEntry
from ..domain.enums import RequestStatus, NotificationEventType, HistoryEvent
from ..domain.errors import UnknownStatusError, ValidationError
from ..repositories.request_repo import RequestRepository
from ..engine.transition_engine import TransitionEngine
from ..engine.draft_guard import DraftGuard, clean_payload
from ..engine.audit_writer import AuditWriter
from ..utils.idgen import generate_history_entry_id
from ..utils.time import utc_now, format_iso, next_history_timestamp
from ..utils.logger import get_logger

logger = get_logger(__name__)

# A request starts as a draft or is submitted straight away; every later
# status is reached through change_status and its guards
INITIAL_STATUSES = (RequestStatus.DRAFT, RequestStatus.SUBMITTED)


class RequestService:
    """Service for request create / edit / status / re-notify operations"""

    def __init__(
        self,
        request_repo: RequestRepository,
        engine: TransitionEngine,
        draft_guard: DraftGuard,
        audit_writer: Optional[AuditWriter] = None
    ):
        self.request_repo = request_repo
        self.engine = engine
        self.draft_guard = draft_guard
        self.audit_writer = audit_writer or engine.audit_writer

    def get_request(self, request_id: str) -> Request:
        return self.request_repo.get_request_or_raise(request_id)

    def create_request(self, payload: Dict[str, Any], actor: ActorContext) -> DraftResult:
        """
        Create a request as ``draft`` (default) or ``submitted``.

        A draft with a ``draft_session_key`` reuses the creator's live draft
        for that key. A new request that is not a draft notifies as
        ``request_created``.
        """
        data = dict(payload or {})
        raw_status = data.pop("status", None) or RequestStatus.DRAFT.value
        try:
            status = RequestStatus.parse(raw_status)
        except ValueError:
            raise UnknownStatusError(raw_status)
        if status not in INITIAL_STATUSES:
            raise ValidationError(
                f"A request cannot be created as {status.value}",
                details={"status": status.value, "allowed": [s.value for s in INITIAL_STATUSES]}
            )

        session_key = data.pop("draft_session_key", None)

        result = self.draft_guard.create_or_reuse_draft(
            creator_id=actor.user_id,
            draft_session_key=str(session_key) if session_key is not None else None,
            payload=data,
            status=status,
            creator_name=actor.display_name
        )
        request = result.request

        if result.created:
            self.audit_writer.write_created(request.request_id, actor, status.value)
            if status != RequestStatus.DRAFT:
                self.engine.notify(
                    request,
                    status=status.value,
                    previous_status="",
                    comment=None,
                    actor=actor,
                    event_type=NotificationEventType.REQUEST_CREATED.value
                )
        else:
            self.audit_writer.write_draft_reused(request.request_id, actor)

        return result

    def change_status(
        self,
        request_id: str,
        status: Any,
        comment: Optional[str],
        actor: ActorContext
    ) -> Request:
        return self.engine.apply_transition(request_id, status, comment, actor)

    def update_request(
        self,
        request_id: str,
        changes: Dict[str, Any],
        actor: ActorContext,
        history_event: Optional[str] = None
    ) -> Request:
        """
        Edit payload fields in place.

        Lifecycle fields (status, history, id, timestamps) and ownership are
        ignored here; status moves go through ``change_status``. With
        ``history_event="edited"`` an ``edited`` entry is appended to history
        while the persisted status stays as it is.
        """
        request = self.request_repo.get_request_or_raise(request_id)
        fields = clean_payload(changes)

        if history_event:
            if history_event != HistoryEvent.EDITED.value:
                raise ValidationError(
                    f"Unsupported history event: {history_event}",
                    details={"history_event": history_event, "allowed": [e.value for e in HistoryEvent]}
                )
            at = next_history_timestamp(request.last_history_timestamp, utc_now())
            entry = HistoryEntry(
                id=generate_history_entry_id(),
                status=RequestStatus.EDITED.value,
                timestamp=format_iso(at),
                user_id=actor.user_id,
                user_name=actor.display_name,
            )
            updated = self.request_repo.append_history(
                request_id, [entry], None, updated_at=entry.timestamp, fields=fields
            )
        else:
            fields["updated_at"] = format_iso(utc_now())
            updated = self.request_repo.replace_fields(request_id, fields)

        self.audit_writer.write_updated(
            request_id, actor, [k for k in fields if k != "updated_at"], history_event
        )
        return updated

    def notify(
        self,
        request_id: str,
        actor: ActorContext,
        event_type: Optional[str] = None,
        status: Optional[str] = None,
        previous_status: Optional[str] = None,
        comment: Optional[str] = None
    ) -> Optional[DispatchOutcome]:
        """Re-send notifications for a request without touching its history"""
        request = self.request_repo.get_request_or_raise(request_id)

        event = event_type or NotificationEventType.REQUEST_STATUS_CHANGED.value
        if event not in {e.value for e in NotificationEventType}:
            raise ValidationError(
                f"Unknown event type: {event}",
                details={"event_type": event}
            )

        status_code = status or request.status.value
        if not self.engine.rules.is_known_status(status_code):
            raise UnknownStatusError(status_code)
        if previous_status and not self.engine.rules.is_known_status(previous_status):
            raise UnknownStatusError(previous_status)

        outcome = self.engine.notify(
            request,
            status=RequestStatus.parse(status_code).value,
            previous_status=previous_status or "",
            comment=(comment or "").strip() or None,
            actor=actor,
            event_type=event
        )
        self.audit_writer.write_renotified(request_id, actor, event, status_code)
        return outcome
