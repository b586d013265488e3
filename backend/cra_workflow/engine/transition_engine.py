"""
Transition Engine - Status changes with auditable history

Validates a requested status against the legality table, checks the
comment and field guards, appends history and the new status in a single
update, then hands the event to the notification dispatcher. The status
change is the durable fact: dispatch problems are logged and never undo or
fail a committed transition.
"""
from datetime import datetime
from typing import Callable, List, Optional

from ..domain.models import (
    ActorContext, HistoryEntry, NotificationEvent, Request, DispatchOutcome
)
from ..domain.enums import RequestStatus, NotificationEventType
from ..domain.errors import (
    UnknownStatusError, IllegalTransitionError, MissingRequiredFieldError,
    NotificationDispatchError
)
from ..repositories.request_repo import RequestRepository
from ..services.notification_dispatcher import NotificationDispatcher
from .status_rules import StatusRules
from .audit_writer import AuditWriter
from ..utils.idgen import generate_history_entry_id
from ..utils.time import utc_now, format_iso, next_history_timestamp, HISTORY_TICK
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TransitionEngine:
    """Applies status transitions to requests"""

    def __init__(
        self,
        request_repo: RequestRepository,
        dispatcher: NotificationDispatcher,
        rules: Optional[StatusRules] = None,
        audit_writer: Optional[AuditWriter] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.request_repo = request_repo
        self.dispatcher = dispatcher
        self.rules = rules or StatusRules()
        self.audit_writer = audit_writer or AuditWriter()
        self._clock = clock

    def apply_transition(
        self,
        request_id: str,
        requested_status: object,
        comment: Optional[str],
        actor: ActorContext
    ) -> Request:
        """
        Move a request to ``requested_status``.

        Raises:
            UnknownStatusError: status is not part of the lifecycle
            RequestNotFoundError: no such request
            IllegalTransitionError: not a legal successor of the current status
            MissingRequiredFieldError: a guard needs a comment or field
        """
        if not self.rules.is_known_status(requested_status):
            raise UnknownStatusError(requested_status)
        target = RequestStatus.parse(requested_status)

        request = self.request_repo.get_request_or_raise(request_id)
        current = request.status

        if not self.rules.is_allowed_transition(current, target):
            raise IllegalTransitionError(
                current.value,
                target.value,
                [s.value for s in self.rules.allowed_transitions(current)]
            )

        note = (comment or "").strip()
        self._check_guards(request, target, note)

        entries = self._history_entries(request, target, note, actor)
        persisted = RequestStatus.SALES_FOLLOWUP if target == RequestStatus.GM_REJECTED else target

        updated = self.request_repo.append_history(
            request_id,
            entries,
            persisted,
            updated_at=entries[-1].timestamp
        )

        logger.info(
            f"Request {request_id}: {current.value} -> {target.value}",
            extra={
                "request_id": request_id,
                "status": persisted.value,
                "previous_status": current.value,
                "actor_id": actor.user_id,
            }
        )

        self.audit_writer.write_status_changed(
            request_id=request_id,
            actor=actor,
            previous_status=current.value,
            status=target.value,
            persisted_status=persisted.value,
            comment=note or None
        )

        if current == RequestStatus.DRAFT and target == RequestStatus.SUBMITTED:
            self._purge_sibling_drafts(updated, actor)

        if current != target:
            self.notify(updated, target.value, current.value, note or None, actor)

        return updated

    # =========================================================================
    # Guards
    # =========================================================================

    def _check_guards(self, request: Request, target: RequestStatus, comment: str) -> None:
        if target == RequestStatus.CANCELLED and not comment:
            raise MissingRequiredFieldError(
                "A comment is required to cancel a request",
                field="comment"
            )

        if (
            target == RequestStatus.GM_APPROVAL_PENDING
            and request.has_history_status(RequestStatus.GM_REJECTED)
            and not comment
        ):
            raise MissingRequiredFieldError(
                "A comment is required to resubmit a request the GM rejected",
                field="comment"
            )

        if target == RequestStatus.DESIGN_RESULT:
            link = request.payload_value("bom_folder_link")
            if not str(link or "").strip():
                raise MissingRequiredFieldError(
                    "A BOM folder link is required before sharing the design result",
                    field="bom_folder_link"
                )

    # =========================================================================
    # History
    # =========================================================================

    def _history_entries(
        self,
        request: Request,
        target: RequestStatus,
        comment: str,
        actor: ActorContext
    ) -> List[HistoryEntry]:
        at = next_history_timestamp(request.last_history_timestamp, self._clock())
        entries = [
            HistoryEntry(
                id=generate_history_entry_id(),
                status=target.value,
                timestamp=format_iso(at),
                user_id=actor.user_id,
                user_name=actor.display_name,
                comment=comment or None,
            )
        ]

        # A GM rejection hands the request back to sales in the same update
        if target == RequestStatus.GM_REJECTED:
            entries.append(HistoryEntry(
                id=generate_history_entry_id(),
                status=RequestStatus.SALES_FOLLOWUP.value,
                timestamp=format_iso(at + HISTORY_TICK),
                user_id=actor.user_id,
                user_name=actor.display_name,
            ))
        return entries

    def _purge_sibling_drafts(self, request: Request, actor: ActorContext) -> None:
        if not request.created_by or not request.draft_session_key:
            return
        purged = self.request_repo.delete_drafts(
            request.created_by,
            request.draft_session_key,
            exclude_request_id=request.request_id
        )
        if purged:
            self.audit_writer.write_drafts_purged(request.request_id, actor, purged)

    # =========================================================================
    # Notification
    # =========================================================================

    def notify(
        self,
        request: Request,
        status: str,
        previous_status: str,
        comment: Optional[str],
        actor: Optional[ActorContext],
        event_type: str = NotificationEventType.REQUEST_STATUS_CHANGED.value
    ) -> Optional[DispatchOutcome]:
        """Dispatch an event for a committed change; failures are only logged"""
        try:
            event = NotificationEvent(
                request=request,
                request_id=request.request_id,
                event_type=event_type,
                status=status,
                previous_status=previous_status or "",
                actor_id=actor.user_id if actor else "",
                actor_name=actor.display_name if actor else "",
                comment=comment,
            )
            return self.dispatcher.dispatch(event)
        except Exception as e:
            logger.error(
                f"Notification dispatch failed for {request.request_id}: {e}",
                extra={
                    "request_id": request.request_id,
                    "status": status,
                    "error_code": NotificationDispatchError.error_code,
                },
                exc_info=True
            )
            return None
