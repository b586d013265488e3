"""Audit Writer - Append-only audit events"""
from typing import Any, Dict, Optional

from ..domain.models import AuditEvent, ActorContext
from ..domain.enums import AuditAction
from ..repositories.audit_repo import AuditRepository
from ..utils.idgen import generate_audit_event_id
from ..utils.time import utc_now
from ..utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


class AuditWriter:
    """
    Write audit events (append-only)

    Every lifecycle mutation produces an audit event. Writing is best-effort:
    a failed write is logged and never fails the mutation that caused it.
    """

    def __init__(self, repo: Optional[AuditRepository] = None):
        self.repo = repo or AuditRepository()

    def write_event(
        self,
        request_id: str,
        action: AuditAction,
        actor: Optional[ActorContext],
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditEvent]:
        """Write a single audit event; returns None if the write failed"""
        event = AuditEvent(
            audit_event_id=generate_audit_event_id(),
            action=action,
            request_id=request_id,
            actor_id=actor.user_id if actor else None,
            actor_name=actor.display_name if actor else None,
            metadata=metadata or {},
            timestamp=utc_now(),
            correlation_id=get_correlation_id() or None
        )

        try:
            return self.repo.create_event(event)
        except Exception as e:
            logger.warning(
                f"Audit write failed for {action.value}: {e}",
                extra={"request_id": request_id}
            )
            return None

    def write_created(self, request_id: str, actor: Optional[ActorContext], status: str) -> Optional[AuditEvent]:
        return self.write_event(request_id, AuditAction.REQUEST_CREATED, actor, {"status": status})

    def write_draft_reused(self, request_id: str, actor: Optional[ActorContext]) -> Optional[AuditEvent]:
        return self.write_event(request_id, AuditAction.REQUEST_DRAFT_REUSED, actor)

    def write_status_changed(
        self,
        request_id: str,
        actor: Optional[ActorContext],
        previous_status: str,
        status: str,
        persisted_status: str,
        comment: Optional[str] = None
    ) -> Optional[AuditEvent]:
        """Write status change event"""
        return self.write_event(
            request_id,
            AuditAction.REQUEST_STATUS_CHANGED,
            actor,
            {
                "from": previous_status,
                "to": status,
                "persisted": persisted_status,
                "comment": comment,
            }
        )

    def write_updated(
        self,
        request_id: str,
        actor: Optional[ActorContext],
        fields: list,
        history_event: Optional[str] = None
    ) -> Optional[AuditEvent]:
        return self.write_event(
            request_id,
            AuditAction.REQUEST_UPDATED,
            actor,
            {"fields": sorted(fields), "history_event": history_event}
        )

    def write_renotified(
        self,
        request_id: str,
        actor: Optional[ActorContext],
        event_type: str,
        status: str
    ) -> Optional[AuditEvent]:
        return self.write_event(
            request_id,
            AuditAction.REQUEST_RENOTIFIED,
            actor,
            {"event_type": event_type, "status": status}
        )

    def write_drafts_purged(
        self,
        request_id: str,
        actor: Optional[ActorContext],
        purged: int
    ) -> Optional[AuditEvent]:
        return self.write_event(request_id, AuditAction.DRAFTS_PURGED, actor, {"purged": purged})
