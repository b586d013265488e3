"""Notification Dispatcher - Queue email, digest and in-app rows for an event

Nothing is sent from here. Immediate emails land in the outbox, admin
digest events land in the digest queue, and in-app rows land in the
notification feed; external workers drain the two mail queues.
"""
from datetime import datetime, tzinfo
from typing import Callable, List, Optional

from ..domain.models import (
    NotificationEvent, DispatchOutcome, NotificationOutbox, DigestQueueEntry,
    InAppNotification, ResolvedRecipients, NotificationPolicy
)
from ..domain.enums import NotificationEventType, NotificationStatus, BASE_LANGUAGE
from ..domain.errors import NotificationDispatchError
from ..repositories.notification_repo import NotificationRepository
from ..repositories.digest_repo import DigestRepository
from ..repositories.inapp_notification_repo import InAppNotificationRepository
from ..repositories.user_repo import UserRepository
from ..repositories.mail_settings_repo import NotificationSettingsCache
from ..templates.email_templates import status_label
from ..config.settings import settings
from .recipient_resolver import RecipientResolver, builtin_role_flags
from .language_grouper import LanguageGrouper
from .template_renderer import TemplateRenderer
from ..utils.idgen import generate_notification_id, generate_digest_entry_id
from ..utils.time import utc_now, compute_digest_date, resolve_timezone
from ..utils.logger import get_logger

logger = get_logger(__name__)

SKIP_DISABLED = "notifications_disabled"
SKIP_NOT_CONNECTED = "mail_not_connected"


class NotificationDispatcher:
    """Decides, batches, translates and queues notifications for one event"""

    def __init__(
        self,
        settings_cache: NotificationSettingsCache,
        outbox_repo: NotificationRepository,
        digest_repo: DigestRepository,
        inapp_repo: InAppNotificationRepository,
        user_repo: UserRepository,
        resolver: Optional[RecipientResolver] = None,
        grouper: Optional[LanguageGrouper] = None,
        renderer: Optional[TemplateRenderer] = None,
        digest_cutoff_hour: Optional[int] = None,
        digest_timezone: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.settings_cache = settings_cache
        self.outbox_repo = outbox_repo
        self.digest_repo = digest_repo
        self.inapp_repo = inapp_repo
        self.user_repo = user_repo
        self.resolver = resolver or RecipientResolver()
        self.grouper = grouper or LanguageGrouper(user_repo)
        self.renderer = renderer or TemplateRenderer()
        self.digest_cutoff_hour = (
            settings.digest_cutoff_hour if digest_cutoff_hour is None else digest_cutoff_hour
        )
        self.digest_timezone = digest_timezone or resolve_timezone(settings.digest_timezone)
        self._clock = clock

    def dispatch(self, event: NotificationEvent) -> DispatchOutcome:
        """
        Queue every notification an event calls for.

        Never raises: a policy that is disabled or has no mail connection
        yields an empty outcome with ``skipped_reason``; a failing stage is
        logged, recorded in ``errors`` and does not stop the other stages.
        """
        log_extra = {
            "request_id": event.request_id,
            "event_type": event.event_type,
            "status": event.status,
        }

        try:
            policy = self.settings_cache.get_policy()
            if not policy.enabled:
                logger.debug("Notifications disabled; nothing queued", extra=log_extra)
                return DispatchOutcome(skipped_reason=SKIP_DISABLED)
            if not self.settings_cache.is_mail_connected():
                logger.info("Mail not connected; nothing queued", extra=log_extra)
                return DispatchOutcome(skipped_reason=SKIP_NOT_CONNECTED)
        except Exception as e:
            return self._failed(DispatchOutcome(), "settings", e, log_extra)

        outcome = DispatchOutcome()
        event_at = event.occurred_at or self._clock()

        try:
            outcome.inapp_enqueued = self._enqueue_inapp(event, event_at)
        except Exception as e:
            self._failed(outcome, "in-app", e, log_extra)

        try:
            resolved = self.resolver.resolve(policy, event.status)
        except Exception as e:
            return self._failed(outcome, "recipients", e, log_extra)

        try:
            outcome.outbox_entries = self._enqueue_immediate(policy, event, resolved, event_at)
            outcome.immediate_email_enqueued = outcome.outbox_entries > 0
        except Exception as e:
            self._failed(outcome, "immediate email", e, log_extra)

        try:
            outcome.digest_enqueued = self._enqueue_digest(event, resolved, event_at)
        except Exception as e:
            self._failed(outcome, "digest", e, log_extra)

        logger.info(
            f"Dispatched {event.event_type} for {event.request_id}: "
            f"{outcome.outbox_entries} outbox, {outcome.digest_enqueued} digest, "
            f"{outcome.inapp_enqueued} in-app",
            extra=log_extra
        )
        return outcome

    def _failed(self, outcome: DispatchOutcome, stage: str, cause: Exception, log_extra: dict) -> DispatchOutcome:
        error = NotificationDispatchError(
            f"{stage} notification failed: {cause}",
            details={"request_id": log_extra.get("request_id"), "stage": stage}
        )
        logger.warning(error.message, extra={**log_extra, "error_code": error.error_code})
        outcome.errors.append(error.message)
        return outcome

    # =========================================================================
    # In-app feed
    # =========================================================================

    def _enqueue_inapp(self, event: NotificationEvent, event_at: datetime) -> int:
        roles = builtin_role_flags(event.status).roles()
        users = [
            u for u in self.user_repo.get_active_users_by_role(roles)
            if u.user_id != event.actor_id
        ]
        if not users:
            return 0

        title, body = self._inapp_text(event)
        payload = {
            "requestId": event.request_id,
            "eventType": event.event_type,
            "status": event.status,
            "previousStatus": event.previous_status or None,
            "actionPath": f"/requests/{event.request_id}",
        }
        rows = [
            InAppNotification(
                notification_id=generate_notification_id(),
                user_id=user.user_id,
                type=event.event_type,
                title=title,
                body=body,
                request_id=event.request_id,
                payload=payload,
                created_at=event_at,
            )
            for user in users
        ]
        self.inapp_repo.create_notifications(rows)
        return len(rows)

    @staticmethod
    def _inapp_text(event: NotificationEvent):
        new_label = status_label(event.status, BASE_LANGUAGE)
        client = event.request.payload_value("client_name")
        client_part = f" ({str(client).strip()})" if client and str(client).strip() else ""

        if event.event_type == NotificationEventType.REQUEST_CREATED.value:
            title = f"New request {event.request_id}"
            body = f"Request {event.request_id}{client_part} was created with status {new_label}."
        else:
            title = f"Request {event.request_id}: {new_label}"
            if event.previous_status and event.previous_status != event.status:
                previous_label = status_label(event.previous_status, BASE_LANGUAGE)
                body = f"Request {event.request_id}{client_part} moved from {previous_label} to {new_label}."
            else:
                body = f"Request {event.request_id}{client_part} is now {new_label}."
        return title, body

    # =========================================================================
    # Immediate email
    # =========================================================================

    def _enqueue_immediate(
        self,
        policy: NotificationPolicy,
        event: NotificationEvent,
        resolved: ResolvedRecipients,
        event_at: datetime
    ) -> int:
        if not resolved.immediate_emails:
            return 0

        count = 0
        for lang, emails in self.grouper.group_by_language(resolved.immediate_emails):
            variables = self.renderer.build_variables(
                request=event.request,
                request_id=event.request_id,
                status=event.status,
                previous_status=event.previous_status,
                lang=lang,
                actor_name=event.actor_name,
            )
            rendered = self.renderer.render(policy, event.event_type, lang, variables, event.comment)
            self.outbox_repo.create_notification(NotificationOutbox(
                notification_id=generate_notification_id(),
                event_type=event.event_type,
                request_id=event.request_id,
                to_emails=emails,
                subject=rendered.subject,
                body_html=rendered.html,
                lang=lang,
                status=NotificationStatus.PENDING,
                attempts=0,
                next_attempt_at=event_at,
                created_at=event_at,
            ))
            count += 1
        return count

    # =========================================================================
    # Admin digest
    # =========================================================================

    def digest_date_for(self, event_at: datetime) -> str:
        """YYYY-MM-DD of the digest an event at ``event_at`` belongs to"""
        return compute_digest_date(event_at, self.digest_cutoff_hour, self.digest_timezone).isoformat()

    def _enqueue_digest(
        self,
        event: NotificationEvent,
        resolved: ResolvedRecipients,
        event_at: datetime
    ) -> int:
        emails: List[str] = resolved.digest_emails
        if not emails:
            return 0

        digest_date = self.digest_date_for(event_at)
        count = 0
        for lang, group in self.grouper.group_by_language(emails):
            self.digest_repo.enqueue(DigestQueueEntry(
                entry_id=generate_digest_entry_id(),
                event_type=event.event_type,
                request_id=event.request_id,
                status=event.status,
                previous_status=event.previous_status or None,
                actor_name=event.actor_name or None,
                comment=event.comment or None,
                to_emails=group,
                lang=lang,
                digest_date=digest_date,
                event_at=event_at,
                delivery_status=NotificationStatus.PENDING,
                attempts=0,
                created_at=event_at,
            ))
            count += 1
        return count
