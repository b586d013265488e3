"""Notification dispatch: gating, in-app feed, outbox and digest rows"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from cra_workflow.domain.enums import Language, NotificationStatus
from cra_workflow.domain.models import NotificationEvent, Request, RoleFlags
from cra_workflow.repositories.digest_repo import DigestRepository
from cra_workflow.repositories.inapp_notification_repo import InAppNotificationRepository
from cra_workflow.repositories.mail_settings_repo import MailSettingsRepository, NotificationSettingsCache
from cra_workflow.repositories.notification_repo import NotificationRepository
from cra_workflow.repositories.user_repo import UserRepository
from cra_workflow.services.notification_dispatcher import (
    NotificationDispatcher, SKIP_DISABLED, SKIP_NOT_CONNECTED,
)


@pytest.fixture
def dispatcher(db, clock):
    return NotificationDispatcher(
        settings_cache=NotificationSettingsCache(MailSettingsRepository(db)),
        outbox_repo=NotificationRepository(db),
        digest_repo=DigestRepository(db),
        inapp_repo=InAppNotificationRepository(db),
        user_repo=UserRepository(db),
        digest_cutoff_hour=16,
        digest_timezone=timezone.utc,
        clock=clock,
    )


def make_event(status, previous_status="", actor_id="u-sales-1", event_type="request_status_changed", comment=None):
    request = Request.model_validate({
        "request_id": "CRA26031001",
        "status": status,
        "created_at": "2026-03-10T09:00:00.000Z",
        "updated_at": "2026-03-10T09:30:00.000Z",
        "client_name": "Acme Trucks",
    })
    return NotificationEvent(
        request=request,
        request_id=request.request_id,
        event_type=event_type,
        status=status,
        previous_status=previous_status,
        actor_id=actor_id,
        actor_name="Sam Sales",
        comment=comment,
    )


def test_disabled_policy_queues_nothing(db, dispatcher, directory):
    outcome = dispatcher.dispatch(make_event("submitted", "draft"))

    assert outcome.skipped_reason == SKIP_DISABLED
    assert not outcome.anything_enqueued
    assert NotificationRepository(db).count_pending() == 0
    assert InAppNotificationRepository(db).get_notifications_for_request("CRA26031001") == []


def test_mail_not_connected_queues_nothing(db, dispatcher, directory, policy, save_policy):
    save_policy(policy, False)

    outcome = dispatcher.dispatch(make_event("submitted", "draft"))

    assert outcome.skipped_reason == SKIP_NOT_CONNECTED
    assert not outcome.immediate_email_enqueued
    assert outcome.digest_enqueued == 0
    assert outcome.inapp_enqueued == 0


def test_submitted_fans_out_to_every_channel(db, dispatcher, directory, enabled_policy):
    outcome = dispatcher.dispatch(make_event("submitted", "draft"))

    assert outcome.skipped_reason is None
    assert outcome.errors == []
    assert outcome.immediate_email_enqueued
    assert outcome.outbox_entries == 2
    assert outcome.digest_enqueued == 1
    assert outcome.inapp_enqueued == 3

    outbox = NotificationRepository(db).get_notifications_for_request("CRA26031001")
    by_lang = {row.lang: row for row in outbox}
    assert by_lang[Language.EN].to_emails == ["design@example.com"]
    assert by_lang[Language.ZH].to_emails == ["design-lead@example.com"]
    assert by_lang[Language.EN].subject == "[CRA] Request CRA26031001 status changed to Submitted"
    assert by_lang[Language.ZH].subject == "[CRA] 请求 CRA26031001 状态已变更为 已提交"
    assert all(row.status == NotificationStatus.PENDING and row.attempts == 0 for row in outbox)

    digest = DigestRepository(db).get_pending_for_day("2026-03-10")
    assert len(digest) == 1
    assert digest[0].to_emails == ["gm@example.com"]
    assert digest[0].status == "submitted"
    assert digest[0].previous_status == "draft"
    assert digest[0].actor_name == "Sam Sales"


def test_inapp_rows_skip_actor_and_inactive_users(db, dispatcher, directory, enabled_policy):
    dispatcher.dispatch(make_event("clarification_needed", "submitted", actor_id="u-sales-1"))

    rows = InAppNotificationRepository(db).get_notifications_for_request("CRA26031001")
    assert {r.user_id for r in rows} == {"u-sales-2", "u-admin-1"}
    row = rows[0]
    assert row.type == "request_status_changed"
    assert row.title == "Request CRA26031001: Clarification Needed"
    assert row.body == "Request CRA26031001 (Acme Trucks) moved from Submitted to Clarification Needed."
    assert row.payload["actionPath"] == "/requests/CRA26031001"
    assert row.is_read is False


def test_inapp_ignores_flow_map(db, dispatcher, directory, policy, save_policy):
    policy.flow_map = {"closed": RoleFlags(costing=True)}
    save_policy(policy)

    outcome = dispatcher.dispatch(make_event("closed", "gm_approved", actor_id="u-admin-1"))

    rows = InAppNotificationRepository(db).get_notifications_for_request("CRA26031001")
    assert {r.user_id for r in rows} == {"u-sales-1", "u-sales-2"}
    outbox = NotificationRepository(db).get_notifications_for_request("CRA26031001")
    assert [r.to_emails for r in outbox] == [["costing@example.com"]]
    assert outcome.inapp_enqueued == 2


def test_urgent_status_mails_admin_without_digest(db, dispatcher, directory, enabled_policy):
    outcome = dispatcher.dispatch(make_event("gm_approval_pending", "costing_complete"))

    assert outcome.digest_enqueued == 0
    outbox = NotificationRepository(db).get_notifications_for_request("CRA26031001")
    addressed = {email for row in outbox for email in row.to_emails}
    assert addressed == {"sales@example.com", "gm@example.com"}


def test_digest_rolls_to_next_day_at_cutoff(db, dispatcher, clock, directory, enabled_policy):
    clock.set(datetime(2026, 3, 10, 15, 59, 59, tzinfo=timezone.utc))
    dispatcher.dispatch(make_event("under_review", "submitted"))
    clock.set(datetime(2026, 3, 10, 16, 0, 0, tzinfo=timezone.utc))
    dispatcher.dispatch(make_event("design_result", "under_review"))

    repo = DigestRepository(db)
    assert [e.status for e in repo.get_pending_for_day("2026-03-10")] == ["under_review"]
    assert [e.status for e in repo.get_pending_for_day("2026-03-11")] == ["design_result"]


def test_failing_outbox_does_not_stop_other_stages(db, directory, enabled_policy, clock):
    broken_outbox = MagicMock(spec=NotificationRepository)
    broken_outbox.create_notification.side_effect = RuntimeError("outbox unavailable")
    dispatcher = NotificationDispatcher(
        settings_cache=NotificationSettingsCache(MailSettingsRepository(db)),
        outbox_repo=broken_outbox,
        digest_repo=DigestRepository(db),
        inapp_repo=InAppNotificationRepository(db),
        user_repo=UserRepository(db),
        digest_timezone=timezone.utc,
        clock=clock,
    )

    outcome = dispatcher.dispatch(make_event("submitted", "draft"))

    assert not outcome.immediate_email_enqueued
    assert outcome.digest_enqueued == 1
    assert outcome.inapp_enqueued == 3
    assert len(outcome.errors) == 1
    assert "outbox unavailable" in outcome.errors[0]


def test_settings_failure_is_reported_not_raised(db, directory):
    cache = MagicMock(spec=NotificationSettingsCache)
    cache.get_policy.side_effect = RuntimeError("mongo down")
    dispatcher = NotificationDispatcher(
        settings_cache=cache,
        outbox_repo=NotificationRepository(db),
        digest_repo=DigestRepository(db),
        inapp_repo=InAppNotificationRepository(db),
        user_repo=UserRepository(db),
        digest_timezone=timezone.utc,
    )

    outcome = dispatcher.dispatch(make_event("submitted", "draft"))

    assert not outcome.anything_enqueued
    assert outcome.errors


def test_settings_cache_invalidate(db, policy, save_policy):
    repo = MailSettingsRepository(db)
    now = [0.0]
    cache = NotificationSettingsCache(repo, ttl_seconds=30, clock=lambda: now[0])

    assert cache.get_policy().enabled is False
    save_policy(policy)
    assert cache.get_policy().enabled is False

    now[0] = 31.0
    assert cache.get_policy().enabled is True

    policy.enabled = False
    save_policy(policy)
    cache.invalidate()
    assert cache.get_policy().enabled is False


def test_settings_cache_save_policy_applies_at_once(db, policy):
    cache = NotificationSettingsCache(MailSettingsRepository(db), ttl_seconds=30, clock=lambda: 0.0)
    assert cache.get_policy().enabled is False

    cache.save_policy(policy)

    assert cache.get_policy().enabled is True
    assert MailSettingsRepository(db).get_policy().sender_upn == "cra-noreply@example.com"
