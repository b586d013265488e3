"""Request service: create, edit, status change and re-notify"""
import pytest

from cra_workflow.domain.enums import AuditAction, RequestStatus
from cra_workflow.domain.errors import RequestNotFoundError, UnknownStatusError, ValidationError


def audit_actions(services, request_id):
    return [e.action for e in services.audit_repo.get_events_for_request(request_id)]


class TestCreate:

    def test_defaults_to_draft_without_notifications(self, services, sales_actor, directory, enabled_policy):
        result = services.request_service.create_request({"client_name": "Acme"}, sales_actor)

        assert result.created
        assert result.request.status == RequestStatus.DRAFT
        assert result.request.created_by == "u-sales-1"
        assert result.request.created_by_name == "Sam Sales"
        assert services.inapp_repo.get_notifications_for_request(result.request.request_id) == []
        assert audit_actions(services, result.request.request_id) == [AuditAction.REQUEST_CREATED]

    def test_direct_submit_notifies_request_created(self, services, sales_actor, directory, enabled_policy):
        result = services.request_service.create_request(
            {"status": "submitted", "client_name": "Acme"}, sales_actor
        )
        request_id = result.request.request_id

        inapp = services.inapp_repo.get_notifications_for_request(request_id)
        assert {n.user_id for n in inapp} == {"u-design-1", "u-design-2", "u-admin-1"}
        assert {n.type for n in inapp} == {"request_created"}
        assert inapp[0].title == f"New request {request_id}"

        outbox = services.outbox_repo.get_notifications_for_request(request_id)
        subjects = {row.subject for row in outbox}
        assert f"[CRA] Request {request_id} submitted" in subjects

    def test_unknown_status(self, services, sales_actor):
        with pytest.raises(UnknownStatusError):
            services.request_service.create_request({"status": "archived"}, sales_actor)
        assert services.request_repo.count_requests() == 0

    @pytest.mark.parametrize("status", ["gm_rejected", "design_result", "cancelled", "edited", "closed"])
    def test_later_statuses_cannot_be_created_directly(self, services, sales_actor, status):
        with pytest.raises(ValidationError) as exc_info:
            services.request_service.create_request({"status": status, "client_name": "Acme"}, sales_actor)

        assert not isinstance(exc_info.value, UnknownStatusError)
        assert exc_info.value.details["allowed"] == ["draft", "submitted"]
        assert services.request_repo.count_requests() == 0

    def test_session_key_reuses_draft(self, services, sales_actor):
        service = services.request_service
        first = service.create_request({"draft_session_key": "form-1", "client_name": "Acme"}, sales_actor)
        second = service.create_request({"draft_session_key": "form-1", "country": "FR"}, sales_actor)

        assert not second.created
        assert second.request.request_id == first.request.request_id
        assert second.request.payload_value("client_name") == "Acme"
        assert second.request.payload_value("country") == "FR"
        assert AuditAction.REQUEST_DRAFT_REUSED in audit_actions(services, first.request.request_id)


class TestUpdate:

    @pytest.fixture
    def submitted(self, services, sales_actor):
        result = services.request_service.create_request({"client_name": "Acme"}, sales_actor)
        return services.request_service.change_status(result.request.request_id, "submitted", None, sales_actor)

    def test_edits_fields_and_ignores_lifecycle_fields(self, services, sales_actor, submitted):
        updated = services.request_service.update_request(
            submitted.request_id,
            {"client_name": "Acme Group", "status": "closed", "history": [], "created_at": "1999-01-01"},
            sales_actor,
        )

        assert updated.payload_value("client_name") == "Acme Group"
        assert updated.status == RequestStatus.SUBMITTED
        assert updated.created_at == submitted.created_at
        assert len(updated.history) == len(submitted.history)
        assert AuditAction.REQUEST_UPDATED in audit_actions(services, submitted.request_id)

    def test_edited_marker_keeps_status(self, services, sales_actor, submitted):
        updated = services.request_service.update_request(
            submitted.request_id, {"expected_qty": 500}, sales_actor, history_event="edited"
        )

        assert updated.status == RequestStatus.SUBMITTED
        assert updated.history[-1].status == "edited"
        assert updated.history[-1].timestamp > submitted.history[-1].timestamp
        assert updated.updated_at == updated.history[-1].timestamp
        assert updated.payload_value("expected_qty") == 500

    def test_unsupported_history_event(self, services, sales_actor, submitted):
        with pytest.raises(ValidationError):
            services.request_service.update_request(
                submitted.request_id, {}, sales_actor, history_event="approved"
            )

    def test_missing_request(self, services, sales_actor):
        with pytest.raises(RequestNotFoundError):
            services.request_service.update_request("CRA00000000", {"client_name": "x"}, sales_actor)


class TestNotify:

    @pytest.fixture
    def under_review(self, services, sales_actor, design_actor):
        service = services.request_service
        result = service.create_request({"status": "submitted"}, sales_actor)
        return service.change_status(result.request.request_id, "under_review", None, design_actor)

    def test_renotify_uses_current_status(self, services, directory, enabled_policy, admin_actor, under_review):
        outcome = services.request_service.notify(under_review.request_id, admin_actor)

        assert outcome.inapp_enqueued == 2  # design users; the admin actor is skipped
        assert outcome.immediate_email_enqueued
        stored = services.request_repo.get_request(under_review.request_id)
        assert len(stored.history) == len(under_review.history)
        assert AuditAction.REQUEST_RENOTIFIED in audit_actions(services, under_review.request_id)

    def test_renotify_with_explicit_status(self, services, directory, enabled_policy, admin_actor, under_review):
        outcome = services.request_service.notify(
            under_review.request_id, admin_actor,
            event_type="request_status_changed", status="gm_approval_pending",
            previous_status="costing_complete", comment="  reminder  ",
        )

        assert outcome.digest_enqueued == 0
        rows = services.outbox_repo.get_notifications_for_request(under_review.request_id)
        assert any("gm@example.com" in row.to_emails for row in rows)

    def test_disabled_policy_reports_skip(self, services, admin_actor, under_review):
        outcome = services.request_service.notify(under_review.request_id, admin_actor)
        assert outcome.skipped_reason == "notifications_disabled"

    def test_policy_enabled_after_cached_read_applies(
        self, services, directory, policy, save_policy, admin_actor, under_review
    ):
        assert services.request_service.notify(under_review.request_id, admin_actor).skipped_reason

        save_policy(policy)
        outcome = services.request_service.notify(under_review.request_id, admin_actor)

        assert outcome.skipped_reason is None
        assert outcome.inapp_enqueued == 2

    def test_rejects_unknown_event_type(self, services, admin_actor, under_review):
        with pytest.raises(ValidationError):
            services.request_service.notify(under_review.request_id, admin_actor, event_type="request_deleted")

    def test_rejects_unknown_status(self, services, admin_actor, under_review):
        with pytest.raises(UnknownStatusError):
            services.request_service.notify(under_review.request_id, admin_actor, status="archived")
        with pytest.raises(UnknownStatusError):
            services.request_service.notify(under_review.request_id, admin_actor, previous_status="archived")
