"""Template resolution, substitution and layout"""
import pytest

from cra_workflow.domain.enums import Language
from cra_workflow.domain.models import NotificationPolicy, Request
from cra_workflow.services.template_renderer import TemplateRenderer, apply_template_vars


@pytest.fixture
def renderer():
    return TemplateRenderer()


@pytest.fixture
def request_doc():
    return Request.model_validate({
        "request_id": "CRA26031001",
        "status": "submitted",
        "created_at": "2026-03-10T09:00:00.000Z",
        "updated_at": "2026-03-10T09:30:00.000Z",
        "client_name": "Acme Trucks",
        "country": "France",
        "application_vehicle": "Trailer",
        "expected_qty": 1200.0,
        "client_expected_delivery_date": "2026-09-01",
    })


class TestApplyTemplateVars:

    def test_substitutes_known_names(self):
        assert apply_template_vars("Request {{requestId}} is {{status}}", {
            "requestId": "CRA1", "status": "Submitted",
        }) == "Request CRA1 is Submitted"

    def test_missing_names_render_empty(self):
        assert apply_template_vars("[{{nope}}]", {}) == "[]"

    def test_single_pass(self):
        assert apply_template_vars("{{a}}", {"a": "{{b}}", "b": "x"}) == "{{b}}"

    def test_non_placeholder_braces_untouched(self):
        assert apply_template_vars("{{ spaced }} {single}", {"spaced": "x"}) == "{{ spaced }} {single}"


class TestResolveTemplate:

    def test_builtin_default_per_language(self, renderer):
        fr = renderer.resolve_template(NotificationPolicy(), "request_status_changed", Language.FR)
        assert fr["subject"].startswith("[CRA] Demande")

    def test_i18n_override_wins(self, renderer):
        policy = NotificationPolicy(templates={
            "fr": {"request_status_changed": {"subject": "FR {{requestId}}"}},
            "request_status_changed": {"subject": "LEGACY {{requestId}}"},
        })
        fr = renderer.resolve_template(policy, "request_status_changed", Language.FR)
        assert fr["subject"] == "FR {{requestId}}"
        # Untouched fields still come from the default
        assert fr["primaryButtonText"] == "Ouvrir la demande"

    def test_legacy_override_only_for_english(self, renderer):
        policy = NotificationPolicy(templates={
            "request_status_changed": {"subject": "LEGACY {{requestId}}"},
        })
        en = renderer.resolve_template(policy, "request_status_changed", Language.EN)
        zh = renderer.resolve_template(policy, "request_status_changed", Language.ZH)
        assert en["subject"] == "LEGACY {{requestId}}"
        assert zh["subject"].startswith("[CRA] 请求")

    def test_unknown_event_falls_back_to_status_changed(self, renderer):
        template = renderer.resolve_template(NotificationPolicy(), "request_exploded", Language.EN)
        assert template["subject"] == "[CRA] Request {{requestId}} status changed to {{status}}"


class TestBuildVariables:

    def test_request_fields(self, renderer, request_doc):
        variables = renderer.build_variables(
            request_doc, "CRA26031001", "gm_rejected", "sales_followup", Language.EN, "Gina GM"
        )
        assert variables["status"] == "Rejected by GM"
        assert variables["statusCode"] == "gm_rejected"
        assert variables["previousStatus"] == "Sales Follow-up"
        assert variables["client"] == "Acme Trucks"
        assert variables["expectedQty"] == "1200"
        assert variables["updatedAt"] == "2026-03-10 09:30:00 UTC"
        assert variables["actor"] == "Gina GM"

    def test_translated_and_humanized_labels(self, renderer, request_doc):
        zh = renderer.build_variables(request_doc, "CRA26031001", "closed", "", Language.ZH)
        assert zh["status"] == "已关闭"
        assert zh["previousStatus"] == ""

        odd = renderer.build_variables(request_doc, "CRA26031001", "waiting_on_parts", "", Language.EN)
        assert odd["status"] == "Waiting On Parts"

    def test_non_numeric_qty_is_blank(self, renderer, request_doc):
        request = Request.model_validate({**request_doc.model_dump(), "expected_qty": "lots"})
        variables = renderer.build_variables(request, "CRA26031001", "submitted", "", Language.EN)
        assert variables["expectedQty"] == ""


class TestRender:

    def test_default_english_email(self, renderer, policy, request_doc):
        variables = renderer.build_variables(
            request_doc, "CRA26031001", "clarification_needed", "submitted", Language.EN, "Dana Design"
        )
        email = renderer.render(
            policy, "request_status_changed", Language.EN, variables, comment="Need <drawings>"
        )

        assert email.subject == "[CRA] Request CRA26031001 status changed to Clarification Needed"
        assert "https://cra.example.com/requests/CRA26031001" in email.html
        assert "https://cra.example.com/dashboard" in email.html
        assert "Submitted &rarr; Clarification Needed" in email.html
        assert "Need &lt;drawings&gt;" in email.html
        assert "#DC2626" in email.html
        assert "Acme Trucks" in email.html

    def test_empty_override_subject_uses_default(self, renderer, request_doc):
        policy = NotificationPolicy(templates={"en": {"request_created": {"subject": "  "}}})
        variables = renderer.build_variables(request_doc, "CRA26031001", "submitted", "", Language.EN)

        email = renderer.render(policy, "request_created", Language.EN, variables)
        assert email.subject == "[CRA] Request CRA26031001 submitted"

    def test_french_email(self, renderer, policy, request_doc):
        variables = renderer.build_variables(request_doc, "CRA26031001", "in_costing", "design_result", Language.FR)
        email = renderer.render(policy, "request_status_changed", Language.FR, variables)

        assert email.subject == "[CRA] Demande CRA26031001 : statut modifie en En chiffrage"
        assert 'lang="fr"' in email.html
        assert "Pays" in email.html
