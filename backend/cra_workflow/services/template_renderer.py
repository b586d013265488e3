"""Template Renderer - Resolve, fill and lay out notification emails"""
import re
from html import escape
from typing import Any, Dict, Mapping, Optional

from ..domain.models import NotificationPolicy, RenderedEmail, Request
from ..domain.enums import Language, NotificationEventType, BASE_LANGUAGE
from ..templates.email_templates import (
    TEMPLATE_FIELDS,
    get_default_template,
    get_email_strings,
    get_status_accent,
    status_label,
    build_request_link,
    build_dashboard_link,
    get_base_template,
    get_button,
    get_facts_card,
    get_comment_block,
)
from ..utils.time import format_utc_label
from ..utils.logger import get_logger

logger = get_logger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


def apply_template_vars(template: Any, variables: Mapping[str, Any]) -> str:
    """
    Replace ``{{name}}`` placeholders in one pass.

    Unknown names render as "". Substituted values are not scanned again.
    """
    def _sub(match: "re.Match") -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER_RE.sub(_sub, str(template or ""))


def _format_qty(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class TemplateRenderer:
    """Renders one email per event type and language"""

    def resolve_template(
        self,
        policy: NotificationPolicy,
        event_type: str,
        lang: Language
    ) -> Dict[str, str]:
        """
        Effective template: the stored override for the language (language
        keyed settings) or the legacy single-language override (English only),
        merged over the built-in default for the language.
        """
        raw = policy.templates or {}
        merged = get_default_template(event_type, lang)

        lang_bucket = raw.get(lang.value)
        if isinstance(lang_bucket, dict):
            override = lang_bucket.get(event_type)
        elif lang == BASE_LANGUAGE:
            override = raw.get(event_type)
        else:
            override = None

        if isinstance(override, dict):
            for field in TEMPLATE_FIELDS:
                if field in override and override[field] is not None:
                    merged[field] = str(override[field])
        return merged

    def build_variables(
        self,
        request: Optional[Request],
        request_id: str,
        status: str,
        previous_status: str,
        lang: Language,
        actor_name: str = ""
    ) -> Dict[str, str]:
        """Placeholder values for a request event, labels in ``lang``"""
        status_code = _text(status)
        previous_code = _text(previous_status)

        def field(name: str) -> Any:
            return request.payload_value(name) if request is not None else None

        updated_at = ""
        if request is not None:
            updated_at = format_utc_label(request.updated_at or request.created_at)

        return {
            "requestId": _text(request_id or (request.request_id if request else "")),
            "status": status_label(status_code, lang),
            "statusCode": status_code,
            "previousStatus": status_label(previous_code, lang),
            "previousStatusCode": previous_code,
            "actor": _text(actor_name),
            "updatedAt": updated_at,
            "client": _text(field("client_name")),
            "country": _text(field("country")),
            "applicationVehicle": _text(field("application_vehicle")),
            "expectedQty": _format_qty(field("expected_qty")),
            "expectedDeliveryDate": _text(field("client_expected_delivery_date")),
        }

    def render(
        self,
        policy: NotificationPolicy,
        event_type: str,
        lang: Language,
        variables: Mapping[str, Any],
        comment: Optional[str] = None
    ) -> RenderedEmail:
        """Render subject and HTML body"""
        template = self.resolve_template(policy, event_type, lang)
        strings = get_email_strings(lang)

        subject = apply_template_vars(template.get("subject"), variables).strip()
        if not subject:
            subject = apply_template_vars(get_default_template(event_type, lang)["subject"], variables)

        title = apply_template_vars(template.get("title"), variables).strip() or "Request Update"
        intro = apply_template_vars(template.get("intro"), variables).strip()
        primary_text = apply_template_vars(template.get("primaryButtonText"), variables).strip() or "Open request"
        secondary_text = apply_template_vars(template.get("secondaryButtonText"), variables).strip()
        footer_text = apply_template_vars(template.get("footerText"), variables).strip()

        status_code = _text(variables.get("statusCode"))
        previous_code = _text(variables.get("previousStatusCode"))
        status_text = _text(variables.get("status")) or strings["statusUpdatedLabel"]
        accent = get_status_accent(status_code)
        is_status_change = event_type == NotificationEventType.REQUEST_STATUS_CHANGED.value

        request_id = _text(variables.get("requestId"))
        request_link = build_request_link(policy.app_base_url, request_id)
        dashboard_link = build_dashboard_link(policy.app_base_url)

        content = f'''
        <div style="margin-top: 6px; font-size: {"18px" if is_status_change else "24px"}; font-weight: bold; color: #111827;">{escape(title)}</div>
        '''
        if is_status_change:
            content += f'''
        <div style="margin-top: 10px; font-size: 22px; font-weight: bold; letter-spacing: 0.06em; color: {accent}; text-transform: uppercase;">{escape(status_text)}</div>
        '''
            if previous_code and previous_code != status_code:
                previous_text = _text(variables.get("previousStatus"))
                content += f'''
        <div style="margin-top: 8px; font-size: 12px; color: #374151;">{escape(previous_text)} &rarr; {escape(status_text)}</div>
        '''
        if intro:
            content += f'''
        <div style="margin-top: 10px; font-size: 14px; color: #374151; line-height: 20px;">{escape(intro)}</div>
        '''

        meta = []
        if request_id:
            meta.append(f"{strings['metaRequestPrefix']} {request_id}")
        if variables.get("updatedAt"):
            meta.append(_text(variables.get("updatedAt")))
        if variables.get("actor"):
            meta.append(f"{strings['metaByPrefix']} {_text(variables.get('actor'))}")
        if meta:
            content += f'''
        <div style="margin-top: 10px; font-size: 12px; color: #6B7280;">{escape(" | ".join(meta))}</div>
        '''

        labels = strings["labels"]
        content += get_facts_card([
            (labels["client"], variables.get("client")),
            (labels["country"], variables.get("country")),
            (labels["applicationVehicle"], variables.get("applicationVehicle")),
            (labels["expectedQty"], variables.get("expectedQty")),
            (labels["expectedDeliveryDate"], variables.get("expectedDeliveryDate")),
        ])
        content += get_comment_block(labels["comment"], comment or "", accent)

        buttons = get_button(request_link, primary_text, primary=True)
        buttons += get_button(dashboard_link, secondary_text, primary=False)

        html = get_base_template(
            lang=lang,
            content=content,
            footer_text=footer_text,
            accent_color=accent,
            buttons_html=buttons,
            fallback_link=request_link or None
        )
        return RenderedEmail(subject=subject, html=html)
