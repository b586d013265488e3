"""
Email Templates - Request notification emails

Default per-language templates, translated status labels and the HTML
layout every request notification is rendered into. Admins can override
the text fields of a template per event and language in the mail settings.
"""
from html import escape
from typing import Dict, List, Optional

from ..domain.enums import Language, NotificationEventType, BASE_LANGUAGE


# Editable text fields of a template
TEMPLATE_FIELDS = (
    "subject", "title", "intro", "primaryButtonText", "secondaryButtonText", "footerText"
)


# =============================================================================
# Default Templates
# =============================================================================

_EN_FOOTER = "You received this email because you are subscribed to CRA request notifications."
_FR_FOOTER = "Vous recevez cet e-mail car vous etes abonne aux notifications des demandes CRA."
_ZH_FOOTER = "您收到此邮件是因为您订阅了 CRA 请求通知。"

DEFAULT_TEMPLATES_BY_LANG: Dict[Language, Dict[str, Dict[str, str]]] = {
    Language.EN: {
        NotificationEventType.REQUEST_CREATED.value: {
            "subject": "[CRA] Request {{requestId}} submitted",
            "title": "Request {{requestId}}",
            "intro": "",
            "primaryButtonText": "Open request",
            "secondaryButtonText": "Open dashboard",
            "footerText": _EN_FOOTER,
        },
        NotificationEventType.REQUEST_STATUS_CHANGED.value: {
            "subject": "[CRA] Request {{requestId}} status changed to {{status}}",
            "title": "Request {{requestId}}",
            "intro": "",
            "primaryButtonText": "Open request",
            "secondaryButtonText": "Open dashboard",
            "footerText": _EN_FOOTER,
        },
    },
    Language.FR: {
        NotificationEventType.REQUEST_CREATED.value: {
            "subject": "[CRA] Demande {{requestId}} soumise",
            "title": "Demande {{requestId}}",
            "intro": "",
            "primaryButtonText": "Ouvrir la demande",
            "secondaryButtonText": "Ouvrir le tableau de bord",
            "footerText": _FR_FOOTER,
        },
        NotificationEventType.REQUEST_STATUS_CHANGED.value: {
            "subject": "[CRA] Demande {{requestId}} : statut modifie en {{status}}",
            "title": "Demande {{requestId}}",
            "intro": "",
            "primaryButtonText": "Ouvrir la demande",
            "secondaryButtonText": "Ouvrir le tableau de bord",
            "footerText": _FR_FOOTER,
        },
    },
    Language.ZH: {
        NotificationEventType.REQUEST_CREATED.value: {
            "subject": "[CRA] 请求 {{requestId}} 已提交",
            "title": "请求 {{requestId}}",
            "intro": "",
            "primaryButtonText": "打开请求",
            "secondaryButtonText": "打开仪表板",
            "footerText": _ZH_FOOTER,
        },
        NotificationEventType.REQUEST_STATUS_CHANGED.value: {
            "subject": "[CRA] 请求 {{requestId}} 状态已变更为 {{status}}",
            "title": "请求 {{requestId}}",
            "intro": "",
            "primaryButtonText": "打开请求",
            "secondaryButtonText": "打开仪表板",
            "footerText": _ZH_FOOTER,
        },
    },
}


def get_default_template(event_type: str, lang: Language) -> Dict[str, str]:
    """Built-in template; unknown events use the status-changed template"""
    by_lang = DEFAULT_TEMPLATES_BY_LANG.get(lang) or DEFAULT_TEMPLATES_BY_LANG[BASE_LANGUAGE]
    fallback = NotificationEventType.REQUEST_STATUS_CHANGED.value
    return dict(by_lang.get(event_type) or by_lang[fallback])


# =============================================================================
# Translated Strings
# =============================================================================

EMAIL_STRINGS_BY_LANG: Dict[Language, Dict] = {
    Language.EN: {
        "notificationLabel": "CRA Notification",
        "statusUpdatedLabel": "Status Updated",
        "metaRequestPrefix": "Request",
        "metaByPrefix": "By",
        "linkFallbackPrefix": "If the button doesn't work, use this link:",
        "footerFallback": _EN_FOOTER,
        "labels": {
            "client": "Client",
            "country": "Country",
            "applicationVehicle": "Application Vehicle",
            "expectedQty": "Expected Qty",
            "expectedDeliveryDate": "Expected Delivery Date",
            "comment": "Comment",
        },
        "statusLabels": {
            "draft": "Draft",
            "submitted": "Submitted",
            "edited": "Edited",
            "design_result": "Design Result",
            "under_review": "Under Review",
            "clarification_needed": "Clarification Needed",
            "feasibility_confirmed": "Feasibility Confirmed",
            "in_costing": "In Costing",
            "costing_complete": "Costing Complete",
            "sales_followup": "Sales Follow-up",
            "gm_approval_pending": "GM Approval Pending",
            "gm_approved": "Approved",
            "gm_rejected": "Rejected by GM",
            "closed": "Closed",
        },
    },
    Language.FR: {
        "notificationLabel": "Notification CRA",
        "statusUpdatedLabel": "Statut mis a jour",
        "metaRequestPrefix": "Demande",
        "metaByPrefix": "Par",
        "linkFallbackPrefix": "Si le bouton ne fonctionne pas, utilisez ce lien :",
        "footerFallback": _FR_FOOTER,
        "labels": {
            "client": "Client",
            "country": "Pays",
            "applicationVehicle": "Vehicule d'application",
            "expectedQty": "Quantite prevue",
            "expectedDeliveryDate": "Date de livraison prevue",
            "comment": "Commentaire",
        },
        "statusLabels": {
            "draft": "Brouillon",
            "submitted": "Soumis",
            "edited": "Modifie",
            "design_result": "Resultat design",
            "under_review": "En cours de revue",
            "clarification_needed": "Clarification requise",
            "feasibility_confirmed": "Faisabilite confirmee",
            "in_costing": "En chiffrage",
            "costing_complete": "Chiffrage termine",
            "sales_followup": "Suivi commercial",
            "gm_approval_pending": "Approbation DG en attente",
            "gm_approved": "Approuve",
            "gm_rejected": "Rejete par DG",
            "closed": "Cloture",
        },
    },
    Language.ZH: {
        "notificationLabel": "CRA 通知",
        "statusUpdatedLabel": "状态更新",
        "metaRequestPrefix": "请求",
        "metaByPrefix": "操作人",
        "linkFallbackPrefix": "如果按钮无法打开，请使用此链接：",
        "footerFallback": _ZH_FOOTER,
        "labels": {
            "client": "客户",
            "country": "国家",
            "applicationVehicle": "应用车辆",
            "expectedQty": "预计数量",
            "expectedDeliveryDate": "预计交付日期",
            "comment": "备注",
        },
        "statusLabels": {
            "draft": "草稿",
            "submitted": "已提交",
            "edited": "已编辑",
            "design_result": "设计结果",
            "under_review": "审核中",
            "clarification_needed": "需要澄清",
            "feasibility_confirmed": "可行性已确认",
            "in_costing": "成本核算中",
            "costing_complete": "成本核算完成",
            "sales_followup": "销售跟进",
            "gm_approval_pending": "总经理审批中",
            "gm_approved": "已批准",
            "gm_rejected": "总经理已拒绝",
            "closed": "已关闭",
        },
    },
}


def get_email_strings(lang: Language) -> Dict:
    return EMAIL_STRINGS_BY_LANG.get(lang) or EMAIL_STRINGS_BY_LANG[BASE_LANGUAGE]


def humanize_status(status: str) -> str:
    """'gm_approval_pending' -> 'Gm Approval Pending'"""
    words = str(status or "").strip().replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def status_label(status: str, lang: Language) -> str:
    """Translated label for a status code; unknown codes are humanized"""
    code = str(status or "").strip()
    if not code:
        return ""
    return get_email_strings(lang)["statusLabels"].get(code) or humanize_status(code) or code


# =============================================================================
# Status Accent Colors
# =============================================================================

_RED = "#DC2626"
_GREEN = "#16A34A"
_BLUE = "#2563EB"
_SLATE = "#64748B"

STATUS_ACCENTS: Dict[str, str] = {
    "clarification_needed": _RED,
    "gm_rejected": _RED,
    "gm_approved": _GREEN,
    "costing_complete": _GREEN,
    "feasibility_confirmed": _GREEN,
    "closed": _GREEN,
    "submitted": _BLUE,
    "under_review": _BLUE,
    "in_costing": _BLUE,
    "gm_approval_pending": _BLUE,
    "sales_followup": _BLUE,
}


def get_status_accent(status: str) -> str:
    return STATUS_ACCENTS.get(str(status or ""), _SLATE)


# =============================================================================
# Links
# =============================================================================

def build_request_link(base_url: str, request_id: str) -> str:
    base = (base_url or "").strip().rstrip("/")
    if not base:
        return ""
    return f"{base}/requests/{request_id}"


def build_dashboard_link(base_url: str) -> str:
    base = (base_url or "").strip().rstrip("/")
    if not base:
        return ""
    return f"{base}/dashboard"


# =============================================================================
# Components
# =============================================================================

def get_button(href: str, text: str, primary: bool = True) -> str:
    """Outlook-safe table button; empty when there is no link or text"""
    if not href or not (text or "").strip():
        return ""
    if primary:
        bg, border, color, size = "#D71920", "", "#FFFFFF", "15px"
    else:
        bg, border, color, size = "#FFFFFF", " border: 1px solid #CBD5E1;", "#0F172A", "14px"
    return f'''
    <table role="presentation" align="center" cellspacing="0" cellpadding="0" border="0" width="440" style="margin: 0 auto; max-width: 440px;">
        <tr>
            <td align="center" bgcolor="{bg}" style="background-color: {bg};{border} border-radius: 12px;">
                <a href="{escape(href)}" style="display: block; font-family: Arial, sans-serif; font-size: {size}; font-weight: bold; color: {color}; text-decoration: none; padding: 15px 18px; text-align: center;">{escape(text)}</a>
            </td>
        </tr>
    </table>
    '''


def get_facts_card(facts: List[tuple]) -> str:
    """Two-column request facts; empty values are skipped"""
    cells = []
    for label, value in facts:
        text = str(value or "").strip()
        if not text:
            continue
        cells.append(f'''
            <td width="50%" valign="top" style="padding: 10px 10px 10px 0; font-family: Arial, sans-serif;">
                <div style="font-size: 11px; color: #6B7280; text-transform: uppercase; letter-spacing: 0.08em;">{escape(label)}</div>
                <div style="margin-top: 3px; font-size: 14px; font-weight: bold; color: #111827;">{escape(text)}</div>
            </td>''')

    if not cells:
        return ""

    rows = ""
    for i in range(0, len(cells), 2):
        right = cells[i + 1] if i + 1 < len(cells) else '<td width="50%" style="padding: 10px 0;">&nbsp;</td>'
        rows += f"<tr>{cells[i]}{right}</tr>"

    return f'''
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="margin: 14px 0 0 0;">
        {rows}
    </table>
    '''


def get_comment_block(label: str, comment: str, accent_color: str) -> str:
    text = (comment or "").strip()
    if not text:
        return ""
    return f'''
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="margin-top: 14px;">
        <tr>
            <td colspan="2" style="font-size: 11px; color: #6B7280; text-transform: uppercase; letter-spacing: 0.08em; font-family: Arial, sans-serif; padding-bottom: 8px;">{escape(label)}</td>
        </tr>
        <tr>
            <td width="4" bgcolor="{accent_color}" style="background-color: {accent_color}; font-size: 0; line-height: 0;">&nbsp;</td>
            <td style="padding: 10px 12px; background-color: #F9FAFB; border: 1px solid #E5E7EB; border-left: 0; font-size: 14px; color: #111827; white-space: pre-wrap; font-family: Arial, sans-serif;">{escape(text)}</td>
        </tr>
    </table>
    '''


# =============================================================================
# Base Template Wrapper
# =============================================================================

def get_base_template(
    lang: Language,
    content: str,
    footer_text: str,
    accent_color: str = _SLATE,
    buttons_html: str = "",
    fallback_link: Optional[str] = None
) -> str:
    """
    House email layout: header label, accent bar, content card, buttons,
    plain-link fallback and footer. Table based for Outlook.
    """
    strings = get_email_strings(lang)

    fallback_html = ""
    if fallback_link:
        safe_link = escape(fallback_link)
        fallback_html = f'''
        <div style="margin-top: 14px; font-size: 11px; color: #6B7280; line-height: 16px; font-family: Arial, sans-serif;">
            {escape(strings["linkFallbackPrefix"])} <a href="{safe_link}" style="color: #2563EB; text-decoration: underline; word-break: break-all;">{safe_link}</a>
        </div>
        '''

    return f'''<!doctype html>
<html lang="{lang.value}">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <meta name="color-scheme" content="light" />
</head>
<body style="margin: 0; padding: 0; background-color: #F5F7FB; color: #111827;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: #F5F7FB;">
        <tr>
            <td align="center" style="padding: 30px 12px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="640" style="max-width: 640px;">

                    <!-- Header -->
                    <tr>
                        <td style="padding: 0 0 12px 0;">
                            <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
                                <tr>
                                    <td align="left"><div style="font-weight: bold; letter-spacing: 0.5px; color: #111827; font-family: Arial, sans-serif;">CRA</div></td>
                                    <td align="right"><div style="font-family: Arial, sans-serif; font-size: 12px; color: #6B7280;">{escape(strings["notificationLabel"])}</div></td>
                                </tr>
                            </table>
                        </td>
                    </tr>

                    <!-- Main Content Card -->
                    <tr>
                        <td bgcolor="#FFFFFF" style="background-color: #FFFFFF; border: 1px solid #E5E7EB; border-radius: 16px; font-family: Arial, sans-serif;">
                            <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
                                <tr>
                                    <td height="6" bgcolor="{accent_color}" style="background-color: {accent_color}; font-size: 0; line-height: 0;">&nbsp;</td>
                                </tr>
                                <tr>
                                    <td style="padding: 22px 24px;">
                                        {content}
                                    </td>
                                </tr>
                                <tr>
                                    <td align="center" style="padding: 0 24px 22px 24px;">
                                        {buttons_html}
                                        {fallback_html}
                                    </td>
                                </tr>
                            </table>
                        </td>
                    </tr>

                    <!-- Footer -->
                    <tr>
                        <td style="padding: 14px 6px 0 6px; text-align: center; font-family: Arial, sans-serif; font-size: 11px; color: #6B7280;">
                            {escape(footer_text or strings["footerFallback"])}
                        </td>
                    </tr>

                </table>
            </td>
        </tr>
    </table>
</body>
</html>
'''
