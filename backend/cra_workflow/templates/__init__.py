"""
Email Templates Package

Request notification templates, translated strings and the HTML layout.
"""
from .email_templates import (
    get_base_template,
    get_default_template,
    get_status_accent,
    status_label,
    humanize_status,
    DEFAULT_TEMPLATES_BY_LANG,
    EMAIL_STRINGS_BY_LANG,
    TEMPLATE_FIELDS,
)

__all__ = [
    "get_base_template",
    "get_default_template",
    "get_status_accent",
    "status_label",
    "humanize_status",
    "DEFAULT_TEMPLATES_BY_LANG",
    "EMAIL_STRINGS_BY_LANG",
    "TEMPLATE_FIELDS",
]
