"""Service modules - Notification pipeline and request orchestration"""
from .recipient_resolver import RecipientResolver
from .language_grouper import LanguageGrouper
from .template_renderer import TemplateRenderer
from .notification_dispatcher import NotificationDispatcher

__all__ = [
    "RecipientResolver",
    "LanguageGrouper",
    "TemplateRenderer",
    "NotificationDispatcher",
]
