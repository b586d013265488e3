"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes
from .request_repo import RequestRepository
from .counter_repo import CounterRepository
from .lock_repo import LockRepository
from .notification_repo import NotificationRepository
from .digest_repo import DigestRepository
from .inapp_notification_repo import InAppNotificationRepository
from .mail_settings_repo import MailSettingsRepository, NotificationSettingsCache
from .user_repo import UserRepository
from .audit_repo import AuditRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "RequestRepository",
    "CounterRepository",
    "LockRepository",
    "NotificationRepository",
    "DigestRepository",
    "InAppNotificationRepository",
    "MailSettingsRepository",
    "NotificationSettingsCache",
    "UserRepository",
    "AuditRepository",
]
