"""Service Container - Wires repositories, engine and services to one database"""
from typing import Optional
from pymongo.database import Database

from ..repositories.mongo_client import get_database
from ..repositories.request_repo import RequestRepository
from ..repositories.counter_repo import CounterRepository
from ..repositories.lock_repo import LockRepository
from ..repositories.notification_repo import NotificationRepository
from ..repositories.digest_repo import DigestRepository
from ..repositories.inapp_notification_repo import InAppNotificationRepository
from ..repositories.mail_settings_repo import MailSettingsRepository, NotificationSettingsCache
from ..repositories.user_repo import UserRepository
from ..repositories.audit_repo import AuditRepository
from ..engine.audit_writer import AuditWriter
from ..engine.draft_guard import DraftGuard
from ..engine.status_rules import StatusRules
from ..engine.transition_engine import TransitionEngine
from .notification_dispatcher import NotificationDispatcher
from .request_service import RequestService


class ServiceContainer:
    """All collaborators for one database, built once"""

    def __init__(self, db: Optional[Database] = None, rules: Optional[StatusRules] = None):
        db = db if db is not None else get_database()
        self.db = db

        self.request_repo = RequestRepository(db)
        self.counter_repo = CounterRepository(db)
        self.lock_repo = LockRepository(db)
        self.outbox_repo = NotificationRepository(db)
        self.digest_repo = DigestRepository(db)
        self.inapp_repo = InAppNotificationRepository(db)
        self.mail_settings_repo = MailSettingsRepository(db)
        self.user_repo = UserRepository(db)
        self.audit_repo = AuditRepository(db)

        self.settings_cache = NotificationSettingsCache(self.mail_settings_repo)
        self.audit_writer = AuditWriter(self.audit_repo)

        self.dispatcher = NotificationDispatcher(
            settings_cache=self.settings_cache,
            outbox_repo=self.outbox_repo,
            digest_repo=self.digest_repo,
            inapp_repo=self.inapp_repo,
            user_repo=self.user_repo,
        )
        self.engine = TransitionEngine(
            request_repo=self.request_repo,
            dispatcher=self.dispatcher,
            rules=rules,
            audit_writer=self.audit_writer,
        )
        self.draft_guard = DraftGuard(
            request_repo=self.request_repo,
            counter_repo=self.counter_repo,
            lock_repo=self.lock_repo,
        )
        self.request_service = RequestService(
            request_repo=self.request_repo,
            engine=self.engine,
            draft_guard=self.draft_guard,
            audit_writer=self.audit_writer,
        )
