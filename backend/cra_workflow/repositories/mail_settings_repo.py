"""Mail Settings Repository - Notification policy and mail capability gate"""
import threading
import time
from typing import Callable, Optional
from pymongo.collection import Collection
from pymongo.database import Database

from .mongo_client import get_collection, MAIL_SETTINGS, MAIL_TOKENS
from ..config.settings import settings
from ..domain.models import NotificationPolicy, MailTokenState
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)

SETTINGS_DOC_ID = "default"


class MailSettingsRepository:
    """Reads the single notification-policy document and the token state"""

    def __init__(self, db: Optional[Database] = None):
        self._settings: Collection = get_collection(MAIL_SETTINGS, db)
        self._tokens: Collection = get_collection(MAIL_TOKENS, db)

    def get_policy(self) -> NotificationPolicy:
        """Stored policy, or the all-defaults policy (disabled) when none is stored"""
        doc = self._settings.find_one({"_id": SETTINGS_DOC_ID})
        if not doc:
            return NotificationPolicy()
        doc.pop("_id", None)
        return NotificationPolicy.model_validate(doc)

    def save_policy(self, policy: NotificationPolicy) -> NotificationPolicy:
        doc = policy.model_dump(mode="json")
        doc["updated_at"] = utc_now()
        self._settings.update_one({"_id": SETTINGS_DOC_ID}, {"$set": doc}, upsert=True)
        logger.info("Saved notification policy")
        return policy

    def get_token_state(self) -> MailTokenState:
        """Whether the OAuth component holds a refresh token"""
        doc = self._tokens.find_one({"_id": SETTINGS_DOC_ID}) or {}
        return MailTokenState(has_refresh_token=bool(doc.get("refresh_token")))


class NotificationSettingsCache:
    """
    Short-lived cache in front of MailSettingsRepository.

    Policy reads are served from memory for ``ttl_seconds``. Writes made
    through ``save_policy`` apply at once; a policy written straight to the
    collection by another process applies once the TTL runs out.
    """

    def __init__(
        self,
        repo: MailSettingsRepository,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self._repo = repo
        self._ttl = settings.settings_cache_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._policy: Optional[NotificationPolicy] = None
        self._loaded_at = 0.0

    def get_policy(self) -> NotificationPolicy:
        with self._lock:
            now = self._clock()
            if self._policy is None or now - self._loaded_at >= self._ttl:
                self._policy = self._repo.get_policy()
                self._loaded_at = now
            return self._policy

    def is_mail_connected(self) -> bool:
        return self._repo.get_token_state().has_refresh_token

    def save_policy(self, policy: NotificationPolicy) -> NotificationPolicy:
        """Persist a new policy and drop the cached copy"""
        saved = self._repo.save_policy(policy)
        self.invalidate()
        return saved

    def invalidate(self) -> None:
        with self._lock:
            self._policy = None
