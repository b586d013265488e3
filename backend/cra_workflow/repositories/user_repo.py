"""User Repository - Recipient directory lookups"""
from typing import Dict, List, Optional, Sequence
from pymongo.collection import Collection
from pymongo.database import Database

from .mongo_client import get_collection, APP_USERS
from ..domain.models import AppUser
from ..domain.enums import Role
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for application users"""

    def __init__(self, db: Optional[Database] = None):
        self._users: Collection = get_collection(APP_USERS, db)

    def upsert_user(self, user: AppUser) -> AppUser:
        """Create or replace a directory entry"""
        doc = user.model_dump(mode="json")
        doc["email_lower"] = user.email.strip().lower()
        self._users.replace_one({"_id": user.user_id}, doc, upsert=True)
        return user

    def get_active_users_by_role(self, roles: Sequence[Role]) -> List[AppUser]:
        """Active users whose role is one of ``roles``"""
        if not roles:
            return []
        cursor = self._users.find({
            "role": {"$in": [r.value for r in roles]},
            "is_active": True,
        })
        users = []
        for doc in cursor:
            doc.pop("_id", None)
            doc.pop("email_lower", None)
            users.append(AppUser.model_validate(doc))
        return users

    def get_language_preferences(self, emails: Sequence[str]) -> Dict[str, str]:
        """
        Stored language preference of active users, keyed by lower-cased email.

        Addresses without an active user are absent from the result.
        """
        lowered = sorted({e.strip().lower() for e in emails if e and e.strip()})
        if not lowered:
            return {}
        cursor = self._users.find(
            {"email_lower": {"$in": lowered}, "is_active": True},
            {"email_lower": 1, "preferred_language": 1}
        )
        return {
            doc["email_lower"]: str(doc.get("preferred_language") or "")
            for doc in cursor
        }
