"""Language Grouper - Split recipients by preferred language"""
from typing import Dict, List, Sequence, Tuple

from ..domain.enums import Language, BASE_LANGUAGE
from ..domain.errors import RecipientLookupError
from ..repositories.user_repo import UserRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LanguageGrouper:
    """Partitions addresses into (language, addresses) buckets"""

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def group_by_language(self, addresses: Sequence[str]) -> List[Tuple[Language, List[str]]]:
        """
        Group addresses by the stored preference of the matching active user.

        Order is en, fr, zh; empty buckets are dropped. Unknown addresses and
        unknown preferences use English. If the directory lookup fails every
        address goes to English.
        """
        deduped: List[str] = []
        seen = set()
        for raw in addresses:
            email = str(raw or "").strip()
            if not email or email.lower() in seen:
                continue
            seen.add(email.lower())
            deduped.append(email)

        if not deduped:
            return []

        try:
            preferences = self._lookup(deduped)
        except RecipientLookupError as e:
            logger.warning(e.message, extra={"error_code": e.error_code})
            return [(BASE_LANGUAGE, deduped)]

        buckets: Dict[Language, List[str]] = {lang: [] for lang in Language}
        for email in deduped:
            lang = Language.normalize(preferences.get(email.lower())) or BASE_LANGUAGE
            buckets[lang].append(email)

        return [(lang, buckets[lang]) for lang in Language if buckets[lang]]

    def _lookup(self, emails: List[str]) -> Dict[str, str]:
        try:
            return self.user_repo.get_language_preferences(emails)
        except Exception as e:
            raise RecipientLookupError(
                f"Failed to resolve recipient languages: {e}",
                details={"recipients": len(emails)}
            ) from e
