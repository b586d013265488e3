"""Draft Guard - Idempotent create-or-reuse for in-progress drafts

Clients autosave drafts and may fire several "create" calls for the same
form at once. Calls for one (creator, draft session key) pair are
serialized by an advisory lock so exactly one draft row exists per pair;
later calls merge their payload into it.
"""
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Optional
from pymongo.errors import DuplicateKeyError

from ..domain.models import Request, HistoryEntry, DraftResult, PROTECTED_REQUEST_FIELDS
from ..domain.enums import RequestStatus
from ..repositories.request_repo import RequestRepository
from ..repositories.counter_repo import CounterRepository
from ..repositories.lock_repo import LockRepository, draft_lock_key
from ..config.settings import settings
from ..utils.idgen import format_request_id, generate_history_entry_id
from ..utils.time import utc_now, format_iso, date_stamp, resolve_timezone
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Set by the guard itself, never taken from a payload
OWNERSHIP_FIELDS = frozenset({"created_by", "created_by_name", "draft_session_key"})


def clean_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop lifecycle and ownership fields from a client payload"""
    return {
        k: v for k, v in (payload or {}).items()
        if k not in PROTECTED_REQUEST_FIELDS and k not in OWNERSHIP_FIELDS and k != "_id"
    }


class DraftGuard:
    """Creates requests, reusing the live draft of a session when there is one"""

    def __init__(
        self,
        request_repo: RequestRepository,
        counter_repo: CounterRepository,
        lock_repo: LockRepository,
        id_prefix: Optional[str] = None,
        id_min_digits: Optional[int] = None,
        business_timezone: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.request_repo = request_repo
        self.counter_repo = counter_repo
        self.lock_repo = lock_repo
        self.id_prefix = id_prefix or settings.request_id_prefix
        self.id_min_digits = id_min_digits or settings.request_id_min_seq_digits
        self.business_timezone = business_timezone or resolve_timezone(settings.digest_timezone)
        self._clock = clock

    def allocate_request_id(self, now: Optional[datetime] = None) -> str:
        """Next <PREFIX><YYMMDD><seq> identifier for the business day of ``now``"""
        now = now or self._clock()
        stamp = date_stamp(now.astimezone(self.business_timezone))
        seq = self.counter_repo.next_value(f"request_id:{self.id_prefix}{stamp}")
        return format_request_id(self.id_prefix, stamp, seq, self.id_min_digits)

    def create_or_reuse_draft(
        self,
        creator_id: Optional[str],
        draft_session_key: Optional[str],
        payload: Dict[str, Any],
        status: RequestStatus = RequestStatus.DRAFT,
        creator_name: str = ""
    ) -> DraftResult:
        """
        Create a request, or merge into the existing draft of the session.

        Only drafts with both a creator and a session key are deduplicated;
        anything else is created unconditionally.
        """
        key = (draft_session_key or "").strip() or None
        fields = clean_payload(payload)

        if status != RequestStatus.DRAFT or not creator_id or not key:
            request = self._create(creator_id, creator_name, key, fields, status)
            return DraftResult(request=request, created=True)

        with self.lock_repo.hold(draft_lock_key(creator_id, key)):
            existing = self.request_repo.find_draft(creator_id, key)
            if existing is not None:
                return self._reuse(existing, fields, creator_id)

            try:
                request = self._create(creator_id, creator_name, key, fields, status)
            except DuplicateKeyError:
                # The lease ran out mid-call and another caller inserted the
                # session's draft first; the unique draft index rejected ours
                existing = self.request_repo.find_draft(creator_id, key)
                if existing is None:
                    raise
                logger.warning(
                    f"Lost draft race for session {key}; reusing {existing.request_id}",
                    extra={"request_id": existing.request_id, "actor_id": creator_id}
                )
                return self._reuse(existing, fields, creator_id)
            return DraftResult(request=request, created=True)

    def _reuse(self, existing: Request, fields: Dict[str, Any], creator_id: str) -> DraftResult:
        merged = self._merge(existing, fields)
        logger.info(
            f"Reused draft {existing.request_id}",
            extra={"request_id": existing.request_id, "actor_id": creator_id}
        )
        return DraftResult(request=merged, created=False)

    def _create(
        self,
        creator_id: Optional[str],
        creator_name: str,
        draft_session_key: Optional[str],
        fields: Dict[str, Any],
        status: RequestStatus
    ) -> Request:
        now = self._clock()
        timestamp = format_iso(now)
        request_id = self.allocate_request_id(now)

        request = Request.model_validate({
            **fields,
            "request_id": request_id,
            "status": status.value,
            "history": [
                HistoryEntry(
                    id=generate_history_entry_id(),
                    status=status.value,
                    timestamp=timestamp,
                    user_id=creator_id or "",
                    user_name=creator_name or "",
                ).model_dump()
            ],
            "created_by": creator_id,
            "created_by_name": creator_name or None,
            "draft_session_key": draft_session_key,
            "created_at": timestamp,
            "updated_at": timestamp,
        })
        return self.request_repo.create_request(request)

    def _merge(self, existing: Request, fields: Dict[str, Any]) -> Request:
        updates = dict(fields)
        updates["updated_at"] = format_iso(self._clock())
        return self.request_repo.replace_fields(existing.request_id, updates)
