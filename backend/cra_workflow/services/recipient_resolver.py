"""Recipient Resolver - Which addresses hear about a status, and how soon"""
from typing import Dict, List, Mapping, Optional

from ..domain.models import NotificationPolicy, ResolvedRecipients, RoleFlags, parse_email_list
from ..domain.enums import RequestStatus, Role
from ..utils.logger import get_logger

logger = get_logger(__name__)

S = RequestStatus
R = Role

# Built-in addressing; also the only table the in-app feed uses
STATUS_ROLES: Dict[RequestStatus, RoleFlags] = {
    S.SUBMITTED: RoleFlags.of(R.DESIGN, R.ADMIN),
    S.UNDER_REVIEW: RoleFlags.of(R.DESIGN, R.ADMIN),
    S.CLARIFICATION_NEEDED: RoleFlags.of(R.SALES, R.ADMIN),
    S.FEASIBILITY_CONFIRMED: RoleFlags.of(R.COSTING, R.SALES, R.ADMIN),
    S.DESIGN_RESULT: RoleFlags.of(R.COSTING, R.SALES, R.ADMIN),
    S.IN_COSTING: RoleFlags.of(R.COSTING, R.ADMIN),
    S.COSTING_COMPLETE: RoleFlags.of(R.SALES, R.ADMIN),
    S.SALES_FOLLOWUP: RoleFlags.of(R.SALES, R.ADMIN),
    S.GM_APPROVAL_PENDING: RoleFlags.of(R.SALES, R.ADMIN),
    S.GM_APPROVED: RoleFlags.of(R.SALES, R.ADMIN),
    S.GM_REJECTED: RoleFlags.of(R.SALES, R.ADMIN),
    S.CLOSED: RoleFlags.of(R.SALES),
}

# Statuses where admins are mailed at once instead of in the daily digest
URGENT_ADMIN_STATUSES = frozenset({S.GM_APPROVAL_PENDING.value})


def builtin_role_flags(status: str) -> RoleFlags:
    """Built-in roles for a status; anything unlisted goes to admin only"""
    try:
        key = RequestStatus.parse(status)
    except ValueError:
        key = None
    return STATUS_ROLES.get(key) or RoleFlags.of(R.ADMIN)


def effective_role_flags(flow_map: Mapping[str, RoleFlags], status: str) -> RoleFlags:
    """A flow_map entry for the status replaces the built-in row entirely"""
    override = flow_map.get(str(status or ""))
    if override is not None:
        return override
    return builtin_role_flags(status)


def _dedupe(emails: List[str], exclude: Optional[set] = None) -> List[str]:
    seen = set(exclude or ())
    out = []
    for email in emails:
        key = email.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(email.strip())
    return out


class RecipientResolver:
    """Resolves role groups into immediate and digest address sets"""

    def resolve(self, policy: NotificationPolicy, status: str) -> ResolvedRecipients:
        flags = effective_role_flags(policy.flow_map, status)
        test_targets = None
        if policy.test_mode:
            test_targets = parse_email_list(policy.test_email or policy.sender_upn)

        immediate: List[str] = []
        deferred: Dict[Role, List[str]] = {}

        for role in flags.roles():
            emails = test_targets if test_targets is not None else policy.recipients_for(role)
            if role == Role.ADMIN and status not in URGENT_ADMIN_STATUSES:
                deferred[role] = list(emails)
            else:
                immediate.extend(emails)

        immediate = _dedupe(immediate)
        taken = {e.lower() for e in immediate}
        digest_groups = {}
        for role, emails in deferred.items():
            kept = _dedupe(emails, exclude=taken)
            if kept:
                digest_groups[role] = kept

        logger.debug(
            f"Resolved {len(immediate)} immediate recipients for {status}",
            extra={"status": status}
        )
        return ResolvedRecipients(immediate_emails=immediate, digest_role_groups=digest_groups)
