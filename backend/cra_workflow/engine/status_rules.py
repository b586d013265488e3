"""Status Rules - Transition legality table

The engine only asks three questions of the rules object; any object with
``is_known_status``, ``allowed_transitions`` and ``is_allowed_transition``
can replace the default table.
"""
from typing import Dict, List, Mapping, Optional, Sequence

from ..domain.enums import RequestStatus

S = RequestStatus

DEFAULT_TRANSITIONS: Dict[RequestStatus, List[RequestStatus]] = {
    S.DRAFT: [S.SUBMITTED, S.CANCELLED],
    S.SUBMITTED: [S.UNDER_REVIEW, S.CLARIFICATION_NEEDED, S.CANCELLED],
    S.UNDER_REVIEW: [S.FEASIBILITY_CONFIRMED, S.DESIGN_RESULT, S.CLARIFICATION_NEEDED, S.CANCELLED],
    S.CLARIFICATION_NEEDED: [S.SUBMITTED, S.CANCELLED],
    S.FEASIBILITY_CONFIRMED: [S.DESIGN_RESULT, S.IN_COSTING, S.CANCELLED],
    S.DESIGN_RESULT: [S.IN_COSTING, S.COSTING_COMPLETE, S.CANCELLED],
    S.IN_COSTING: [S.COSTING_COMPLETE, S.CLARIFICATION_NEEDED, S.CANCELLED],
    S.COSTING_COMPLETE: [S.SALES_FOLLOWUP, S.GM_APPROVAL_PENDING, S.CANCELLED, S.CLOSED],
    S.SALES_FOLLOWUP: [S.GM_APPROVAL_PENDING, S.GM_APPROVED, S.CANCELLED, S.CLOSED],
    S.GM_APPROVAL_PENDING: [S.GM_APPROVED, S.GM_REJECTED, S.CANCELLED],
    S.GM_APPROVED: [S.CLOSED],
    S.GM_REJECTED: [S.SALES_FOLLOWUP, S.GM_APPROVAL_PENDING, S.CANCELLED],
    S.CLOSED: [],
    S.CANCELLED: [],
    S.EDITED: [],
}


class StatusRules:
    """Legality table: which status may follow which"""

    def __init__(
        self,
        transitions: Optional[Mapping[RequestStatus, Sequence[RequestStatus]]] = None,
        allow_self_transitions: bool = True
    ):
        table = DEFAULT_TRANSITIONS if transitions is None else transitions
        self._transitions = {k: list(v) for k, v in table.items()}
        self._allow_self = allow_self_transitions

    def is_known_status(self, value: object) -> bool:
        try:
            RequestStatus.parse(value)
        except ValueError:
            return False
        return True

    def allowed_transitions(self, current: RequestStatus) -> List[RequestStatus]:
        """Legal successors of ``current`` (self-transition not listed)"""
        return list(self._transitions.get(current, []))

    def is_allowed_transition(self, current: RequestStatus, requested: RequestStatus) -> bool:
        if current == requested:
            return self._allow_self
        return requested in self._transitions.get(current, [])
