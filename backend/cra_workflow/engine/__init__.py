"""Request Lifecycle Engine - Status transitions and draft idempotency"""
from .status_rules import StatusRules, DEFAULT_TRANSITIONS
from .transition_engine import TransitionEngine
from .draft_guard import DraftGuard
from .audit_writer import AuditWriter

__all__ = [
    "StatusRules",
    "DEFAULT_TRANSITIONS",
    "TransitionEngine",
    "DraftGuard",
    "AuditWriter",
]
