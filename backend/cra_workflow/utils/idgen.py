"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'NTF', 'DGQ', 'H')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('NTF')
        'NTF-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def format_request_id(prefix: str, date_stamp: str, sequence: int, min_digits: int = 2) -> str:
    """
    Build a request identifier: <PREFIX><YYMMDD><seq>

    >>> format_request_id('CRA', '261016', 7)
    'CRA26101607'
    """
    return f"{prefix}{date_stamp}{str(sequence).zfill(min_digits)}"


def generate_history_entry_id() -> str:
    """Generate request history entry ID"""
    return generate_id("H")


def generate_notification_id() -> str:
    """Generate outbox / in-app notification ID"""
    return generate_id("NTF")


def generate_digest_entry_id() -> str:
    """Generate admin digest queue entry ID"""
    return generate_id("DGQ")


def generate_audit_event_id() -> str:
    """Generate audit event ID"""
    return generate_id("AUD")


def generate_lock_holder_id() -> str:
    """Generate an advisory lock holder token"""
    return generate_id("LCK")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
