"""Time Utilities - UTC timestamps, history ticks and digest days"""
from datetime import date, datetime, timezone, timedelta, tzinfo
from typing import Optional
from dateutil import parser as date_parser
from dateutil import tz

# Smallest step between two engine-assigned history timestamps
HISTORY_TICK = timedelta(milliseconds=1)


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    dt = date_parser.isoparse(iso_string)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def try_parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO string, returning None for empty or malformed input"""
    if not value:
        return None
    try:
        return parse_iso(value)
    except (ValueError, OverflowError):
        return None


def next_history_timestamp(last: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Timestamp for a new history entry.

    Never earlier than the previous entry; when the clock has not advanced
    past it (or went backwards) the new entry lands one tick after it.
    """
    now = now or utc_now()
    previous = try_parse_iso(last)
    if previous is not None and now <= previous:
        return previous + HISTORY_TICK
    return now


def format_utc_label(iso: Optional[str]) -> str:
    """Render an ISO timestamp as 'YYYY-MM-DD HH:MM:SS UTC' for emails"""
    dt = try_parse_iso(iso)
    if dt is None:
        return ""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve a configured time zone name.

    An empty name means the server's local zone.
    """
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown time zone: {name}")
    return zone


def compute_digest_date(event_at: datetime, cutoff_hour: int, zone: tzinfo) -> date:
    """
    Calendar day whose digest an event belongs to.

    Local time before the cutoff hour digests the same day; at or after the
    cutoff it rolls to the next day.
    """
    if event_at.tzinfo is None:
        event_at = event_at.replace(tzinfo=timezone.utc)
    local = event_at.astimezone(zone)
    if local.hour >= cutoff_hour:
        return local.date() + timedelta(days=1)
    return local.date()


def date_stamp(dt: datetime) -> str:
    """YYMMDD stamp used in request identifiers"""
    return dt.strftime("%y%m%d")
