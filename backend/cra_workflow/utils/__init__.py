"""
Utilities shared by repositories, engine and API

- logger: JSON logging and the per-call correlation ID
- jwt: bearer token to ActorContext
- idgen: opaque ids for audit, notification and digest rows
- time: UTC clock helpers and the digest cut-off rule
"""
from .logger import get_logger, setup_logging, set_correlation_id, get_correlation_id
from .jwt import JWTValidator, get_current_user
from .idgen import generate_id, generate_correlation_id
from .time import utc_now, format_iso, parse_iso, compute_digest_date

__all__ = [
    "get_logger",
    "setup_logging",
    "set_correlation_id",
    "get_correlation_id",
    "JWTValidator",
    "get_current_user",
    "generate_id",
    "generate_correlation_id",
    "utc_now",
    "format_iso",
    "parse_iso",
    "compute_digest_date",
]
