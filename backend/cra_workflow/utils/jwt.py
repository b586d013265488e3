"""JWT Bearer Token Validation

Tokens are issued by the login service; the claims this service reads are
``sub`` (user id), ``email``, ``name`` and ``role``.
"""
import jwt
from typing import Any, Dict, Optional

from ..config.settings import settings
from ..domain.enums import Role
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .logger import get_logger

logger = get_logger(__name__)

_BEARER = "bearer "
_ROLE_VALUES = frozenset(r.value for r in Role)


def strip_bearer(header_value: str) -> str:
    """Drop a leading 'Bearer ' (any case) from an Authorization header"""
    value = (header_value or "").strip()
    if value.lower().startswith(_BEARER):
        value = value[len(_BEARER):].strip()
    return value


def role_from_claim(value: Any) -> Optional[Role]:
    """Unknown or missing roles map to None (no role-scoped rights)"""
    raw = str(value or "").strip().lower()
    return Role(raw) if raw in _ROLE_VALUES else None


class JWTValidator:
    """Decodes and verifies HS* bearer tokens"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry and return the claims.

        Raises:
            AuthenticationError: missing, expired or otherwise invalid token
        """
        token = strip_bearer(token)
        if not token:
            raise AuthenticationError("Token is missing")

        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Rejected expired token")
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected token: {e}")
            raise AuthenticationError(f"Invalid token: {e}")

    def to_actor(self, token: str) -> ActorContext:
        """Decode ``token`` into the acting user"""
        claims = self.decode(token)
        user_id = str(claims.get("sub") or "")
        email = str(claims.get("email") or "")
        return ActorContext(
            user_id=user_id,
            email=email,
            display_name=str(claims.get("name") or email or user_id),
            role=role_from_claim(claims.get("role")),
        )


_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: Optional[str]) -> ActorContext:
    """Resolve the Authorization header into an ActorContext"""
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return get_jwt_validator().to_actor(authorization)
