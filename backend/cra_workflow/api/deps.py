"""API Dependencies - service container and caller identity"""
from typing import Optional
from fastapi import Header, HTTPException, status

from ..domain.models import ActorContext
from ..domain.errors import AuthenticationError
from ..services.container import ServiceContainer
from ..utils.jwt import get_current_user

_container: Optional[ServiceContainer] = None


def get_services() -> ServiceContainer:
    """Application-wide service container (built on first use)"""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_services() -> None:
    """Drop the cached container (used on shutdown)"""
    global _container
    _container = None


def _unauthorized(error: AuthenticationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.to_dict(),
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Resolve the bearer token into the acting user.

    Raises:
        HTTPException: 401 when the header is missing or the token is invalid
    """
    try:
        return get_current_user(authorization)
    except AuthenticationError as e:
        raise _unauthorized(e)
