"""API layer: routes, middleware and request-scoped dependencies"""
from .deps import get_current_user_dep, get_services

__all__ = ["get_current_user_dep", "get_services"]
