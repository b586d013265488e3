"""
API Middleware Module

Modules:
    - correlation: Correlation ID and access logging per call
    - error_handlers: Domain and validation errors mapped to JSON responses
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
