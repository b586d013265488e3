"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class UnknownStatusError(ValidationError):
    """Requested status is not part of the lifecycle"""
    error_code = "UNKNOWN_STATUS"

    def __init__(self, status: Any):
        super().__init__(
            f"Unknown status: {status!r}",
            details={"status": str(status or "")}
        )


class MissingRequiredFieldError(ValidationError):
    """A transition guard requires a field that is empty"""
    error_code = "MISSING_REQUIRED_FIELD"

    def __init__(self, message: str, field: str):
        super().__init__(message, details={"field": field})
        self.field = field


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class RequestNotFoundError(NotFoundError):
    """Request not found"""
    error_code = "REQUEST_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict"""
    error_code = "CONFLICT"
    http_status = 409


class IllegalTransitionError(ConflictError):
    """Transition not permitted from the current status"""
    error_code = "ILLEGAL_TRANSITION"

    def __init__(self, from_status: str, to_status: str, allowed_transitions: List[str]):
        super().__init__(
            f"Cannot move request from {from_status} to {to_status}",
            details={
                "from": from_status,
                "to": to_status,
                "allowed_transitions": list(allowed_transitions),
            }
        )
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = list(allowed_transitions)


# Notification path (recovered locally, never surfaced to API callers)
class NotificationDispatchError(DomainError):
    """Notification enqueueing failed"""
    error_code = "NOTIFICATION_DISPATCH_FAILED"
    http_status = 500


class RecipientLookupError(DomainError):
    """Recipient directory lookup failed"""
    error_code = "RECIPIENT_LOOKUP_FAILED"
    http_status = 502
