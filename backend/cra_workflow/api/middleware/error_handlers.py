"""
Error Handlers

Maps domain errors to their HTTP status with the standard error body:

    {"error": {"code": ..., "message": ..., "details": {...}}}

An illegal transition answers 409 with the allowed successors in details.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from ...domain.errors import DomainError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _error_response(status_code: int, content: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Expected business errors: unknown status, illegal move, missing field, not found"""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "request_id": request.path_params.get("request_id"),
        }
    )
    return _error_response(exc.http_status, exc.to_dict())


def _error_body(code: str, message: str, details: dict) -> dict:
    return {"error": {"code": code, "message": message, "details": details}}


def _slim(errors) -> list:
    return [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in errors]


def _validation_response(request: Request, message: str, errors: list) -> JSONResponse:
    logger.warning(
        f"{message} on {request.method} {request.url.path}: {errors}",
        extra={"error_code": "VALIDATION_ERROR"}
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        _error_body("VALIDATION_ERROR", message, {"errors": errors})
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body or query did not match the schema"""
    return _validation_response(request, "Request validation failed", _slim(exc.errors()))


async def model_error_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """A payload could not be turned into a valid request document"""
    return _validation_response(request, "Invalid request data", _slim(exc.errors()))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors; full stack trace goes to the log"""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        _error_body("INTERNAL_ERROR", "An unexpected error occurred", {})
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PydanticValidationError, model_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
