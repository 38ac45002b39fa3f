"""
Dispatch exceptions and error handlers for consistent error responses.

Every failure surfaces as a single specific message ("Failed to assign
driver") with a stable error code, so a client can tell what failed
without parsing free text.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger("fleetops.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """A required trip field is missing or invalid; raised before any store call."""

    def __init__(self, message: str, field: Optional[str] = None, details: Dict[str, Any] = None):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class InvalidTransition(AppException):
    """Trip lifecycle guard violation."""

    def __init__(self, message: str, current_status: Any = None, requested_status: Any = None):
        super().__init__(
            message=message,
            error_code="ERR_TRIP_TRANSITION",
            status_code=status.HTTP_409_CONFLICT,
            details={
                "current_status": getattr(current_status, "value", current_status),
                "requested_status": getattr(requested_status, "value", requested_status),
            }
        )
        self.current_status = current_status
        self.requested_status = requested_status


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class StoreError(AppException):
    """Any failure surfaced by the record store (network, constraint, authorization)."""

    retryable = False

    def __init__(self, message: str = "Store operation failed", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STORE_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details
        )

    def with_context(self, message: str) -> "StoreError":
        """Return a copy of this error carrying an operation-specific message."""
        error = self.__class__.__new__(self.__class__)
        AppException.__init__(
            error,
            message=message,
            error_code=self.error_code,
            status_code=self.status_code,
            details={**self.details, "cause": self.message}
        )
        return error


class StoreTimeoutError(StoreError):
    """A store call exceeded the transport timeout. Safe to retry."""

    retryable = True

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            message=f"Store operation '{operation}' timed out after {timeout_seconds}s",
            details={"operation": operation, "timeout_seconds": timeout_seconds, "retryable": True}
        )
        self.error_code = "ERR_STORE_TIMEOUT"
        self.status_code = status.HTTP_504_GATEWAY_TIMEOUT


class CodecWarning(UserWarning):
    """Malformed embedded-notes content. Never raised; collected on decode results."""


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code_map.get(exc.status_code, "ERR_UNKNOWN"),
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic request validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception object from a field validator
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
        extra={"correlation_id": getattr(request.state, "correlation_id", None)}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
