# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
#
# Every failure response carries an `error` message and a machine-readable
# `code`. Upstream failures (database, storage, identity provider) are logged
# where they happen and surfaced here with a generic message only.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)


class CrewDeskException(Exception):
    """
    Base exception for the CrewDesk API.

    All custom exceptions inherit from this class and map directly to an
    HTTP status code and JSON error body.
    """

    def __init__(
        self,
        message: str,
        code: str = "CREWDESK_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Authentication / Authorization
# =============================================================================

class UnauthenticatedError(CrewDeskException):
    """Raised when the caller has no valid session or no profile row."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            code="UNAUTHENTICATED",
            status_code=401,
        )


class ForbiddenError(CrewDeskException):
    """Raised when the caller's role or project access does not allow an action."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


# =============================================================================
# Request Errors
# =============================================================================

class ValidationFailedError(CrewDeskException):
    """Raised for missing or invalid fields, bad enum values and rejected uploads."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details,
        )


class InvalidOperationError(CrewDeskException):
    """Raised for well-formed requests that would break an account invariant."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_OPERATION",
            status_code=400,
        )


class NotFoundError(CrewDeskException):
    """Raised when a row doesn't exist (or isn't visible to the caller)."""

    def __init__(self, entity: str, entity_id: str | None = None):
        message = f"{entity} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"id": entity_id} if entity_id else None,
        )


# =============================================================================
# Upstream Errors
# =============================================================================

class UpstreamFailureError(CrewDeskException):
    """
    Raised when a database, storage or identity call fails.

    The message shown to the caller is generic; the underlying error is
    logged by whoever raises this.
    """

    def __init__(self, message: str = "Internal server error"):
        super().__init__(
            message=message,
            code="UPSTREAM_FAILURE",
            status_code=500,
        )


class AINotConfiguredError(CrewDeskException):
    """Raised when an insights endpoint is called without a provider key."""

    def __init__(self):
        super().__init__(
            message="AI insights are not configured",
            code="AI_NOT_CONFIGURED",
            status_code=503,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def crewdesk_exception_handler(
    request: Request,
    exc: CrewDeskException
) -> JSONResponse:
    """Convert CrewDeskException to JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Reports the first failing field as a 400 so body problems look the same
    as the field checks done inside services.
    """
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))

    return JSONResponse(
        status_code=400,
        content={
            "error": message,
            "code": "VALIDATION_ERROR",
        }
    )


async def supabase_exception_handler(
    request: Request,
    exc: SupabaseClientError
) -> JSONResponse:
    """
    Handle failed database, storage or identity calls.

    The failure was already logged with context where it happened; the
    caller only sees a generic message.
    """
    logger.error(f"Upstream failure on {request.method} {request.url.path}: [{exc.code}] {exc.message}")
    return JSONResponse(
        status_code=500,
        content=UpstreamFailureError().to_dict()
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Last-resort handler: log the fault and answer a fixed 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )
