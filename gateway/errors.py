"""Standardized error handling for the gateway.

This module provides:
1. The exception taxonomy raised by the archive, session and sandbox layers
2. Exception handlers for FastAPI
3. The standard error response model

Usage:
    from gateway.errors import StorageError, SandboxUnavailable

    # In services:
    raise StorageError(detail="artifact name already taken", name=name)

    # Register handlers in main.py:
    from gateway.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for gateway errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class ValidationError(APIError):
    """Bad or missing input (400). Never retried."""

    status_code = 400
    error = "validation_error"
    detail = "Invalid request"


class AuthError(APIError):
    """Missing, invalid or expired session token (401)."""

    status_code = 401
    error = "unauthorized"
    detail = "Authorization required"


class NotFoundError(APIError):
    """Resource not found error (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class StorageError(APIError):
    """Archive directory unusable, write failure or artifact name collision (500)."""

    status_code = 500
    error = "storage_error"
    detail = "Archive storage failed"


class ConfigurationError(APIError):
    """Required setting missing (500)."""

    status_code = 500
    error = "configuration_error"
    detail = "Service not configured"


class SandboxProtocolError(APIError):
    """Sandbox answered with a body that could not be interpreted (500)."""

    status_code = 500
    error = "sandbox_protocol_error"
    detail = "Failed to parse sandbox response"


class SandboxUnavailable(APIError):
    """Network-level failure reaching the sandbox (503)."""

    status_code = 503
    error = "sandbox_unavailable"
    detail = "Sandbox service unavailable"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle gateway errors."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/query validation failures as 400 instead of FastAPI's 422."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    detail = "; ".join(messages) or ValidationError.detail
    logger.info("Rejected request body (path=%s): %s", request.url.path, detail)
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=ValidationError(detail=detail).to_response().model_dump(exclude_none=True),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception: %s (path=%s)", exc, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_error",
            detail="An unexpected error occurred",
        ).model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)
