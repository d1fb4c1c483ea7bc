"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Domain-specific exception classes
    • Consistent JSON error response format: {"error": ..., "code": ...}
    • Automatic logging of unhandled errors

Usage:
    from backend.app.core.errors import (
        AlertRelayError,
        RequestValidationFailed,
        DuplicateAlertError,
        register_error_handlers,
    )

    raise RequestValidationFailed("No contacts provided", field="contacts")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class AlertRelayError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "Internal server error",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class RequestValidationFailed(AlertRelayError):
    """Malformed request shape — the caller's fault (400)."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details={"field": field} if field else None,
        )


class DuplicateAlertError(AlertRelayError):
    """Same alert fingerprint seen inside the debounce window (429)."""

    def __init__(self, fingerprint: str):
        super().__init__(
            message="Duplicate alert detected. Please wait before sending another alert.",
            status_code=429,
            error_code="DUPLICATE_ALERT",
            details={"fingerprint": fingerprint},
        )


class RateLimitError(AlertRelayError):
    """Rate limit exceeded (429)."""

    def __init__(
        self,
        message: str = "Too many requests, please try again later.",
        retry_after: int = 60,
    ):
        super().__init__(
            message=message,
            status_code=429,
            error_code="RATE_LIMIT_EXCEEDED",
            details={"retry_after_seconds": retry_after},
        )


class InternalServerError(AlertRelayError):
    """Unexpected failure with a fixed, non-leaking message (500)."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, status_code=500, error_code="INTERNAL_ERROR")


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {"error": message, "code": error_code}
    return JSONResponse(status_code=status_code, content=body, headers=headers)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(AlertRelayError)
    async def handle_relay_error(request: Request, exc: AlertRelayError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "API Error [%s] %s %s: %s | details=%s",
            exc.error_code, request.method, request.url.path,
            exc.message, exc.details,
        )
        headers = None
        if isinstance(exc, RateLimitError):
            headers = {"Retry-After": str(exc.details["retry_after_seconds"])}
        return build_error_response(
            exc.status_code, exc.error_code, exc.message, headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_body_error(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request body on %s: %s", request.url.path, exc.errors())
        return build_error_response(400, "VALIDATION_ERROR", "Invalid request body")

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical("Unhandled exception on %s", request.url.path, exc_info=exc)
        message = str(exc) if settings.DEBUG else "Something went wrong!"
        return build_error_response(500, "INTERNAL_ERROR", message)
