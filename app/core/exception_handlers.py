"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return JSON bodies whose ``error`` field is
always a human-readable string.

Design:
- RateLimitAppError → 429 with Retry-After and X-RateLimit-* headers
- Other AppError subclasses → appropriate HTTP status (400, 404, 500)
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import (
    AppError,
    LLMAppError,
    NotFoundAppError,
    RateLimitAppError,
)
from app.core.logging import get_request_id
from app.utils.api_helpers import with_rate_limit_headers

logger = logging.getLogger(__name__)


def status_for_error(exc: AppError) -> int:
    """Map a domain error to its HTTP status code."""
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, LLMAppError):
        return 500
    return 400


def _request_id(request: Request) -> str | None:
    # The middleware may already have cleared the context var
    return get_request_id() or request.headers.get(settings.log.request_id_header)


def error_body(exc: AppError, request_id: str | None = None) -> dict:
    """Build the JSON body for a domain error."""
    body: dict = {"error": exc.message, "code": exc.code}
    if request_id:
        body["request_id"] = request_id
    if exc.details:
        body["details"] = exc.details
    return body


async def rate_limit_error_handler(request: Request, exc: RateLimitAppError) -> JSONResponse:
    """Answer a throttled request with 429 and the rate limit headers."""
    details = exc.details or {}
    headers = with_rate_limit_headers(
        {"Retry-After": str(details.get("retry_after", 0))},
        remaining=details.get("remaining", 0),
        limit=details.get("limit", 0),
        reset_ms=details.get("reset_ms", 0),
    )
    return JSONResponse(
        status_code=429,
        content={"error": exc.message},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_for_error(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
        },
    )

    return JSONResponse(status_code=status_code, content=error_body(exc, _request_id(request)))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    content = {
        "error": "An unexpected error occurred. Please try again later.",
        "code": "internal_server_error",
    }
    request_id = _request_id(request)
    if request_id:
        content["request_id"] = request_id

    return JSONResponse(status_code=500, content=content)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Specific handlers are registered before the general fallback.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(RateLimitAppError)(rate_limit_error_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
