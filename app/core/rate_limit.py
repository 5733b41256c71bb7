"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Fixed-window limit per caller address.
- The address comes from X-Forwarded-For, then X-Real-IP, else "unknown".
- Limits are re-read from SERVER_* environment variables on every request.
"""

from __future__ import annotations

import hashlib
import logging
import math

from fastapi import Request

from app.adapters.rate_limit.base import RateLimitConfig
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import get_rate_limit_settings
from app.core.constants import RATE_LIMIT_EXCEEDED_MESSAGE
from app.core.errors import RateLimitAppError
from app.utils.api_helpers import with_rate_limit_headers

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def resolve_rate_limit_config() -> RateLimitConfig:
    """Build the limiter configuration from the current environment."""

    resolved = get_rate_limit_settings()
    return RateLimitConfig(
        max_requests=resolved.max_requests,
        window_ms=resolved.storage_window_ms,
    )


_limiter = InMemoryFixedWindowRateLimiter(config_provider=resolve_rate_limit_config)


def get_rate_limiter() -> InMemoryFixedWindowRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance lives at module level to preserve state across requests.
    """

    return _limiter


def get_client_identifier(request: Request) -> str:
    """Extract the caller identifier from forwarding headers.

    Args:
        request: FastAPI request.

    Returns:
        str: Header value as sent, or ``"unknown"`` when neither is present.
    """

    return (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or UNKNOWN_CLIENT
    )


def _hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def rate_limit_headers(identifier: str) -> dict[str, str]:
    """Current X-RateLimit-* headers for ``identifier``."""

    limiter = get_rate_limiter()
    config = limiter.get_config()
    return with_rate_limit_headers(
        None,
        remaining=limiter.get_remaining(identifier),
        limit=config.max_requests,
        reset_ms=config.window_ms,
    )


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing rate limits.

    Consumes one unit from the caller's budget. If the caller exceeded the
    configured rate, raises RateLimitAppError which the exception handlers
    turn into a 429 with Retry-After and X-RateLimit-* headers.

    Args:
        request: FastAPI request.

    Raises:
        RateLimitAppError: When the rate limit is exceeded.
    """

    limiter = get_rate_limiter()
    identifier = get_client_identifier(request)
    config = limiter.get_config()

    if limiter.check_limit(identifier):
        logger.info(
            "rate_limit.allowed",
            extra={
                "client_hash": _hash_identifier(identifier),
                "limit": config.max_requests,
                "remaining": limiter.get_remaining(identifier),
                "window_ms": config.window_ms,
            },
        )
        return

    retry_after = math.ceil(config.window_ms / 1000)
    remaining = limiter.get_remaining(identifier)
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": _hash_identifier(identifier),
            "limit": config.max_requests,
            "remaining": remaining,
            "window_ms": config.window_ms,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMIT_EXCEEDED_MESSAGE,
        details={
            "retry_after": retry_after,
            "limit": config.max_requests,
            "remaining": remaining,
            "reset_ms": config.window_ms,
        },
    )
