"""Small helpers shared by the request layer.

Covers cache key construction, response shape checks, best-effort error
message extraction, rate limit headers, and retry with exponential backoff.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from app.core.constants import FALLBACK_ERROR_MESSAGE

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_cache_key(endpoint: str, params: Any = None) -> str:
    """Build a cache key from an endpoint and its request parameters.

    Parameters are serialized as compact JSON in their given key order, so
    logically equal mappings built in a different order produce different keys.

    Examples:
        >>> build_cache_key("/x", {"a": 1})
        '/x:{"a":1}'
        >>> build_cache_key("/x")
        '/x:'
    """
    param_string = (
        json.dumps(params, separators=(",", ":"), ensure_ascii=False)
        if params is not None
        else ""
    )
    return f"{endpoint}:{param_string}"


@dataclass(frozen=True)
class ValidResponse:
    payload: Mapping[str, Any]


@dataclass(frozen=True)
class ErrorResponse:
    error: Any


def check_api_response(response: Any) -> ValidResponse | ErrorResponse:
    """Classify a decoded JSON response.

    Any mapping without a truthy ``error`` field is valid; everything else is
    an error (the error field, or the response itself when it is not a
    mapping).
    """
    if isinstance(response, Mapping):
        error = response.get("error")
        if not error:
            return ValidResponse(payload=response)
        return ErrorResponse(error=error)
    return ErrorResponse(error=response)


def validate_api_response(response: Any) -> bool:
    return isinstance(check_api_response(response), ValidResponse)


def _lookup(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name)
    return getattr(error, name, None)


def format_api_error(error: Any) -> str:
    """Extract a human-readable message from an error-like value.

    Args:
        error: A string, exception, mapping, or any object.

    Returns:
        The string itself, else its ``message``, else its ``error``; for
        exceptions without either, ``str(exc)``. Falls back to a fixed
        message when nothing usable is found.
    """
    if isinstance(error, str):
        return error

    for name in ("message", "error"):
        value = _lookup(error, name)
        if not value:
            continue
        if isinstance(value, str):
            return value
        # Only structured errors nest; other objects are stringified once
        if isinstance(value, (Mapping, BaseException)):
            return format_api_error(value)
        return str(value)

    if isinstance(error, BaseException) and str(error):
        return str(error)

    return FALLBACK_ERROR_MESSAGE


def with_rate_limit_headers(
    headers: Mapping[str, str] | None,
    *,
    remaining: int,
    limit: int,
    reset_ms: int,
) -> dict[str, str]:
    """Return a copy of ``headers`` with the X-RateLimit-* fields set.

    ``X-RateLimit-Reset`` is expressed in whole seconds (rounded up).
    """
    merged = dict(headers or {})
    merged["X-RateLimit-Remaining"] = str(remaining)
    merged["X-RateLimit-Limit"] = str(limit)
    merged["X-RateLimit-Reset"] = str(math.ceil(reset_ms / 1000))
    return merged


async def retry_request(
    request_fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay_ms: float = 1000,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Await ``request_fn`` up to ``max_retries`` times.

    Waits ``delay_ms * 2 ** (attempt - 1)`` between attempts. Every exception
    is retried; the one raised by the final attempt propagates unchanged.

    Args:
        request_fn: Zero-argument coroutine factory.
        max_retries: Total number of attempts (>= 1).
        delay_ms: Base delay in milliseconds.
        sleep: Awaitable sleep taking seconds.

    Raises:
        ValueError: If max_retries is lower than 1.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    attempt = 1
    while True:
        try:
            return await request_fn()
        except Exception as exc:
            if attempt >= max_retries:
                logger.warning(
                    "retry.exhausted",
                    extra={"attempts": attempt, "error_type": type(exc).__name__},
                )
                raise

            wait_ms = delay_ms * 2 ** (attempt - 1)
            logger.info(
                "retry.attempt_failed",
                extra={
                    "attempt": attempt,
                    "max_retries": max_retries,
                    "wait_ms": wait_ms,
                    "error_type": type(exc).__name__,
                },
            )
            await sleep(wait_ms / 1000)
            attempt += 1
