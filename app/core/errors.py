"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes flexible while encouraging
    consistent keys across the codebase.
    """

    hint: str
    errors: list[dict[str, Any]]
    max_value: int
    retry_after: int
    limit: int
    remaining: int
    reset_ms: int
    model: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""


class NotFoundAppError(AppError):
    """Raised when a feature or resource is not available."""


class RateLimitAppError(AppError):
    """Raised when a caller exhausted its request budget.

    ``details`` carries ``retry_after``, ``limit``, ``remaining`` and
    ``reset_ms`` so the handler can emit the throttling headers.
    """
