"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Resolved throttling parameters.

    Attributes:
        max_requests: Max admitted requests per identifier per window.
        window_ms: Fixed window length in milliseconds.
    """

    max_requests: int
    window_ms: int


@dataclass
class RateLimitEntry:
    """Per-identifier counter for the current window.

    Attributes:
        count: Requests admitted in the current window.
        window_reset_at: UNIX epoch milliseconds when the window ends.
    """

    count: int
    window_reset_at: float

    def is_expired(self, now_ms: float) -> bool:
        return now_ms > self.window_reset_at


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def get_config(self) -> RateLimitConfig:
        """Return the configuration currently in effect."""
        raise NotImplementedError

    @abstractmethod
    def check_limit(self, identifier: str) -> bool:
        """Admit or deny one request for ``identifier``.

        Args:
            identifier: Caller key (e.g., client IP address).

        Returns:
            True when admitted (budget consumed), False when denied.
        """
        raise NotImplementedError

    @abstractmethod
    def get_remaining(self, identifier: str) -> int:
        """Report the remaining budget for ``identifier`` without consuming."""
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        raise NotImplementedError
