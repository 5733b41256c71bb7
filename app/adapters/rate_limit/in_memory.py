"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- No background timer: expired entries are swept opportunistically from
  ``check_limit`` at most once per cleanup interval, so the map may hold
  stale entries between sweeps.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitEntry,
)
from app.core.constants import CLEANUP_INTERVAL_MS

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identifier in a fixed window.

    A window opens on the first request of an identifier and lasts
    ``window_ms``; the counter resets on the first request after it ends.
    Up to ``2 * max_requests`` requests can therefore be admitted around a
    window boundary.

    The configuration is resolved through ``config_provider`` on every call,
    so environment overrides apply without rebuilding the limiter.
    """

    def __init__(
        self,
        *,
        config_provider: Callable[[], RateLimitConfig],
        clock: Callable[[], float] = _now_ms,
        cleanup_interval_ms: int = CLEANUP_INTERVAL_MS,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            config_provider: Returns the current RateLimitConfig.
            clock: Time source returning UNIX time in milliseconds.
            cleanup_interval_ms: Minimum spacing between opportunistic sweeps.
        """
        self._config_provider = config_provider
        self._clock = clock
        self._cleanup_interval_ms = cleanup_interval_ms
        self._lock = threading.RLock()
        self._store: dict[str, RateLimitEntry] = {}
        self._last_cleanup: float = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get_config(self) -> RateLimitConfig:
        return self._config_provider()

    def check_limit(self, identifier: str) -> bool:
        """Admit or deny one request for the identifier.

        Opens a fresh window when none exists or the previous one elapsed;
        denies without mutating state once the window budget is spent.
        """
        config = self.get_config()
        now = self._clock()

        with self._lock:
            entry = self._store.get(identifier)

            if entry is None or entry.is_expired(now):
                self._store[identifier] = RateLimitEntry(
                    count=1,
                    window_reset_at=now + config.window_ms,
                )
            elif entry.count >= config.max_requests:
                return False
            else:
                entry.count += 1

            if now - self._last_cleanup > self._cleanup_interval_ms:
                self._cleanup_locked(now)
                self._last_cleanup = now

        return True

    def get_remaining(self, identifier: str) -> int:
        config = self.get_config()
        now = self._clock()

        with self._lock:
            entry = self._store.get(identifier)
            if entry is None or entry.is_expired(now):
                return config.max_requests
            return max(0, config.max_requests - entry.count)

    def cleanup(self) -> int:
        with self._lock:
            return self._cleanup_locked(self._clock())

    def reset(self) -> None:
        """Forget every identifier and the last sweep time."""
        with self._lock:
            self._store.clear()
            self._last_cleanup = 0

    def _cleanup_locked(self, now: float) -> int:
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]

        if expired:
            logger.debug(
                "rate_limit.cleanup",
                extra={"removed": len(expired), "remaining_entries": len(self._store)},
            )
        return len(expired)
