"""In-memory TTL cache used to avoid repeated LLM calls.

Entries expire lazily: staleness is only detected when a key is read, so
there is no background sweep and no eviction policy. Thread-safe and easy to
swap for Redis while keeping the same interface.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from app.core.constants import DEFAULT_CACHE_TTL_MS

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: Any
    stored_at: float
    ttl_ms: float

    def is_stale(self, now_ms: float) -> bool:
        return now_ms - self.stored_at > self.ttl_ms


class TransientCache:
    """Thread-safe, in-memory cache with per-entry TTL.

    Attributes:
        default_ttl_ms: TTL applied when ``set`` is called without one.
    """

    def __init__(
        self,
        default_ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        *,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.default_ttl_ms = default_ttl_ms
        self._clock = clock
        self._store: dict[str, CacheItem] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"TransientCache(default_ttl_ms={self.default_ttl_ms}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, expirations={self._expirations})"
        )

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if it exists and is not stale.

        A stale entry is deleted on the spot.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                logger.debug(
                    "cache.miss",
                    extra={"cache_key": key[:64], "reason": "not_found"},
                )
                return None

            if item.is_stale(self._clock()):
                del self._store[key]
                self._misses += 1
                self._expirations += 1
                logger.debug(
                    "cache.miss",
                    extra={"cache_key": key[:64], "reason": "expired"},
                )
                return None

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key[:64]})
            return item.value

    def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        """Store a value, overwriting any existing entry for the key.

        Args:
            key: Cache key.
            value: Opaque payload.
            ttl_ms: Time-to-live in milliseconds (defaults to default_ttl_ms).
        """

        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        with self._lock:
            self._store[key] = CacheItem(value=value, stored_at=self._clock(), ttl_ms=ttl)
            logger.debug(
                "cache.set",
                extra={"cache_key": key[:64], "size": len(self._store), "ttl_ms": ttl},
            )

    def delete(self, key: str) -> bool:
        """Remove an entry, reporting whether it existed."""

        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._expirations = 0

    def stats(self) -> dict[str, int]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "default_ttl_ms": self.default_ttl_ms,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "expirations": self._expirations,
            }


# Process-wide instance shared by the request layer
api_cache = TransientCache()
