"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any app import so the global settings
object is built from them.
"""

import os

import pytest

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4.1-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("LLM_RETRY_DELAY_MS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.core.rate_limit import get_rate_limiter  # noqa: E402
from app.utils.simple_cache import api_cache  # noqa: E402


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, ms: float) -> None:
        self.current += ms


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_shared_stores(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from the process-wide limiter, cache and SERVER_* env."""
    monkeypatch.delenv("SERVER_MAX_REQUESTS", raising=False)
    monkeypatch.delenv("SERVER_STORAGE_WINDOW_MS", raising=False)
    get_rate_limiter().reset()
    api_cache.clear()
    yield
    get_rate_limiter().reset()
    api_cache.clear()
