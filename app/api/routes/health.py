from __future__ import annotations

from fastapi import APIRouter

from app.core.rate_limit import get_rate_limiter
from app.utils.simple_cache import api_cache

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Also reports the size of the in-process stores, which only grow between
    opportunistic sweeps.
    """

    return {
        "status": "ok",
        "rate_limit_entries": len(get_rate_limiter()),
        "cache_entries": api_cache.stats()["entries"],
    }
