from __future__ import annotations

import threading
import time
from typing import List, Optional, Tuple

from fastapi import APIRouter, Response

from ...domain.models import TrendingEntry, TrendingResponse
from ...infrastructure.popularity import top_trending

router = APIRouter(tags=["trending"])

CACHE_TTL_SECONDS = 60.0

_cache: Optional[Tuple[float, List[TrendingEntry]]] = None
_cache_lock = threading.Lock()


def _snapshot() -> List[TrendingEntry]:
    global _cache
    now = time.monotonic()
    with _cache_lock:
        if _cache is not None and now - _cache[0] < CACHE_TTL_SECONDS:
            return _cache[1]
    entries = top_trending()
    with _cache_lock:
        _cache = (now, entries)
    return entries


def reset_trending_cache() -> None:
    """Forget the cached snapshot (useful for tests)."""
    global _cache
    with _cache_lock:
        _cache = None


@router.get("/trending", response_model=TrendingResponse)
def trending(response: Response) -> TrendingResponse:
    response.headers["Cache-Control"] = f"public, max-age={int(CACHE_TTL_SECONDS)}, stale-while-revalidate={int(CACHE_TTL_SECONDS)}"
    return TrendingResponse(trending=_snapshot())
