from __future__ import annotations

"""Best-effort popularity counter backed by a redis sorted set.

Nothing in this module raises: tracking is fire-and-forget and the read side
degrades to an empty snapshot.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from ..domain.models import TrendingEntry
from .redis_client import get_redis

LOG = logging.getLogger("cursorctx.popularity")

TRENDING_KEY = "trending_repos"
TRENDING_LIMIT = 5

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="popularity")


def _increment(client, slug: str) -> None:
    try:
        client.zincrby(TRENDING_KEY, 1, slug)
    except Exception as exc:
        LOG.debug("popularity_track_failed", extra={"repo": slug, "err": str(exc)})


def track_repo(slug: str) -> Optional[Future]:
    """Schedule ``ZINCRBY trending_repos 1 <slug>`` without waiting for it.

    Returns the scheduled future (or None when nothing was scheduled) so
    callers that care, such as tests, can wait on it.
    """
    if not slug:
        return None
    try:
        client = get_redis()
        if client is None:
            return None
        return _executor.submit(_increment, client, slug)
    except Exception as exc:
        LOG.debug("popularity_track_skipped", extra={"repo": slug, "err": str(exc)})
        return None


def top_trending(limit: int = TRENDING_LIMIT) -> List[TrendingEntry]:
    try:
        client = get_redis()
        if client is None:
            return []
        raw = client.zrevrange(TRENDING_KEY, 0, limit - 1, withscores=True)
        return [TrendingEntry(repo=str(member), count=int(score)) for member, score in raw]
    except Exception as exc:
        LOG.debug("popularity_read_failed", extra={"err": str(exc)})
        return []
