from __future__ import annotations

import logging
import threading
from typing import Optional

import redis

from ..config import get_settings

LOG = logging.getLogger("cursorctx.redis")

_client: Optional[redis.Redis] = None
_lock = threading.Lock()


def _connect(url: str) -> Optional[redis.Redis]:
    try:
        return redis.Redis.from_url(
            url,
            socket_timeout=5,
            socket_connect_timeout=10,
            decode_responses=True,
        )
    except Exception as exc:
        LOG.warning("redis_client_unavailable", extra={"err": str(exc)})
        return None


def get_redis() -> Optional[redis.Redis]:
    """Return the process-wide client, or None when ``REDIS_URL`` is unset.

    The client is created on first use and shared by every request; the
    underlying connection pool is safe for concurrent callers.
    """
    global _client
    if _client is not None:
        return _client
    url = get_settings().redis_url
    if not url:
        return None
    with _lock:
        if _client is None:
            _client = _connect(url)
        return _client


def redis_configured() -> bool:
    return get_settings().redis_url is not None


def reset_redis_client() -> None:
    """Drop the cached client (useful for tests)."""
    global _client
    with _lock:
        _client = None
