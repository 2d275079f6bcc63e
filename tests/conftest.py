import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch):
    """Start every test without credentials and with fresh process-wide singletons."""
    from src.cursorctx.infrastructure import redis_client
    from src.cursorctx.api.routers import trending

    for key in ("ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL", "GITHUB_TOKEN", "REDIS_URL", "CURSORCTX_RELAY_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    redis_client.reset_redis_client()
    trending.reset_trending_cache()
    yield
    redis_client.reset_redis_client()
    trending.reset_trending_cache()
