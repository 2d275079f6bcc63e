from fastapi.testclient import TestClient

from src.cursorctx.api.main import app
from src.cursorctx.api.routers import trending
from src.cursorctx.domain.models import TrendingEntry

client = TestClient(app)


def test_trending_snapshot_is_cached(monkeypatch):
    calls = []

    def fake_top():
        calls.append(1)
        return [TrendingEntry(repo="acme/widgets", count=3), TrendingEntry(repo="octo/cat", count=1)]

    monkeypatch.setattr(trending, "top_trending", fake_top)
    first = client.get("/trending")
    second = client.get("/api/trending")
    assert first.json() == {"trending": [{"repo": "acme/widgets", "count": 3}, {"repo": "octo/cat", "count": 1}]}
    assert second.json() == first.json()
    assert len(calls) == 1


def test_trending_cache_expires(monkeypatch):
    snapshots = iter([[TrendingEntry(repo="a/b", count=1)], [TrendingEntry(repo="a/b", count=2)]])
    monkeypatch.setattr(trending, "top_trending", lambda: next(snapshots))
    monkeypatch.setattr(trending, "CACHE_TTL_SECONDS", 0.0)
    assert client.get("/trending").json()["trending"][0]["count"] == 1
    assert client.get("/trending").json()["trending"][0]["count"] == 2
