from fastapi.testclient import TestClient

from src.cursorctx.api.main import app
from src.cursorctx.observability.metrics import route_label

client = TestClient(app)


def test_metrics_endpoint_exposes_histogram_and_relay_counter():
    r = client.get("/health")
    assert r.status_code == 200

    m = client.get("/metrics")
    assert m.status_code == 200
    body = m.text

    assert "# HELP cursorctx_request_latency_seconds" in body
    assert "# TYPE cursorctx_request_latency_seconds histogram" in body
    assert 'path="/health"' in body
    assert "cursorctx_relay_outcomes" in body


def test_route_label_folds_api_prefix_and_query():
    assert route_label("") == "/"
    assert route_label("/api/generate?x=1") == "/generate"
    assert route_label("/raw?repo=a/b") == "/raw"
    assert route_label("/api/trending/") == "/trending"


def test_prefixed_and_plain_routes_share_a_latency_label():
    client.get("/api/trending")
    client.get("/trending")
    body = client.get("/metrics").text
    assert 'path="/trending"' in body
    assert 'path="/api"' not in body
