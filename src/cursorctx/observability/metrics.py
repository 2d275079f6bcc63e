from __future__ import annotations

"""Prometheus metrics for the CursorContext API.

Adds an HTTP middleware that records request latency per method/path/status
and a counter of relay terminal outcomes. Routes mounted under ``/api`` are
labelled like their unprefixed twins.
"""

import time
from typing import Awaitable, Callable, Tuple

from prometheus_client import Counter, Histogram
from starlette.requests import Request
from starlette.responses import Response

# Histogram buckets chosen for web latencies (seconds)
REQUEST_LATENCY = Histogram(
    "cursorctx_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path", "status"),
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

RELAY_OUTCOMES = Counter(
    "cursorctx_relay_outcomes_total",
    "Terminal outcomes of generation relays",
    labelnames=("outcome",),
)


API_PREFIX = "/api"


def route_label(path: str) -> str:
    """Label a request by its route, so ``/api/raw?repo=x`` and ``/raw`` share ``/raw``."""
    path = path.split("?", 1)[0]
    if path == API_PREFIX or path.startswith(API_PREFIX + "/"):
        path = path[len(API_PREFIX):]
    head = path.strip("/").split("/", 1)[0]
    return "/" + head


def metrics_middleware_factory(
    skip_prefixes: Tuple[str, ...] = ("/metrics",),
) -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    async def record_latency(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        path = request.url.path
        if path.startswith(skip_prefixes):
            return await call_next(request)
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            # Streaming bodies are still running here; this measures time to headers.
            REQUEST_LATENCY.labels(
                method=request.method,
                path=route_label(path),
                status=status,
            ).observe(time.perf_counter() - started)

    return record_latency
