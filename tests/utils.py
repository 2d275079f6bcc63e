from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(
        self,
        status_code: int = 200,
        *,
        text: str = "",
        json_body: Any = None,
        lines: Optional[Iterable[str]] = None,
    ) -> None:
        self.status_code = status_code
        self.text = text if json_body is None else json.dumps(json_body)
        self._json = json_body
        self._lines = list(lines or [])
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json is None:
            return json.loads(self.text)
        return self._json

    def iter_lines(self):
        for line in self._lines:
            yield line.encode("utf-8")

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeSession:
    """Routes ``get``/``post`` calls to canned responses keyed by URL."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []

    def _respond(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        result = self.routes.get(url)
        if result is None:
            return FakeResponse(404, text="Not Found")
        if isinstance(result, BaseException):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._respond("POST", url, **kwargs)


def sse(*events: Dict[str, Any]) -> List[str]:
    """Render Anthropic-style server-sent events as text lines."""
    lines: List[str] = []
    for event in events:
        lines.append(f"event: {event['type']}")
        lines.append(f"data: {json.dumps(event)}")
        lines.append("")
    return lines


def text_delta(text: str) -> Dict[str, Any]:
    return {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}}
