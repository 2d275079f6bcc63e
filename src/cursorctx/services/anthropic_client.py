from __future__ import annotations

"""Streaming client for the Anthropic Messages API.

Speaks the server-sent-event protocol over ``requests`` and yields only the
text deltas. Transport errors propagate untouched so callers can classify
them; HTTP error statuses and in-stream ``error`` events become
:class:`UpstreamError`.
"""

import json
import logging
from typing import Any, Dict, Iterator, Optional

import requests

from ..domain.errors import UpstreamError
from ..domain.models import GenerationRequest
from .cancellation import CancellationToken
from .http import build_session

LOG = logging.getLogger("cursorctx.relay")

ANTHROPIC_MODEL = "claude-haiku-4-5-20251001"
ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 8192


class AnthropicStreamClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.anthropic.com",
        session: Optional[requests.Session] = None,
        connect_timeout: float = 10.0,
        read_timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = ANTHROPIC_MODEL
        self._session = session or build_session(retries=0)
        self.timeout = (connect_timeout, read_timeout)

    def _payload(self, request: GenerationRequest) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.user_content}],
            "stream": True,
        }

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
            "accept": "text/event-stream",
        }

    def stream(self, request: GenerationRequest, cancel: CancellationToken) -> Iterator[str]:
        LOG.debug("anthropic_stream_open", extra={"model": self.model, "base_url": self.base_url})
        with self._session.post(
            f"{self.base_url}/v1/messages",
            json=self._payload(request),
            headers=self._headers(),
            timeout=self.timeout,
            stream=True,
        ) as resp:
            cancel.add_callback(resp.close)
            if cancel.cancelled:
                return
            if resp.status_code >= 400:
                raise UpstreamError(
                    _error_message(resp),
                    status=resp.status_code,
                    code=_error_type(resp),
                )
            event_name = ""
            for raw_line in resp.iter_lines():
                if cancel.cancelled:
                    return
                if not raw_line:
                    event_name = ""
                    continue
                line = raw_line.decode("utf-8") if isinstance(raw_line, bytes) else raw_line
                if line.startswith("event:"):
                    event_name = line[6:].strip()
                    continue
                if not line.startswith("data:"):
                    continue
                try:
                    data = json.loads(line[5:].strip())
                except json.JSONDecodeError:
                    continue
                kind = data.get("type") or event_name
                if kind == "content_block_delta":
                    delta = data.get("delta") or {}
                    if delta.get("type") == "text_delta":
                        text = delta.get("text") or ""
                        if text:
                            yield text
                elif kind == "message_stop":
                    return
                elif kind == "error":
                    err = data.get("error") or {}
                    raise UpstreamError(
                        err.get("message") or "Anthropic stream reported an error",
                        code=err.get("type"),
                    )


def _error_body(resp: requests.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    return {}


def _error_message(resp: requests.Response) -> str:
    message = _error_body(resp).get("message")
    if message:
        return f"{resp.status_code} {message}"
    return f"Anthropic API error: {resp.status_code}"


def _error_type(resp: requests.Response) -> Optional[str]:
    return _error_body(resp).get("type")
