from __future__ import annotations

"""Relay one streaming generation call to an HTTP response body.

A relay invocation moves ``IDLE -> STREAMING -> COMPLETED | FAILED``. Text
deltas are forwarded as soon as the upstream produces them. The stream ends
either by closing silently (completed) or with exactly one
``{"error": ...}\\n`` line (failed). Unclassified upstream failures are not
translated: they are re-raised as :class:`RelayFailure`, which aborts the
response body.

The upstream call runs on its own worker thread and hands deltas to the
consumer through a queue, so a stalled connection never blocks the response.
A single wall-clock timer bounds the whole call. Whichever of the worker and
the timer claims the terminal latch first decides the outcome; when the timer
wins, the upstream call is cancelled through a :class:`CancellationToken` and
the worker's later results are dropped.
"""

import enum
import json
import logging
import queue
import socket
import threading
from typing import Any, Iterator, Optional, Protocol, Tuple

from urllib3.exceptions import NameResolutionError

from ..domain.errors import RelayFailure
from ..domain.models import GenerationRequest, StreamEvent
from ..observability.metrics import RELAY_OUTCOMES
from .cancellation import CancellationToken

LOG = logging.getLogger("cursorctx.relay")

DEFAULT_TIMEOUT = 15.0

RATE_LIMITED_MESSAGE = (
    "Anthropic API returned 400 - your account may be out of credits. "
    "Check console.anthropic.com/billing."
)
REGION_BLOCKED_MESSAGE = (
    "Anthropic API is not available from your region (403). "
    "Try a VPN or run from a supported region."
)
DNS_FAILURE_MESSAGE = (
    "Cannot reach api.anthropic.com. Check your network or DNS (try 8.8.8.8 / 1.1.1.1)."
)
TIMEOUT_MESSAGE = "Request to Anthropic timed out (>{timeout:g}s). Check your network connection."


class StreamingClient(Protocol):
    def stream(self, request: GenerationRequest, cancel: CancellationToken) -> Iterator[str]:
        ...


class RelayState(str, enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class TerminalLatch:
    """One-way latch; only the first ``claim()`` succeeds."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._claimed = False

    @property
    def claimed(self) -> bool:
        return self._claimed

    def claim(self) -> bool:
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            return True


def _causes(exc: BaseException) -> Iterator[BaseException]:
    """Walk ``exc`` plus its chained causes and wrapped ``reason``/``args`` errors."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        for linked in (current.__cause__, current.__context__, getattr(current, "reason", None)):
            if isinstance(linked, BaseException):
                stack.append(linked)
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                stack.append(arg)


def is_dns_failure(exc: BaseException) -> bool:
    for err in _causes(exc):
        if isinstance(err, (socket.gaierror, NameResolutionError)):
            return True
        if getattr(err, "code", None) == "ENOTFOUND":
            return True
    return False


def classify_failure(exc: Optional[BaseException], *, timed_out: bool, timeout: float = DEFAULT_TIMEOUT) -> tuple[str, Optional[str]]:
    """Return ``(outcome, message)``; a ``None`` message means the failure stays opaque."""

    if timed_out:
        return "timeout", TIMEOUT_MESSAGE.format(timeout=timeout)
    status = getattr(exc, "status", None)
    if status == 400:
        return "rate_limited", RATE_LIMITED_MESSAGE
    if status == 403:
        return "region_blocked", REGION_BLOCKED_MESSAGE
    if exc is not None and is_dns_failure(exc):
        return "dns_failure", DNS_FAILURE_MESSAGE
    return "upstream_error", None


def encode_event(event: StreamEvent) -> bytes:
    if event.kind == "error":
        return (json.dumps({"error": event.data}) + "\n").encode("utf-8")
    return event.data.encode("utf-8")


# Messages passed from the upstream worker to the consumer.
_DELTA = "delta"
_DONE = "done"
_FAILED = "failed"
_TIMED_OUT = "timed_out"


class RelayStream:
    """A single relay invocation. Iterate it once to drive the state machine."""

    def __init__(self, client: StreamingClient, request: GenerationRequest, timeout: float) -> None:
        self._client = client
        self._request = request
        self._timeout = timeout
        self._latch = TerminalLatch()
        self._feed: "queue.Queue[Tuple[str, Any]]" = queue.Queue()
        self.token = CancellationToken()
        self.state = RelayState.IDLE
        self.outcome: Optional[str] = None

    def _finish(self, state: RelayState, outcome: str) -> bool:
        if not self._latch.claim():
            return False
        self.state = state
        self.outcome = outcome
        RELAY_OUTCOMES.labels(outcome=outcome).inc()
        return True

    def _on_timeout(self) -> None:
        if not self._finish(RelayState.FAILED, "timeout"):
            return
        LOG.warning("relay_timeout", extra={"timeout_s": self._timeout})
        self.token.cancel()
        self._feed.put((_TIMED_OUT, None))

    def _on_failure(self, exc: Exception) -> None:
        outcome, message = classify_failure(exc, timed_out=False, timeout=self._timeout)
        if not self._finish(RelayState.FAILED, outcome):
            LOG.debug("relay_late_upstream_error", extra={"err": str(exc)})
            return
        LOG.warning(
            "relay_upstream_failed",
            exc_info=exc if message is None else None,
            extra={
                "status": getattr(exc, "status", None),
                "code": getattr(exc, "code", None),
                "category": outcome,
                "err": str(exc),
            },
        )
        self._feed.put((_FAILED, (exc, message)))

    def _pump(self) -> None:
        """Worker thread body: run the upstream call and feed its results to the consumer."""
        try:
            for delta in self._client.stream(self._request, self.token):
                if self.token.cancelled:
                    return
                if delta:
                    self._feed.put((_DELTA, delta))
        except Exception as exc:
            self._on_failure(exc)
            return
        if self.token.cancelled:
            return
        if self._finish(RelayState.COMPLETED, "completed"):
            LOG.debug("relay_completed")
            self._feed.put((_DONE, None))

    def events(self) -> Iterator[StreamEvent]:
        if self.state is not RelayState.IDLE:
            raise RuntimeError("relay stream can only be consumed once")
        self.state = RelayState.STREAMING
        timer = threading.Timer(self._timeout, self._on_timeout)
        timer.daemon = True
        worker = threading.Thread(target=self._pump, name="relay-upstream", daemon=True)
        timer.start()
        worker.start()
        try:
            while True:
                kind, payload = self._feed.get()
                if kind == _DELTA:
                    yield StreamEvent.text(payload)
                elif kind == _DONE:
                    return
                elif kind == _TIMED_OUT:
                    yield StreamEvent.error(TIMEOUT_MESSAGE.format(timeout=self._timeout))
                    return
                else:
                    failure, message = payload
                    if message is None:
                        raise RelayFailure(str(failure)) from failure
                    yield StreamEvent.error(message)
                    return
        except GeneratorExit:
            self._finish(RelayState.FAILED, "disconnected")
            self.token.cancel()
            raise
        finally:
            timer.cancel()

    def __iter__(self) -> Iterator[bytes]:
        events = self.events()
        try:
            for event in events:
                yield encode_event(event)
        finally:
            events.close()


class GenerationRelay:
    def __init__(self, client: StreamingClient, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.client = client
        self.timeout = timeout

    def open(self, request: GenerationRequest) -> RelayStream:
        return RelayStream(self.client, request, self.timeout)
