from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """Raised by handlers before a response starts; rendered as ``{"error": message}``."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamError(Exception):
    """Failure reported by the text-generation API (HTTP status or in-stream error event)."""

    def __init__(self, message: str, *, status: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class RelayFailure(Exception):
    """Unclassified upstream failure surfaced to the caller as-is."""


class GistError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
