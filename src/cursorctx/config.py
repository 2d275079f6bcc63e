from __future__ import annotations

"""Runtime settings resolved from the environment.

Every value has a safe default except the credentials; a missing credential
disables the endpoints that need it instead of failing application start-up.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple


DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
DEFAULT_RELAY_TIMEOUT = 15.0
DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_PUBLIC_URL = "http://localhost:8000"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(frozen=True)
class Settings:
    anthropic_api_key: Optional[str]
    anthropic_base_url: str
    github_token: Optional[str]
    redis_url: Optional[str]
    relay_timeout: float
    fetch_timeout: float
    public_url: str
    cors_origins: Tuple[str, ...]


def get_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build a :class:`Settings` snapshot from ``env`` (defaults to ``os.environ``)."""

    source = os.environ if env is None else env
    return Settings(
        anthropic_api_key=_env_str(source, "ANTHROPIC_API_KEY"),
        anthropic_base_url=(_env_str(source, "ANTHROPIC_BASE_URL") or DEFAULT_ANTHROPIC_BASE_URL).rstrip("/"),
        github_token=_env_str(source, "GITHUB_TOKEN"),
        redis_url=_env_str(source, "REDIS_URL"),
        relay_timeout=_env_float(source, "CURSORCTX_RELAY_TIMEOUT", DEFAULT_RELAY_TIMEOUT),
        fetch_timeout=_env_float(source, "CURSORCTX_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        public_url=(_env_str(source, "CURSORCTX_PUBLIC_URL") or DEFAULT_PUBLIC_URL).rstrip("/"),
        cors_origins=_env_list(source, "CURSORCTX_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
    )


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        value = float(raw)
        return value if value > 0 else default
    except ValueError:
        return default


def _env_list(env: Mapping[str, str], name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = env.get(name)
    if not raw:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default
