from __future__ import annotations

"""Turn user-supplied repository references into ``RepositoryIdentity`` values.

Accepted shapes:

* ``https://github.com/<owner>/<repo>[.git][/anything]``
* ``<owner>/<repo>`` shorthand (no scheme), optionally prefixed by ``github.com/``

Anything else resolves to ``None``; nothing here raises.
"""

from typing import List, Optional
from urllib.parse import urlparse

from ..domain.models import RepositoryIdentity

ALLOWED_HOSTS = frozenset({"github.com", "www.github.com"})
_VCS_SUFFIX = ".git"


def _strip_vcs_suffix(name: str) -> str:
    if name.endswith(_VCS_SUFFIX):
        return name[: -len(_VCS_SUFFIX)]
    return name


def _identity_from_segments(segments: List[str]) -> Optional[RepositoryIdentity]:
    parts = [seg for seg in segments if seg]
    if len(parts) < 2:
        return None
    owner, repo = parts[0], _strip_vcs_suffix(parts[1])
    if not owner or not repo:
        return None
    return RepositoryIdentity(owner=owner, repo=repo)


def parse_github_url(url: str) -> Optional[RepositoryIdentity]:
    """Parse a fully-qualified GitHub URL."""

    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not host or host.lower() not in ALLOWED_HOSTS:
        return None
    return _identity_from_segments(parsed.path.split("/"))


def parse_repository_reference(value: Optional[str]) -> Optional[RepositoryIdentity]:
    """Accept either ``owner/repo`` shorthand or a full GitHub URL."""

    trimmed = (value or "").strip()
    if not trimmed:
        return None
    if "://" in trimmed:
        return parse_github_url(trimmed)
    segments = trimmed.split("/")
    if segments[0].lower() in ALLOWED_HOSTS:
        segments = segments[1:]
    return _identity_from_segments(segments)
