from __future__ import annotations

from typing import Optional

import requests

from ..domain.errors import GistError
from .http import build_session, github_headers

GISTS_URL = "https://api.github.com/gists"
RULES_FILENAME = ".cursorrules"


def create_gist(
    content: str,
    repo_name: str,
    token: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> str:
    """Publish ``content`` as a public gist and return its HTML URL.

    Raises
    ------
    GistError
        When GitHub answers with a non-2xx status; carries that status and
        GitHub's ``message`` when one is present.
    """

    http = session or build_session()
    payload = {
        "description": f"Cursor rules for {repo_name}",
        "public": True,
        "files": {RULES_FILENAME: {"content": content}},
    }
    resp = http.post(GISTS_URL, json=payload, headers=github_headers(token), timeout=timeout)
    if not resp.ok:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        raise GistError(message or f"GitHub API error: {resp.status_code}", resp.status_code)
    return resp.json()["html_url"]
