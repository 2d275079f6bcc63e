from __future__ import annotations

"""Assemble the prompt body for a repository.

Three artifacts are fetched concurrently: the ``package.json`` manifest and the
README from the jsDelivr GitHub CDN (``main`` first, then ``master``), and the
root listing from the GitHub contents API. Each one is optional; a failed or
missing artifact only drops its section from the prompt.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional

import requests

from ..domain.models import RepositoryIdentity
from .http import build_session, github_headers

LOG = logging.getLogger("cursorctx.context")

BRANCHES = ("main", "master")
README_MAX_LENGTH = 2000
TRUNCATION_MARKER = "\n\n[... truncated]"
CDN_BASE_URL = "https://fastly.jsdelivr.net/gh"
GITHUB_API_URL = "https://api.github.com"


def truncate_readme(text: str, max_length: int = README_MAX_LENGTH) -> str:
    trimmed = text.strip()
    if len(trimmed) <= max_length:
        return trimmed
    return trimmed[:max_length] + TRUNCATION_MARKER


def _dependency_map(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def tech_stack_from_manifest(manifest: Mapping[str, Any]) -> str:
    """Render the merged dependency list, dev dependencies winning on collisions."""

    deps = _dependency_map(manifest.get("dependencies"))
    deps.update(_dependency_map(manifest.get("devDependencies")))
    lines = [f"- {name}: {deps[name]}" for name in sorted(deps)]
    name = manifest.get("name")
    header = f"Project: {name}\n" if name else ""
    return header + "\n".join(lines)


def render_tree(entries: List[Mapping[str, Any]]) -> str:
    """Directories first, then by name; directories get a trailing slash."""

    valid = [e for e in entries if isinstance(e, Mapping) and isinstance(e.get("name"), str)]
    ordered = sorted(valid, key=lambda e: (e.get("type") != "dir", e["name"]))
    return "\n".join(f"{e['name']}/" if e.get("type") == "dir" else e["name"] for e in ordered)


def missing_manifest_placeholder(identity: RepositoryIdentity) -> str:
    return (
        f"Repository: {identity.slug} "
        "(no package.json found - infer stack from README and directory structure)"
    )


def assemble_prompt_input(tech_stack: str, tree: Optional[str] = None, readme: Optional[str] = None) -> str:
    parts = [f"Tech stack:\n{tech_stack}"]
    if tree and tree.strip():
        parts.append(f"Root directory structure:\n{tree}")
    if readme and readme.strip():
        parts.append(f"README description:\n{truncate_readme(readme)}")
    return "\n\n".join(parts)


class RepoContextBuilder:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = 10.0,
        cdn_base_url: str = CDN_BASE_URL,
        api_base_url: str = GITHUB_API_URL,
    ) -> None:
        self._session = session or build_session(retries=1)
        self._timeout = timeout
        self._cdn_base_url = cdn_base_url.rstrip("/")
        self._api_base_url = api_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Fetchers; each returns None on any failure
    # ------------------------------------------------------------------
    def fetch_file(self, identity: RepositoryIdentity, path: str) -> Optional[str]:
        for branch in BRANCHES:
            url = f"{self._cdn_base_url}/{identity.owner}/{identity.repo}@{branch}/{path}"
            try:
                resp = self._session.get(url, timeout=self._timeout)
            except requests.exceptions.RequestException as exc:
                LOG.debug("context_fetch_failed", extra={"url": url, "err": str(exc)})
                continue
            if resp.ok:
                return resp.text
        return None

    def fetch_manifest(self, identity: RepositoryIdentity) -> Optional[Dict[str, Any]]:
        for branch in BRANCHES:
            url = f"{self._cdn_base_url}/{identity.owner}/{identity.repo}@{branch}/package.json"
            try:
                resp = self._session.get(url, timeout=self._timeout)
                if not resp.ok:
                    continue
                data = resp.json()
            except (requests.exceptions.RequestException, ValueError) as exc:
                LOG.debug("context_manifest_unusable", extra={"url": url, "err": str(exc)})
                continue
            if isinstance(data, dict):
                return data
        return None

    def fetch_tree(self, identity: RepositoryIdentity) -> Optional[str]:
        url = f"{self._api_base_url}/repos/{identity.owner}/{identity.repo}/contents"
        try:
            resp = self._session.get(url, headers=github_headers(), timeout=self._timeout)
            if resp.status_code in (403, 404) or not resp.ok:
                return None
            entries = resp.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            LOG.debug("context_tree_unavailable", extra={"url": url, "err": str(exc)})
            return None
        if not isinstance(entries, list):
            return None
        return render_tree(entries)

    # ------------------------------------------------------------------
    def build_prompt_input(self, identity: RepositoryIdentity) -> str:
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="context") as pool:
            manifest_future = pool.submit(self._safe, self.fetch_manifest, identity)
            readme_future = pool.submit(self._safe, self.fetch_file, identity, "README.md")
            tree_future = pool.submit(self._safe, self.fetch_tree, identity)
            manifest = manifest_future.result()
            readme = readme_future.result()
            tree = tree_future.result()

        tech_stack = tech_stack_from_manifest(manifest) if manifest is not None else missing_manifest_placeholder(identity)
        LOG.info(
            "context_built",
            extra={
                "repo": identity.slug,
                "manifest": manifest is not None,
                "tree": bool(tree),
                "readme": bool(readme),
            },
        )
        return assemble_prompt_input(tech_stack, tree, readme)

    @staticmethod
    def _safe(fetch, *args):
        try:
            return fetch(*args)
        except Exception:
            LOG.debug("context_fetch_crashed", exc_info=True)
            return None


def build_prompt_input(identity: RepositoryIdentity, *, timeout: float = 10.0) -> str:
    return RepoContextBuilder(timeout=timeout).build_prompt_input(identity)
