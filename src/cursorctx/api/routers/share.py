from __future__ import annotations

import logging

import requests
from fastapi import APIRouter, Query

from ...config import get_settings
from ...domain.errors import ApiError, GistError
from ...domain.models import BadgeResponse, GistCreate, GistCreated
from ...services.badges import build_badge
from ...services.gist import create_gist
from ...services.source_resolver import parse_repository_reference

LOG = logging.getLogger("cursorctx.api")

router = APIRouter(tags=["share"])


@router.post("/gist", response_model=GistCreated)
def share_gist(payload: GistCreate) -> GistCreated:
    content = (payload.content or "").strip()
    repo_name = (payload.repoName or "").strip() or "your project"
    if not content:
        raise ApiError("content is required.", status_code=400)

    token = get_settings().github_token
    if not token:
        raise ApiError("GITHUB_TOKEN is not configured on the server.", status_code=500)

    try:
        url = create_gist(content, repo_name, token)
    except GistError as exc:
        LOG.warning("gist_rejected", extra={"status": exc.status_code, "err": exc.message})
        raise ApiError(exc.message, status_code=exc.status_code) from exc
    except requests.exceptions.RequestException as exc:
        LOG.error("gist_failed", extra={"err": str(exc)})
        raise ApiError(str(exc) or "An unexpected error occurred.", status_code=500) from exc
    return GistCreated(url=url)


@router.get("/badge", response_model=BadgeResponse)
def badge(repo: str = Query("", description="owner/repo or a full GitHub URL")) -> BadgeResponse:
    built = build_badge(parse_repository_reference(repo), get_settings().public_url)
    return BadgeResponse(image_url=built.image_url, app_url=built.app_url, markdown=built.markdown)
