from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse, StreamingResponse

from ...config import Settings, get_settings
from ...domain.errors import ApiError
from ...domain.models import GenerateRequest, GenerationRequest, RepositoryIdentity
from ...infrastructure.popularity import track_repo
from ...services import context_builder, prompts
from ...services.anthropic_client import AnthropicStreamClient
from ...services.relay import GenerationRelay
from ...services.source_resolver import parse_repository_reference

LOG = logging.getLogger("cursorctx.api")

router = APIRouter(tags=["generate"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

RAW_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Content-Type-Options": "nosniff",
    "Content-Disposition": 'inline; filename=".cursorrules"',
}


def make_relay(settings: Settings) -> GenerationRelay:
    client = AnthropicStreamClient(
        settings.anthropic_api_key or "",
        base_url=settings.anthropic_base_url,
        read_timeout=settings.relay_timeout,
    )
    return GenerationRelay(client, timeout=settings.relay_timeout)


def build_prompt_input(identity: RepositoryIdentity, settings: Settings) -> str:
    return context_builder.build_prompt_input(identity, timeout=settings.fetch_timeout)


def _clean(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _repository_request(identity: RepositoryIdentity, settings: Settings) -> GenerationRequest:
    prompt_input = build_prompt_input(identity, settings)
    track_repo(identity.slug)
    return prompts.for_repository_context(prompt_input)


@router.post("/generate")
def generate(payload: GenerateRequest) -> StreamingResponse:
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise ApiError("ANTHROPIC_API_KEY is not configured.", status_code=500)

    existing_rules = _clean(payload.existingRules)
    refinement_prompt = _clean(payload.refinementPrompt)
    if existing_rules and refinement_prompt:
        request = prompts.for_refinement(existing_rules, refinement_prompt)
        LOG.info("generate_refine", extra={"rules_chars": len(existing_rules)})
    else:
        github_url = _clean(payload.githubUrl)
        manual_stack = _clean(payload.manualStack)
        if manual_stack:
            request = prompts.for_repository_context(manual_stack)
            LOG.info("generate_manual", extra={"stack_chars": len(manual_stack)})
        elif github_url:
            identity = parse_repository_reference(github_url)
            if identity is None:
                raise ApiError("Invalid GitHub URL.", status_code=400)
            request = _repository_request(identity, settings)
            LOG.info("generate_repo", extra={"repo": identity.slug})
        else:
            raise ApiError("Either githubUrl or manualStack is required.", status_code=400)

    stream = make_relay(settings).open(request)
    return StreamingResponse(iter(stream), media_type="text/event-stream", headers=STREAM_HEADERS)


@router.get("/raw")
def raw(repo: str = Query("", description="owner/repo or a full GitHub URL")):
    """Plain-text generation for CLI use: ``curl -sL ".../raw?repo=owner/repo" > .cursorrules``."""
    identity = parse_repository_reference(repo)
    if identity is None:
        return PlainTextResponse(
            "Error: ?repo parameter is required (e.g. ?repo=owner/repo or a full GitHub URL)\n",
            status_code=400,
        )
    settings = get_settings()
    if not settings.anthropic_api_key:
        return PlainTextResponse(
            "Error: ANTHROPIC_API_KEY is not configured on the server.\n",
            status_code=500,
        )

    request = _repository_request(identity, settings)
    LOG.info("generate_raw", extra={"repo": identity.slug})
    stream = make_relay(settings).open(request)
    return StreamingResponse(iter(stream), media_type="text/plain; charset=utf-8", headers=RAW_HEADERS)
