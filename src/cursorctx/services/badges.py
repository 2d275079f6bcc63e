from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain.models import RepositoryIdentity

BADGE_IMAGE_URL = "https://img.shields.io/badge/Cursor-Optimized-blue?logo=cursor&logoColor=white"


@dataclass(frozen=True)
class Badge:
    image_url: str
    app_url: str
    markdown: str


def build_badge(identity: Optional[RepositoryIdentity], public_url: str) -> Badge:
    """README badge linking back to the generator, pre-filled with the repo when known."""
    base = public_url.rstrip("/")
    app_url = f"{base}/?repo={identity.slug}" if identity else base
    markdown = f"[![Cursor Rules]({BADGE_IMAGE_URL})]({app_url})"
    return Badge(image_url=BADGE_IMAGE_URL, app_url=app_url, markdown=markdown)
