from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from pydantic import BaseModel


@dataclass(frozen=True)
class RepositoryIdentity:
    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class GenerationRequest:
    system_prompt: str
    user_content: str


@dataclass(frozen=True)
class StreamEvent:
    """One relay emission: a text delta or the terminal error."""

    kind: Literal["text", "error"]
    data: str

    @classmethod
    def text(cls, delta: str) -> "StreamEvent":
        return cls(kind="text", data=delta)

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(kind="error", data=message)


# Request / response bodies. Fields are optional so that missing values are
# reported with the handlers' own 400 messages rather than a 422.


class GenerateRequest(BaseModel):
    githubUrl: Optional[str] = None
    manualStack: Optional[str] = None
    existingRules: Optional[str] = None
    refinementPrompt: Optional[str] = None


class GistCreate(BaseModel):
    content: Optional[str] = None
    repoName: Optional[str] = None


class GistCreated(BaseModel):
    url: str


class TrendingEntry(BaseModel):
    repo: str
    count: int


class TrendingResponse(BaseModel):
    trending: List[TrendingEntry]


class BadgeResponse(BaseModel):
    image_url: str
    app_url: str
    markdown: str
