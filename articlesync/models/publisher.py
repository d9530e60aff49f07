"""Data structures describing publish requests and their per-article outcomes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class PublishAction(str, Enum):
    """Terminal state reached by a single article during a publish run."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class ArticlePayload:
    """Fields sent to the publishing API when creating or updating an article."""

    title: str
    body_markdown: str
    published: bool = False
    tags: list[str] = field(default_factory=list)
    series: str | None = None
    main_image: str | None = None
    canonical_url: str | None = None
    description: str = ""
    organization_id: int | None = None

    def to_request(self) -> dict[str, Any]:
        return {"article": asdict(self)}


@dataclass(slots=True, frozen=True)
class PublishedArticle:
    """Identifier and public URL returned by the API after a create or update."""

    id: int
    url: str | None = None


@dataclass(slots=True, frozen=True)
class PublishOutcome:
    """Result recorded for one candidate article."""

    path: str
    action: PublishAction
    remote_id: int | None = None
    url: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.action in (PublishAction.CREATED, PublishAction.UPDATED)


@dataclass(slots=True)
class CommitReport:
    """Summary of the staging, commit and push steps that close a publish run."""

    staged: list[str] = field(default_factory=list)
    committed: bool = False
    nothing_to_commit: bool = False
    pushed: bool = False
    push_target: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors
