"""Domain model for Markdown articles stored in the content directory."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping

from articlesync.models.publisher import ArticlePayload
from articlesync.utils import frontmatter


TITLE_KEY = "title"
PUBLISHED_KEY = "published"
TAGS_KEY = "tags"
REMOTE_ID_KEY = "dev_to_article_id"
SERIES_KEY = "series"
CANONICAL_URL_KEY = "canonical_url"
DESCRIPTION_KEY = "description"
ORGANIZATION_ID_KEY = "organization_id"
MAIN_IMAGE_KEY = "main_image"

ARTICLE_EXTENSION = ".md"


class InvalidRemoteIdError(ValueError):
    """Raised when a header carries a remote identifier that is not a positive integer."""


def parse_remote_id(value: Any) -> int | None:
    """Interpret a ``dev_to_article_id`` header value.

    Returns ``None`` when the value is absent and the identifier when it is a positive
    integer (or a string of digits). Anything else raises :class:`InvalidRemoteIdError`.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidRemoteIdError(f"Remote identifier {value!r} is not an integer")
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if not text.isdigit():
            raise InvalidRemoteIdError(f"Remote identifier {value!r} is not an integer")
        candidate = int(text)
    else:
        raise InvalidRemoteIdError(f"Remote identifier {value!r} is not an integer")

    if candidate <= 0:
        raise InvalidRemoteIdError(f"Remote identifier {value!r} must be positive")
    return candidate


def _listify_tags(value: Any) -> list[str]:
    """Normalise tags given as a list or a comma separated string, keeping first occurrences."""

    if isinstance(value, str):
        raw_items: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        raw_items = list(value)
    else:
        return []

    tags: list[str] = []
    for item in raw_items:
        if item is None:
            continue
        tag = str(item).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _plain(value: Any) -> Any:
    """Return ``value`` with YAML dates and timestamps turned into ISO strings."""

    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _optional(value: Any) -> Any:
    if value is None or value == "":
        return None
    return _plain(value)


@dataclass(slots=True)
class ArticleDocument:
    """A Markdown article split into its front matter header and body."""

    relative_path: str
    header: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    raw: str = field(default="", repr=False)

    @classmethod
    def from_text(cls, relative_path: str, text: str) -> "ArticleDocument":
        """Parse ``text`` read from ``relative_path``."""

        parsed = frontmatter.parse(text)
        return cls(relative_path=relative_path, header=parsed.header, body=parsed.body, raw=text)

    @property
    def title(self) -> str:
        value = self.header.get(TITLE_KEY)
        if value is None:
            return ""
        return str(value).strip()

    @property
    def raw_remote_id(self) -> Any:
        return self.header.get(REMOTE_ID_KEY)

    @property
    def remote_id(self) -> int | None:
        """Return the remote identifier, raising :class:`InvalidRemoteIdError` when malformed."""

        return parse_remote_id(self.raw_remote_id)

    def to_payload(self, body_markdown: str | None = None) -> ArticlePayload:
        """Assemble the outbound API payload, applying defaults for unset fields."""

        header: Mapping[str, Any] = self.header
        published = header.get(PUBLISHED_KEY)
        description = header.get(DESCRIPTION_KEY)
        return ArticlePayload(
            title=self.title,
            body_markdown=self.body if body_markdown is None else body_markdown,
            published=bool(published) if published is not None else False,
            tags=_listify_tags(header.get(TAGS_KEY)),
            series=_optional(header.get(SERIES_KEY)),
            main_image=_optional(header.get(MAIN_IMAGE_KEY)),
            canonical_url=_optional(header.get(CANONICAL_URL_KEY)),
            description=str(description) if description is not None else "",
            organization_id=_optional(header.get(ORGANIZATION_ID_KEY)),
        )


__all__ = [
    "ARTICLE_EXTENSION",
    "ArticleDocument",
    "InvalidRemoteIdError",
    "REMOTE_ID_KEY",
    "TITLE_KEY",
    "parse_remote_id",
]
