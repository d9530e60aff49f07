"""Create new article files with starter front matter."""

from __future__ import annotations

from datetime import datetime
import logging
from pathlib import Path

from articlesync.models.article import ARTICLE_EXTENSION, PUBLISHED_KEY, TAGS_KEY, TITLE_KEY
from articlesync.utils import frontmatter
from articlesync.utils.text import slugify


LOGGER = logging.getLogger(__name__)


def create_article_file(content_dir: Path, title: str, slug: str, *, now: datetime | None = None) -> Path:
    """Write ``<timestamp>-<slug>.md`` with a draft header and an empty body."""

    if not title.strip():
        raise ValueError("Title is required")
    clean_slug = slugify(slug)
    if not clean_slug:
        raise ValueError(f"Slug {slug!r} contains no usable characters")

    timestamp = (now or datetime.now()).strftime("%Y-%m-%d-%H-%M-%S")
    destination = content_dir / f"{timestamp}-{clean_slug}{ARTICLE_EXTENSION}"
    if destination.exists():
        raise FileExistsError(f"Article file already exists: {destination}")

    header = {TITLE_KEY: title.strip(), PUBLISHED_KEY: False, TAGS_KEY: []}
    content_dir.mkdir(parents=True, exist_ok=True)
    destination.write_text(frontmatter.serialize(header, ""), encoding="utf-8")
    LOGGER.info("Article file created: %s", destination)
    return destination


__all__ = ["create_article_file"]
