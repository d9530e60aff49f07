"""Rewrite local image references so they resolve once the article is published."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import posixpath
import re

from articlesync.models.repository import RepoContext
from articlesync.models.settings import DEFAULT_IMAGE_URL_TEMPLATE


LOGGER = logging.getLogger(__name__)

# ![alt](path) where path is not already an absolute URL.
_IMAGE_RE = re.compile(r"!\[(?P<alt>[^\]]*)\]\((?!https?://|//|data:)(?P<path>[^)\s]+)(?P<title>\s+\"[^\"]*\")?\)")


@dataclass(slots=True)
class ImageRewriter:
    """Point relative Markdown image paths at raw files in the hosted repository."""

    url_template: str = DEFAULT_IMAGE_URL_TEMPLATE

    def rewrite(self, body: str, path: str, context: RepoContext) -> str:
        """Return ``body`` with local image paths turned into absolute URLs.

        ``path`` is the article's repository-relative path; image paths are resolved
        against its directory. Without owner, repository and branch the body is
        returned unchanged.
        """

        if not context.is_complete:
            LOGGER.warning("Cannot convert image paths in %s: missing repository details.", path)
            return body

        article_dir = posixpath.dirname(path)

        def _replace(match: re.Match[str]) -> str:
            local_path = match.group("path")
            if local_path.startswith("/"):
                from_root = posixpath.normpath(local_path.lstrip("/"))
            else:
                from_root = posixpath.normpath(posixpath.join(article_dir, local_path))
            if from_root.startswith("../"):
                LOGGER.warning("Image path %s in %s points outside the repository.", local_path, path)
                return match.group(0)

            url = self.url_template.format(
                owner=context.owner,
                repository=context.repository,
                branch=context.branch,
                path=from_root,
            )
            LOGGER.debug('Converted image path "%s" to "%s"', local_path, url)
            return f"![{match.group('alt')}]({url}{match.group('title') or ''})"

        return _IMAGE_RE.sub(_replace, body)


__all__ = ["ImageRewriter"]
