"""Publish candidate articles to Dev.to one at a time and record their outcomes."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from articlesync.models.article import ArticleDocument, InvalidRemoteIdError, REMOTE_ID_KEY
from articlesync.models.publisher import ArticlePayload, PublishAction, PublishedArticle, PublishOutcome
from articlesync.models.repository import RepoContext
from articlesync.services.devto import DevToAPIError
from articlesync.utils import frontmatter


LOGGER = logging.getLogger(__name__)

MISSING_TITLE = "Missing title"


class SupportsPublishing(Protocol):
    """Subset of :class:`DevToClient` used to create and update articles."""

    def create_article(self, payload: ArticlePayload) -> PublishedArticle:
        """Create a new remote article."""

    def update_article(self, article_id: int, payload: ArticlePayload) -> PublishedArticle:
        """Replace the remote article identified by ``article_id``."""


class SupportsImageRewriting(Protocol):
    """Interface for turning local image paths into published URLs."""

    def rewrite(self, body: str, path: str, context: RepoContext) -> str:
        """Return the body to send to the API."""


@dataclass(slots=True)
class PublishExecutor:
    """Create or update each candidate article and stamp new identifiers locally.

    Articles are processed strictly in order. Each one either reaches ``created`` or
    ``updated`` after a single API call, or stops at ``skipped`` or ``failed`` without
    touching the others. The only local write is the identifier stamp after a
    successful creation.
    """

    client: SupportsPublishing
    image_rewriter: SupportsImageRewriting
    repo_root: Path

    def process(self, candidates: Sequence[str], context: RepoContext) -> list[PublishOutcome]:
        """Publish ``candidates`` and return one outcome per article, in order."""

        outcomes: list[PublishOutcome] = []
        for relative_path in candidates:
            LOGGER.info("Processing: %s", relative_path)
            outcome = self._process_one(relative_path, context)
            outcomes.append(outcome)
        return outcomes

    @staticmethod
    def touched_paths(outcomes: Iterable[PublishOutcome]) -> list[str]:
        """Return the articles whose remote state changed and therefore belong in the commit."""

        return [outcome.path for outcome in outcomes if outcome.succeeded]

    # ------------------------------------------------------------------
    # Transaction steps
    # ------------------------------------------------------------------
    def _process_one(self, relative_path: str, context: RepoContext) -> PublishOutcome:
        absolute_path = self.repo_root / relative_path
        try:
            text = absolute_path.read_bytes().decode("utf-8")
            document = ArticleDocument.from_text(relative_path, text)
        except (OSError, UnicodeDecodeError, frontmatter.FrontMatterError) as exc:
            LOGGER.error("Error reading %s: %s", relative_path, exc)
            return PublishOutcome(path=relative_path, action=PublishAction.FAILED, error=str(exc))

        if not document.title:
            LOGGER.warning("Skipping %s: 'title' is missing in front matter.", relative_path)
            return PublishOutcome(path=relative_path, action=PublishAction.SKIPPED, error=MISSING_TITLE)

        try:
            body = self.image_rewriter.rewrite(document.body, relative_path, context)
            payload = document.to_payload(body)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            LOGGER.error("Error preparing %s for Dev.to: %r", relative_path, exc)
            return PublishOutcome(
                path=relative_path, action=PublishAction.FAILED, error=f"Could not prepare article: {exc!r}"
            )

        try:
            remote_id = document.remote_id
        except InvalidRemoteIdError:
            LOGGER.warning(
                "Invalid %s %r in %s. Treating as new article.",
                REMOTE_ID_KEY,
                document.raw_remote_id,
                relative_path,
            )
            remote_id = None

        if remote_id is not None:
            return self._update(document, remote_id, payload)
        return self._create(document, absolute_path, payload)

    def _update(self, document: ArticleDocument, remote_id: int, payload: ArticlePayload) -> PublishOutcome:
        LOGGER.info("Updating article ID %s for %s...", remote_id, document.relative_path)
        try:
            published = self.client.update_article(remote_id, payload)
        except DevToAPIError as exc:
            LOGGER.error("Error updating %s: %s", document.relative_path, exc)
            return PublishOutcome(
                path=document.relative_path, action=PublishAction.FAILED, remote_id=remote_id, error=str(exc)
            )

        LOGGER.info("Article updated on Dev.to: %s", published.url)
        return PublishOutcome(
            path=document.relative_path, action=PublishAction.UPDATED, remote_id=remote_id, url=published.url
        )

    def _create(self, document: ArticleDocument, absolute_path: Path, payload: ArticlePayload) -> PublishOutcome:
        LOGGER.info("Publishing %s as a new article...", document.relative_path)
        try:
            published = self.client.create_article(payload)
        except DevToAPIError as exc:
            LOGGER.error("Error creating %s: %s", document.relative_path, exc)
            return PublishOutcome(path=document.relative_path, action=PublishAction.FAILED, error=str(exc))

        # Stamp the identifier into the text read above, not the rewritten body.
        document.header[REMOTE_ID_KEY] = published.id
        stamped = frontmatter.stamp_field(document.raw, REMOTE_ID_KEY, published.id)
        try:
            absolute_path.write_bytes(stamped.encode("utf-8"))
        except OSError as exc:
            message = (
                f"Article created remotely as ID {published.id} ({published.url}) but the identifier "
                f"could not be written to {document.relative_path}: {exc}. Add it manually to avoid a "
                "duplicate on the next run."
            )
            LOGGER.error(message)
            return PublishOutcome(
                path=document.relative_path,
                action=PublishAction.FAILED,
                remote_id=published.id,
                url=published.url,
                error=message,
            )

        LOGGER.info("Article ID %s added to local file %s.", published.id, document.relative_path)
        LOGGER.info("New article published on Dev.to: %s", published.url)
        return PublishOutcome(
            path=document.relative_path, action=PublishAction.CREATED, remote_id=published.id, url=published.url
        )


__all__ = ["MISSING_TITLE", "PublishExecutor", "SupportsImageRewriting", "SupportsPublishing"]
