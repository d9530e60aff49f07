"""Compare local articles with the articles stored on Dev.to."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

from articlesync.models.article import ARTICLE_EXTENSION, ArticleDocument, InvalidRemoteIdError
from articlesync.services.devto import ArticleNotFoundError, DevToAPIError, RemoteArticle
from articlesync.utils import frontmatter


LOGGER = logging.getLogger(__name__)


class SupportsArticleLookup(Protocol):
    """Read-only subset of :class:`DevToClient` used by the checker."""

    def get_article(self, article_id: int) -> RemoteArticle:
        """Return the remote article or raise :class:`ArticleNotFoundError`."""

    def list_my_articles(self) -> list[RemoteArticle]:
        """Return the articles owned by the authenticated user."""


@dataclass(slots=True)
class ConsistencyReport:
    """Findings of a consistency check, grouped by category."""

    ok: list[str] = field(default_factory=list)
    title_mismatches: list[tuple[str, str, str]] = field(default_factory=list)
    missing_remote: list[str] = field(default_factory=list)
    api_errors: list[str] = field(default_factory=list)
    invalid_ids: list[str] = field(default_factory=list)
    unpublished: list[str] = field(default_factory=list)
    file_errors: list[str] = field(default_factory=list)
    missing_locally: list[RemoteArticle] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not (
            self.title_mismatches
            or self.missing_remote
            or self.api_errors
            or self.invalid_ids
            or self.file_errors
            or self.missing_locally
        )


@dataclass(slots=True)
class ConsistencyChecker:
    """Check that local identifiers point at real articles and vice versa."""

    client: SupportsArticleLookup
    repo_root: Path

    def check(self, content_dir: str) -> ConsistencyReport:
        report = ConsistencyReport()
        local_ids: set[int] = set()
        directory = self.repo_root / content_dir

        files: list[Path] = []
        if directory.is_dir():
            files = sorted(entry for entry in directory.glob(f"*{ARTICLE_EXTENSION}") if entry.is_file())
        if not files:
            LOGGER.info("No local Markdown files found in '%s'.", content_dir)

        LOGGER.info("--- Phase 1: Checking local articles against Dev.to ---")
        for entry in files:
            relative = (PurePosixPath(content_dir) / entry.name).as_posix()
            try:
                document = ArticleDocument.from_text(relative, entry.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, frontmatter.FrontMatterError) as exc:
                LOGGER.error("[FILE ERROR] Could not read or parse %s: %s", relative, exc)
                report.file_errors.append(relative)
                continue

            try:
                remote_id = document.remote_id
            except InvalidRemoteIdError:
                LOGGER.warning("[INVALID ID] %s: non-numeric identifier %r.", relative, document.raw_remote_id)
                report.invalid_ids.append(relative)
                continue
            if remote_id is None:
                report.unpublished.append(relative)
                continue

            local_ids.add(remote_id)
            try:
                remote = self.client.get_article(remote_id)
            except ArticleNotFoundError:
                LOGGER.error("[NOT FOUND ON DEV.TO] %s: article ID %s not found.", relative, remote_id)
                report.missing_remote.append(relative)
                continue
            except DevToAPIError as exc:
                LOGGER.error("[API ERROR] %s (ID: %s): could not verify on Dev.to: %s", relative, remote_id, exc)
                report.api_errors.append(relative)
                continue

            if remote.title != document.title:
                LOGGER.warning(
                    '[TITLE MISMATCH] %s (ID: %s): local "%s" vs Dev.to "%s".',
                    relative,
                    remote_id,
                    document.title,
                    remote.title,
                )
                report.title_mismatches.append((relative, document.title, remote.title))
            else:
                LOGGER.info("[OK] %s (ID: %s)", relative, remote_id)
                report.ok.append(relative)

        if report.unpublished:
            LOGGER.info("Found %d local article(s) not yet published:", len(report.unpublished))
            for path in report.unpublished:
                LOGGER.info("  - %s", path)

        LOGGER.info("--- Phase 2: Checking Dev.to articles against local files ---")
        try:
            remote_articles = self.client.list_my_articles()
        except DevToAPIError as exc:
            LOGGER.error("[API ERROR] Could not fetch your articles from Dev.to: %s", exc)
            report.api_errors.append(f"list: {exc}")
            return report

        for remote in remote_articles:
            if remote.id not in local_ids:
                LOGGER.warning(
                    '[NOT FOUND LOCALLY] "%s" (ID: %s, URL: %s) has no linked local file.',
                    remote.title,
                    remote.id,
                    remote.url,
                )
                report.missing_locally.append(remote)
        return report


__all__ = ["ConsistencyChecker", "ConsistencyReport"]
