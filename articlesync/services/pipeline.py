"""Orchestration layer that chains change detection, publishing and the git commit."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Protocol, Sequence

from articlesync.models.change_set import ChangeSet
from articlesync.models.publisher import CommitReport, PublishAction, PublishOutcome
from articlesync.models.repository import RepoContext


logger = logging.getLogger(__name__)


class SupportsContextResolution(Protocol):
    """Subset of :class:`RepoContextResolver` relied on by the pipeline."""

    def resolve(self) -> RepoContext:
        """Return the repository context."""


class SupportsChangeDetection(Protocol):
    """Protocol describing the change-set resolver interface."""

    def resolve(self, content_dir: str) -> ChangeSet:
        """Return the candidate articles under ``content_dir``."""


class SupportsProcessing(Protocol):
    """Protocol describing the publish executor interface."""

    def process(self, candidates: Sequence[str], context: RepoContext) -> list[PublishOutcome]:
        """Publish the candidates and return their outcomes."""


class SupportsFinalization(Protocol):
    """Protocol describing the git commit orchestrator interface."""

    def finalize(self, outcomes: Sequence[PublishOutcome], context: RepoContext) -> CommitReport:
        """Record the successful outcomes in git."""


@dataclass(slots=True)
class PublishRunResult:
    """Structured summary of a publish run."""

    context: RepoContext | None = None
    change_set: ChangeSet | None = None
    outcomes: list[PublishOutcome] = field(default_factory=list)
    commit: CommitReport | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Return ``True`` unless the run was aborted before any article was touched.

        Individual article failures and git finalization problems do not count; they
        are reported through :attr:`outcomes` and :attr:`commit`.
        """

        return not self.errors

    def count(self, action: PublishAction) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action is action)


@dataclass(slots=True)
class PublishPipeline:
    """Coordinate the publish workflow from change detection through the git push."""

    context_resolver: SupportsContextResolution
    change_set_resolver: SupportsChangeDetection
    executor: SupportsProcessing
    committer: SupportsFinalization

    def run(self, content_dir: str) -> PublishRunResult:
        """Execute the end-to-end publish run for ``content_dir``."""

        result = PublishRunResult()
        context = self.context_resolver.resolve()
        result.context = context
        if not context.branch:
            result.errors.append(
                "Could not determine the current git branch. Run the command inside a git working tree."
            )
            return result
        if not context.is_complete:
            result.warnings.append(
                "Could not determine repository owner/name from the git remote; image paths will not be converted."
            )

        change_set = self.change_set_resolver.resolve(content_dir)
        result.change_set = change_set
        result.warnings.extend(change_set.warnings)

        candidates = change_set.paths
        if not candidates:
            result.warnings.append(
                f"No articles in '{content_dir}' have local changes, differ from the remote branch "
                "or lack a Dev.to ID. Nothing to publish."
            )
            return result

        logger.info("Found %d article(s) to process.", len(candidates))
        for path in candidates:
            logger.info(" - %s", path)

        result.outcomes = self.executor.process(candidates, context)
        result.commit = self.committer.finalize(result.outcomes, context)
        return result


__all__ = ["PublishPipeline", "PublishRunResult"]
