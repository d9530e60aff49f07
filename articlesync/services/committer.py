"""Stage, commit and push the articles touched by a publish run."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import posixpath
from typing import Sequence

from articlesync.models.publisher import CommitReport, PublishOutcome
from articlesync.models.repository import RepoContext
from articlesync.services.git import GitCommandError, SupportsGit
from articlesync.services.repository import RemoteBranchResolver


LOGGER = logging.getLogger(__name__)

COMMIT_SUMMARY = "Publish/update articles on Dev.to"
_NOTHING_TO_COMMIT_MARKERS = ("nothing to commit", "nothing added to commit", "no changes added to commit")


def build_commit_message(outcomes: Sequence[PublishOutcome]) -> str:
    """Return the commit message listing each created or updated article."""

    lines = [
        f"- {posixpath.basename(outcome.path)} (ID: {outcome.remote_id}, Action: {outcome.action.value}) -> {outcome.url}"
        for outcome in outcomes
        if outcome.succeeded
    ]
    return f"{COMMIT_SUMMARY}\n\nProcessed files:\n" + "\n".join(lines)


def is_nothing_to_commit(error: GitCommandError) -> bool:
    """Return ``True`` when ``git commit`` failed only because nothing was staged."""

    output = f"{error.stdout}\n{error.stderr}".lower()
    return any(marker in output for marker in _NOTHING_TO_COMMIT_MARKERS)


@dataclass(slots=True)
class GitCommitOrchestrator:
    """Record successful publishes in git.

    Staging, committing and pushing are separate steps; a failure in one is reported in
    the :class:`CommitReport` and stops the later steps, but never undoes the API calls
    or identifier stamps that preceded it.
    """

    git: SupportsGit
    branch_resolver: RemoteBranchResolver
    stage_all: bool = False
    push: bool = True

    def finalize(self, outcomes: Sequence[PublishOutcome], context: RepoContext) -> CommitReport:
        report = CommitReport()
        succeeded = [outcome for outcome in outcomes if outcome.succeeded]
        if not succeeded:
            LOGGER.info("No successful Dev.to operations to record in git. Git operations skipped.")
            return report

        try:
            if self.stage_all:
                LOGGER.info("Adding all changes to the git staging area...")
                self.git.add(None)
            else:
                paths = list(dict.fromkeys(outcome.path for outcome in succeeded))
                LOGGER.info("Staging %d published article(s)...", len(paths))
                self.git.add(paths)
                report.staged = paths
        except GitCommandError as exc:
            return self._fail(report, f"Staging failed: {exc}")

        try:
            self.git.commit(build_commit_message(succeeded))
        except GitCommandError as exc:
            if is_nothing_to_commit(exc):
                LOGGER.info("Git commit: nothing to commit, working tree clean.")
                report.nothing_to_commit = True
                return report
            return self._fail(report, f"Commit failed: {exc}")
        report.committed = True
        LOGGER.info("Changes committed to git.")

        if not self.push:
            LOGGER.info("Push disabled; leaving the commit local.")
            return report

        remote, branch = self.branch_resolver.resolve_push_target(context)
        report.push_target = f"{remote}/{branch}" if remote and branch else "default upstream"
        LOGGER.info("Pushing changes to %s...", report.push_target)
        try:
            self.git.push(remote, branch)
        except GitCommandError as exc:
            if "has no upstream branch" in exc.stderr and branch:
                LOGGER.info(
                    "To push the current branch and set the remote as upstream, run: git push --set-upstream %s %s",
                    remote or "origin",
                    branch,
                )
            return self._fail(report, f"Push to {report.push_target} failed: {exc}")
        report.pushed = True
        LOGGER.info("Push to git completed (%s).", report.push_target)
        return report

    @staticmethod
    def _fail(report: CommitReport, message: str) -> CommitReport:
        LOGGER.error(message)
        LOGGER.warning(
            "Publishing to Dev.to completed for some articles, but git operations failed. "
            "Check git status and commit/push manually if needed."
        )
        report.errors.append(message)
        return report


__all__ = ["COMMIT_SUMMARY", "GitCommitOrchestrator", "build_commit_message", "is_nothing_to_commit"]
