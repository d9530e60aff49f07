"""Resolve repository details and the remote branch used for comparisons and pushes."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import re
from typing import Mapping

from articlesync.models.repository import RepoContext
from articlesync.services.git import GitCommandError, SupportsGit


LOGGER = logging.getLogger(__name__)

_SSH_URL_PATTERN = re.compile(
    r"^(?:ssh://)?[\w.-]+@(?P<host>[^:/]+)(?::\d+)?[:/](?P<owner>[^/]+)/(?P<repository>[^/]+?)(?:\.git)?/?$"
)
_HTTPS_URL_PATTERN = re.compile(
    r"^https?://(?:[^@/]+@)?(?P<host>[^/]+)/(?P<owner>[^/]+)/(?P<repository>[^/]+?)(?:\.git)?/?$"
)
_DEFAULT_BRANCH_NAMES = ("main", "master")


class NoRemoteBranchError(RuntimeError):
    """Raised when no remote branch can be found to compare local history against."""


def parse_remote_url(url: str) -> tuple[str, str] | None:
    """Return ``(owner, repository)`` parsed from an SSH or HTTPS remote URL.

    The SSH shape is tried first, then HTTPS. ``None`` is returned when neither matches.
    """

    candidate = (url or "").strip()
    if not candidate:
        return None
    for pattern in (_SSH_URL_PATTERN, _HTTPS_URL_PATTERN):
        match = pattern.match(candidate)
        if match:
            return match.group("owner"), match.group("repository")
    return None


def _repository_from_env(environ: Mapping[str, str]) -> tuple[str, str] | None:
    value = (environ.get("GITHUB_REPOSITORY") or "").strip()
    parts = value.split("/")
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    return None


@dataclass(slots=True)
class RepoContextResolver:
    """Derive a :class:`RepoContext` from the local git remote configuration."""

    git: SupportsGit
    remote: str = "origin"
    environ: Mapping[str, str] | None = None

    def resolve(self) -> RepoContext:
        """Return the repository context; unreadable details are left as ``None``."""

        environ = os.environ if self.environ is None else self.environ
        owner: str | None = None
        repository: str | None = None

        url = ""
        try:
            url = self.git.remote_url(self.remote)
        except GitCommandError as exc:
            LOGGER.warning("Could not read URL of remote '%s': %s", self.remote, exc)

        parsed = parse_remote_url(url)
        if parsed is None:
            from_env = _repository_from_env(environ)
            if from_env is not None:
                LOGGER.info("Using GITHUB_REPOSITORY for repository details: %s/%s", *from_env)
                parsed = from_env
            elif url:
                LOGGER.warning("Could not parse owner/repository from remote URL: %s", url)
        if parsed is not None:
            owner, repository = parsed

        branch: str | None = None
        try:
            branch = self.git.current_branch() or None
        except GitCommandError as exc:
            LOGGER.warning("Could not determine the current branch: %s", exc)

        upstream = self.git.upstream() if branch else None
        if upstream is None:
            LOGGER.debug("No upstream branch configured for the current branch.")

        return RepoContext(owner=owner, repository=repository, branch=branch, upstream=upstream)


@dataclass(slots=True)
class RemoteBranchResolver:
    """Pick the remote branch that local history is compared against and pushed to."""

    git: SupportsGit
    remote: str = "origin"

    def resolve_comparison_branch(self) -> str:
        """Return the configured upstream, else ``<remote>/main``, else ``<remote>/master``.

        Expects the remote to have been fetched so the default branch refs are current.
        """

        upstream = self.git.upstream()
        if upstream:
            LOGGER.debug("Comparing against configured upstream branch: %s", upstream)
            return upstream

        LOGGER.warning(
            "Upstream branch not set. Comparing against default remote branches (%s).",
            ", ".join(f"{self.remote}/{name}" for name in _DEFAULT_BRANCH_NAMES),
        )
        for name in _DEFAULT_BRANCH_NAMES:
            candidate = f"{self.remote}/{name}"
            if self.git.ref_exists(candidate):
                LOGGER.debug("Falling back to compare against: %s", candidate)
                return candidate

        raise NoRemoteBranchError(
            f"Could not determine a remote branch to compare against "
            f"({', '.join(f'{self.remote}/{name}' for name in _DEFAULT_BRANCH_NAMES)} not found)"
        )

    def resolve_push_target(self, context: RepoContext) -> tuple[str | None, str | None]:
        """Return the ``(remote, branch)`` pair to push, or ``(None, None)`` for a plain push."""

        if context.is_detached:
            return None, None

        upstream = context.upstream
        if upstream and "/" in upstream:
            remote_name = upstream.split("/", 1)[0]
            return remote_name, context.branch
        return self.remote, context.branch


__all__ = ["NoRemoteBranchError", "RemoteBranchResolver", "RepoContextResolver", "parse_remote_url"]
