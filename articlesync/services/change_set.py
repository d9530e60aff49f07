"""Decide which articles need to be (re)published in the current run.

Three independent signals contribute candidates:

* **remote divergence** - articles added, modified or renamed on ``HEAD`` since it
  diverged from the remote comparison branch (see :class:`RemoteBranchResolver`);
* **missing remote identifier** - articles whose header has no usable
  ``dev_to_article_id`` yet, whatever their git state;
* **working-tree status** - untracked, modified, added or renamed articles reported by
  ``git status``.

The signals only read state, so they run concurrently. A failing signal contributes
nothing and is reported as a warning instead of aborting the run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import os
import posixpath
from pathlib import Path, PurePosixPath
from typing import Callable

from articlesync.models.article import ARTICLE_EXTENSION, InvalidRemoteIdError, REMOTE_ID_KEY, parse_remote_id
from articlesync.models.change_set import ChangeSet
from articlesync.services.git import SupportsGit, unquote_path
from articlesync.services.repository import RemoteBranchResolver
from articlesync.utils import frontmatter


LOGGER = logging.getLogger(__name__)

_RENAME_SEPARATOR = " -> "


@dataclass(slots=True, frozen=True)
class StatusEntry:
    """A single ``git status --porcelain`` line split into its code and path."""

    code: str
    path: str


def parse_status_line(line: str) -> StatusEntry | None:
    """Parse a porcelain v1 status line.

    For renames (``R  old -> new``) only the destination path is kept. Returns ``None``
    for lines that are too short or whose rename cannot be split.
    """

    if len(line.rstrip()) < 4:
        return None
    code = line[:2]
    raw_path = line[3:].strip()

    if code.startswith("R") or code.endswith("R"):
        parts = raw_path.split(_RENAME_SEPARATOR)
        if len(parts) != 2:
            LOGGER.warning("Could not parse renamed file path: %s", raw_path)
            return None
        raw_path = parts[1]

    path = unquote_path(raw_path.strip())
    if not path:
        return None
    return StatusEntry(code=code, path=path)


def is_publishable_status(code: str) -> bool:
    """Return ``True`` for untracked, modified, added and renamed status codes."""

    return code == "??" or "M" in code or code.startswith(("A", "R"))


def normalise_path(path: str | os.PathLike[str], repo_root: Path) -> str:
    """Return ``path`` relative to ``repo_root`` using forward slashes."""

    candidate = Path(path)
    if candidate.is_absolute():
        for root in (repo_root, repo_root.resolve()):
            try:
                return posixpath.normpath(candidate.relative_to(root).as_posix())
            except ValueError:
                continue
        return candidate.as_posix()
    return posixpath.normpath(candidate.as_posix())


def _in_directory(path: str, directory: str) -> bool:
    return PurePosixPath(path).parent == PurePosixPath(directory)


Signal = Callable[[str], set[str]]


@dataclass(slots=True)
class ChangeSetResolver:
    """Union the remote-divergence, missing-identifier and working-tree signals."""

    git: SupportsGit
    repo_root: Path
    branch_resolver: RemoteBranchResolver
    remote: str = "origin"
    extension: str = ARTICLE_EXTENSION

    def resolve(self, content_dir: str | os.PathLike[str]) -> ChangeSet:
        """Return the candidate articles under ``content_dir``."""

        directory = normalise_path(content_dir, self.repo_root)
        LOGGER.info("Determining articles to publish in '%s'...", directory)

        signals: list[tuple[str, Signal]] = [
            ("remote divergence", self.remote_divergence),
            ("missing remote identifier", self.missing_remote_id),
            ("working-tree status", self.working_tree_status),
        ]
        change_set = ChangeSet()
        with ThreadPoolExecutor(max_workers=len(signals)) as executor:
            futures = [(label, executor.submit(signal, directory)) for label, signal in signals]
            results: list[set[str]] = []
            for label, future in futures:
                try:
                    results.append(future.result())
                except Exception as exc:  # noqa: BLE001
                    message = f"Could not evaluate {label} signal: {exc}"
                    LOGGER.warning(message)
                    change_set.warnings.append(message)
                    results.append(set())

        change_set.remote_diff, change_set.missing_remote_id, change_set.working_tree = results
        LOGGER.debug(
            "Signals: remote=%s missing_id=%s status=%s",
            sorted(change_set.remote_diff),
            sorted(change_set.missing_remote_id),
            sorted(change_set.working_tree),
        )
        LOGGER.info(
            "Final list of articles to process: %s",
            ", ".join(change_set.paths) if change_set.paths else "None",
        )
        return change_set

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------
    def remote_divergence(self, directory: str) -> set[str]:
        """Fetch, resolve the comparison branch, then list diverging articles."""

        LOGGER.info("Fetching latest changes from '%s'...", self.remote)
        self.git.fetch(self.remote)
        branch = self.branch_resolver.resolve_comparison_branch()
        LOGGER.info("Checking for committed changes in '%s' compared to '%s'...", directory, branch)
        changed = {
            normalise_path(name, self.repo_root)
            for name in self.git.diff_names(branch, directory)
            if name.endswith(self.extension)
        }
        return changed

    def missing_remote_id(self, directory: str) -> set[str]:
        """Return articles directly under ``directory`` without a usable remote identifier."""

        root = self.repo_root / directory
        if not root.is_dir():
            LOGGER.warning("Content directory not found: %s", root)
            return set()

        missing: set[str] = set()
        for entry in sorted(root.iterdir()):
            if not entry.is_file() or not entry.name.endswith(self.extension):
                continue
            relative = normalise_path(PurePosixPath(directory) / entry.name, self.repo_root)
            try:
                header = frontmatter.parse(entry.read_text(encoding="utf-8")).header
            except (OSError, UnicodeDecodeError, frontmatter.FrontMatterError) as exc:
                LOGGER.warning("Could not read front matter of %s: %s", relative, exc)
                missing.add(relative)
                continue
            try:
                remote_id = parse_remote_id(header.get(REMOTE_ID_KEY))
            except InvalidRemoteIdError as exc:
                LOGGER.warning("Invalid %s in %s: %s. Treating as unpublished.", REMOTE_ID_KEY, relative, exc)
                remote_id = None
            if remote_id is None:
                missing.add(relative)
        return missing

    def working_tree_status(self, directory: str) -> set[str]:
        """Return untracked, modified, added or renamed articles directly under ``directory``."""

        LOGGER.info("Checking git status for changed or new articles in '%s'...", directory)
        changed: set[str] = set()
        for line in self.git.status_porcelain(directory):
            entry = parse_status_line(line)
            if entry is None or not entry.path.endswith(self.extension):
                continue
            if not is_publishable_status(entry.code):
                continue
            relative = normalise_path(entry.path, self.repo_root)
            if not _in_directory(relative, directory):
                LOGGER.debug("Ignoring status entry outside '%s': %s", directory, relative)
                continue
            changed.add(relative)
        return changed


__all__ = [
    "ChangeSetResolver",
    "StatusEntry",
    "is_publishable_status",
    "normalise_path",
    "parse_status_line",
]
