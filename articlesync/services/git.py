"""Thin wrapper around the ``git`` executable used by the publish workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import re
import subprocess
from typing import Mapping, Protocol, Sequence


LOGGER = logging.getLogger(__name__)

# Keep non-ASCII names readable; spaces and quotes are still C-quoted by git.
_QUOTE_PATH_OFF = ("-c", "core.quotePath=false")
_C_ESCAPE_RE = re.compile(r"\\([0-7]{3}|.)")
_C_ESCAPES = {"a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v"}


def unquote_path(value: str) -> str:
    """Undo the C-style quoting git applies to names with quotes, backslashes or control characters."""

    if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
        return value
    inner = value[1:-1]
    raw = bytearray()
    position = 0
    for match in _C_ESCAPE_RE.finditer(inner):
        raw += inner[position:match.start()].encode("utf-8")
        token = match.group(1)
        if len(token) == 3:
            raw.append(int(token, 8) & 0xFF)
        else:
            raw += _C_ESCAPES.get(token, token).encode("utf-8")
        position = match.end()
    raw += inner[position:].encode("utf-8")
    return raw.decode("utf-8", errors="replace")


class GitCommandError(RuntimeError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stdout: str = "", stderr: str = "") -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip() or f"exit status {returncode}"
        super().__init__(f"git {' '.join(self.args_list)} failed: {detail}")


class SupportsGit(Protocol):
    """Subset of git operations relied upon by the resolvers and the committer."""

    def fetch(self, remote: str) -> None:
        """Fetch refs from ``remote``."""

    def diff_names(self, base: str, path: str) -> list[str]:
        """Return files added, modified or renamed between ``base`` and ``HEAD`` under ``path``."""

    def status_porcelain(self, path: str) -> list[str]:
        """Return porcelain status lines for ``path``."""

    def upstream(self) -> str | None:
        """Return the upstream ref of the current branch, if one is configured."""

    def ref_exists(self, ref: str) -> bool:
        """Return ``True`` when ``ref`` resolves to a commit."""

    def current_branch(self) -> str:
        """Return the abbreviated name of the checked-out branch."""

    def remote_url(self, remote: str) -> str:
        """Return the configured URL of ``remote``."""

    def add(self, paths: Sequence[str] | None = None) -> None:
        """Stage ``paths``, or the whole working tree when ``paths`` is ``None``."""

    def commit(self, message: str) -> None:
        """Record a commit with ``message``."""

    def push(self, remote: str | None = None, branch: str | None = None) -> None:
        """Push ``branch`` to ``remote`` (or the default push target)."""


@dataclass(slots=True)
class GitClient:
    """Run git commands inside a working tree without interactive prompts."""

    repo_path: Path
    git_executable: str = "git"
    env: Mapping[str, str] | None = field(default=None, repr=False)

    def run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Execute a git command within the repository and raise on error."""

        environment = dict(os.environ if self.env is None else self.env)
        environment["GIT_TERMINAL_PROMPT"] = "0"
        result = subprocess.run(
            [self.git_executable, *args],
            cwd=self.repo_path,
            env=environment,
            text=True,
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stdout, result.stderr)
        if result.stderr.strip():
            LOGGER.debug("git %s stderr: %s", " ".join(args), result.stderr.strip())
        return result

    def toplevel(self) -> Path:
        return Path(self.run("rev-parse", "--show-toplevel").stdout.strip())

    def fetch(self, remote: str) -> None:
        self.run("fetch", remote)

    def diff_names(self, base: str, path: str) -> list[str]:
        result = self.run(
            *_QUOTE_PATH_OFF, "diff", "--name-only", "--diff-filter=AMR", f"{base}...HEAD", "--", path
        )
        return [unquote_path(line.strip()) for line in result.stdout.splitlines() if line.strip()]

    def status_porcelain(self, path: str) -> list[str]:
        result = self.run(*_QUOTE_PATH_OFF, "status", "--porcelain", "--untracked-files=normal", "--", path)
        return [line for line in result.stdout.splitlines() if line.strip()]

    def upstream(self) -> str | None:
        try:
            result = self.run("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}")
        except GitCommandError:
            return None
        return result.stdout.strip() or None

    def ref_exists(self, ref: str) -> bool:
        try:
            self.run("rev-parse", "--verify", "--quiet", ref)
        except GitCommandError:
            return False
        return True

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def remote_url(self, remote: str) -> str:
        return self.run("remote", "get-url", remote).stdout.strip()

    def add(self, paths: Sequence[str] | None = None) -> None:
        if paths is None:
            self.run("add", "-A")
            return
        if not paths:
            return
        self.run("add", "--", *paths)

    def commit(self, message: str) -> None:
        self.run("commit", "-m", message)

    def push(self, remote: str | None = None, branch: str | None = None) -> None:
        args = ["push"]
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        self.run(*args)


__all__ = ["GitClient", "GitCommandError", "SupportsGit", "unquote_path"]
