"""Shared fixtures and test doubles for the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import subprocess
from typing import Sequence

import pytest

from articlesync.models.publisher import ArticlePayload, PublishedArticle
from articlesync.models.repository import RepoContext
from articlesync.services.devto import DevToAPIError
from articlesync.services.git import GitCommandError


def git_error(*args: str, stderr: str = "fatal: simulated failure", stdout: str = "") -> GitCommandError:
    return GitCommandError(args, 128, stdout, stderr)


@dataclass
class FakeGit:
    """In-memory stand-in for :class:`GitClient` driven by canned command output."""

    upstream_ref: str | None = "origin/main"
    existing_refs: set[str] = field(default_factory=lambda: {"origin/main"})
    branch: str = "main"
    url: str = "git@github.com:octocat/blog.git"
    diff_output: list[str] = field(default_factory=list)
    status_output: list[str] = field(default_factory=list)
    fail: dict[str, GitCommandError] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise self.fail[name]

    def fetch(self, remote: str) -> None:
        self.calls.append(("fetch", remote))
        self._maybe_fail("fetch")

    def diff_names(self, base: str, path: str) -> list[str]:
        self.calls.append(("diff", base, path))
        self._maybe_fail("diff")
        return list(self.diff_output)

    def status_porcelain(self, path: str) -> list[str]:
        self.calls.append(("status", path))
        self._maybe_fail("status")
        return list(self.status_output)

    def upstream(self) -> str | None:
        self.calls.append(("upstream",))
        return self.upstream_ref

    def ref_exists(self, ref: str) -> bool:
        self.calls.append(("verify", ref))
        return ref in self.existing_refs

    def current_branch(self) -> str:
        self.calls.append(("branch",))
        self._maybe_fail("branch")
        return self.branch

    def remote_url(self, remote: str) -> str:
        self.calls.append(("remote-url", remote))
        self._maybe_fail("remote-url")
        return self.url

    def add(self, paths: Sequence[str] | None = None) -> None:
        self.calls.append(("add", None if paths is None else tuple(paths)))
        self._maybe_fail("add")

    def commit(self, message: str) -> None:
        self.calls.append(("commit", message))
        self._maybe_fail("commit")

    def push(self, remote: str | None = None, branch: str | None = None) -> None:
        self.calls.append(("push", remote, branch))
        self._maybe_fail("push")

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


@dataclass
class StubPublishingClient:
    """Records API calls and hands out sequential identifiers for new articles."""

    next_id: int = 100
    fail_titles: set[str] = field(default_factory=set)
    created: list[ArticlePayload] = field(default_factory=list)
    updated: list[tuple[int, ArticlePayload]] = field(default_factory=list)

    def create_article(self, payload: ArticlePayload) -> PublishedArticle:
        if payload.title in self.fail_titles:
            raise DevToAPIError("Failed to create article: 422 Title has already been used", status_code=422)
        self.created.append(payload)
        article_id = self.next_id
        self.next_id += 1
        return PublishedArticle(id=article_id, url=f"https://dev.to/octocat/article-{article_id}")

    def update_article(self, article_id: int, payload: ArticlePayload) -> PublishedArticle:
        if payload.title in self.fail_titles:
            raise DevToAPIError(f"Failed to update article (ID: {article_id}): 500", status_code=500)
        self.updated.append((article_id, payload))
        return PublishedArticle(id=article_id, url=f"https://dev.to/octocat/article-{article_id}")


class PassthroughRewriter:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def rewrite(self, body: str, path: str, context: RepoContext) -> str:
        self.calls.append((path, body))
        return body


def write_article(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    return path


def run_git(path: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=path, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
    )
    return result.stdout


def init_repo(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, "init", "-q")
    run_git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(path, "config", "user.name", "Article Bot")
    run_git(path, "config", "user.email", "bot@example.com")
    run_git(path, "config", "commit.gpgsign", "false")


@pytest.fixture
def context() -> RepoContext:
    return RepoContext(owner="octocat", repository="blog", branch="main", upstream="origin/main")


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def stub_client() -> StubPublishingClient:
    return StubPublishingClient()
