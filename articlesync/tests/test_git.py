"""Tests for the subprocess git wrapper."""
from __future__ import annotations

from pathlib import Path

import pytest

from articlesync.services.git import GitClient, unquote_path

from conftest import init_repo, run_git, write_article


@pytest.mark.parametrize(
    "value, expected",
    [
        ("articles/plain.md", "articles/plain.md"),
        ('"articles/my article.md"', "articles/my article.md"),
        ('"articles/say \\"hi\\".md"', 'articles/say "hi".md'),
        ('"articles/back\\\\slash.md"', "articles/back\\slash.md"),
        ('"articles/tab\\there.md"', "articles/tab\there.md"),
        ('"articles/caf\\303\\251.md"', "articles/café.md"),
        ('"', '"'),
    ],
)
def test_unquote_path(value: str, expected: str) -> None:
    assert unquote_path(value) == expected


def test_diff_names_unquotes_names_git_escapes(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    init_repo(repo)
    write_article(repo, "articles/live.md", "---\ntitle: Live\n---\n")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "Initial articles")
    run_git(repo, "tag", "base")
    write_article(repo, 'articles/say "hi".md', "---\ntitle: Hi\n---\n")
    write_article(repo, "articles/café.md", "---\ntitle: Cafe\n---\n")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "Add quoted names")

    names = GitClient(repo).diff_names("base", "articles")

    assert sorted(names) == sorted(['articles/say "hi".md', "articles/café.md"])
