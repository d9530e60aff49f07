"""Tests for candidate detection across the three change signals."""
from __future__ import annotations

from pathlib import Path

import pytest

from articlesync.services.change_set import (
    ChangeSetResolver,
    StatusEntry,
    is_publishable_status,
    normalise_path,
    parse_status_line,
)
from articlesync.services.git import GitClient
from articlesync.services.repository import RemoteBranchResolver

from conftest import FakeGit, git_error, init_repo, run_git, write_article


PUBLISHED = "---\ntitle: Live\ndev_to_article_id: 7\n---\nBody\n"
DRAFT = "---\ntitle: Draft\npublished: false\n---\nBody\n"


def make_resolver(git: FakeGit, root: Path) -> ChangeSetResolver:
    return ChangeSetResolver(git=git, repo_root=root, branch_resolver=RemoteBranchResolver(git))


@pytest.mark.parametrize(
    "line, expected",
    [
        ("?? articles/new.md", StatusEntry("??", "articles/new.md")),
        (" M articles/edit.md", StatusEntry(" M", "articles/edit.md")),
        ("MM articles/edit.md", StatusEntry("MM", "articles/edit.md")),
        ("A  articles/added.md", StatusEntry("A ", "articles/added.md")),
        ("R  articles/old.md -> articles/new.md", StatusEntry("R ", "articles/new.md")),
        ('?? "articles/my article.md"', StatusEntry("??", "articles/my article.md")),
        ('R  "articles/old name.md" -> "articles/new name.md"', StatusEntry("R ", "articles/new name.md")),
        ('?? "articles/say \\"hi\\".md"', StatusEntry("??", 'articles/say "hi".md')),
    ],
)
def test_parse_status_line(line: str, expected: StatusEntry) -> None:
    assert parse_status_line(line) == expected


def test_parse_status_line_rejects_short_or_malformed_lines() -> None:
    assert parse_status_line("") is None
    assert parse_status_line("??") is None
    assert parse_status_line("R  articles/missing-arrow.md") is None


def test_quoted_path_is_unwrapped() -> None:
    entry = parse_status_line('?? "my article.md"')

    assert entry is not None
    assert entry.path == "my article.md"


@pytest.mark.parametrize("code", ["??", " M", "M ", "MM", "AM", "A ", "R ", "RM"])
def test_publishable_status_codes(code: str) -> None:
    assert is_publishable_status(code)


@pytest.mark.parametrize("code", [" D", "D ", "!!", "UU"])
def test_non_publishable_status_codes(code: str) -> None:
    assert not is_publishable_status(code)


def test_normalise_path(tmp_path: Path) -> None:
    assert normalise_path("articles/./a.md", tmp_path) == "articles/a.md"
    assert normalise_path(tmp_path / "articles" / "a.md", tmp_path) == "articles/a.md"
    assert normalise_path("articles/", tmp_path) == "articles"


def test_union_covers_each_signal_exactly_once(tmp_path: Path) -> None:
    # only-in-A: remote.md, only-in-B: unpublished.md, only-in-C: edited.md,
    # in multiple: both.md (A and C, and B), in none: settled.md
    write_article(tmp_path, "articles/remote.md", PUBLISHED)
    write_article(tmp_path, "articles/unpublished.md", DRAFT)
    write_article(tmp_path, "articles/edited.md", PUBLISHED)
    write_article(tmp_path, "articles/both.md", DRAFT)
    write_article(tmp_path, "articles/settled.md", PUBLISHED)
    git = FakeGit(
        diff_output=["articles/remote.md", "articles/both.md", "articles/notes.txt"],
        status_output=[" M articles/edited.md", "?? articles/both.md"],
    )

    change_set = make_resolver(git, tmp_path).resolve("articles")

    assert change_set.remote_diff == {"articles/remote.md", "articles/both.md"}
    assert change_set.missing_remote_id == {"articles/unpublished.md", "articles/both.md"}
    assert change_set.working_tree == {"articles/edited.md", "articles/both.md"}
    assert change_set.paths == [
        "articles/both.md",
        "articles/edited.md",
        "articles/remote.md",
        "articles/unpublished.md",
    ]
    assert not change_set.warnings


def test_remote_signal_fetches_before_diffing_against_resolved_branch(tmp_path: Path) -> None:
    (tmp_path / "articles").mkdir()
    git = FakeGit(upstream_ref=None, existing_refs={"origin/master"})

    make_resolver(git, tmp_path).resolve("articles")

    names = [call[0] for call in git.calls if call[0] in {"fetch", "upstream", "verify", "diff"}]
    assert names.index("fetch") < names.index("upstream") < names.index("diff")
    assert git.called("diff") == [("diff", "origin/master", "articles")]


def test_failing_remote_signal_leaves_other_signals_intact(tmp_path: Path) -> None:
    write_article(tmp_path, "articles/unpublished.md", DRAFT)
    write_article(tmp_path, "articles/edited.md", PUBLISHED)
    git = FakeGit(
        diff_output=["articles/ignored.md"],
        status_output=[" M articles/edited.md"],
        fail={"fetch": git_error("fetch", "origin", stderr="fatal: could not read from remote")},
    )

    change_set = make_resolver(git, tmp_path).resolve("articles")

    assert change_set.remote_diff == set()
    assert change_set.paths == ["articles/edited.md", "articles/unpublished.md"]
    assert len(change_set.warnings) == 1
    assert "remote divergence" in change_set.warnings[0]


def test_missing_remote_branch_is_a_signal_warning(tmp_path: Path) -> None:
    write_article(tmp_path, "articles/unpublished.md", DRAFT)
    git = FakeGit(upstream_ref=None, existing_refs=set())

    change_set = make_resolver(git, tmp_path).resolve("articles")

    assert change_set.paths == ["articles/unpublished.md"]
    assert "Could not determine a remote branch" in change_set.warnings[0]


def test_missing_id_signal_treats_malformed_ids_as_absent(tmp_path: Path) -> None:
    write_article(tmp_path, "articles/bad.md", '---\ntitle: Bad\ndev_to_article_id: "not-a-number"\n---\n')
    write_article(tmp_path, "articles/good.md", PUBLISHED)
    write_article(tmp_path, "articles/nested/deep.md", DRAFT)
    write_article(tmp_path, "articles/readme.txt", "not an article")

    missing = make_resolver(FakeGit(), tmp_path).missing_remote_id("articles")

    assert missing == {"articles/bad.md"}


def test_missing_id_signal_includes_unparseable_files(tmp_path: Path) -> None:
    write_article(tmp_path, "articles/broken.md", "---\ntitle: [oops\n---\n")

    assert make_resolver(FakeGit(), tmp_path).missing_remote_id("articles") == {"articles/broken.md"}


def test_missing_content_directory_contributes_nothing(tmp_path: Path) -> None:
    assert make_resolver(FakeGit(), tmp_path).missing_remote_id("articles") == set()


def test_status_signal_discards_paths_outside_content_directory(tmp_path: Path) -> None:
    git = FakeGit(
        status_output=[
            "?? articles/new.md",
            "?? articles/nested/other.md",
            " M README.md",
            " M docs/guide.md",
            " D articles/removed.md",
            "?? articles/images/",
            '?? "articles/my article.md"',
        ]
    )

    changed = make_resolver(git, tmp_path).working_tree_status("articles")

    assert changed == {"articles/new.md", "articles/my article.md"}


def test_status_signal_in_repository_root(tmp_path: Path) -> None:
    git = FakeGit(status_output=["?? draft.md", "?? articles/other.md"])

    assert make_resolver(git, tmp_path).working_tree_status(".") == {"draft.md"}


def test_idempotent_rerun_after_stamping(tmp_path: Path) -> None:
    write_article(tmp_path, "articles/draft.md", DRAFT)
    resolver = make_resolver(FakeGit(), tmp_path)
    assert resolver.missing_remote_id("articles") == {"articles/draft.md"}

    write_article(tmp_path, "articles/draft.md", DRAFT.replace("---\nBody", "dev_to_article_id: 101\n---\nBody"))

    assert resolver.missing_remote_id("articles") == set()


def test_real_git_status_reports_untracked_article_with_spaces(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    init_repo(repo)
    write_article(repo, "articles/live.md", PUBLISHED)
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "Initial articles")
    write_article(repo, "articles/my article.md", DRAFT)

    git = GitClient(repo)
    resolver = ChangeSetResolver(git=git, repo_root=repo, branch_resolver=RemoteBranchResolver(git))
    change_set = resolver.resolve("articles")

    assert change_set.working_tree == {"articles/my article.md"}
    assert change_set.missing_remote_id == {"articles/my article.md"}
    assert change_set.remote_diff == set()
    assert change_set.paths == ["articles/my article.md"]
    assert change_set.warnings
