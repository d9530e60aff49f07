"""Command line entry point for publishing local Markdown articles to Dev.to.

Sub-commands:

- ``publish``: detect changed or unpublished articles, create/update them on Dev.to,
  stamp new identifiers into the files, then commit and push the result.
- ``check``: compare local article identifiers with the articles on Dev.to.
- ``new``: create a draft article file with starter front matter.

Configuration comes from environment variables (``DEV_TO_API_KEY`` and the
``ARTICLESYNC_*`` family), each of which can be overridden with a flag.
"""

from __future__ import annotations

import argparse
from dataclasses import asdict, is_dataclass
from enum import Enum
import json
import logging
from pathlib import Path
import sys
from typing import Any, Sequence

from articlesync.models.publisher import PublishAction
from articlesync.models.settings import PublishSettings
from articlesync.services.authoring import create_article_file
from articlesync.services.change_set import ChangeSetResolver
from articlesync.services.committer import GitCommitOrchestrator
from articlesync.services.consistency import ConsistencyChecker
from articlesync.services.devto import DevToClient
from articlesync.services.git import GitClient, GitCommandError
from articlesync.services.images import ImageRewriter
from articlesync.services.pipeline import PublishPipeline, PublishRunResult
from articlesync.services.publisher import PublishExecutor, SupportsPublishing
from articlesync.services.repository import RemoteBranchResolver, RepoContextResolver

LOGGER = logging.getLogger("articlesync.cli")

if not LOGGER.handlers:  # avoid duplicates on re-import
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False

_API_KEY_HELP = (
    "Dev.to API key is not set in the environment variable DEV_TO_API_KEY. "
    "Create one at https://dev.to/settings/extensions and export it, e.g. "
    "export DEV_TO_API_KEY=\"your_api_key\"."
)


def _json_default(o: Any) -> Any:
    if isinstance(o, Enum):
        return o.value
    if is_dataclass(o):
        return asdict(o)
    if isinstance(o, Path):
        return str(o)
    if isinstance(o, set):
        return sorted(o)
    return str(o)


def _configure_logging(level_name: str = "INFO") -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _parse_args(argv: Sequence[str] | None, settings: PublishSettings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish local Markdown articles to Dev.to.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    publish = subparsers.add_parser("publish", help="Publish or update changed articles and record them in git.")
    publish.add_argument(
        "--content-dir",
        default=settings.content_dir,
        help="Directory holding the articles (default from ARTICLESYNC_CONTENT_DIR or 'articles').",
    )
    publish.add_argument(
        "--remote",
        default=settings.remote,
        help="Git remote to fetch from and push to (default from ARTICLESYNC_REMOTE or 'origin').",
    )
    staging = publish.add_mutually_exclusive_group()
    staging.add_argument(
        "--stage-all",
        dest="stage_all",
        action="store_true",
        default=settings.stage_all,
        help="Stage the whole working tree instead of only the published articles.",
    )
    staging.add_argument(
        "--stage-touched",
        dest="stage_all",
        action="store_false",
        help="Stage only the published articles (default unless ARTICLESYNC_STAGE_ALL is set).",
    )
    publish.add_argument(
        "--no-push",
        dest="push",
        action="store_false",
        default=settings.push,
        help="Commit locally without pushing.",
    )

    check = subparsers.add_parser("check", help="Check consistency between local articles and Dev.to.")
    check.add_argument("--content-dir", default=settings.content_dir, help="Directory holding the articles.")

    new = subparsers.add_parser("new", help="Create a new draft article file.")
    new.add_argument("--title", required=True, help="Title of the article.")
    new.add_argument("--slug", required=True, help="Slug used in the filename (e.g. my-awesome-post).")
    new.add_argument("--content-dir", default=settings.content_dir, help="Directory holding the articles.")

    return parser.parse_args(argv)


def _repo_root(start: Path) -> Path | None:
    try:
        return GitClient(start).toplevel()
    except (GitCommandError, OSError):
        return None


def _build_pipeline(
    settings: PublishSettings, repo_root: Path, args: argparse.Namespace, client: SupportsPublishing
) -> PublishPipeline:
    git = GitClient(repo_root)
    branch_resolver = RemoteBranchResolver(git, remote=args.remote)
    return PublishPipeline(
        context_resolver=RepoContextResolver(git, remote=args.remote),
        change_set_resolver=ChangeSetResolver(git, repo_root, branch_resolver, remote=args.remote),
        executor=PublishExecutor(
            client=client,
            image_rewriter=ImageRewriter(url_template=settings.image_url_template),
            repo_root=repo_root,
        ),
        committer=GitCommitOrchestrator(git, branch_resolver, stage_all=args.stage_all, push=args.push),
    )


def _log_summary(result: PublishRunResult) -> None:
    LOGGER.info("--- Publishing Results Summary ---")
    for outcome in result.outcomes:
        label = outcome.action.value.upper()
        if outcome.succeeded:
            LOGGER.info("[%s] %s -> %s (ID: %s)", label, outcome.path, outcome.url, outcome.remote_id)
        elif outcome.action is PublishAction.SKIPPED:
            LOGGER.warning("[%s] %s - %s", label, outcome.path, outcome.error)
        else:
            LOGGER.error("[%s] %s - %s", label, outcome.path, outcome.error)
    if result.commit is not None:
        for error in result.commit.errors:
            LOGGER.error("[GIT] %s", error)
    LOGGER.info("---------------------------------")


def _run_publish(settings: PublishSettings, args: argparse.Namespace) -> int:
    if not settings.api_key:
        LOGGER.error(_API_KEY_HELP)
        return 1

    repo_root = _repo_root(Path.cwd())
    if repo_root is None:
        LOGGER.error("PUBLISH_ERROR not inside a git working tree: %s", Path.cwd())
        return 1

    LOGGER.info("PUBLISH_START content_dir=%s remote=%s stage_all=%s", args.content_dir, args.remote, args.stage_all)
    with DevToClient(settings.api_key, base_url=settings.api_url, timeout=settings.api_timeout) as client:
        pipeline = _build_pipeline(settings, repo_root, args, client)
        result = pipeline.run(args.content_dir)

    for warning in result.warnings:
        LOGGER.warning("PUBLISH_WARNING %s", warning)
    for error in result.errors:
        LOGGER.error("PUBLISH_ERROR %s", error)

    if result.change_set is not None:
        LOGGER.info("PUBLISH_CANDIDATES count=%d", len(result.change_set.paths))
    _log_summary(result)

    payload = {
        "context": result.context,
        "candidates": result.change_set.paths if result.change_set else [],
        "outcomes": result.outcomes,
        "commit": result.commit,
        "warnings": result.warnings,
        "errors": result.errors,
        "succeeded": result.succeeded,
    }
    LOGGER.debug("PUBLISH_RESULT %s", json.dumps(payload, default=_json_default, ensure_ascii=False))

    if not result.succeeded:
        return 1

    LOGGER.info(
        "PUBLISH_COMPLETE created=%d updated=%d skipped=%d failed=%d",
        result.count(PublishAction.CREATED),
        result.count(PublishAction.UPDATED),
        result.count(PublishAction.SKIPPED),
        result.count(PublishAction.FAILED),
    )
    return 0


def _run_check(settings: PublishSettings, args: argparse.Namespace) -> int:
    if not settings.api_key:
        LOGGER.error(_API_KEY_HELP)
        return 1

    repo_root = _repo_root(Path.cwd()) or Path.cwd()
    LOGGER.info("Starting consistency check between local articles and Dev.to...")
    with DevToClient(settings.api_key, base_url=settings.api_url, timeout=settings.api_timeout) as client:
        report = ConsistencyChecker(client=client, repo_root=repo_root).check(args.content_dir)

    LOGGER.info(
        "CHECK_COMPLETE ok=%d mismatched=%d missing_remote=%d missing_locally=%d unpublished=%d",
        len(report.ok),
        len(report.title_mismatches),
        len(report.missing_remote),
        len(report.missing_locally),
        len(report.unpublished),
    )
    return 0


def _run_new(settings: PublishSettings, args: argparse.Namespace) -> int:
    repo_root = _repo_root(Path.cwd()) or Path.cwd()
    try:
        path = create_article_file(repo_root / args.content_dir, args.title, args.slug)
    except (ValueError, OSError) as exc:
        LOGGER.error("Failed to create article file: %s", exc)
        return 1
    LOGGER.info("Article file created: %s. Write your article content in the file.", path)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = PublishSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 1

    _configure_logging(settings.log_level)
    args = _parse_args(argv, settings)

    if args.command == "publish":
        return _run_publish(settings, args)
    if args.command == "check":
        return _run_check(settings, args)
    return _run_new(settings, args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
