from __future__ import annotations

import pytest

from articlesync.models.repository import RepoContext
from articlesync.services.images import ImageRewriter

RAW = "https://raw.githubusercontent.com/octocat/blog/main"


@pytest.mark.parametrize(
    "body, expected",
    [
        ("![flow](images/flow.png)", f"![flow]({RAW}/articles/images/flow.png)"),
        ("![flow](./images/flow.png)", f"![flow]({RAW}/articles/images/flow.png)"),
        ("![logo](../assets/logo.svg)", f"![logo]({RAW}/assets/logo.svg)"),
        ("![logo](/assets/logo.svg)", f"![logo]({RAW}/assets/logo.svg)"),
        ('![chart](chart.png "Weekly chart")', f'![chart]({RAW}/articles/chart.png "Weekly chart")'),
    ],
)
def test_relative_images_become_raw_urls(body: str, expected: str, context: RepoContext) -> None:
    assert ImageRewriter().rewrite(body, "articles/post.md", context) == expected


@pytest.mark.parametrize(
    "body",
    [
        "![remote](https://example.com/a.png)",
        "![remote](http://example.com/a.png)",
        "![cdn](//cdn.example.com/a.png)",
        "![inline](data:image/png;base64,AAAA)",
        "[not an image](images/flow.png)",
    ],
)
def test_absolute_and_non_image_links_are_untouched(body: str, context: RepoContext) -> None:
    assert ImageRewriter().rewrite(body, "articles/post.md", context) == body


def test_paths_escaping_the_repository_are_left_alone(context: RepoContext) -> None:
    body = "![x](../../outside.png)"

    assert ImageRewriter().rewrite(body, "articles/post.md", context) == body


def test_incomplete_context_returns_body_unchanged() -> None:
    body = "![flow](images/flow.png)"

    assert ImageRewriter().rewrite(body, "articles/post.md", RepoContext(branch="main")) == body


def test_custom_url_template() -> None:
    rewriter = ImageRewriter(url_template="https://cdn.example.com/{repository}/{path}?ref={branch}")
    context = RepoContext(owner="octocat", repository="blog", branch="drafts")

    result = rewriter.rewrite("Intro\n\n![a](a.png) and ![b](img/b.png)\n", "post.md", context)

    assert result == (
        "Intro\n\n![a](https://cdn.example.com/blog/a.png?ref=drafts) and "
        "![b](https://cdn.example.com/blog/img/b.png?ref=drafts)\n"
    )
