# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path

import pytest
from rich.console import Console

from fdq_lib.posts.checker import PostChecker, PostReport
from fdq_lib.posts.presenter import ExamplesPresenter, PostsPresenter
from fdq_lib.properties.post import Post


def _post(name="post.md", **metadata) -> Post:
    base = {
        "title": "Truncation with /dev/stdout",
        "author": "Jane Doe",
        "date": "2024-03-12",
        "slug": "dev-stdout",
        "tags": ["bash"],
    }
    base.update(metadata)
    return Post(Path(name), metadata={k: v for k, v in base.items() if v is not ...})


def test_check_valid_post():
    report = PostChecker().check(_post())

    assert report.ok
    assert report.problems == []
    assert report.path == Path("post.md")


def test_check_missing_front_matter():
    report = PostChecker().check(Post(Path("plain.md"), body="text"))

    assert not report.ok
    assert report.problems[0] == "missing front matter"
    assert "missing required field 'title'" in report.problems


@pytest.mark.parametrize("value", [..., None, "", "   "])
def test_check_missing_required_field(value):
    report = PostChecker().check(_post(author=value))

    assert report.problems == ["missing required field 'author'"]


def test_check_unparsable_date():
    report = PostChecker().check(_post(date="someday"))

    assert report.problems == ["unparsable date 'someday'"]


@pytest.mark.parametrize("slug", ["Dev-Stdout", "dev_stdout", "dev--stdout", "-dev"])
def test_check_invalid_slug(slug):
    report = PostChecker().check(_post(slug=slug))

    assert report.problems == [f"slug '{slug}' is not lowercase-hyphenated"]


def test_check_duplicate_slug():
    checker = PostChecker()

    first = checker.check(_post("first.md"))
    second = checker.check(_post("second.md"))
    third = checker.check(_post("third.md", slug="another-post"))

    assert first.ok
    assert second.problems == ["slug 'dev-stdout' is already used by 'first.md'"]
    assert third.ok


def test_check_list_fields():
    report = PostChecker().check(_post(tags="bash", categories="linux"))

    assert report.problems == [
        "field 'categories' is not a list",
        "field 'tags' is not a list",
    ]


def test_posts_presenter():
    reports = [
        PostReport(Path("good.md"), _post("good.md"), []),
        PostReport(Path("bad.md"), None, ["missing front matter"]),
    ]
    console = Console(record=True, width=150)

    console.print(PostsPresenter(reports).createPostsPanel(console))
    text = console.export_text()

    assert "POSTS" in text
    assert "good.md" in text
    assert "Truncation with /dev/stdout" in text
    assert "missing front matter" in text
    assert "2 posts checked, 1 with problems" in text


def test_examples_presenter():
    post = Post(Path("post.md"), body="```bash\necho hi\n```\n", body_line=5)
    console = Console(record=True, width=100)

    console.print(ExamplesPresenter(post, post.codeBlocks()).createExamplesGroup())
    text = console.export_text()

    assert "[1] bash  post.md:5" in text
    assert "echo hi" in text
