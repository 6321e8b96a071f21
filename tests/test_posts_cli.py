# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from textwrap import dedent
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from fdq_lib.core.config import CFG
from fdq_lib.posts.checker import PostChecker
from fdq_lib.posts.cli import check_post, examples, posts

VALID = dedent(
    """\
    ---
    title: Redirections
    author: Jane Doe
    date: 2024-03-12
    slug: {slug}
    tags: [bash]
    ---

    ```bash
    cmd >out.txt 2>&1
    ```

    ```yaml
    capacity:
      ncpus: 4
    ```
    """
)


@pytest.fixture
def blog(tmp_path, monkeypatch):
    (tmp_path / "drafts").mkdir()
    (tmp_path / "first.md").write_text(VALID.format(slug="first-post"))
    (tmp_path / "drafts" / "second.markdown").write_text(
        VALID.format(slug="second-post")
    )
    (tmp_path / "notes.txt").write_text("not a post")
    # keep the reported paths short
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_check_post(blog):
    report = check_post(blog / "first.md", PostChecker())

    assert report.ok
    assert report.post is not None
    assert report.post.slug == "first-post"


def test_posts_all_valid(blog):
    result = CliRunner().invoke(posts, ["."])

    assert result.exit_code == 0
    assert "first.md" in result.output
    assert "second.markdown" in result.output
    assert "notes.txt" not in result.output
    assert "2 posts checked, 0 with problems" in result.output


def test_posts_with_problems(blog):
    (blog / "third.md").write_text(VALID.format(slug="first-post"))
    (blog / "plain.md").write_text("# no front matter\n")

    result = CliRunner().invoke(posts, ["."])

    assert result.exit_code == CFG.exit_codes.default
    assert "4 posts checked, 2 with problems" in result.output


def test_posts_unparsable_post_is_reported(blog):
    (blog / "broken.md").write_text("---\ntitle: [unclosed\n---\n")

    with patch("fdq_lib.core.error_handlers.logger") as mock_logger:
        result = CliRunner().invoke(posts, ["."])

    assert result.exit_code == CFG.exit_codes.default
    assert "3 posts checked, 1 with problems" in result.output
    mock_logger.error.assert_called_once()


def test_posts_no_posts_found(tmp_path):
    with patch("fdq_lib.posts.cli.logger") as mock_logger:
        result = CliRunner().invoke(posts, [str(tmp_path)])

    assert result.exit_code == CFG.exit_codes.default
    mock_logger.error.assert_called_once()


def test_posts_missing_path(tmp_path):
    with patch("fdq_lib.posts.cli.logger") as mock_logger:
        result = CliRunner().invoke(posts, [str(tmp_path / "missing")])

    assert result.exit_code == CFG.exit_codes.default
    mock_logger.error.assert_called_once()


def test_posts_defaults_to_current_directory(blog):
    result = CliRunner().invoke(posts, [])

    assert result.exit_code == 0
    assert "2 posts checked" in result.output


def test_examples_prints_all_blocks(blog):
    result = CliRunner().invoke(examples, [str(blog / "first.md")])

    assert result.exit_code == 0
    assert "cmd >out.txt 2>&1" in result.output
    assert "ncpus: 4" in result.output


def test_examples_language_filter(blog):
    result = CliRunner().invoke(examples, [str(blog / "first.md"), "--lang", "yaml"])

    assert result.exit_code == 0
    assert "ncpus: 4" in result.output
    assert "cmd >out.txt" not in result.output


def test_examples_no_blocks_in_language(blog):
    with patch("fdq_lib.posts.cli.logger") as mock_logger:
        result = CliRunner().invoke(examples, [str(blog / "first.md"), "-l", "rust"])

    assert result.exit_code == CFG.exit_codes.default
    mock_logger.error.assert_called_once()
    assert "language 'rust'" in str(mock_logger.error.call_args[0][0])


def test_examples_missing_post(tmp_path):
    with patch("fdq_lib.posts.cli.logger") as mock_logger:
        result = CliRunner().invoke(examples, [str(tmp_path / "missing.md")])

    assert result.exit_code == CFG.exit_codes.default
    mock_logger.error.assert_called_once()


def test_posts_nonexistent_date_is_reported(blog):
    (blog / "leap.md").write_text(
        VALID.format(slug="leap-post").replace("2024-03-12", "2024-02-30")
    )

    report = check_post(blog / "leap.md", PostChecker())
    assert report.problems == ["unparsable date '2024-02-30'"]

    result = CliRunner().invoke(posts, ["."])

    assert result.exit_code == CFG.exit_codes.default
    assert "3 posts checked, 1 with problems" in result.output
