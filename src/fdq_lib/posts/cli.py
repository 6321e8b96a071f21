# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from fdq_lib.core.click_format import GNUHelpColorsCommand
from fdq_lib.core.common import collect_posts
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.error_handlers import handle_general_fdq_error
from fdq_lib.core.logger import get_logger
from fdq_lib.core.repeater import Repeater
from fdq_lib.properties.post import Post

from .checker import PostChecker, PostReport
from .presenter import ExamplesPresenter, PostsPresenter

logger = get_logger(__name__)


@click.command(
    short_help="Check the front matter of posts.",
    help=f"""Check that posts define valid front matter.

{click.style("PATH", fg="green")}   Post files or directories containing posts. Defaults to the current directory.

Directories are searched recursively for files with suffixes {", ".join(CFG.posts.suffixes)}.
Every post must define {", ".join(CFG.posts.required_fields)}, have a parsable date
and a lowercase-hyphenated slug that is not used by any other post.
Fields {", ".join(CFG.posts.list_fields)} must be lists if present.

Exits with a non-zero exit code if any post has problems.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "paths",
    nargs=-1,
    type=click.Path(path_type=Path),
    metavar=click.style("PATH...", fg="green"),
)
def posts(paths: tuple[Path, ...]) -> NoReturn:
    """
    Check all posts found in the provided paths and print a summary.
    """
    try:
        files = collect_posts(list(paths) or [Path()])
        if not files:
            raise FDQError("No posts found.")

        checker = PostChecker()
        repeater = Repeater(files, check_post, checker)
        repeater.onException(FDQError, handle_general_fdq_error)
        repeater.run()

        reports = [
            repeater.results[i]
            if i in repeater.results
            else PostReport(path=file, problems=[str(repeater.encountered_errors[i])])
            for i, file in enumerate(files)
        ]

        console = Console()
        console.print(PostsPresenter(reports).createPostsPanel(console))

        sys.exit(0 if all(report.ok for report in reports) else CFG.exit_codes.default)
    # FDQErrors from individual posts are caught by Repeater
    except FDQError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)


def check_post(file: Path, checker: PostChecker) -> PostReport:
    """
    Load the post from the file and check it.

    Raises:
        FDQError: If the post cannot be loaded.
    """
    return checker.check(Post.fromFile(file))


@click.command(
    short_help="Print code examples embedded in a post.",
    help=f"""Print the fenced code blocks of a post.

{click.style("POST", fg="green")}   Path to the post.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "post",
    type=click.Path(dir_okay=False, path_type=Path),
    metavar=click.style("POST", fg="green"),
)
@click.option(
    "-l",
    "--lang",
    type=str,
    default=None,
    help="Print only code blocks in this language (e.g., bash or yaml).",
)
def examples(post: Path, lang: str | None = None) -> NoReturn:
    """
    Print the code blocks of the post, optionally only those in the given language.
    """
    try:
        loaded = Post.fromFile(post)
        if not (blocks := loaded.codeBlocks(lang)):
            raise FDQError(
                f"Post '{post}' contains no code blocks"
                + (f" in language '{lang}'." if lang else ".")
            )

        Console().print(ExamplesPresenter(loaded, blocks).createExamplesGroup())
        sys.exit(0)
    except FDQError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
