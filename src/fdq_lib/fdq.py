# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys

import click

from fdq_lib.core.click_format import GNUHelpColorsGroup
from fdq_lib.demo.cli import demo
from fdq_lib.explain.cli import explain
from fdq_lib.posts.cli import examples, posts
from fdq_lib.run.cli import run
from fdq_lib.schedule.cli import schedule

__version__ = "0.1.0"

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(
    cls=GNUHelpColorsGroup,
    help_options_color="bright_blue",
    invoke_without_command=True,
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "--version",
    is_flag=True,
    help="Print the current version of fdq and exit.",
)
@click.pass_context
def cli(ctx: click.Context, version: bool):
    """
    Run any fdq command.

    fdq lets you reproduce how file descriptor redirections behave, explains what a list
    of redirections does, simulates which workflow tasks may run concurrently on a limited
    capacity, and checks the blog posts describing all of it.
    """
    if version:
        print(__version__)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        sys.exit(0)


cli.add_command(run)
cli.add_command(explain)
cli.add_command(demo)
cli.add_command(schedule)
cli.add_command(posts)
cli.add_command(examples)
