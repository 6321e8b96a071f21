# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from fdq_lib.core.click_format import GNUHelpColorsCommand
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger
from fdq_lib.explain.presenter import ExplainPresenter
from fdq_lib.properties.redirection import Redirection

from .runner import Runner

logger = get_logger(__name__)


@click.command(
    short_help="Run a command with redirections.",
    help=f"""Run a command in a child process with shell-style redirections applied.

{click.style("COMMAND", fg="green")}   The command to run, followed by its arguments.

Redirections are applied in the child from left to right, exactly as a shell would apply them,
so `-r '>out.txt' -r '2>&1'` sends both streams to the file while `-r '2>&1' -r '>out.txt'` does not.

Separate the command from the options of `{CFG.binary_name} run` with `--`:
`{CFG.binary_name} run -r '>out.txt' -- ls -l`.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "command",
    nargs=-1,
    required=True,
    type=click.UNPROCESSED,
    metavar=click.style("COMMAND", fg="green"),
)
@click.option(
    "-r",
    "--redirect",
    "redirections",
    multiple=True,
    help="A redirection to apply, e.g. '>out.txt', '2>&1', '3<input', '&>all.log'. Can be repeated.",
)
@click.option(
    "-C",
    "--chdir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to run the command in. Relative redirection targets are resolved against it.",
)
@click.option(
    "--show",
    is_flag=True,
    help="Show how the redirections change the descriptor table before running the command.",
)
def run(
    command: tuple[str, ...],
    redirections: tuple[str, ...],
    chdir: Path | None,
    show: bool = False,
) -> NoReturn:
    """
    Run a command with the provided redirections and exit with its exit code.
    """
    try:
        parsed = Redirection.fromWords(list(redirections))
        runner = Runner(list(command), parsed, cwd=chdir)

        if show:
            console = Console(stderr=True)
            console.print(
                ExplainPresenter(runner.explain()).createExplanationPanel(console)
            )

        sys.exit(runner.run())
    except FDQError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
