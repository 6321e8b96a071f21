# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from typing import NoReturn

import click
from rich.console import Console

from fdq_lib.core.click_format import GNUHelpColorsCommand
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger
from fdq_lib.properties.redirection import Redirection

from .explainer import Explainer
from .presenter import ExplainPresenter

logger = get_logger(__name__)


@click.command(
    short_help="Show what redirections do to the descriptor table.",
    help=f"""Evaluate redirections from left to right and show what every descriptor refers to after each step.

{click.style("REDIRECTION", fg="green")}   One or more shell-style redirections, e.g. '>out.txt' '2>&1'.

Nothing is opened or created. Remember to quote the redirections so that your shell
does not apply them itself: `{CFG.binary_name} explain '>out.txt' '2>&1'`.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "redirections",
    nargs=-1,
    required=True,
    metavar=click.style("REDIRECTION...", fg="green"),
)
def explain(redirections: tuple[str, ...]) -> NoReturn:
    """
    Print the step-by-step evaluation of the provided redirections.
    """
    try:
        parsed = Redirection.fromWords(list(redirections))
        explanation = Explainer(parsed).explain()

        console = Console()
        console.print(ExplainPresenter(explanation).createExplanationPanel(console))
        sys.exit(0)
    except FDQError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
