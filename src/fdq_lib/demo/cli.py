# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
import tempfile
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from fdq_lib.core.click_format import GNUHelpColorsCommand
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger

from .experiment import TruncationExperiment, WriteMode
from .presenter import DemoPresenter

logger = get_logger(__name__)


@click.command(
    short_help="Compare '>' and '>&' redirections experimentally.",
    help=f"""Perform a series of write statements whose output is redirected to a file and compare
redirecting each statement to a path with duplicating the already open descriptor.

Redirecting to a path opens and truncates the file for every single statement, so only the last
line survives. Duplicating a descriptor issues no open or truncate call at all and every line is kept.

Use `--via-device` to redirect to the device path of the descriptor
(`{CFG.redirect.device_pattern.format(fd=CFG.demo.sink_fd)}`), which behaves like `/dev/stdout` on Linux.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.option(
    "-n",
    "--writes",
    type=int,
    default=CFG.demo.writes,
    show_default=True,
    help="Number of write statements to perform.",
)
@click.option(
    "--mode",
    type=click.Choice(["path", "duplicate", "both"], case_sensitive=False),
    default="both",
    show_default=True,
    help="Which kind of write statements to perform.",
)
@click.option(
    "--via-device",
    is_flag=True,
    help="In path mode, redirect to the device path of the output descriptor instead of the file path.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write to. The file is overwritten. Defaults to a file in a temporary directory.",
)
def demo(
    writes: int, mode: str, via_device: bool = False, output: Path | None = None
) -> NoReturn:
    """
    Run the truncation experiment and print the comparison.
    """
    try:
        with tempfile.TemporaryDirectory() as tmp:
            experiment = TruncationExperiment(
                output or Path(tmp) / CFG.demo.output_name, writes, via_device
            )

            if mode.lower() == "both":
                results = experiment.runBoth()
            else:
                results = [experiment.run(WriteMode.fromStr(mode))]

        console = Console()
        console.print(DemoPresenter(results).createComparisonPanel(console))
        sys.exit(0)
    except FDQError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
