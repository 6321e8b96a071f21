# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from pathlib import Path
from typing import NoReturn

import click
from click_option_group import optgroup
from rich.console import Console

from fdq_lib.core.click_format import GNUHelpColorsCommand
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger
from fdq_lib.properties.workflow import Workflow

from .presenter import SchedulePresenter
from .scheduler import Scheduler

logger = get_logger(__name__)


# Note that all options must be part of an optgroup otherwise Parser breaks.
@click.command(
    short_help="Decide which tasks of a workflow may run concurrently.",
    help=f"""Simulate running the tasks of a workflow on a limited capacity.

{click.style("WORKFLOW", fg="green")}   Path to a YAML file declaring the capacity and the tasks.

Tasks are admitted greedily in order of priority and declaration, skipping tasks that do not fit,
and every task is assumed to run for its full walltime. Tasks that can never run are rejected.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "workflow",
    type=click.Path(dir_okay=False, path_type=Path),
    metavar=click.style("WORKFLOW", fg="green"),
)
@optgroup.group(f"{click.style('Capacity overrides', fg='yellow')}")
@optgroup.option(
    "--ncpus",
    type=int,
    default=None,
    help="Number of CPU cores available to all tasks together.",
)
@optgroup.option(
    "--mem",
    type=str,
    default=None,
    help="Memory available to all tasks together. Specify as 'Nmb' or 'Ngb' (e.g., 500mb or 64gb).",
)
@optgroup.option(
    "--max-walltime",
    type=str,
    default=None,
    help="Longest walltime a single task may request. Specify as 'HH:MM:SS' or in wdhms format (e.g., 12h or 1d12h).",
)
@optgroup.group(f"{click.style('Output', fg='yellow')}")
@optgroup.option(
    "--yaml", is_flag=True, help="Output the schedule in YAML format."
)
def schedule(
    workflow: Path,
    ncpus: int | None = None,
    mem: str | None = None,
    max_walltime: str | None = None,
    yaml: bool = False,
) -> NoReturn:
    """
    Simulate the workflow and print the schedule.
    """
    try:
        loaded = Workflow.fromFile(workflow)
        loaded.capacity = loaded.capacity.withOverrides(ncpus, mem, max_walltime)

        result = Scheduler(loaded).simulate()

        if yaml:
            print(result.toYaml(), end="")
        else:
            console = Console()
            console.print(SchedulePresenter(result).createSchedulePanel(console))

        sys.exit(0)
    except FDQError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
