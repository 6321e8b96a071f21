# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Logging for fdq.

All messages go to stderr so that they never mix with the output of a command
executed by `fdq run` or with YAML printed by `fdq schedule --yaml`.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from .config import CFG


def is_debug_mode() -> bool:
    """Return True if fdq runs in debug mode."""
    return os.environ.get(CFG.env_vars.debug_mode) is not None


def get_logger(name: str, show_time: bool = False) -> logging.Logger:
    """
    Return a logger writing through rich's RichHandler to stderr.

    In debug mode, debug messages are shown and every message is timestamped.
    Calling the function repeatedly with the same name does not attach
    another handler.
    """
    logger = logging.getLogger(name)
    level = logging.DEBUG if is_debug_mode() else logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return logger

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        show_time=show_time or level == logging.DEBUG,
        log_time_format=CFG.date_formats.standard,
    )
    handler.setLevel(level)
    logger.addHandler(handler)

    return logger
