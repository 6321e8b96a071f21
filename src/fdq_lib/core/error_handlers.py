# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import sys

from .config import CFG
from .logger import get_logger
from .repeater import Repeater

logger = get_logger(__name__)


def handle_general_fdq_error(
    exception: BaseException,
    metadata: Repeater,
) -> None:
    """
    Handle general fdq errors that occur during an fdq operation.
    """
    logger.error(exception)

    # if the operation failed for all items
    if len(metadata.items) == len(metadata.encountered_errors):
        print()
        sys.exit(CFG.exit_codes.default)
