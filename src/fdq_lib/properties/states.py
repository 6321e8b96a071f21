# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from enum import Enum
from typing import Self

from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError


class TaskState(Enum):
    """
    State of a task in a simulated schedule.
    """

    PENDING = 1
    RUNNING = 2
    FINISHED = 3
    REJECTED = 4

    def __str__(self) -> str:
        """
        Return the lowercase string representation of the enum variant.
        """
        return self.name.lower()

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding TaskState enum variant.

        Args:
            s (str): String representation of the state (case-insensitive).

        Returns:
            TaskState: Corresponding enum variant.

        Raises:
            FDQError: If the string corresponds to no TaskState.
        """
        try:
            return cls[s.upper()]
        except KeyError:
            raise FDQError(f"Could not recognize a task state '{s}'.")

    @property
    def color(self) -> str:
        """
        Return the display color associated with this task state.
        """
        return getattr(CFG.state_colors, self.name.lower())
