# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import os
from dataclasses import dataclass, field
from pathlib import Path

from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger
from fdq_lib.properties.redirection import Redirection, RedirectOp

logger = get_logger(__name__)


@dataclass(frozen=True)
class Description:
    """
    Symbolic open file description.

    Descriptor slots referring to the same `Description` share the file offset,
    so writes through either of them never overwrite each other.
    """

    # Identifier of the description, unique within one explanation.
    id: int

    # Opened path or None for inherited descriptions.
    path: Path | None

    # Access mode of the description (e.g. "write", "append", "inherited").
    mode: str

    # Name of the inherited stream.
    stream: str | None = None

    def __str__(self) -> str:
        if self.path is None:
            return f"inherited {self.stream}"
        return f"'{self.path}' ({self.mode})"


@dataclass
class ExplainStep:
    """
    State of the descriptor table after applying one elementary redirection.
    """

    # Elementary redirection applied in this step.
    redirection: Redirection

    # Redirection as written by the user (differs for '&>' redirections).
    source: Redirection

    # Descriptor table after this step.
    table: dict[int, Description]

    # Whether this step opened a file.
    opened: bool = False

    # Whether this step truncated a file.
    truncated: bool = False


@dataclass
class Explanation:
    """
    Result of evaluating a list of redirections.
    """

    # Descriptor table before any redirection.
    initial: dict[int, Description]

    # Evaluated steps in order.
    steps: list[ExplainStep] = field(default_factory=list)

    @property
    def final(self) -> dict[int, Description]:
        """Descriptor table after all redirections."""
        return self.steps[-1].table if self.steps else self.initial

    def countOpens(self) -> int:
        """Return the number of files opened by the redirections."""
        return sum(1 for step in self.steps if step.opened)

    def countTruncations(self) -> int:
        """Return the number of files truncated by the redirections."""
        return sum(1 for step in self.steps if step.truncated)

    def sharing(self, fd: int) -> list[int]:
        """
        Return the other slots sharing the open file description of `fd` in the final table.

        Returns an empty list if the slot is closed.
        """
        if (description := self.final.get(fd)) is None:
            return []

        return sorted(
            other
            for other, other_description in self.final.items()
            if other != fd and other_description.id == description.id
        )

    def conflicts(self) -> list[Path]:
        """
        Return paths opened for writing through more than one open file description.

        Each description keeps its own offset, so writes through one of them
        overwrite data written through the other (e.g. `>out 2>out`).
        """
        writers: dict[str, set[int]] = {}
        paths: dict[str, Path] = {}
        for step in self.steps:
            if not step.opened or not step.redirection.op.writes():
                continue

            path = step.table[step.redirection.fd].path
            assert path is not None
            key = os.path.normpath(path)
            writers.setdefault(key, set()).add(step.table[step.redirection.fd].id)
            paths.setdefault(key, path)

        return [paths[key] for key, ids in writers.items() if len(ids) > 1]


class Explainer:
    """
    Evaluates redirections from left to right without touching the file system.
    """

    _MODES = {
        RedirectOp.TRUNCATE: "write",
        RedirectOp.APPEND: "append",
        RedirectOp.READ: "read",
        RedirectOp.READ_WRITE: "read/write",
    }

    def __init__(
        self,
        redirections: list[Redirection],
        initial: dict[int, str] | None = None,
    ):
        """
        Initialize the explainer.

        Args:
            redirections (list[Redirection]): Redirections to evaluate.
            initial (dict[int, str] | None): Inherited streams of the process,
                mapping descriptor slots to their names. Defaults to
                stdin, stdout, and stderr at slots 0, 1, and 2.
        """
        self._redirections = redirections
        self._next_id = 0

        streams = (
            {0: "stdin", 1: "stdout", 2: "stderr"} if initial is None else initial
        )
        self._initial = {
            fd: self._newDescription(None, "inherited", name)
            for fd, name in streams.items()
        }

    def explain(self) -> Explanation:
        """
        Evaluate all redirections.

        Returns:
            Explanation: Evaluated steps.

        Raises:
            FDQError: If a redirection duplicates a descriptor that is not open.
        """
        explanation = Explanation(initial=dict(self._initial))
        table = dict(self._initial)

        for source in self._redirections:
            for redirection in source.expand():
                table = dict(table)
                step = ExplainStep(redirection=redirection, source=source, table=table)

                if redirection.op.opensFile():
                    assert isinstance(redirection.target, Path)
                    table[redirection.fd] = self._newDescription(
                        redirection.target, self._MODES[redirection.op]
                    )
                    step.opened = True
                    step.truncated = redirection.op.truncates()
                elif redirection.op.duplicates():
                    assert isinstance(redirection.target, int)
                    if redirection.target not in table:
                        raise FDQError(
                            f"Bad file descriptor '{redirection.target}' in redirection '{source}'."
                        )
                    table[redirection.fd] = table[redirection.target]
                else:
                    table.pop(redirection.fd, None)

                logger.debug(f"After '{redirection}': {table}.")
                explanation.steps.append(step)

        return explanation

    def _newDescription(
        self, path: Path | None, mode: str, stream: str | None = None
    ) -> Description:
        """Create a description with a fresh identifier."""
        description = Description(self._next_id, path, mode, stream)
        self._next_id += 1
        return description
