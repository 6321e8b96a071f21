# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Self

from fdq_lib.core.config import CFG
from fdq_lib.core.descriptors import DescriptorTable
from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger
from fdq_lib.properties.redirection import RedirectOp

logger = get_logger(__name__)


class WriteMode(Enum):
    """
    How the individual write statements of the experiment reach the output.
    """

    # Every write statement redirects to a path: `echo line > out.txt`.
    PATH = 1
    # Every write statement duplicates the output descriptor: `echo line >&3`.
    DUPLICATE = 2

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding WriteMode enum variant.

        Raises:
            FDQError: If the string corresponds to no WriteMode.
        """
        try:
            return cls[s.upper()]
        except KeyError:
            raise FDQError(f"Could not recognize a write mode '{s}'.")


@dataclass
class ExperimentResult:
    """
    Outcome of one run of the truncation experiment.
    """

    # Write mode used.
    mode: WriteMode

    # Number of write statements performed.
    writes: int

    # Number of open calls issued, including opening the output once.
    open_calls: int

    # Number of open calls that truncated a file.
    truncate_calls: int

    # Content of the output file after the experiment.
    content: str

    # Path to which the write statements redirected (PATH mode only).
    target: Path | None = None

    @property
    def statement_opens(self) -> int:
        """Number of open calls issued by the write statements themselves."""
        # the output itself is opened exactly once before the statements run
        return self.open_calls - 1

    @property
    def lines_kept(self) -> int:
        """Number of written lines present in the output file."""
        return len(self.content.splitlines())

    @property
    def lines_lost(self) -> int:
        """Number of written lines that were overwritten."""
        return self.writes - self.lines_kept


class TruncationExperiment:
    """
    Reproduces the difference between `>` and `>&` redirections.

    A "program" whose standard output has been redirected to a file (the sink
    descriptor) performs a number of write statements, each of which
    redirects its own output before writing a single line:

    - in PATH mode, the statement opens a path with truncate semantics,
      either the output file itself or the device path of the sink
      descriptor (e.g. `/dev/fd/60`, the equivalent of `/dev/stdout`),
      so every statement truncates the file and starts writing at offset 0,
    - in DUPLICATE mode, the statement duplicates the sink descriptor, sharing
      its open file description and offset, so nothing is opened or truncated
      and the lines accumulate.
    """

    def __init__(
        self,
        output: Path,
        writes: int | None = None,
        via_device: bool = False,
        sink_fd: int | None = None,
        work_fd: int | None = None,
    ):
        """
        Initialize the experiment.

        Args:
            output (Path): File the program's standard output is redirected to.
            writes (int | None): Number of write statements. Defaults to `CFG.demo.writes`.
            via_device (bool): In PATH mode, redirect to the device path of the
                sink descriptor instead of the output path.
            sink_fd (int | None): Slot of the program's standard output. Defaults to `CFG.demo.sink_fd`.
            work_fd (int | None): Slot used by the write statements. Defaults to `CFG.demo.work_fd`.

        Raises:
            FDQError: If the number of writes is not positive or the slots coincide.
        """
        self._output = output
        self._writes = CFG.demo.writes if writes is None else writes
        self._via_device = via_device
        self._sink_fd = CFG.demo.sink_fd if sink_fd is None else sink_fd
        self._work_fd = CFG.demo.work_fd if work_fd is None else work_fd

        if self._writes < 1:
            raise FDQError(
                f"The number of writes must be at least 1, not '{self._writes}'."
            )

        if self._sink_fd == self._work_fd:
            raise FDQError("The sink and work descriptors must be different.")

    def run(self, mode: WriteMode) -> ExperimentResult:
        """
        Run the experiment in the given mode.

        The descriptor slots used by the experiment are restored afterwards.

        Args:
            mode (WriteMode): How the write statements redirect their output.

        Returns:
            ExperimentResult: Syscall counts and resulting file content.

        Raises:
            FDQError: If the output cannot be opened or written.
        """
        table = DescriptorTable()
        target = self._statementTarget() if mode == WriteMode.PATH else None

        with table.preserved(self._sink_fd, self._work_fd):
            # program > output
            table.openAt(self._sink_fd, self._output, RedirectOp.TRUNCATE.openFlags())

            for index in range(1, self._writes + 1):
                if mode == WriteMode.PATH:
                    assert target is not None
                    # echo line > target
                    table.openAt(self._work_fd, target, RedirectOp.TRUNCATE.openFlags())
                else:
                    # echo line >&sink
                    table.duplicate(self._sink_fd, self._work_fd)

                table.write(
                    self._work_fd, CFG.demo.line_pattern.format(index=index) + "\n"
                )
                table.close(self._work_fd)

        for call in table.log:
            logger.debug(f"[{mode}] {call}")

        try:
            content = self._output.read_text()
        except OSError as e:
            raise FDQError(f"Could not read '{self._output}': {e.strerror}.") from e

        return ExperimentResult(
            mode=mode,
            writes=self._writes,
            open_calls=table.countOpens(),
            truncate_calls=table.countTruncations(),
            content=content,
            target=target,
        )

    def runBoth(self) -> list[ExperimentResult]:
        """
        Run the experiment in PATH mode and then in DUPLICATE mode.

        Returns:
            list[ExperimentResult]: Results in the order PATH, DUPLICATE.
        """
        return [self.run(WriteMode.PATH), self.run(WriteMode.DUPLICATE)]

    def _statementTarget(self) -> Path:
        """Return the path write statements redirect to in PATH mode."""
        if not self._via_device:
            return self._output

        device = Path(CFG.redirect.device_pattern.format(fd=self._sink_fd))
        if not device.parent.is_dir():
            raise FDQError(
                f"Device directory '{device.parent}' is not available on this system."
            )
        logger.debug(f"Writing through device path '{device}'.")
        return device
