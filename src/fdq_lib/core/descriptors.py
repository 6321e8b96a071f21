# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Manipulation of the process's file-descriptor table.

`DescriptorTable` installs files and duplicated descriptors into descriptor
slots using the same two code paths a shell uses when it applies
redirections:

- opening a path (with create/truncate/append flags) and moving the new
  descriptor into the requested slot,
- duplicating an existing descriptor's open file description into the slot,
  which never opens or truncates anything.

Every operation is recorded in a syscall log so that the number of open and
truncate calls issued by a sequence of redirections can be inspected.

The table performs no logging of its own: it is also used in a forked child
between `fork` and `exec`, where the standard streams may already point
elsewhere.
"""

import errno
import os
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from fdq_lib.properties.redirection import Redirection, RedirectOp

from .config import CFG
from .error import FDQError


class SyscallKind(Enum):
    """
    Kind of an operation performed on the descriptor table.
    """

    OPEN = 1
    DUP = 2
    CLOSE = 3
    WRITE = 4

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Syscall:
    """
    Record of a single operation performed on the descriptor table.
    """

    # Kind of the operation.
    kind: SyscallKind

    # Descriptor slot affected by the operation.
    fd: int

    # Opened path, source descriptor of a duplication, or None.
    target: Path | int | None = None

    # Flags passed to `os.open`.
    flags: int = 0

    # Number of bytes written.
    nbytes: int = 0

    @property
    def truncates(self) -> bool:
        """True if this is an open call truncating its file."""
        return self.kind == SyscallKind.OPEN and bool(self.flags & os.O_TRUNC)

    def __str__(self) -> str:
        match self.kind:
            case SyscallKind.OPEN:
                return f"open('{self.target}'{', O_TRUNC' if self.truncates else ''}) -> {self.fd}"
            case SyscallKind.DUP:
                return f"dup2({self.target}, {self.fd})"
            case SyscallKind.CLOSE:
                return f"close({self.fd})"
            case SyscallKind.WRITE:
                return f"write({self.fd}, {self.nbytes} bytes)"


class DescriptorTable:
    """
    Applies redirections to the descriptor table of the current process.

    Attributes:
        log (list[Syscall]): Operations performed by this table, in order.
    """

    def __init__(self, file_mode: int | None = None):
        """
        Initialize the table.

        Args:
            file_mode (int | None): Permission bits of files created by redirections.
                Defaults to `CFG.redirect.file_mode`.
        """
        self.log: list[Syscall] = []
        self._file_mode = CFG.redirect.file_mode if file_mode is None else file_mode

    def openAt(self, fd: int, path: Path, flags: int) -> None:
        """
        Open a file and install it at the given descriptor slot.

        Args:
            fd (int): Slot to install the opened file at.
            path (Path): Path to the file.
            flags (int): Flags passed to `os.open`.

        Raises:
            FDQError: If the file cannot be opened or installed.
        """
        try:
            opened = os.open(path, flags, self._file_mode)
        except OSError as e:
            raise FDQError(f"Could not open '{path}': {e.strerror}.") from e

        self.log.append(Syscall(SyscallKind.OPEN, fd, Path(path), flags))

        try:
            if opened != fd:
                os.dup2(opened, fd)
                os.close(opened)
            else:
                # os.open creates non-inheritable descriptors
                os.set_inheritable(fd, True)
        except OSError as e:
            raise FDQError(
                f"Could not install '{path}' at descriptor '{fd}': {e.strerror}."
            ) from e

    def duplicate(self, src: int, dst: int) -> None:
        """
        Make `dst` refer to the open file description of `src`.

        No file is opened or truncated.

        Args:
            src (int): Descriptor to duplicate.
            dst (int): Slot to install the duplicate at.

        Raises:
            FDQError: If `src` is not an open descriptor.
        """
        try:
            if src == dst:
                # dup2 with identical descriptors only validates the descriptor
                os.fstat(src)
            else:
                os.dup2(src, dst)
        except OSError as e:
            raise FDQError(f"Bad file descriptor '{src}': {e.strerror}.") from e

        self.log.append(Syscall(SyscallKind.DUP, dst, src))

    def close(self, fd: int) -> None:
        """
        Close the descriptor slot. Closing a slot that is not open does nothing.

        Raises:
            FDQError: If the descriptor cannot be closed.
        """
        try:
            os.close(fd)
        except OSError as e:
            if e.errno != errno.EBADF:
                raise FDQError(f"Could not close descriptor '{fd}': {e.strerror}.") from e

        self.log.append(Syscall(SyscallKind.CLOSE, fd))

    def write(self, fd: int, data: str | bytes) -> int:
        """
        Write data through the descriptor slot.

        Returns:
            int: Number of bytes written.

        Raises:
            FDQError: If the data cannot be written.
        """
        if isinstance(data, str):
            data = data.encode()

        try:
            written = os.write(fd, data)
        except OSError as e:
            raise FDQError(f"Could not write to descriptor '{fd}': {e.strerror}.") from e

        self.log.append(Syscall(SyscallKind.WRITE, fd, nbytes=written))
        return written

    def apply(self, redirection: Redirection) -> None:
        """
        Apply a single redirection.

        Raises:
            FDQError: If the redirection cannot be applied.
        """
        for elementary in redirection.expand():
            if elementary.op.opensFile():
                assert isinstance(elementary.target, Path)
                self.openAt(elementary.fd, elementary.target, elementary.op.openFlags())
            elif elementary.op.duplicates():
                assert isinstance(elementary.target, int)
                self.duplicate(elementary.target, elementary.fd)
            elif elementary.op == RedirectOp.CLOSE:
                self.close(elementary.fd)

    def applyAll(self, redirections: list[Redirection]) -> None:
        """
        Apply the redirections from left to right.

        Raises:
            FDQError: If any of the redirections cannot be applied.
                Redirections applied before the failing one stay in effect.
        """
        for redirection in redirections:
            self.apply(redirection)

    def countOpens(self) -> int:
        """Return the number of open calls issued so far."""
        return sum(1 for call in self.log if call.kind == SyscallKind.OPEN)

    def countTruncations(self) -> int:
        """Return the number of open calls issued so far that truncated a file."""
        return sum(1 for call in self.log if call.truncates)

    @contextmanager
    def preserved(self, *fds: int) -> Iterator["DescriptorTable"]:
        """
        Save the listed descriptor slots and restore them on exit.

        Slots that were not open on entry are closed on exit.
        Saving and restoring is not recorded in the log.
        """
        saved: dict[int, int | None] = {}
        for fd in fds:
            try:
                saved[fd] = os.dup(fd)
            except OSError:
                saved[fd] = None

        try:
            yield self
        finally:
            for fd, copy in saved.items():
                if copy is None:
                    # the slot may have been closed inside the block
                    with suppress(OSError):
                        os.close(fd)
                else:
                    os.dup2(copy, fd)
                    os.close(copy)
