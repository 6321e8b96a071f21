# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Representation of shell-style file-descriptor redirections.

This module defines `RedirectOp`, an enumeration of the supported redirection
operators, and the `Redirection` dataclass describing a single rebinding of a
descriptor slot: to a file opened by path, to the open file description of
another descriptor, or to nothing (closing the slot).

Redirections are parsed from the same tokens a POSIX shell accepts
(`2>err.txt`, `>>log`, `2>&1`, `3<&-`, `&>all.txt`, ...). Parsing never
touches the file system; applying a redirection is done by
`fdq_lib.core.descriptors.DescriptorTable`.
"""

import os
import re
import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Self

from fdq_lib.core.error import FDQParseError
from fdq_lib.core.logger import get_logger

logger = get_logger(__name__)


class RedirectOp(Enum):
    """
    Redirection operator.
    """

    # [n]>word, [n]>|word: open word for writing, truncating it.
    TRUNCATE = 1
    # [n]>>word: open word for appending.
    APPEND = 2
    # [n]<word: open word for reading.
    READ = 3
    # [n]<>word: open word for reading and writing without truncation.
    READ_WRITE = 4
    # [n]>&m: make n share the open file description of m.
    DUPLICATE_OUT = 5
    # [n]<&m: make n share the open file description of m.
    DUPLICATE_IN = 6
    # [n]>&-, [n]<&-: close n.
    CLOSE = 7
    # &>word, >&word: stdout and stderr to word, truncating it.
    BOTH = 8
    # &>>word: stdout and stderr appended to word.
    BOTH_APPEND = 9

    def __str__(self) -> str:
        return self.name.lower()

    def opensFile(self) -> bool:
        """Return True if applying the operator opens a file by path."""
        return self in {
            RedirectOp.TRUNCATE,
            RedirectOp.APPEND,
            RedirectOp.READ,
            RedirectOp.READ_WRITE,
            RedirectOp.BOTH,
            RedirectOp.BOTH_APPEND,
        }

    def duplicates(self) -> bool:
        """Return True if the operator duplicates another descriptor."""
        return self in {RedirectOp.DUPLICATE_OUT, RedirectOp.DUPLICATE_IN}

    def truncates(self) -> bool:
        """Return True if the operator truncates its target file."""
        return self in {RedirectOp.TRUNCATE, RedirectOp.BOTH}

    def writes(self) -> bool:
        """Return True if the opened file is writable."""
        return self.opensFile() and self != RedirectOp.READ

    def openFlags(self) -> int:
        """
        Return the `os.open` flags used by the operator.

        Raises:
            FDQParseError: If the operator does not open a file.
        """
        match self:
            case RedirectOp.TRUNCATE | RedirectOp.BOTH:
                return os.O_WRONLY | os.O_CREAT | os.O_TRUNC
            case RedirectOp.APPEND | RedirectOp.BOTH_APPEND:
                return os.O_WRONLY | os.O_CREAT | os.O_APPEND
            case RedirectOp.READ:
                return os.O_RDONLY
            case RedirectOp.READ_WRITE:
                return os.O_RDWR | os.O_CREAT
            case _:
                raise FDQParseError(f"Operator '{self}' does not open a file.")


# operator text => (operator, default descriptor)
# order matters: longer operators must be tried first
_OPERATORS: list[tuple[str, RedirectOp | None, int]] = [
    ("&>>", RedirectOp.BOTH_APPEND, 1),
    ("&>", RedirectOp.BOTH, 1),
    (">>", RedirectOp.APPEND, 1),
    (">|", RedirectOp.TRUNCATE, 1),
    (">&", None, 1),
    ("<&", None, 0),
    ("<>", RedirectOp.READ_WRITE, 0),
    (">", RedirectOp.TRUNCATE, 1),
    ("<", RedirectOp.READ, 0),
]

_TOKEN_PATTERN = re.compile(
    r"^(?P<fd>\d+)?(?P<op>"
    + "|".join(re.escape(text) for text, _, _ in _OPERATORS)
    + r")(?P<target>.*)$",
    re.DOTALL,
)

_OPERATOR_ONLY_PATTERN = re.compile(
    r"^\d*(?:" + "|".join(re.escape(text) for text, _, _ in _OPERATORS) + r")$"
)


@dataclass(frozen=True)
class Redirection:
    """
    A single redirection of a descriptor slot.
    """

    # Descriptor slot being rebound.
    fd: int

    # Operator of the redirection.
    op: RedirectOp

    # Path for operators opening a file, descriptor number for duplications, None for closing.
    target: Path | int | None = None

    def __post_init__(self):
        if self.fd < 0:
            raise FDQParseError(f"Invalid descriptor number '{self.fd}'.")

        if self.op.opensFile() and not isinstance(self.target, Path):
            raise FDQParseError(f"Redirection '{self.op}' requires a target path.")
        if self.op.duplicates() and not isinstance(self.target, int):
            raise FDQParseError(
                f"Redirection '{self.op}' requires a target descriptor."
            )
        if self.op == RedirectOp.CLOSE and self.target is not None:
            raise FDQParseError("Closing a descriptor takes no target.")
        if self.op in {RedirectOp.BOTH, RedirectOp.BOTH_APPEND} and self.fd != 1:
            raise FDQParseError(
                f"Redirection '{self.op}' cannot be applied to descriptor '{self.fd}'."
            )

    @classmethod
    def fromStr(cls, token: str) -> Self:
        """
        Parse a single redirection token.

        Args:
            token (str): A redirection token, e.g. "2>err.txt", ">>log", "2>&1",
                "0<&-", "&>all.txt" or "3<>data".

        Returns:
            Redirection: The parsed redirection.

        Raises:
            FDQParseError: If the token is not a valid redirection.
        """
        match = _TOKEN_PATTERN.match(token.strip())
        if not match:
            raise FDQParseError(f"Could not parse redirection '{token}'.")

        fd_str, op_str, target = match.group("fd"), match.group("op"), match.group("target")
        op, default_fd = next((op, fd) for text, op, fd in _OPERATORS if text == op_str)

        if not target:
            raise FDQParseError(f"Redirection '{token}' has no target.")

        if op_str.startswith("&") and fd_str is not None:
            raise FDQParseError(
                f"Redirection '{token}' cannot be combined with a descriptor number."
            )

        fd = int(fd_str) if fd_str is not None else default_fd

        # duplication, closing, or the '>&word' form of '&>word'
        if op is None:
            if target == "-":
                return cls(fd, RedirectOp.CLOSE)
            if target.isdigit():
                return cls(
                    fd,
                    RedirectOp.DUPLICATE_OUT if op_str == ">&" else RedirectOp.DUPLICATE_IN,
                    int(target),
                )
            if op_str == ">&" and fd_str is None:
                return cls(1, RedirectOp.BOTH, Path(target))

            raise FDQParseError(
                f"Redirection '{token}' requires a descriptor number or '-'."
            )

        return cls(fd, op, Path(target))

    @classmethod
    def parseMany(cls, text: str) -> list[Self]:
        """
        Parse a whitespace-separated list of redirections.

        Shell quoting rules apply. An operator separated from its target by
        whitespace (e.g. "2> err.txt") is joined with the following word.

        Args:
            text (str): String containing the redirections.

        Returns:
            list[Redirection]: Parsed redirections in the order of appearance.

        Raises:
            FDQParseError: If the text contains an invalid redirection.
        """
        try:
            words = shlex.split(text)
        except ValueError as e:
            raise FDQParseError(f"Could not split redirections '{text}': {e}.") from e

        return cls.fromWords(words)

    @classmethod
    def fromWords(cls, words: list[str]) -> list[Self]:
        """
        Parse redirections that have already been split into words, e.g. by the shell.

        Every word is one redirection, so its target may contain spaces or quotes.
        An operator-only word (e.g. "2>") is joined with the following word.

        Raises:
            FDQParseError: If a word is not a valid redirection.
        """
        redirections = []
        words_iter = iter(words)
        for word in words_iter:
            if _OPERATOR_ONLY_PATTERN.match(word):
                target = next(words_iter, None)
                if target is None:
                    raise FDQParseError(f"Redirection '{word}' has no target.")
                word += target
            redirections.append(cls.fromStr(word))

        logger.debug(f"Parsed redirections: {redirections}.")
        return redirections

    def expand(self) -> list["Redirection"]:
        """
        Expand a combined redirection into the elementary redirections it stands for.

        `&>word` is equivalent to `>word 2>&1`, `&>>word` to `>>word 2>&1`.
        Other redirections are returned unchanged.
        """
        match self.op:
            case RedirectOp.BOTH:
                return [
                    Redirection(1, RedirectOp.TRUNCATE, self.target),
                    Redirection(2, RedirectOp.DUPLICATE_OUT, 1),
                ]
            case RedirectOp.BOTH_APPEND:
                return [
                    Redirection(1, RedirectOp.APPEND, self.target),
                    Redirection(2, RedirectOp.DUPLICATE_OUT, 1),
                ]
            case _:
                return [self]

    def __str__(self) -> str:
        match self.op:
            case RedirectOp.TRUNCATE:
                return self._prefix(1) + f">{self.target}"
            case RedirectOp.APPEND:
                return self._prefix(1) + f">>{self.target}"
            case RedirectOp.READ:
                return self._prefix(0) + f"<{self.target}"
            case RedirectOp.READ_WRITE:
                return self._prefix(0) + f"<>{self.target}"
            case RedirectOp.DUPLICATE_OUT:
                return self._prefix(1) + f">&{self.target}"
            case RedirectOp.DUPLICATE_IN:
                return self._prefix(0) + f"<&{self.target}"
            case RedirectOp.CLOSE:
                return f"{self.fd}>&-"
            case RedirectOp.BOTH:
                return f"&>{self.target}"
            case RedirectOp.BOTH_APPEND:
                return f"&>>{self.target}"

    def _prefix(self, default_fd: int) -> str:
        """Return the descriptor number if it differs from the operator's default."""
        return "" if self.fd == default_fd else str(self.fd)
