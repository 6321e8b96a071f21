# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout fdq.

This module defines the fdq-specific exceptions: the common recoverable error,
a parsing error for redirections, workflows and posts, and an error signalling
that the child process of `fdq run` could not be started. Each exception
carries an associated exit code used by fdq commands to report failures
consistently.
"""

from .config import CFG


class FDQError(Exception):
    """Common exception type for all recoverable fdq errors."""

    exit_code = CFG.exit_codes.default


class FDQParseError(FDQError):
    """Raised when a redirection, a workflow, or a post cannot be parsed."""

    pass


class FDQRunError(FDQError):
    """Raised when the child process of a runner cannot be started."""

    exit_code = CFG.exit_codes.run_failed
