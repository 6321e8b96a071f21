# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Execution of commands with shell-style redirections.

This module defines the `Runner` class, which launches a child process and
applies a list of redirections inside the child before the command is
executed, leaving the descriptors of the calling process untouched.
"""

from .runner import Runner

__all__ = [
    "Runner",
]
