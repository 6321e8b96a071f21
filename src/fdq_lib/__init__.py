# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core implementation of the fdq command-line tool.

This package provides a runner launching commands with shell-style file
descriptor redirections, an explainer evaluating redirections step by step,
an experiment comparing redirecting to a path with duplicating a descriptor,
a scheduler deciding which workflow tasks may run concurrently on a limited
capacity, and a checker for the blog posts describing all of it. All fdq CLI
commands ultimately delegate to the functionality implemented here.
"""

from .fdq import __version__, cli

__all__ = [
    "__version__",
    "cli",
    "core",
    "demo",
    "explain",
    "posts",
    "properties",
    "run",
    "schedule",
]
