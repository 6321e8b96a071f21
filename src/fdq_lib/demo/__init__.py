# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Reproduction of the `>` versus `>&` truncation difference.

This module defines the `TruncationExperiment` class, which performs a series
of write statements through a descriptor table, once redirecting each
statement to a path and once duplicating an existing descriptor, and records
the open and truncate calls issued and the resulting file content.
"""

from .experiment import ExperimentResult, TruncationExperiment, WriteMode
from .presenter import DemoPresenter

__all__ = [
    "DemoPresenter",
    "ExperimentResult",
    "TruncationExperiment",
    "WriteMode",
]
