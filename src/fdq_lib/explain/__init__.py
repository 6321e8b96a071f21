# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Dry-run evaluation of redirection lists.

This module defines the `Explainer` class, which evaluates a list of
redirections from left to right without touching the file system and records,
for every step, what each descriptor slot refers to, and the `ExplainPresenter`
class, which renders the evaluation as Rich tables.
"""

from .explainer import Description, Explainer, Explanation, ExplainStep
from .presenter import ExplainPresenter

__all__ = [
    "Description",
    "Explainer",
    "Explanation",
    "ExplainStep",
    "ExplainPresenter",
]
