# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Checking blog posts and extracting the examples embedded in them.
"""

from .checker import PostChecker, PostReport
from .presenter import ExamplesPresenter, PostsPresenter

__all__ = ["ExamplesPresenter", "PostChecker", "PostReport", "PostsPresenter"]
