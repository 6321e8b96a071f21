# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for fdq.

This module collects the foundational classes, utilities, and helpers used
across the fdq codebase. It provides descriptor-table manipulation,
configuration, error handling, repeated operations, help formatting, and
structured logging.
"""
