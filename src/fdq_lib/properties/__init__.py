# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Data types used across fdq.

This package collects the structured representations of redirections,
memory sizes, task resources, capacities, tasks, workflows, task states,
and blog posts.
"""
