# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Simulated scheduling of workflow tasks on a limited capacity.

The scheduler decides which tasks may run concurrently, rejecting tasks
whose requests can never be satisfied, and simulates the workflow over
the tasks' walltimes.
"""

from .presenter import SchedulePresenter
from .scheduler import Schedule, ScheduleEntry, Scheduler

__all__ = ["Schedule", "ScheduleEntry", "Scheduler", "SchedulePresenter"]
