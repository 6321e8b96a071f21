# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field

from fdq_lib.core.error import FDQError

from .resources import TaskResources


@dataclass
class Task:
    """
    A unit of work declared by a workflow.
    """

    # Unique name of the task
    name: str

    # Resources requested by the task
    resources: TaskResources = field(default_factory=TaskResources)

    # Names of tasks that have to finish before this task may start
    depend: list[str] = field(default_factory=list)

    # Tasks with higher priority are considered first
    priority: int = 0

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise FDQError("Task name cannot be empty.")

        if self.name in self.depend:
            raise FDQError(f"Task '{self.name}' cannot depend on itself.")
