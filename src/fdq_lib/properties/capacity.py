# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Global resource capacity available to a workflow.

This module defines the `Capacity` dataclass, describing the CPU cores and
memory that may be used at the same time, the longest walltime a task may
request, and the partitions tasks may be submitted to, and the `Usage`
dataclass, describing resources occupied by running tasks.
"""

from dataclasses import dataclass, field
from datetime import timedelta

from fdq_lib.core.common import hhmmss_to_duration

from .resources import TaskResources, parse_ncpus, parse_walltime
from .size import Size


@dataclass
class Usage:
    """
    Resources occupied at a given moment.
    """

    # Number of occupied CPU cores
    ncpus: int = 0

    # Amount of occupied memory
    mem: Size = field(default_factory=lambda: Size(0))

    @classmethod
    def ofResources(cls, resources: TaskResources) -> "Usage":
        """Return the usage of a task requesting the given resources."""
        return cls(resources.getNCPUs(), resources.getTotalMem())

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(self.ncpus + other.ncpus, self.mem + other.mem)

    def __sub__(self, other: "Usage") -> "Usage":
        return Usage(self.ncpus - other.ncpus, self.mem - other.mem)

    def fitsIn(self, free: "Usage") -> bool:
        """Return True if this usage can be satisfied from `free` resources."""
        return self.ncpus <= free.ncpus and self.mem <= free.mem


@dataclass(init=False)
class Capacity:
    """
    Dataclass representing resources available to all tasks together.
    """

    # Number of CPU cores that may be used at the same time
    ncpus: int

    # Amount of memory that may be used at the same time (None = unlimited)
    mem: Size | None = None

    # Longest walltime a single task may request in (H)HH:MM:SS (None = unlimited)
    max_walltime: str | None = None

    # Partitions tasks may be submitted to (None = any)
    partitions: list[str] | None = None

    def __init__(
        self,
        ncpus: int | str,
        mem: Size | str | int | None = None,
        max_walltime: str | None = None,
        partitions: list[str] | str | None = None,
    ):
        ncpus = parse_ncpus(ncpus)
        max_walltime = None if max_walltime is None else parse_walltime(max_walltime)

        if isinstance(partitions, str):
            partitions = [p for p in partitions.replace(",", " ").split() if p]

        self.ncpus = ncpus
        self.mem = None if mem is None else Size.fromValue(mem, "mb")
        self.max_walltime = max_walltime
        self.partitions = partitions or None

    def getMaxWalltime(self) -> timedelta | None:
        """Return the longest walltime a task may request or None if unlimited."""
        if self.max_walltime is None:
            return None
        return hhmmss_to_duration(self.max_walltime)

    def getRejectionReason(self, resources: TaskResources) -> str | None:
        """
        Return the reason why a task requesting `resources` can never run,
        or None if it can run when enough resources are free.
        """
        if resources.getNCPUs() > self.ncpus:
            return f"requests {resources.getNCPUs()} CPU cores, capacity is {self.ncpus}"

        if self.mem is not None and resources.getTotalMem() > self.mem:
            return f"requests {resources.getTotalMem()} of memory, capacity is {self.mem}"

        if (
            (max_walltime := self.getMaxWalltime()) is not None
            and resources.walltime is not None
            and resources.getWalltime() > max_walltime
        ):
            return f"requests walltime {resources.walltime}, maximum is {self.max_walltime}"

        if (
            self.partitions is not None
            and resources.partition is not None
            and resources.partition not in self.partitions
        ):
            return f"partition '{resources.partition}' is not one of {', '.join(self.partitions)}"

        return None

    def withOverrides(
        self,
        ncpus: int | None = None,
        mem: str | None = None,
        max_walltime: str | None = None,
    ) -> "Capacity":
        """Return a copy of this capacity with the provided values replaced."""
        return Capacity(
            ncpus=ncpus if ncpus is not None else self.ncpus,
            mem=mem if mem is not None else self.mem,
            max_walltime=max_walltime
            if max_walltime is not None
            else self.max_walltime,
            partitions=self.partitions,
        )
