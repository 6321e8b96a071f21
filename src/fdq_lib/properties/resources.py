# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Structured representation of task resource requests.

This module defines the `TaskResources` dataclass, which captures the CPU,
memory, walltime, and partition requirements declared by a workflow task.
"""

from dataclasses import dataclass, fields
from datetime import timedelta

from fdq_lib.core.common import hhmmss_to_duration, wdhms_to_hhmmss
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.field_coupling import FieldCoupling, HasCouplingMethods, coupled_fields
from fdq_lib.core.logger import get_logger

from .size import Size

logger = get_logger(__name__)


def parse_ncpus(value: object) -> int:
    """
    Convert a number of CPU cores to a positive integer.

    Raises:
        FDQError: If the value is not a whole positive number.
    """
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int | str):
        raise FDQError(f"Invalid number of CPU cores '{value}'.")
    try:
        ncpus = int(value)
    except ValueError as e:
        raise FDQError(f"Invalid number of CPU cores '{value}'.") from e

    if ncpus < 1:
        raise FDQError(f"Number of CPU cores must be positive, not '{value}'.")
    return ncpus


def parse_walltime(value: object) -> str:
    """
    Convert a walltime in (H)HH:MM:SS or wdhms format (e.g., 1d12h) to (H)HH:MM:SS.

    Raises:
        FDQError: If the value is not a string or is not a valid walltime.
    """
    if not isinstance(value, str):
        raise FDQError(
            f"Invalid walltime '{value}'. Specify it as 'H:MM:SS' or in wdhms format (e.g., 1h30m)."
        )

    walltime = value if ":" in value else wdhms_to_hhmmss(value)
    hhmmss_to_duration(walltime)
    return walltime


# dataclass decorator has to come before `@coupled_fields`!
@dataclass(init=False)
@coupled_fields(
    # if mem is set, ignore mem_per_cpu
    FieldCoupling("mem", "mem_per_cpu"),
)
class TaskResources(HasCouplingMethods):
    """
    Dataclass representing computational resources requested by a task.
    """

    # Number of CPU cores used by the task
    ncpus: int | None = None

    # Absolute amount of memory used by the task (overrides mem_per_cpu)
    mem: Size | None = None

    # Amount of memory per CPU core
    mem_per_cpu: Size | None = None

    # Maximum runtime of the task in (H)HH:MM:SS
    walltime: str | None = None

    # Partition the task is submitted to
    partition: str | None = None

    def __init__(
        self,
        ncpus: int | str | None = None,
        mem: Size | str | int | None = None,
        mem_per_cpu: Size | str | int | None = None,
        walltime: str | None = None,
        partition: str | None = None,
    ):
        # convert sizes; plain numbers are megabytes
        mem = None if mem is None else Size.fromValue(mem, "mb")
        mem_per_cpu = None if mem_per_cpu is None else Size.fromValue(mem_per_cpu, "mb")

        walltime = None if walltime is None else parse_walltime(walltime)
        ncpus = None if ncpus is None else parse_ncpus(ncpus)

        self.ncpus = ncpus
        self.mem = mem
        self.mem_per_cpu = mem_per_cpu
        self.walltime = walltime
        self.partition = partition

        # enforce coupling rules
        self.__post_init__()  # ty: ignore[unresolved-attribute]

        logger.debug(f"TaskResources: {self}")

    @classmethod
    def default(cls) -> "TaskResources":
        """Return the resources of a task that declares nothing, as configured."""
        return cls(
            ncpus=CFG.scheduler.ncpus,
            mem=CFG.scheduler.mem,
            walltime=CFG.scheduler.walltime,
        )

    def getNCPUs(self) -> int:
        """Return the number of requested CPU cores (1 if not set)."""
        return self.ncpus or 1

    def getTotalMem(self) -> Size:
        """
        Return the total amount of requested memory.

        Memory requested per CPU core is multiplied by the number of cores.
        Returns zero size if no memory was requested.
        """
        if self.mem is not None:
            return self.mem
        if self.mem_per_cpu is not None:
            return self.mem_per_cpu * self.getNCPUs()
        return Size(0)

    def getWalltime(self) -> timedelta:
        """
        Return the requested walltime.

        Raises:
            FDQError: If no walltime was requested.
        """
        if self.walltime is None:
            raise FDQError("No walltime requested.")

        return hhmmss_to_duration(self.walltime)

    @staticmethod
    def mergeResources(*resources: "TaskResources") -> "TaskResources":
        """
        Merge multiple TaskResources objects.

        Earlier resources take precedence over later ones.

        If either field in a coupling is set in an earlier resource, all fields of
        that coupling are taken from that resource and later resources are ignored
        for that coupling (a task's `mem_per_cpu` is not overwritten by a default `mem`).

        Args:
            *resources (TaskResources): One or more TaskResources objects, in order of precedence.

        Returns:
            TaskResources: A new TaskResources object with merged fields.
        """
        merged_data = {}
        processed_couplings: set[FieldCoupling] = set()

        for f in fields(TaskResources):
            if coupling := TaskResources.getCouplingForField(f.name):
                if coupling in processed_couplings:
                    continue
                processed_couplings.add(coupling)

                source = next((r for r in resources if coupling.hasValue(r)), None)
                for field in coupling.fields:
                    merged_data[field] = getattr(source, field) if source else None
                continue

            # pick the first non-None value for this field
            merged_data[f.name] = next(
                (
                    getattr(r, f.name)
                    for r in resources
                    if getattr(r, f.name) is not None
                ),
                None,
            )

        return TaskResources(**merged_data)
