# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Deciding which workflow tasks may run at the same time.

The `Scheduler` admits tasks greedily: eligible tasks are ordered by
descending priority and then by declaration order, and every task that fits
into the currently free resources is started. A task that does not fit is
skipped, so smaller tasks declared later may still be admitted (backfill).

`Scheduler.simulate` repeats the admission over simulated time, assuming
every task runs for exactly its requested walltime, and returns a `Schedule`.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from functools import reduce

import yaml

from fdq_lib.core.common import format_duration_wdhhmmss, load_yaml_dumper
from fdq_lib.core.logger import get_logger
from fdq_lib.properties.capacity import Capacity, Usage
from fdq_lib.properties.resources import TaskResources
from fdq_lib.properties.size import Size
from fdq_lib.properties.states import TaskState
from fdq_lib.properties.task import Task
from fdq_lib.properties.workflow import Workflow

logger = get_logger(__name__)

Dumper: type[yaml.Dumper] = load_yaml_dumper()


@dataclass
class ScheduleEntry:
    """
    Outcome of scheduling a single task.
    """

    # The scheduled task
    task: Task

    # Effective resources of the task
    resources: TaskResources

    # State of the task at the end of the simulation
    state: TaskState = TaskState.PENDING

    # Offset from the start of the workflow at which the task starts
    start: timedelta | None = None

    # Offset from the start of the workflow at which the task finishes
    end: timedelta | None = None

    # Why the task was rejected
    reason: str | None = None

    @property
    def usage(self) -> Usage:
        return Usage.ofResources(self.resources)

    def isRunningAt(self, t: timedelta) -> bool:
        """Return True if the task occupies resources at time `t`."""
        if self.start is None or self.end is None:
            return False
        return self.start <= t < self.end

    def toDict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "name": self.task.name,
            "state": str(self.state),
            "ncpus": self.resources.getNCPUs(),
            "mem": str(self.resources.getTotalMem()),
            "walltime": self.resources.walltime,
        }
        if self.resources.partition:
            data["partition"] = self.resources.partition
        if self.start is not None and self.end is not None:
            data["start"] = format_duration_wdhhmmss(self.start)
            data["end"] = format_duration_wdhhmmss(self.end)
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass
class Schedule:
    """
    Result of a simulated run of a workflow.
    """

    # Capacity the workflow was scheduled on
    capacity: Capacity

    # Scheduling outcome of every task, in declaration order
    entries: list[ScheduleEntry] = field(default_factory=list)

    # Names of tasks started immediately
    first_wave: list[str] = field(default_factory=list)

    @property
    def makespan(self) -> timedelta:
        """Time at which the last task finishes."""
        return max(
            (entry.end for entry in self.entries if entry.end is not None),
            default=timedelta(0),
        )

    def getEntry(self, name: str) -> ScheduleEntry | None:
        return next((e for e in self.entries if e.task.name == name), None)

    def getRejected(self) -> list[ScheduleEntry]:
        return [e for e in self.entries if e.state == TaskState.REJECTED]

    def concurrentAt(self, t: timedelta) -> list[Task]:
        """Return the tasks running at time `t`."""
        return [entry.task for entry in self.entries if entry.isRunningAt(t)]

    def usageAt(self, t: timedelta) -> Usage:
        """Return the resources occupied at time `t`."""
        return reduce(
            lambda acc, entry: acc + entry.usage,
            (entry for entry in self.entries if entry.isRunningAt(t)),
            Usage(),
        )

    def peakUsage(self) -> Usage:
        """
        Return the highest number of CPU cores and the highest amount of memory
        occupied at any moment.

        The two maxima may be reached at different times.
        """
        # usage only increases when a task starts
        starts = {entry.start for entry in self.entries if entry.start is not None}
        usages = [self.usageAt(t) for t in starts]

        return Usage(
            ncpus=max((u.ncpus for u in usages), default=0),
            mem=max((u.mem for u in usages), default=Size(0)),
        )

    def toYaml(self) -> str:
        peak = self.peakUsage()
        data = {
            "capacity": {
                "ncpus": self.capacity.ncpus,
                "mem": str(self.capacity.mem) if self.capacity.mem else None,
                "max_walltime": self.capacity.max_walltime,
                "partitions": self.capacity.partitions,
            },
            "makespan": format_duration_wdhhmmss(self.makespan),
            "peak_usage": {"ncpus": peak.ncpus, "mem": str(peak.mem)},
            "first_wave": self.first_wave,
            "tasks": [entry.toDict() for entry in self.entries],
        }

        return yaml.dump(data, Dumper=Dumper, default_flow_style=False, sort_keys=False)


class Scheduler:
    """
    Decides which tasks of a workflow may run concurrently.
    """

    def __init__(self, workflow: Workflow):
        self._workflow = workflow
        self._resources = {
            task.name: workflow.getResources(task) for task in workflow.tasks
        }
        self._order = {task.name: i for i, task in enumerate(workflow.tasks)}

        # unlimited memory is modelled as the memory of all tasks together
        capacity = workflow.capacity
        self._total = Usage(
            capacity.ncpus,
            capacity.mem
            if capacity.mem is not None
            else sum(
                (r.getTotalMem() for r in self._resources.values()), start=Size(0)
            ),
        )

    def getResources(self, task: Task) -> TaskResources:
        """Return the effective resources of the task."""
        return self._resources[task.name]

    def getRejected(self) -> dict[str, str]:
        """
        Return the tasks that can never run, mapped to the reason.

        A task is rejected if it requests more than the capacity provides,
        longer walltime than allowed, a partition that is not allowed,
        or if any of its dependencies is rejected.
        """
        rejected: dict[str, str] = {}
        for name in self._workflow.getTopologicalOrder():
            task = self._workflow.getTask(name)
            if reason := self._workflow.capacity.getRejectionReason(
                self._resources[name]
            ):
                rejected[name] = reason
            elif blocked := [dep for dep in task.depend if dep in rejected]:
                rejected[name] = f"depends on rejected task '{blocked[0]}'"

        for name, reason in rejected.items():
            logger.debug(f"Task '{name}' rejected: {reason}.")

        return rejected

    def selectConcurrent(
        self, candidates: list[Task], free: Usage | None = None
    ) -> list[Task]:
        """
        Select tasks that may be started together within the free resources.

        Candidates are considered in order of descending priority and then in
        order of declaration. Candidates that do not fit are skipped.

        Args:
            candidates (list[Task]): Tasks eligible to start.
            free (Usage | None): Resources currently free. Defaults to the whole capacity.

        Returns:
            list[Task]: Selected tasks in the order they were admitted.
        """
        free = self._total if free is None else free
        selected = []

        for task in sorted(candidates, key=lambda t: (-t.priority, self._order[t.name])):
            usage = Usage.ofResources(self._resources[task.name])
            if not usage.fitsIn(free):
                logger.debug(f"Task '{task.name}' does not fit into free resources.")
                continue

            selected.append(task)
            free = free - usage

        return selected

    def firstWave(self) -> list[Task]:
        """Return the tasks that may run concurrently right at the start."""
        rejected = self.getRejected()
        eligible = [
            task
            for task in self._workflow.tasks
            if task.name not in rejected and not task.depend
        ]
        return self.selectConcurrent(eligible)

    def simulate(self) -> Schedule:
        """
        Simulate the execution of the workflow.

        Eligible tasks (all dependencies finished) are admitted, time advances
        to the earliest completion, resources of completed tasks are released,
        and the cycle repeats until no task is running.

        Returns:
            Schedule: Start and end offsets of all tasks that ran and the reasons
            for rejecting the others.
        """
        rejected = self.getRejected()
        entries = {
            task.name: ScheduleEntry(
                task=task,
                resources=self._resources[task.name],
                state=TaskState.REJECTED if task.name in rejected else TaskState.PENDING,
                reason=rejected.get(task.name),
            )
            for task in self._workflow.tasks
        }

        now = timedelta(0)
        free = self._total
        running: list[ScheduleEntry] = []
        finished: set[str] = set()
        first_wave: list[str] = []

        while True:
            eligible = [
                entry.task
                for entry in entries.values()
                if entry.state == TaskState.PENDING
                and all(dep in finished for dep in entry.task.depend)
            ]

            admitted = self.selectConcurrent(eligible, free)
            if now == timedelta(0) and not first_wave:
                first_wave = [task.name for task in admitted]

            for task in admitted:
                entry = entries[task.name]
                entry.state = TaskState.RUNNING
                entry.start = now
                entry.end = now + entry.resources.getWalltime()
                free = free - entry.usage
                running.append(entry)
                logger.debug(f"[{now}] Started task '{task.name}'.")

            if not running:
                break

            now = min(entry.end for entry in running)  # ty: ignore[no-matching-overload]
            for entry in [e for e in running if e.end == now]:
                entry.state = TaskState.FINISHED
                running.remove(entry)
                free = free + entry.usage
                finished.add(entry.task.name)
                logger.debug(f"[{now}] Finished task '{entry.task.name}'.")

        return Schedule(
            capacity=self._workflow.capacity,
            entries=list(entries.values()),
            first_wave=first_wave,
        )
