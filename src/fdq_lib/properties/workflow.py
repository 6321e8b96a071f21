# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Workflow declarations loaded from YAML files.

This module defines the `Workflow` dataclass, which combines a global
`Capacity`, default task resources, and an ordered list of `Task`s, and
loads it from a YAML file. Both fdq's own spelling of the options and the
spelling used by common workflow managers in their cluster profiles are
accepted:

    capacity:                # or 'resources'
      ncpus: 16              # or 'cores'
      mem: 64gb              # or 'mem_mb' (integer megabytes)
      max_walltime: 2d       # or 'max_runtime' (integer minutes)
      partitions: [short, long]
    default-resources:
      ncpus: 1               # or 'threads'
      mem: 2gb
      walltime: 1h           # or 'time', or 'runtime' (integer minutes)
    tasks:                   # a list, or a mapping 'rules' of name -> declaration
      - name: align
        threads: 8
        mem_mb: 16000
        partition: long
        depend: [index]
        priority: 1

Keys are case-insensitive and `-` is equivalent to `_`.
"""

from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from pathlib import Path
from typing import Self

import yaml

from fdq_lib.core.common import load_yaml_loader, normalize_keys
from fdq_lib.core.error import FDQError, FDQParseError
from fdq_lib.core.logger import get_logger

from .capacity import Capacity
from .resources import TaskResources
from .task import Task

logger = get_logger(__name__)

SafeLoader: type[yaml.SafeLoader] = load_yaml_loader()

# accepted spelling => canonical option
_CAPACITY_ALIASES = {
    "ncpus": "ncpus",
    "cores": "ncpus",
    "cpus": "ncpus",
    "mem": "mem",
    "mem_mb": "mem",
    "max_walltime": "max_walltime",
    "max_runtime": "max_walltime",
    "partitions": "partitions",
}

_RESOURCES_ALIASES = {
    "ncpus": "ncpus",
    "threads": "ncpus",
    "cpus_per_task": "ncpus",
    "mem": "mem",
    "mem_mb": "mem",
    "mem_per_cpu": "mem_per_cpu",
    "mem_mb_per_cpu": "mem_per_cpu",
    "walltime": "walltime",
    "time": "walltime",
    "runtime": "walltime",
    "partition": "partition",
    "slurm_partition": "partition",
}

_TASK_ALIASES = {
    "name": "name",
    "depend": "depend",
    "after": "depend",
    "priority": "priority",
}

# options whose plain integer values are minutes
_MINUTE_OPTIONS = {"max_runtime", "runtime", "time"}


@dataclass
class Workflow:
    """
    A set of tasks competing for a shared capacity.
    """

    # Resources available to all tasks together
    capacity: Capacity

    # Tasks in declaration order
    tasks: list[Task] = field(default_factory=list)

    # Resources used by tasks that do not declare them
    default_resources: TaskResources = field(default_factory=TaskResources)

    def __post_init__(self):
        names = [task.name for task in self.tasks]
        if duplicates := sorted({name for name in names if names.count(name) > 1}):
            raise FDQError(f"Task names must be unique: {', '.join(duplicates)}.")

        for task in self.tasks:
            if unknown := [dep for dep in task.depend if dep not in names]:
                raise FDQError(
                    f"Task '{task.name}' depends on unknown tasks: {', '.join(unknown)}."
                )

        # raises on cycles
        self.getTopologicalOrder()

    @classmethod
    def fromFile(cls, file: Path) -> Self:
        """
        Load a workflow from a YAML file.

        Args:
            file (Path): Path to the YAML file.

        Returns:
            Workflow: The loaded workflow.

        Raises:
            FDQError: If the file cannot be read or does not describe a valid workflow.
        """
        try:
            with file.open() as f:
                data = yaml.load(f, Loader=SafeLoader)
        except FileNotFoundError as e:
            raise FDQError(f"Workflow file '{file}' does not exist.") from e
        except OSError as e:
            raise FDQError(f"Could not read workflow file '{file}': {e.strerror}.") from e
        except (yaml.YAMLError, ValueError) as e:
            raise FDQParseError(f"Could not parse workflow file '{file}': {e}.") from e

        logger.debug(f"Loaded workflow data from '{file}': {data}.")
        return cls.fromDict(data)

    @classmethod
    def fromDict(cls, data: object) -> Self:
        """
        Create a workflow from parsed YAML data.

        Raises:
            FDQError: If the data does not describe a valid workflow.
        """
        if not isinstance(data, dict):
            raise FDQParseError("Workflow must be a mapping.")

        data = normalize_keys(data)

        capacity_data = cls._pickOne(data, "capacity", "resources", section="workflow")
        if capacity_data is None:
            raise FDQParseError("Workflow does not define a capacity.")

        defaults_data = data.get("default_resources") or {}

        tasks_data = cls._pickOne(data, "tasks", "rules", section="workflow") or []
        if isinstance(tasks_data, dict):
            tasks_data = [
                {"name": name, **(declaration or {})}
                for name, declaration in tasks_data.items()
            ]
        if not isinstance(tasks_data, list):
            raise FDQParseError("Tasks must be a list or a mapping.")

        return cls(
            capacity=cls._parseCapacity(capacity_data),
            tasks=[cls._parseTask(task) for task in tasks_data],
            default_resources=cls._parseResources(defaults_data, "default-resources"),
        )

    def getTask(self, name: str) -> Task:
        """
        Return the task with the given name.

        Raises:
            FDQError: If there is no such task.
        """
        for task in self.tasks:
            if task.name == name:
                return task

        raise FDQError(f"Task '{name}' does not exist.")

    def getResources(self, task: Task) -> TaskResources:
        """
        Return the effective resources of the task.

        Resources declared by the task take precedence over the workflow's
        default resources, which take precedence over the configured defaults.
        """
        return TaskResources.mergeResources(
            task.resources, self.default_resources, TaskResources.default()
        )

    def getTopologicalOrder(self) -> list[str]:
        """
        Return task names ordered so that every task follows its dependencies.

        Raises:
            FDQError: If the dependencies contain a cycle.
        """
        sorter = TopologicalSorter({task.name: task.depend for task in self.tasks})
        try:
            return list(sorter.static_order())
        except CycleError as e:
            raise FDQError(
                f"Dependencies contain a cycle: {' -> '.join(e.args[1])}."
            ) from e

    @staticmethod
    def _pickOne(data: dict, *keys: str, section: str) -> object:
        """
        Return the value of the only key from `keys` present in `data`.

        Raises:
            FDQParseError: If more than one of the keys is present.
        """
        present = [key for key in keys if key in data]
        if len(present) > 1:
            raise FDQParseError(
                f"Options {', '.join(present)} of {section} cannot be combined."
            )

        return data[present[0]] if present else None

    @staticmethod
    def _canonicalize(
        data: object, aliases: dict[str, str], section: str
    ) -> dict[str, object]:
        """
        Translate accepted spellings of options into canonical option names.

        Integer values of minute-based options are converted to walltimes.
        Unknown options are ignored with a warning.

        Raises:
            FDQParseError: If the data is not a mapping or an option is given twice.
        """
        if not isinstance(data, dict):
            raise FDQParseError(f"Section '{section}' must be a mapping.")

        result: dict[str, object] = {}
        for key, value in normalize_keys(data).items():
            if (canonical := aliases.get(key)) is None:
                logger.warning(f"Ignoring unknown option '{key}' in '{section}'.")
                continue

            if canonical in result:
                raise FDQParseError(
                    f"Option '{canonical}' is defined multiple times in '{section}'."
                )

            # bool is a subclass of int
            is_int = isinstance(value, int) and not isinstance(value, bool)
            if key in _MINUTE_OPTIONS and is_int:
                value = f"{value}m"
            elif is_int and canonical in {"walltime", "max_walltime"}:
                raise FDQParseError(
                    f"Walltime '{value}' in '{section}' needs a unit, e.g. '{value}m'."
                )

            result[canonical] = value

        return result

    @classmethod
    def _parseCapacity(cls, data: object) -> Capacity:
        options = cls._canonicalize(data, _CAPACITY_ALIASES, "capacity")
        if "ncpus" not in options:
            raise FDQParseError("Capacity does not define the number of CPU cores.")

        return Capacity(**options)  # ty: ignore[invalid-argument-type]

    @classmethod
    def _parseResources(cls, data: object, section: str) -> TaskResources:
        options = cls._canonicalize(data, _RESOURCES_ALIASES, section)
        return TaskResources(**options)  # ty: ignore[invalid-argument-type]

    @classmethod
    def _parseTask(cls, data: object) -> Task:
        if not isinstance(data, dict):
            raise FDQParseError(f"Task declaration must be a mapping, not '{data}'.")

        data = normalize_keys(data)
        name = str(data.get("name") or "")
        task_options = {
            _TASK_ALIASES[key]: value
            for key, value in data.items()
            if key in _TASK_ALIASES
        }
        resources = {
            key: value for key, value in data.items() if key not in _TASK_ALIASES
        }

        depend = task_options.get("depend") or []
        if isinstance(depend, str):
            depend = [d for d in depend.replace(",", " ").split() if d]

        try:
            priority = int(task_options.get("priority") or 0)  # ty: ignore[invalid-argument-type]
        except (TypeError, ValueError) as e:
            raise FDQParseError(f"Invalid priority of task '{name}'.") from e

        return Task(
            name=name,
            resources=cls._parseResources(resources, f"task '{name}'"),
            depend=[str(d) for d in depend],  # ty: ignore[not-iterable]
            priority=priority,
        )
