# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import timedelta
from pathlib import Path
from textwrap import dedent

import pytest
import yaml

from fdq_lib.core.error import FDQError, FDQParseError
from fdq_lib.properties.capacity import Capacity
from fdq_lib.properties.size import Size
from fdq_lib.properties.task import Task
from fdq_lib.properties.workflow import Workflow

WORKFLOW_YAML = dedent(
    """
    capacity:
      ncpus: 16
      mem: 64gb
      max_walltime: 2d
      partitions: [short, long]
    default-resources:
      ncpus: 1
      mem: 2gb
      walltime: 1h
      partition: short
    tasks:
      - name: index
        walltime: 30m
      - name: align
        threads: 8
        mem_mb: 16000
        runtime: 240
        partition: long
        depend: [index]
        priority: 1
    """
)

RULES_YAML = dedent(
    """
    resources:
      cores: 8
      mem_mb: 32000
      max_runtime: 600
    Default-Resources:
      Mem-MB: 1000
      Time: "0:10:00"
    rules:
      fetch:
      trim:
        threads: 2
        after: fetch
      report:
        after: "fetch, trim"
    """
)


@pytest.fixture
def workflow_file(tmp_path) -> Path:
    path = tmp_path / "workflow.yaml"
    path.write_text(WORKFLOW_YAML)
    return path


def test_from_file(workflow_file):
    workflow = Workflow.fromFile(workflow_file)

    assert workflow.capacity == Capacity(
        ncpus=16, mem="64gb", max_walltime="2d", partitions=["short", "long"]
    )
    assert [task.name for task in workflow.tasks] == ["index", "align"]

    align = workflow.getTask("align")
    assert align.resources.ncpus == 8
    assert align.resources.mem == Size(16000, "mb")
    assert align.resources.walltime == "4:00:00"
    assert align.depend == ["index"]
    assert align.priority == 1


def test_effective_resources(workflow_file):
    workflow = Workflow.fromFile(workflow_file)

    index = workflow.getResources(workflow.getTask("index"))
    assert index.ncpus == 1
    assert index.getTotalMem() == Size(2, "gb")
    assert index.getWalltime() == timedelta(minutes=30)
    assert index.partition == "short"

    align = workflow.getResources(workflow.getTask("align"))
    assert align.partition == "long"
    assert align.getWalltime() == timedelta(hours=4)


def test_from_dict_workflow_manager_spelling():
    workflow = Workflow.fromDict(yaml.safe_load(RULES_YAML))

    assert workflow.capacity.ncpus == 8
    assert workflow.capacity.mem == Size(32000, "mb")
    assert workflow.capacity.max_walltime == "10:00:00"
    assert [task.name for task in workflow.tasks] == ["fetch", "trim", "report"]
    assert workflow.getTask("report").depend == ["fetch", "trim"]

    trim = workflow.getResources(workflow.getTask("trim"))
    assert trim.ncpus == 2
    assert trim.getTotalMem() == Size(1000, "mb")
    assert trim.walltime == "0:10:00"


def test_configured_defaults_fill_missing_values():
    workflow = Workflow.fromDict({"capacity": {"ncpus": 2}, "tasks": [{"name": "a"}]})

    resources = workflow.getResources(workflow.getTask("a"))
    assert resources.ncpus == 1
    assert resources.getTotalMem() == Size(1, "gb")
    assert resources.walltime == "1:00:00"


def test_topological_order():
    workflow = Workflow(
        capacity=Capacity(ncpus=1),
        tasks=[
            Task("c", depend=["b"]),
            Task("a"),
            Task("b", depend=["a"]),
        ],
    )

    order = workflow.getTopologicalOrder()
    assert order.index("a") < order.index("b") < order.index("c")


def test_duplicate_task_names_raise():
    with pytest.raises(FDQError, match="unique: a"):
        Workflow(capacity=Capacity(ncpus=1), tasks=[Task("a"), Task("a")])


def test_unknown_dependency_raises():
    with pytest.raises(FDQError, match="unknown tasks: missing"):
        Workflow(capacity=Capacity(ncpus=1), tasks=[Task("a", depend=["missing"])])


def test_dependency_cycle_raises():
    with pytest.raises(FDQError, match="cycle"):
        Workflow(
            capacity=Capacity(ncpus=1),
            tasks=[Task("a", depend=["b"]), Task("b", depend=["a"])],
        )


def test_get_task_missing():
    workflow = Workflow(capacity=Capacity(ncpus=1))

    with pytest.raises(FDQError, match="does not exist"):
        workflow.getTask("a")


@pytest.mark.parametrize(
    "data, message",
    [
        ([], "must be a mapping"),
        ({"tasks": []}, "does not define a capacity"),
        ({"capacity": {"mem": "1gb"}}, "number of CPU cores"),
        ({"capacity": {"ncpus": 1, "cores": 2}}, "defined multiple times"),
        ({"capacity": {"ncpus": 1}, "resources": {"ncpus": 1}}, "cannot be combined"),
        ({"capacity": 4}, "must be a mapping"),
        ({"capacity": {"ncpus": 1}, "tasks": "a"}, "list or a mapping"),
        ({"capacity": {"ncpus": 1}, "tasks": ["a"]}, "must be a mapping"),
        ({"capacity": {"ncpus": 1}, "tasks": [{"name": "a", "walltime": 30}]}, "needs a unit"),
        ({"capacity": {"ncpus": 1}, "tasks": [{"name": "a", "priority": "high"}]}, "Invalid priority"),
    ],
)
def test_from_dict_invalid(data, message):
    with pytest.raises(FDQParseError, match=message):
        Workflow.fromDict(data)


def test_from_dict_unknown_option_is_ignored():
    workflow = Workflow.fromDict(
        {"capacity": {"ncpus": 1}, "tasks": [{"name": "a", "conda": "env.yaml"}]}
    )

    assert workflow.getTask("a").resources.ncpus is None


def test_from_file_missing(tmp_path):
    with pytest.raises(FDQError, match="does not exist"):
        Workflow.fromFile(tmp_path / "missing.yaml")


def test_from_file_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("capacity: [unclosed\n")

    with pytest.raises(FDQParseError, match="Could not parse"):
        Workflow.fromFile(path)


def test_from_file_hhmmss_walltimes(tmp_path):
    path = tmp_path / "workflow.yaml"
    path.write_text(
        dedent(
            """
            capacity:
              ncpus: 4
              max_walltime: 48:00:00
            default-resources:
              walltime: "0:30:00"
            rules:
              unquoted:
                walltime: 2:00:00
              minutes:
                runtime: 1:30:00
              quoted:
                runtime: "12:00:00"
              plain:
                runtime: 90
            """
        )
    )

    workflow = Workflow.fromFile(path)

    assert workflow.capacity.max_walltime == "48:00:00"
    walltimes = {
        task.name: workflow.getResources(task).getWalltime() for task in workflow.tasks
    }
    assert walltimes == {
        "unquoted": timedelta(hours=2),
        "minutes": timedelta(hours=1, minutes=30),
        "quoted": timedelta(hours=12),
        "plain": timedelta(minutes=90),
    }


@pytest.mark.parametrize(
    "options",
    [
        {"walltime": 1.5},
        {"runtime": True},
        {"threads": 2.5},
        {"threads": True},
    ],
)
def test_from_dict_invalid_resource_types(options):
    with pytest.raises(FDQError, match="Invalid"):
        Workflow.fromDict({"capacity": {"ncpus": 4}, "tasks": [{"name": "a", **options}]})


def test_from_dict_invalid_capacity_walltime():
    with pytest.raises(FDQError, match="Invalid"):
        Workflow.fromDict({"capacity": {"ncpus": 4, "max_walltime": 2.5}})
