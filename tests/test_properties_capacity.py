# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import timedelta

import pytest

from fdq_lib.core.error import FDQError
from fdq_lib.properties.capacity import Capacity, Usage
from fdq_lib.properties.resources import TaskResources
from fdq_lib.properties.size import Size


@pytest.fixture
def capacity():
    return Capacity(ncpus=16, mem="64gb", max_walltime="2d", partitions=["short", "long"])


def test_capacity_init_converts_values():
    capacity = Capacity(ncpus="4", mem=8000, max_walltime="12h", partitions="short, long")

    assert capacity.ncpus == 4
    assert capacity.mem == Size(8000, "mb")
    assert capacity.max_walltime == "12:00:00"
    assert capacity.getMaxWalltime() == timedelta(hours=12)
    assert capacity.partitions == ["short", "long"]


def test_capacity_unlimited_defaults():
    capacity = Capacity(ncpus=2)

    assert capacity.mem is None
    assert capacity.getMaxWalltime() is None
    assert capacity.partitions is None


@pytest.mark.parametrize("ncpus", [0, -1, "lots", None])
def test_capacity_invalid_ncpus(ncpus):
    with pytest.raises(FDQError):
        Capacity(ncpus=ncpus)


def test_rejection_reason_none_for_fitting_task(capacity):
    resources = TaskResources(ncpus=16, mem="64gb", walltime="2d", partition="long")
    assert capacity.getRejectionReason(resources) is None


@pytest.mark.parametrize(
    "resources, fragment",
    [
        (TaskResources(ncpus=32), "32 CPU cores"),
        (TaskResources(ncpus=1, mem="128gb"), "of memory"),
        (TaskResources(ncpus=8, mem_per_cpu="10gb"), "of memory"),
        (TaskResources(walltime="3d"), "walltime"),
        (TaskResources(partition="gpu"), "partition 'gpu'"),
    ],
)
def test_rejection_reason(capacity, resources, fragment):
    reason = capacity.getRejectionReason(resources)

    assert reason is not None
    assert fragment in reason


def test_rejection_reason_unlimited_capacity():
    capacity = Capacity(ncpus=4)
    resources = TaskResources(mem="1tb", walltime="10w", partition="anything")

    assert capacity.getRejectionReason(resources) is None


def test_with_overrides(capacity):
    overridden = capacity.withOverrides(ncpus=4, mem="8gb")

    assert overridden.ncpus == 4
    assert overridden.mem == Size(8, "gb")
    assert overridden.max_walltime == capacity.max_walltime
    assert overridden.partitions == capacity.partitions
    # the original is unchanged
    assert capacity.ncpus == 16

    assert capacity.withOverrides(max_walltime="1h").max_walltime == "1:00:00"
    assert capacity.withOverrides() == capacity


def test_usage_arithmetic():
    a = Usage(2, Size(4, "gb"))
    b = Usage(1, Size(1, "gb"))

    assert a + b == Usage(3, Size(5, "gb"))
    assert a - b == Usage(1, Size(3, "gb"))
    assert Usage() == Usage(0, Size(0))


def test_usage_of_resources():
    usage = Usage.ofResources(TaskResources(ncpus=4, mem_per_cpu="1gb"))
    assert usage == Usage(4, Size(4, "gb"))


def test_usage_fits_in():
    free = Usage(4, Size(8, "gb"))

    assert Usage(4, Size(8, "gb")).fitsIn(free)
    assert not Usage(5, Size(1, "gb")).fitsIn(free)
    assert not Usage(1, Size(9, "gb")).fitsIn(free)


@pytest.mark.parametrize("ncpus", [2.5, True])
def test_capacity_rejects_non_integer_ncpus(ncpus):
    with pytest.raises(FDQError, match="Invalid number of CPU cores"):
        Capacity(ncpus=ncpus)


def test_capacity_validates_max_walltime():
    with pytest.raises(FDQError):
        Capacity(ncpus=1, max_walltime="1:99:00")
    with pytest.raises(FDQError, match="Invalid walltime"):
        Capacity(ncpus=1, max_walltime=172800)
