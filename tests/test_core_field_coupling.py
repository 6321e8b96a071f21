# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from dataclasses import dataclass

import pytest

from fdq_lib.core.field_coupling import FieldCoupling, HasCouplingMethods, coupled_fields


@dataclass
class Memory:
    mem: str | None = None
    mem_per_cpu: str | None = None
    mem_per_node: str | None = None


def test_field_coupling_requires_two_fields():
    with pytest.raises(ValueError):
        FieldCoupling("mem")


def test_field_coupling_contains():
    coupling = FieldCoupling("mem", "mem_per_cpu")

    assert coupling.fields == ("mem", "mem_per_cpu")
    assert coupling.contains("mem")
    assert coupling.contains("mem_per_cpu")
    assert not coupling.contains("ncpus")


def test_field_coupling_most_dominant_set_field():
    coupling = FieldCoupling("mem", "mem_per_cpu", "mem_per_node")

    assert coupling.getMostDominantSetField(Memory()) is None
    assert coupling.getMostDominantSetField(Memory(mem_per_node="1gb")) == "mem_per_node"
    assert (
        coupling.getMostDominantSetField(Memory(mem_per_cpu="1gb", mem_per_node="2gb"))
        == "mem_per_cpu"
    )
    assert coupling.hasValue(Memory(mem="1gb"))
    assert not coupling.hasValue(Memory())


def test_field_coupling_enforce_keeps_only_dominant():
    coupling = FieldCoupling("mem", "mem_per_cpu", "mem_per_node")
    instance = Memory(mem="4gb", mem_per_cpu="1gb", mem_per_node="2gb")

    coupling.enforce(instance)

    assert instance.mem == "4gb"
    assert instance.mem_per_cpu is None
    assert instance.mem_per_node is None


def test_coupled_fields_enforces_on_init_and_calls_original_post_init():
    calls = []

    @dataclass
    @coupled_fields(FieldCoupling("mem", "mem_per_cpu"))
    class Resources(HasCouplingMethods):
        mem: str | None = None
        mem_per_cpu: str | None = None
        ncpus: int | None = None

        def __post_init__(self):
            calls.append(self.mem_per_cpu)

    resources = Resources(mem="8gb", mem_per_cpu="1gb", ncpus=4)

    assert resources.mem == "8gb"
    assert resources.mem_per_cpu is None
    assert resources.ncpus == 4
    # coupling is enforced before the original __post_init__
    assert calls == [None]


def test_coupled_fields_get_coupling_for_field():
    coupling = FieldCoupling("mem", "mem_per_cpu")

    @dataclass
    @coupled_fields(coupling)
    class Resources(HasCouplingMethods):
        mem: str | None = None
        mem_per_cpu: str | None = None
        ncpus: int | None = None

    assert Resources.getCouplingForField("mem") is coupling
    assert Resources.getCouplingForField("mem_per_cpu") is coupling
    assert Resources.getCouplingForField("ncpus") is None
