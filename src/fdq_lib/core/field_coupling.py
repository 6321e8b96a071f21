# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Mutually exclusive dataclass fields ordered by dominance.

A resource may often be requested in more than one way, e.g. a total amount of
memory or an amount per CPU core. Such fields are coupled: when several of
them are set, only the most dominant one is kept.
"""

from typing import Any, Protocol


class FieldCoupling:
    """
    Represents a coupling among multiple fields, ordered by dominance.

    The earlier a field appears in `fields`, the more dominant it is.
    """

    def __init__(self, *fields: str):
        if len(fields) < 2:
            raise ValueError("FieldCoupling requires at least two fields")
        self.fields = tuple(fields)

    def contains(self, field_name: str) -> bool:
        """Return True if the field participates in this coupling."""
        return field_name in self.fields

    def hasValue(self, instance: Any) -> bool:
        """Return True if any of the coupled fields has a non-None value."""
        return self.getMostDominantSetField(instance) is not None

    def getMostDominantSetField(self, instance: Any) -> str | None:
        """
        Return the name of the most dominant field that has a non-None value,
        or None if none of them do.
        """
        return next(
            (f for f in self.fields if getattr(instance, f) is not None), None
        )

    def enforce(self, instance: Any) -> None:
        """Reset every set field except the most dominant one to None."""
        if (dominant := self.getMostDominantSetField(instance)) is None:
            return

        for field in self.fields:
            if field != dominant:
                setattr(instance, field, None)


def coupled_fields(*couplings: FieldCoupling):
    """
    Class decorator that enforces multi-field coupling rules in __post_init__
    and adds a `getCouplingForField` static method.
    """

    def decorator(cls):
        cls._field_couplings = couplings
        original_post_init = getattr(cls, "__post_init__", None)

        def __post_init__(self):
            for coupling in self._field_couplings:
                coupling.enforce(self)

            if original_post_init:
                original_post_init(self)

        def getCouplingForField(field_name: str) -> FieldCoupling | None:
            return next((c for c in couplings if c.contains(field_name)), None)

        cls.__post_init__ = __post_init__
        cls.getCouplingForField = staticmethod(getCouplingForField)
        return cls

    return decorator


class HasCouplingMethods(Protocol):
    """Protocol for classes decorated with @coupled_fields."""

    _field_couplings: tuple[FieldCoupling, ...]

    @staticmethod
    def getCouplingForField(field_name: str) -> FieldCoupling | None:
        """Return the FieldCoupling that contains the given field name, or None."""
        ...
