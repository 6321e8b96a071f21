# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Self

from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError


@total_ordering
@dataclass(init=False, eq=False)
class Size:
    """
    Represents an amount of memory.

    The value is stored internally in kilobytes (kB). When converted to a string,
    it is displayed in the largest human-readable unit such that the relative
    rounding error does not exceed `CFG.size.max_rounding_error`.
    """

    value: int

    _unit_map = {
        "kb": 1,
        "mb": 1024,
        "gb": 1024 * 1024,
        "tb": 1024 * 1024 * 1024,
    }

    def __init__(self, value: int, unit: str = "kb"):
        unit = unit.lower()
        if unit not in self._unit_map:
            raise FDQError(f"Unsupported unit for size '{unit}'.")
        if value < 0:
            raise FDQError(f"Size cannot be negative: '{value}{unit}'.")

        self.value = value * self._unit_map[unit]

    @classmethod
    def fromString(cls, s: str) -> Self:
        """
        Create a Size object from a string.

        Args:
            s (str): A string representation of the size, e.g., "10mb", "10 mb", "10m", "10M".

        Returns:
            Size: A Size instance with parsed value and unit.

        Raises:
            FDQError: If the string cannot be parsed or contains an invalid unit.
        """
        match = re.match(r"^\s*(\d+)\s*([a-zA-Z]+)\s*$", s)
        if not match:
            raise FDQError(f"Invalid size string: '{s}'.")
        value, unit = match.groups()

        # normalize single-letter units to their full form by appending 'b'
        if len(unit) == 1:
            unit = unit.lower() + "b"

        return cls(int(value), unit)

    @classmethod
    def fromValue(cls, value: object, default_unit: str = "kb") -> Self:
        """
        Create a Size object from a string, a plain number, or an existing Size.

        Plain numbers are interpreted in `default_unit` (e.g. `mem_mb: 4000`).

        Raises:
            FDQError: If the value cannot be converted.
        """
        if isinstance(value, Size):
            return cls(value.value)
        if isinstance(value, bool):
            raise FDQError(f"Invalid size: '{value}'.")
        if isinstance(value, int):
            return cls(value, default_unit)
        if isinstance(value, str):
            return cls.fromString(value)

        raise FDQError(f"Invalid size: '{value}'.")

    def __add__(self, other: "Size") -> "Size":
        if not isinstance(other, Size):
            return NotImplemented

        return Size(self.value + other.value)

    def __sub__(self, other: "Size") -> "Size":
        """
        Subtract one Size from another.

        Raises:
            ValueError: If the result would be negative.
        """
        if not isinstance(other, Size):
            return NotImplemented

        result_kb = self.value - other.value
        if result_kb < 0:
            raise ValueError("Resulting Size cannot be negative.")

        return Size(result_kb)

    def __mul__(self, n: int) -> "Size":
        if not isinstance(n, int):
            return NotImplemented

        return Size(self.value * n)

    # allow 3 * Size
    __rmul__ = __mul__

    def __truediv__(self, other: "Size") -> float:
        """
        Compute the ratio of this Size to another.

        Raises:
            TypeError: If `other` is not a Size instance.
            ZeroDivisionError: If `other` is a zero Size.
        """
        if not isinstance(other, Size):
            raise TypeError(
                f"Unsupported operand type(s) for /: 'Size' and '{type(other).__name__}'"
            )

        if other.value == 0:
            raise ZeroDivisionError("Division by zero size.")

        return self.value / other.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Size):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: "Size") -> bool:
        if not isinstance(other, Size):
            return NotImplemented
        return self.value < other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        if self.value == 0:
            return "0kb"

        for unit, factor in reversed(list(self._unit_map.items())):
            value = self.value / factor

            if value >= 1:
                rounded = round(value)
                # compute relative error from rounding
                error = abs(rounded * factor - self.value) / self.value
                if error <= CFG.size.max_rounding_error or unit == "kb":
                    return f"{rounded}{unit}"
                # otherwise, try smaller unit

        # should not get here
        return f"{self.value}kb"

    def __repr__(self) -> str:
        return f"Size({self.value}kb)"
