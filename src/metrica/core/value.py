"""
metrica.core.value
==================

Values tagged with a unit, and the operations allowed on them.

A `TypedValue` pairs a float with the `UnitHandle` it is expressed in. Every
operation returns a new value; nothing is mutated. Operations that combine
two values first convert the right-hand value into the unit of the left-hand
one, so results always carry the left operand's unit.

Conversion always goes through the reference unit::

    target.from_basis(source.to_basis(value))

Operator forms
--------------
``tv >> unit``   convert (`convert`)
``a + b``        `add`
``a - b``        `sub`
``a * k``        `mult` (``k`` must be a plain number)
``<, <=, >, >=`` `compare`
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from metrica.core.errors import (
    IncompatibleUnits,
    IncompatibleValue,
    IntensiveOperationNotAllowed,
)
from metrica.core.system import UnitHandle

Number = Union[int, float]


class Comparison(str, Enum):
    EQ = "eq"
    LT = "lt"
    GT = "gt"


@dataclass(frozen=True, slots=True, eq=False)
class TypedValue:
    """A scalar expressed in a specific unit."""

    unit: UnitHandle
    value: float

    def __post_init__(self) -> None:
        if not isinstance(self.unit, UnitHandle):
            raise TypeError(f"unit must be a UnitHandle, got {type(self.unit).__name__}")
        object.__setattr__(self, "value", float(self.value))

    # --- method forms -------------------------------------------------------
    def unwrap(self) -> float:
        return self.value

    def to(self, unit: UnitHandle) -> "TypedValue":
        return convert(self, unit)

    def map(self, f: Callable[[float], float]) -> "TypedValue":
        return map(self, f)

    def map2(self, other: "TypedValue", f: Callable[[float, float], float]) -> "TypedValue":
        return map2(self, other, f)

    def compare(self, other: "TypedValue") -> Comparison:
        return compare(self, other)

    # --- operators ----------------------------------------------------------
    def __rshift__(self, unit: object) -> "TypedValue":
        if not isinstance(unit, UnitHandle):
            return NotImplemented
        return convert(self, unit)

    def __add__(self, other: object) -> "TypedValue":
        if not isinstance(other, TypedValue):
            return NotImplemented
        return add(self, other)

    def __sub__(self, other: object) -> "TypedValue":
        if not isinstance(other, TypedValue):
            return NotImplemented
        return sub(self, other)

    def __mul__(self, scalar: object) -> "TypedValue":
        if isinstance(scalar, bool) or not isinstance(scalar, (int, float)):
            return NotImplemented
        return mult(self, scalar)

    def __rmul__(self, scalar: object) -> "TypedValue":
        return self.__mul__(scalar)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return NotImplemented
        if not self.unit.is_compatible(other.unit):
            return False
        return convert(other, self.unit).value == self.value

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None  # type: ignore[assignment]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return NotImplemented
        return compare(self, other) is Comparison.LT

    def __le__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return NotImplemented
        return compare(self, other) is not Comparison.GT

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return NotImplemented
        return compare(self, other) is Comparison.GT

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return NotImplemented
        return compare(self, other) is not Comparison.LT

    def __float__(self) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"TypedValue({self.unit.system_name}.{self.unit.unit_id}, {self.value!r})"

    def __str__(self) -> str:
        return f"{self.value:.15g} {self.unit.unit_id}"


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def unwrap(tv: TypedValue) -> float:
    """Return the bare number held by ``tv``."""
    return tv.value


def construct(unit: UnitHandle, value: Number) -> TypedValue:
    return TypedValue(unit, float(value))


def _check_compatible(source: UnitHandle, target: UnitHandle) -> None:
    if not source.is_compatible(target):
        raise IncompatibleUnits(
            f"{source.system_name}.{source.unit_id} is not compatible with "
            f"{target.system_name}.{target.unit_id}"
        )


def convert(tv: TypedValue, to: UnitHandle) -> TypedValue:
    """
    Express ``tv`` in unit ``to``.

    Raises
    ------
    IncompatibleUnits
        If ``to`` belongs to another metric system.
    IncompatibleValue
        If the value has no image in ``to`` (e.g. 0 into a ``k / x`` unit).
    """
    _check_compatible(tv.unit, to)
    try:
        result = to.from_basis(tv.unit.to_basis(tv.value))
    except ZeroDivisionError:
        raise IncompatibleValue(
            f"{tv.value!r} {tv.unit.unit_id} cannot be expressed in {to.unit_id}"
        ) from None
    return TypedValue(to, result)


def map(tv: TypedValue, f: Callable[[float], float]) -> TypedValue:  # noqa: A001
    """Apply ``f`` to the number and keep the unit. Ignores intensiveness."""
    return TypedValue(tv.unit, f(tv.value))


def map2(
    tv1: TypedValue, tv2: TypedValue, f: Callable[[float, float], float]
) -> TypedValue:
    """Apply ``f`` to both numbers after converting ``tv2`` into ``tv1``'s unit."""
    right = convert(tv2, tv1.unit).value
    return TypedValue(tv1.unit, f(tv1.value, right))


def compare(tv1: TypedValue, tv2: TypedValue) -> Comparison:
    """
    Order ``tv1`` against ``tv2`` once both are in ``tv1``'s unit.

    NaN on either side cannot be ordered and raises `IncompatibleValue`
    instead of reporting equality.
    """
    left = tv1.value
    right = convert(tv2, tv1.unit).value
    if math.isnan(left) or math.isnan(right):
        raise IncompatibleValue(f"Cannot order {left!r} and {right!r}")
    if left > right:
        return Comparison.GT
    if right > left:
        return Comparison.LT
    return Comparison.EQ


def _check_extensive(tv: TypedValue, operation: str) -> None:
    if tv.unit.intensive:
        raise IntensiveOperationNotAllowed(
            f"{operation} is not allowed in intensive system {tv.unit.system_name!r}"
        )


def add(tv1: TypedValue, tv2: TypedValue) -> TypedValue:
    _check_extensive(tv1, "Addition")
    return map2(tv1, tv2, lambda a, b: a + b)


def sub(tv1: TypedValue, tv2: TypedValue) -> TypedValue:
    _check_extensive(tv1, "Subtraction")
    return map2(tv1, tv2, lambda a, b: a - b)


def mult(tv: TypedValue, scalar: Number) -> TypedValue:
    _check_extensive(tv, "Multiplication")
    k = float(scalar)
    return map(tv, lambda x: x * k)


__all__ = [
    "Comparison",
    "TypedValue",
    "unwrap",
    "construct",
    "convert",
    "map",
    "map2",
    "compare",
    "add",
    "sub",
    "mult",
]
