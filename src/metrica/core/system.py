"""
metrica.core.system
===================

Metric systems: one reference unit plus derived units, built once and then
frozen.

Example
-------
>>> from metrica.core.expression import Var
>>> builder = begin_system(name="distance")
>>> m = builder.set_reference("m")
>>> cm = builder.derive("cm", Var("m") / 100)
>>> distance = builder.finish()
>>> distance.cm is cm
True
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Mapping, Optional

from metrica.core.errors import (
    DuplicateReference,
    DuplicateUnit,
    MalformedRatioExpression,
    ReferenceNotSet,
    SystemFrozen,
)
from metrica.core.expression import (
    RatioExpression,
    Transform,
    compile_ratio,
    identity,
    var_names,
)

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from metrica.core.value import TypedValue

logger = logging.getLogger(__name__)

_ids = itertools.count(1)
_ids_lock = threading.Lock()


def _next_system_id() -> int:
    with _ids_lock:
        return next(_ids)


@dataclass(frozen=True, slots=True)
class UnitHandle:
    """
    One unit of one metric system.

    Attributes
    ----------
    system_id : int
        Process-unique identifier of the owning system.
    unit_id : str
        Identifier of the unit, unique within its system.
    intensive : bool
        Copied from the owning system; forbids ``+``, ``-`` and scaling.
    to_basis : Callable[[float], float]
        Converts a value in this unit to the reference unit.
    from_basis : Callable[[float], float]
        Converts a value in the reference unit to this unit.
    system_name : str
        Label of the owning system, used in messages only.
    ratio : RatioExpression | None
        The declaring expression; ``None`` for the reference unit.
    """

    system_id: int
    unit_id: str
    intensive: bool
    to_basis: Transform = field(repr=False)
    from_basis: Transform = field(repr=False)
    system_name: str = ""
    ratio: Optional[RatioExpression] = field(default=None, repr=False)

    @property
    def is_reference(self) -> bool:
        return self.ratio is None

    def is_compatible(self, other: "UnitHandle") -> bool:
        return self.system_id == other.system_id

    def __call__(self, value: float) -> "TypedValue":
        from metrica.core.value import construct

        return construct(self, value)

    # Closures compare by identity; a unit is identified by where it lives.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnitHandle):
            return NotImplemented
        return self.system_id == other.system_id and self.unit_id == other.unit_id

    def __hash__(self) -> int:
        return hash((self.system_id, self.unit_id))

    def __str__(self) -> str:
        return self.unit_id


class MetricSystem:
    """
    A frozen collection of units sharing one reference unit.

    Units are looked up by identifier, either by subscription
    (``system["cm"]``) or as attributes (``system.cm``). Attribute access
    cannot reach a unit whose identifier shadows a method or property; use
    subscription for those.
    """

    __slots__ = ("_name", "_system_id", "_intensive", "_reference", "_units")

    def __init__(
        self,
        name: str,
        system_id: int,
        intensive: bool,
        reference: UnitHandle,
        units: Mapping[str, UnitHandle],
    ) -> None:
        self._name = name
        self._system_id = system_id
        self._intensive = intensive
        self._reference = reference
        self._units = MappingProxyType(dict(units))

    @classmethod
    def from_declarations(
        cls,
        lines: Iterable[str],
        intensive: bool = False,
        name: Optional[str] = None,
    ) -> "MetricSystem":
        """Build a system from declarations such as ``"m"`` and ``"cm = m / 100"``."""
        builder = begin_system(intensive=intensive, name=name)
        for line in lines:
            builder.define(line)
        return builder.finish()

    @property
    def name(self) -> str:
        return self._name

    @property
    def system_id(self) -> int:
        return self._system_id

    @property
    def intensive(self) -> bool:
        return self._intensive

    @property
    def reference(self) -> UnitHandle:
        return self._reference

    @property
    def units(self) -> Mapping[str, UnitHandle]:
        return self._units

    def get(self, unit_id: str) -> UnitHandle:
        try:
            return self._units[unit_id]
        except KeyError:
            raise KeyError(f"Unknown unit {unit_id!r} in system {self._name!r}") from None

    def __getitem__(self, unit_id: str) -> UnitHandle:
        return self.get(unit_id)

    def __getattr__(self, name: str) -> UnitHandle:
        # Only called when normal attribute lookup fails.
        try:
            return object.__getattribute__(self, "_units")[name]
        except (KeyError, AttributeError):
            raise AttributeError(name) from None

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._units

    def __iter__(self) -> Iterator[str]:
        return iter(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._units))

    def __repr__(self) -> str:
        kind = "intensive" if self._intensive else "extensive"
        return f"MetricSystem({self._name!r}, {kind}, units={list(self._units)})"


class SystemBuilder:
    """
    Mutable builder for one `MetricSystem`.

    Intended for single-threaded use while a system is being declared.
    """

    def __init__(self, intensive: bool = False, name: Optional[str] = None) -> None:
        self._system_id = _next_system_id()
        self._name = name if name is not None else f"system{self._system_id}"
        self._intensive = bool(intensive)
        self._reference: Optional[UnitHandle] = None
        self._units: Dict[str, UnitHandle] = {}
        self._finished = False

    @property
    def name(self) -> str:
        return self._name

    def _check_open(self) -> None:
        if self._finished:
            raise SystemFrozen(f"System {self._name!r} is already finished")

    def _check_new(self, unit_id: str) -> None:
        if not isinstance(unit_id, str) or not unit_id:
            raise ValueError(f"Unit identifier must be a non-empty string, got {unit_id!r}")
        if unit_id in self._units:
            raise DuplicateUnit(f"{unit_id} is already defined in {self._name!r}")

    def set_reference(self, unit_id: str) -> UnitHandle:
        self._check_open()
        if self._reference is not None:
            raise DuplicateReference(
                f"Basis is already defined ({self._reference.unit_id}) in {self._name!r}"
            )
        self._check_new(unit_id)
        unit = UnitHandle(
            self._system_id, unit_id, self._intensive, identity, identity, self._name
        )
        self._reference = unit
        self._units[unit_id] = unit
        logger.debug("%s: reference unit %r", self._name, unit_id)
        return unit

    def derive(self, unit_id: str, expr: RatioExpression) -> UnitHandle:
        self._check_open()
        if self._reference is None:
            raise ReferenceNotSet(
                f"Basis must be defined before {unit_id!r} in {self._name!r}"
            )
        self._check_new(unit_id)
        to_basis, from_basis = compile_ratio(expr)
        unit = UnitHandle(
            self._system_id,
            unit_id,
            self._intensive,
            to_basis,
            from_basis,
            self._name,
            expr,
        )
        self._units[unit_id] = unit
        logger.debug("%s: derived unit %r = %s", self._name, unit_id, expr)
        return unit

    def define(self, declaration: str) -> UnitHandle:
        """Apply a textual declaration: ``"m"`` or ``"cm = m / 100"``."""
        from metrica.units.parser import parse_declaration

        unit_id, expr = parse_declaration(declaration)
        if expr is None:
            return self.set_reference(unit_id)
        if self._reference is not None:
            stray = var_names(expr) - {self._reference.unit_id}
            if stray:
                raise MalformedRatioExpression(
                    f"Only the reference unit {self._reference.unit_id!r} can be used "
                    f"as variable in {declaration!r}, got {sorted(stray)}"
                )
        return self.derive(unit_id, expr)

    def finish(self) -> MetricSystem:
        self._check_open()
        if self._reference is None:
            raise ReferenceNotSet(f"System {self._name!r} has no reference unit")
        self._finished = True
        logger.debug(
            "%s: finished with %d unit(s)%s",
            self._name,
            len(self._units),
            " (intensive)" if self._intensive else "",
        )
        return MetricSystem(
            self._name, self._system_id, self._intensive, self._reference, self._units
        )


def begin_system(intensive: bool = False, name: Optional[str] = None) -> SystemBuilder:
    """Start declaring a new metric system."""
    return SystemBuilder(intensive=intensive, name=name)


__all__ = ["UnitHandle", "MetricSystem", "SystemBuilder", "begin_system"]
