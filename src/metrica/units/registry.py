"""
metrica.units.registry
======================

A thread-safe registry of named metric systems.

- Encapsulates global state in a `SystemsRegistry` class.
- Data-driven bootstrap of the built-in catalogue from textual declarations.
- Attribute-style access through `SystemsNamespace`
  (``systems.distance.cm(12)``).
- Easily testable: build isolated registries with
  `_bootstrap_default_registry()` instead of touching `DEFAULT_REGISTRY`.

Systems are frozen before registration, so lookups hand out shared,
immutable objects; the lock only guards the name table itself.
"""
from __future__ import annotations

import logging
import threading
from typing import ClassVar, Dict, Mapping, Tuple

from metrica.core.system import MetricSystem

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Systems registry
# ---------------------------------------------------------------------------
class SystemsRegistry:
    """Thread-safe name → `MetricSystem` table."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._systems: Dict[str, MetricSystem] = {}

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    # -------------------------- public API ---------------------------------
    def register(self, system: MetricSystem, replace: bool = False) -> None:
        """Register (or overwrite if replace is True) a system under its name."""
        if not isinstance(system, MetricSystem):
            raise TypeError(f"Expected a MetricSystem, got {type(system).__name__}")

        with self._lock:
            if system.name in getattr(SystemsNamespace, "_reserved_names", ()):
                raise ValueError(
                    f"Cannot register system '{system.name}': "
                    "name conflicts with SystemsNamespace attribute/method."
                )
            if not replace and system.name in self._systems:
                raise ValueError(
                    f"Cannot register system '{system.name}': "
                    "a system with this name already exists."
                )
            self._systems[system.name] = system
        logger.debug("registered metric system %r (%d units)", system.name, len(system))

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._systems

    def get(self, name: str) -> MetricSystem:
        """Lookup a system by name. Raises `ValueError` if unknown."""
        with self._lock:
            system = self._systems.get(name)
        if system is None:
            raise ValueError(f"Unknown metric system: {name}")
        return system

    def all(self) -> Mapping[str, MetricSystem]:
        with self._lock:
            return dict(self._systems)

    def as_namespace(self) -> SystemsNamespace:
        return SystemsNamespace(self)


class SystemsNamespace:
    _reserved_names: ClassVar[set[str]] = set()

    def __init__(self, reg: "SystemsRegistry") -> None:
        self._reg = reg

    def __contains__(self, name: str) -> bool:
        return self._reg.has(name)

    def __call__(self, name: str) -> MetricSystem:
        return self._reg.get(name)

    def __getattr__(self, name: str) -> MetricSystem:
        try:
            return self._reg.get(name)
        except ValueError as e:
            # Unknown system should look like a missing attribute
            raise AttributeError(name) from e

    def __dir__(self) -> list[str]:
        """List all registered system names for autocomplete."""
        return sorted(set(super().__dir__()) | set(self._reg.all().keys()))

SystemsNamespace._reserved_names = set(dir(SystemsNamespace))


# ---------------------------------------------------------------------------
# Bootstrap a default registry with common systems
# ---------------------------------------------------------------------------
# (name, intensive, declarations)
_CATALOGUE: Tuple[Tuple[str, bool, Tuple[str, ...]], ...] = (
    ("distance", False, (
        "m",                          # reference
        "cm = m / 100",
        "mm = m / 1000",
        "km = m * 1000",
    )),
    ("time", False, (
        "s",
        "ms = s / 1000",
        "min = s * 60",
        "h = s * 3600",
        "day = s * 86400",
    )),
    ("mass", False, (
        "kg",
        "g = kg / 1000",
        "mg = kg / 1000000",
        "t = kg * 1000",
    )),
    # Temperatures are points on a scale; summing them is meaningless.
    ("temperature", True, (
        "celsius",
        "kelvin = celsius - 273.15",
        "fahrenheit = (celsius - 32) * 5 / 9",
    )),
)


def _bootstrap_default_registry() -> SystemsRegistry:
    reg = SystemsRegistry()
    for name, intensive, declarations in _CATALOGUE:
        reg.register(MetricSystem.from_declarations(declarations, intensive, name))
    return reg


# Public, shared default registry
DEFAULT_REGISTRY: SystemsRegistry = _bootstrap_default_registry()


__all__ = [
    "SystemsRegistry",
    "SystemsNamespace",
    "DEFAULT_REGISTRY",
]
