"""
Metrica: typed values for user-declared metric systems.

A metric system is one reference unit plus derived units, each declared by
an affine ratio to the reference (``cm = m / 100``). Values tagged with a
unit convert, compare and combine only within their own system; intensive
systems (temperatures, ratios) allow conversion and comparison but no
arithmetic. The built-in catalogue is imported lazily through `systems`.
"""

import logging
from importlib import metadata as _metadata
from pathlib import Path

from metrica.core.errors import (
    DuplicateReference,
    DuplicateUnit,
    IncompatibleUnits,
    IncompatibleValue,
    IntensiveOperationNotAllowed,
    MalformedRatioExpression,
    MetricaError,
    ReferenceNotSet,
    SystemFrozen,
)
from metrica.core.expression import BinOp, Literal, Var
from metrica.core.system import MetricSystem, SystemBuilder, UnitHandle, begin_system
from metrica.core.value import (
    Comparison,
    TypedValue,
    add,
    compare,
    construct,
    convert,
    map,
    map2,
    mult,
    sub,
    unwrap,
)

__author__ = "Metrica contributors"
__license__ = "MIT"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Try to read the installed package version first; fall back to a default for local dev.
try:
    __version__ = _metadata.version("metrica")
except _metadata.PackageNotFoundError:
    import tomllib
    # Source checkout: src/metrica/__init__.py -> <root>/pyproject.toml
    _pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    with open(_pyproject, "rb") as f:
        __version__ = tomllib.load(f)["project"]["version"]

__all__ = [
    "__version__", "__author__", "__license__",
    # expressions
    "Literal", "Var", "BinOp",
    # systems
    "UnitHandle", "MetricSystem", "SystemBuilder", "begin_system",
    # values
    "TypedValue", "Comparison",
    # `map` stays importable but out of star-imports so it never shadows the builtin.
    "unwrap", "construct", "convert", "map2", "compare", "add", "sub", "mult",
    # errors
    "MetricaError", "MalformedRatioExpression", "DuplicateReference",
    "ReferenceNotSet", "DuplicateUnit", "SystemFrozen", "IncompatibleUnits",
    "IntensiveOperationNotAllowed", "IncompatibleValue",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from metrica.units.registry import SystemsRegistry
# Lazy access helpers -------------------------------------------------------

def _get_default_registry() -> "SystemsRegistry":
    # Import here to avoid import-time side-effects / circular imports.
    from metrica.units.registry import DEFAULT_REGISTRY  # local import
    return DEFAULT_REGISTRY

def __getattr__(name: str) -> Any:
    """
    Lazy attribute access. Accessing 'systems' will construct a namespace from
    the package's default registry on first use.
    """
    if name == "systems":
        return _get_default_registry().as_namespace()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__() -> list[str]:
    # Improve discoverability in REPL / autocomplete.
    return sorted(list(globals().keys()) + ["systems"])
