"""
metrica.core.errors
===================

Exception types raised by metrica.

Definition-time problems (a bad ratio expression, builder misuse) derive from
`ValueError`; mixing values that cannot be combined derives from `TypeError`.
Every class also derives from `MetricaError` so callers can catch the whole
family at once.
"""

from __future__ import annotations


class MetricaError(Exception):
    """Base class for all metrica errors."""


# ---------------------------------------------------------------------------
# System definition
# ---------------------------------------------------------------------------

class MalformedRatioExpression(MetricaError, ValueError):
    """A ratio expression is not affine in exactly one variable."""


class DuplicateReference(MetricaError, ValueError):
    """The reference unit of a system was declared twice."""


class ReferenceNotSet(MetricaError, ValueError):
    """A derived unit was declared before the reference unit."""


class DuplicateUnit(MetricaError, ValueError):
    """A unit identifier is already registered in the system."""


class SystemFrozen(MetricaError, ValueError):
    """The builder was used after `finish()`."""


# ---------------------------------------------------------------------------
# Value algebra
# ---------------------------------------------------------------------------

class IncompatibleUnits(MetricaError, TypeError):
    """The two units belong to different metric systems."""


class IntensiveOperationNotAllowed(MetricaError, TypeError):
    """Addition, subtraction or scaling was attempted in an intensive system."""


class IncompatibleValue(MetricaError, ValueError):
    """Magnitudes cannot be ordered (e.g. one of them is NaN)."""


__all__ = [
    "MetricaError",
    "MalformedRatioExpression",
    "DuplicateReference",
    "ReferenceNotSet",
    "DuplicateUnit",
    "SystemFrozen",
    "IncompatibleUnits",
    "IntensiveOperationNotAllowed",
    "IncompatibleValue",
]
