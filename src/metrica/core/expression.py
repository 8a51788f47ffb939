"""
metrica.core.expression
=======================

Affine ratio expressions and their inversion.

A derived unit is declared by an expression such as ``m / 100`` which reads
"a value in this unit, expressed in the reference unit". The expression is a
tiny arithmetic tree over a single variable and numeric literals:

- `Literal`  a number,
- `Var`      the free variable (the value being converted),
- `BinOp`    one of ``+ - * /`` applied to two sub-expressions.

`compile_ratio` turns such a tree into a pair of plain callables:

- ``to_basis``   evaluates the tree directly,
- ``from_basis`` evaluates the algebraic inverse built by `invert`.

Inversion does not solve equations. It folds every constant subtree into a
literal, then peels the operators from the outside in, rewriting an
accumulator (initially ``target``) with the inverse operator at each step::

    (x * 9 / 5) + 32      acc = target
    peel  + 32         -> acc = target - 32
    peel  / 5          -> acc = (target - 32) * 5
    peel  * 9          -> acc = ((target - 32) * 5) / 9

``-`` and ``/`` are not symmetric, so the side on which the variable lives
matters: peeling ``rest / k`` gives ``acc * k`` while peeling ``k / rest``
gives ``k / acc``.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from math import isfinite
from typing import Callable, Tuple, Union

from metrica.core.errors import MalformedRatioExpression

Number = Union[int, float]
Transform = Callable[[float], float]

TARGET = "target"

_OPS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------

class _Node:
    """Operator overloads shared by every node, so trees can be written inline."""

    __slots__ = ()

    def __add__(self, other: "RatioExpression | Number") -> "BinOp":
        return _combine("+", self, other)

    def __radd__(self, other: Number) -> "BinOp":
        return _combine("+", other, self)

    def __sub__(self, other: "RatioExpression | Number") -> "BinOp":
        return _combine("-", self, other)

    def __rsub__(self, other: Number) -> "BinOp":
        return _combine("-", other, self)

    def __mul__(self, other: "RatioExpression | Number") -> "BinOp":
        return _combine("*", self, other)

    def __rmul__(self, other: Number) -> "BinOp":
        return _combine("*", other, self)

    def __truediv__(self, other: "RatioExpression | Number") -> "BinOp":
        return _combine("/", self, other)

    def __rtruediv__(self, other: Number) -> "BinOp":
        return _combine("/", other, self)


@dataclass(frozen=True, slots=True)
class Literal(_Node):
    """A finite numeric constant."""

    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise MalformedRatioExpression(
                f"Literal must be an int or float, got {type(self.value).__name__}"
            )
        if not isfinite(self.value):
            raise MalformedRatioExpression(f"Literal must be finite, got {self.value!r}")
        object.__setattr__(self, "value", float(self.value))

    def __str__(self) -> str:
        return f"{self.value:g}"


@dataclass(frozen=True, slots=True)
class Var(_Node):
    """
    The free variable. Every `Var` in a tree is the same variable; the engine
    ignores the name, but text declarations require the reference unit's id.
    """

    name: str = "x"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class BinOp(_Node):
    op: str
    left: "RatioExpression"
    right: "RatioExpression"

    def __post_init__(self) -> None:
        if self.op not in _OPS:
            raise MalformedRatioExpression(f"{self.op!r} is an unknown operator")
        for side in (self.left, self.right):
            if not isinstance(side, _Node):
                raise MalformedRatioExpression(
                    f"Operands must be expression nodes, got {type(side).__name__}"
                )

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"


RatioExpression = Union[Literal, Var, BinOp]


def as_expression(value: "RatioExpression | Number") -> RatioExpression:
    """Coerce a number to a `Literal`; pass expression nodes through."""
    if isinstance(value, _Node):
        return value  # type: ignore[return-value]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Literal(value)
    raise MalformedRatioExpression(
        f"Cannot use {type(value).__name__} in a ratio expression"
    )


def _combine(op: str, left: object, right: object) -> BinOp:
    if not all(isinstance(v, (_Node, int, float)) for v in (left, right)):
        return NotImplemented
    return BinOp(op, as_expression(left), as_expression(right))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Evaluation & folding
# ---------------------------------------------------------------------------

def evaluate(expr: RatioExpression, x: float) -> float:
    """Evaluate ``expr`` with every `Var` bound to ``x``."""
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, Var):
        return float(x)
    return _OPS[expr.op](evaluate(expr.left, x), evaluate(expr.right, x))


def count_vars(expr: RatioExpression) -> int:
    if isinstance(expr, Var):
        return 1
    if isinstance(expr, BinOp):
        return count_vars(expr.left) + count_vars(expr.right)
    return 0


def var_names(expr: RatioExpression) -> frozenset[str]:
    """Names used for the variable anywhere in ``expr``."""
    if isinstance(expr, Var):
        return frozenset((expr.name,))
    if isinstance(expr, BinOp):
        return var_names(expr.left) | var_names(expr.right)
    return frozenset()


def fold(expr: RatioExpression) -> RatioExpression:
    """Collapse every variable-free subtree into a single `Literal`."""
    if not isinstance(expr, BinOp):
        return expr
    left = fold(expr.left)
    right = fold(expr.right)
    if isinstance(left, Literal) and isinstance(right, Literal):
        try:
            return Literal(_OPS[expr.op](left.value, right.value))
        except ZeroDivisionError:
            raise MalformedRatioExpression(f"Division by zero in {expr}") from None
    return BinOp(expr.op, left, right)


# ---------------------------------------------------------------------------
# Inversion
# ---------------------------------------------------------------------------

def _peel_right(op: str, acc: RatioExpression, k: Literal) -> RatioExpression:
    # rest <op> k == acc
    if op == "+":
        return BinOp("-", acc, k)
    if op == "-":
        return BinOp("+", acc, k)
    if k.value == 0.0:
        raise MalformedRatioExpression(f"Cannot invert '{op} 0'")
    if op == "*":
        return BinOp("/", acc, k)
    return BinOp("*", acc, k)


def _peel_left(op: str, acc: RatioExpression, k: Literal) -> RatioExpression:
    # k <op> rest == acc
    if op == "+":
        return BinOp("-", acc, k)
    if op == "-":
        return BinOp("-", k, acc)
    if k.value == 0.0:
        raise MalformedRatioExpression(f"Cannot invert '0 {op}'")
    if op == "*":
        return BinOp("/", acc, k)
    return BinOp("/", k, acc)


def _require_affine(expr: RatioExpression) -> RatioExpression:
    n = count_vars(expr)
    if n != 1:
        raise MalformedRatioExpression(
            f"Ratio expression {expr} must contain exactly one variable, found {n}"
        )
    return fold(expr)


def invert(expr: RatioExpression) -> RatioExpression:
    """Return the inverse of ``expr`` as an expression over ``Var("target")``."""
    node = _require_affine(expr)
    acc: RatioExpression = Var(TARGET)
    while isinstance(node, BinOp):
        if isinstance(node.right, Literal):
            acc = _peel_right(node.op, acc, node.right)
            node = node.left
        elif isinstance(node.left, Literal):
            acc = _peel_left(node.op, acc, node.left)
            node = node.right
        else:  # pragma: no cover - unreachable once folded with a single Var
            raise MalformedRatioExpression(f"Cannot isolate the variable in {expr}")
    return acc


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def identity(x: float) -> float:
    return float(x)


def _compile(expr: RatioExpression) -> Transform:
    if isinstance(expr, Var):
        return identity
    if isinstance(expr, Literal):
        value = expr.value
        return lambda _x: value
    fn = _OPS[expr.op]
    left = _compile(expr.left)
    right = _compile(expr.right)
    return lambda x: fn(left(x), right(x))


def compile_ratio(expr: RatioExpression) -> Tuple[Transform, Transform]:
    """
    Compile a ratio expression into ``(to_basis, from_basis)``.

    Raises
    ------
    MalformedRatioExpression
        If ``expr`` is not affine in exactly one variable, or is not
        invertible (e.g. ``x * 0``).
    """
    expr = as_expression(expr)
    folded = _require_affine(expr)
    if isinstance(folded, Var):
        return identity, identity
    return _compile(folded), _compile(invert(folded))


__all__ = [
    "Literal",
    "Var",
    "BinOp",
    "RatioExpression",
    "as_expression",
    "evaluate",
    "count_vars",
    "var_names",
    "fold",
    "invert",
    "identity",
    "compile_ratio",
]
