from functools import lru_cache
from typing import Optional, Tuple

from metrica.core.errors import MalformedRatioExpression
from metrica.core.expression import BinOp, Literal, RatioExpression, Var

Declaration = Tuple[str, Optional[RatioExpression]]

_DIGITS = "0123456789"


# ---------------- Parser that builds an expression tree ----------------
class _RatioExprParser:
    """
    Grammar:
      expr   := term (('+' | '-') term)*
      term   := factor (('*' | '/') factor)*
      factor := NUMBER | NAME | '(' expr ')' | '-' factor
      NAME   := [A-Za-z_][A-Za-z0-9_]*
      NUMBER := digits ['.' digits] [('e'|'E') ['+'|'-'] digits]
    """
    def __init__(self, text: str):
        self.s = text
        self.n = len(text)
        self.i = 0

    def parse(self) -> RatioExpression:
        tree = self._parse_expr()
        self._skip_ws()
        if self.i != self.n:
            raise MalformedRatioExpression(
                f"Unexpected trailing input at {self.i}: {self.s[self.i:self.i+10]!r}"
            )
        return tree

    # expr := term (('+' | '-') term)*
    def _parse_expr(self) -> RatioExpression:
        left = self._parse_term()
        while True:
            self._skip_ws()
            if self._peek('+') or self._peek('-'):
                op = self.s[self.i]
                self.i += 1
                right = self._parse_term()
                left = BinOp(op, left, right)
            else:
                break
        return left

    # term := factor (('*' | '/') factor)*
    def _parse_term(self) -> RatioExpression:
        left = self._parse_factor()
        while True:
            self._skip_ws()
            if self._peek('*') or self._peek('/'):
                op = self.s[self.i]
                self.i += 1
                right = self._parse_factor()
                left = BinOp(op, left, right)
            else:
                break
        return left

    # factor := NUMBER | NAME | '(' expr ')' | '-' factor
    def _parse_factor(self) -> RatioExpression:
        self._skip_ws()
        if self._peek('('):
            self._eat('(')
            val = self._parse_expr()
            self._skip_ws()
            self._eat(')')
            return val
        if self._peek('-'):
            self._eat('-')
            operand = self._parse_factor()
            if isinstance(operand, Literal):
                return Literal(-operand.value)
            return BinOp('-', Literal(0.0), operand)
        number = self._parse_number()
        if number is not None:
            return Literal(number)
        name = self._parse_name()
        if not name:
            ch = self.s[self.i:self.i+1]
            raise MalformedRatioExpression(
                f"Expected number, name or '(' at {self.i}, got {ch!r}"
            )
        return Var(name)

    # ---- token helpers ----
    def _parse_name(self) -> Optional[str]:
        self._skip_ws()
        i0 = self.i
        if i0 < self.n and (self.s[i0].isalpha() or self.s[i0] == '_'):
            self.i += 1
            while self.i < self.n and (self.s[self.i].isalnum() or self.s[self.i] == '_'):
                self.i += 1
            return self.s[i0:self.i]
        return None

    def _parse_number(self) -> Optional[float]:
        self._skip_ws()
        i0 = self.i
        s, n = self.s, self.n
        i = i0
        while i < n and s[i] in _DIGITS:
            i += 1
        if i < n and s[i] == '.':
            i += 1
            while i < n and s[i] in _DIGITS:
                i += 1
        digits = s[i0:i].replace('.', '')
        if not digits:
            return None
        if i < n and s[i] in 'eE':
            j = i + 1
            if j < n and s[j] in '+-':
                j += 1
            k = j
            while k < n and s[k] in _DIGITS:
                k += 1
            if k == j:
                raise MalformedRatioExpression(f"Expected exponent digits at {j}")
            i = k
        self.i = i
        return float(s[i0:i])

    def _skip_ws(self):
        s, n, i = self.s, self.n, self.i
        while i < n and s[i].isspace():
            i += 1
        self.i = i

    def _peek(self, tok: str) -> bool:
        self._skip_ws()
        return self.i < self.n and self.s[self.i] == tok

    def _eat(self, tok: str):
        if not self._peek(tok):
            got = self.s[self.i:self.i+len(tok)]
            raise MalformedRatioExpression(f"Expected {tok!r} at {self.i}, got {got!r}")
        self.i += len(tok)


# ---------------- Public API with caching-safe compilation ----------------
# Trees are immutable, so sharing a cached tree between callers is safe.
@lru_cache(maxsize=1024)
def _compile_ratio_expr(text: str) -> RatioExpression:
    allowed = set('+-*/().eE_ \t')
    if any(not ((c.isascii() and c.isalnum()) or c in allowed) for c in text):
        raise MalformedRatioExpression(
            "Only +, -, *, /, parentheses, numbers and a variable name are allowed."
        )
    return _RatioExprParser(text).parse()


def parse_ratio(text: str) -> RatioExpression:
    """
    Parse a ratio expression like ``'(celsius - 32) * 5 / 9'``.

    Any name is read as the single free variable; whether the result is
    really affine in one variable is checked when the unit is derived.
    `SystemBuilder.define` also requires the name to be the reference unit.

    Raises:
      MalformedRatioExpression on any syntax error.
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedRatioExpression("Ratio expression must be a non-empty string")
    return _compile_ratio_expr(text.strip())


def parse_declaration(text: str) -> Declaration:
    """
    Split a unit declaration into its identifier and ratio expression.

      'm'             -> ('m', None)          reference unit
      'cm = m / 100'  -> ('cm', <expr>)       derived unit
    """
    if not isinstance(text, str):
        raise MalformedRatioExpression("The line is unparsable")
    head, sep, rest = text.partition('=')
    name = head.strip()
    if not name.isidentifier():
        raise MalformedRatioExpression(f"The line is unparsable: {text!r}")
    if not sep:
        return name, None
    return name, parse_ratio(rest)
