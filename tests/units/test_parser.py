# tests/units/test_parser.py
import pytest

from metrica.core.errors import MalformedRatioExpression
from metrica.core.expression import BinOp, Literal, Var, compile_ratio
from metrica.units.parser import (
    _RatioExprParser,
    _compile_ratio_expr,
    parse_declaration,
    parse_ratio,
)


# --------------------------
# Parsing-only tests
# --------------------------

def test_parse_simple_name():
    assert _RatioExprParser("m").parse() == Var("m")

def test_parse_number_forms():
    assert _RatioExprParser("100").parse() == Literal(100.0)
    assert _RatioExprParser("2.5").parse() == Literal(2.5)
    assert _RatioExprParser(".5").parse() == Literal(0.5)
    assert _RatioExprParser("1e3").parse() == Literal(1000.0)
    assert _RatioExprParser("1.5E-2").parse() == Literal(0.015)

def test_parse_division():
    assert _RatioExprParser("m / 100").parse() == BinOp("/", Var("m"), Literal(100.0))

def test_precedence_mul_over_add():
    tree = _RatioExprParser("m * 9 / 5 + 32").parse()
    assert tree == BinOp(
        "+",
        BinOp("/", BinOp("*", Var("m"), Literal(9.0)), Literal(5.0)),
        Literal(32.0),
    )

def test_left_associative_subtraction():
    tree = _RatioExprParser("m - 1 - 2").parse()
    assert tree == BinOp("-", BinOp("-", Var("m"), Literal(1.0)), Literal(2.0))

def test_parentheses():
    tree = _RatioExprParser("(celsius - 32) * 5 / 9").parse()
    assert tree == BinOp(
        "/",
        BinOp("*", BinOp("-", Var("celsius"), Literal(32.0)), Literal(5.0)),
        Literal(9.0),
    )

def test_unary_minus():
    assert _RatioExprParser("-5").parse() == Literal(-5.0)
    assert _RatioExprParser("-m").parse() == BinOp("-", Literal(0.0), Var("m"))
    assert _RatioExprParser("m * -2").parse() == BinOp("*", Var("m"), Literal(-2.0))

def test_parse_ignores_whitespace():
    assert _RatioExprParser("  m   /\t100 ").parse() == BinOp("/", Var("m"), Literal(100.0))

@pytest.mark.parametrize("text", ["(m", "m /", "m 100", "1e", "m )", "* m", ""])
def test_syntax_errors(text):
    with pytest.raises(MalformedRatioExpression):
        _RatioExprParser(text).parse()

@pytest.mark.parametrize("text", ["m ^ 2", "m % 3", "m = 2", "m, 2", "m * ²", "m * ３"])
def test_prefilter_disallowed_characters(text):
    with pytest.raises(MalformedRatioExpression):
        _compile_ratio_expr(text)

@pytest.mark.parametrize("text", ["m * ²", "m * ３", "٢ * m"])
def test_non_ascii_digits_are_malformed(text):
    with pytest.raises(MalformedRatioExpression):
        parse_ratio(text)
    with pytest.raises(MalformedRatioExpression):
        _RatioExprParser(text).parse()


# --------------------------
# Public helpers
# --------------------------

def test_parse_ratio_is_cached():
    _compile_ratio_expr.cache_clear()
    a = parse_ratio("m / 100")
    b = parse_ratio("  m / 100  ")
    assert a is b
    assert _compile_ratio_expr.cache_info().hits >= 1

@pytest.mark.parametrize("bad", ["", "   ", None])
def test_parse_ratio_rejects_empty(bad):
    with pytest.raises(MalformedRatioExpression):
        parse_ratio(bad)

def test_parsed_expression_compiles():
    to_basis, from_basis = compile_ratio(parse_ratio("(celsius - 32) * 5 / 9"))
    assert to_basis(212) == pytest.approx(100.0)
    assert from_basis(100) == pytest.approx(212.0)

def test_declaration_reference():
    assert parse_declaration("m") == ("m", None)
    assert parse_declaration("  km ") == ("km", None)

def test_declaration_derived():
    name, expr = parse_declaration("cm = m / 100")
    assert name == "cm"
    assert expr == BinOp("/", Var("m"), Literal(100.0))

@pytest.mark.parametrize("text", ["", "= m / 100", "1cm = m / 100", "c m = m", "cm =", "cm == m"])
def test_unparsable_declarations(text):
    with pytest.raises(MalformedRatioExpression):
        parse_declaration(text)
