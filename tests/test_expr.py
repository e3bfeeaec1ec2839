import pytest
from hypothesis import given
from hypothesis import strategies as st

from middb.expr import BinaryOp, BinaryOperator, Column, Literal, compare_values


def test_compare_same_kinds():
    assert compare_values(10, 20) < 0
    assert compare_values(20, 10) > 0
    assert compare_values(5, 5) == 0
    assert compare_values("Alice", "Bob") < 0
    assert compare_values(False, True) < 0
    assert compare_values(b"a", b"b") < 0
    assert compare_values(None, None) == 0


def test_compare_mixed_kinds_is_none():
    assert compare_values(1, "1") is None
    assert compare_values(1, True) is None
    assert compare_values(None, 0) is None
    assert compare_values(b"x", "x") is None


def test_compare_bytearray_as_bytes():
    assert compare_values(bytearray(b"data"), b"data") == 0


def test_unsupported_value_type():
    with pytest.raises(TypeError):
        compare_values(1.5, 1.5)
    with pytest.raises(TypeError):
        Literal(1.5)


@given(st.integers(), st.integers())
def test_int_compare_antisymmetric(a, b):
    assert compare_values(a, b) == -compare_values(b, a)
    assert (compare_values(a, b) == 0) == (a == b)


@given(st.text(), st.text())
def test_str_compare_matches_ordering(a, b):
    assert (compare_values(a, b) < 0) == (a < b)


def test_literal_equality_respects_kind():
    assert Literal(42) == Literal(42)
    assert Literal(1) != Literal(True)
    assert Literal(None) == Literal(None)
    assert len({Literal(1), Literal(True), Literal(1)}) == 2


def test_expression_equality():
    filter_expr = BinaryOp(BinaryOperator.EQ, Column("id"), Literal(42))
    assert filter_expr == BinaryOp(BinaryOperator.EQ, Column("id"), Literal(42))
    assert filter_expr != BinaryOp(BinaryOperator.NE, Column("id"), Literal(42))


def test_expression_display():
    expr = BinaryOp(BinaryOperator.GT, Column("age"), Literal(25))
    assert str(expr) == "(age Gt 25)"
    nested = BinaryOp(BinaryOperator.AND, expr, expr)
    assert str(nested) == f"({expr} And {expr})"