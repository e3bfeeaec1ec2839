import pytest

from middb.expr import BinaryOp, BinaryOperator, Column, Literal
from middb.plan import (
    Filter,
    PhysicalFilter,
    PhysicalProject,
    Planner,
    Project,
    Scan,
    SeqScan,
)


def test_simple_scan_plan():
    plan = Planner().plan("users", None)
    assert isinstance(plan, Scan)
    assert plan.table == "users"
    assert plan.filter is None


def test_scan_with_filter():
    filter_expr = BinaryOp(BinaryOperator.EQ, Column("id"), Literal(42))
    plan = Planner().plan("users", filter_expr)
    assert plan == Scan("users", BinaryOp(BinaryOperator.EQ, Column("id"), Literal(42)))
    assert plan.filter == filter_expr


def test_logical_to_physical():
    physical = Planner().to_physical(Scan("test", None))
    assert isinstance(physical, SeqScan)
    assert physical.table == "test"


def test_nested_plan_lowering():
    predicate = BinaryOp(BinaryOperator.GT, Column("age"), Literal(27))
    logical = Project(Filter(Scan("test"), predicate), ["age", "name"])
    physical = Planner().to_physical(logical)
    assert physical == PhysicalProject(
        PhysicalFilter(SeqScan("test"), predicate), ("age", "name")
    )


def test_scan_filter_carried_over():
    predicate = BinaryOp(BinaryOperator.LT, Column("b"), Literal(30))
    physical = Planner().to_physical(Planner().plan("test", predicate))
    assert physical == SeqScan("test", predicate)


def test_to_physical_rejects_other_objects():
    with pytest.raises(TypeError):
        Planner().to_physical(SeqScan("test"))