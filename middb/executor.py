"""Executes physical query plans against registered in-memory tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from middb.errors import MiddbError
from middb.expr import BinaryOp, BinaryOperator, Column, Expr, Literal, Value, compare_values
from middb.plan import PhysicalFilter, PhysicalPlan, PhysicalProject, SeqScan

# Marks a sub-expression that could not be evaluated, as opposed to a NULL value.
_MISSING: Any = object()

_ORDERINGS = {
    BinaryOperator.LT: lambda c: c < 0,
    BinaryOperator.LE: lambda c: c <= 0,
    BinaryOperator.GT: lambda c: c > 0,
    BinaryOperator.GE: lambda c: c >= 0,
}


class QueryError(MiddbError):
    """A plan could not be executed."""


@dataclass
class Row:
    """A mapping from column names to values."""

    columns: dict[str, Value] = field(default_factory=dict)

    def __init__(
        self, columns: Union[Mapping[str, Value], Iterable[tuple[str, Value]]] = ()
    ) -> None:
        self.columns = dict(columns)

    @classmethod
    def from_values(cls, fields: Iterable[Value]) -> "Row":
        """Build a row whose columns are named ``col0``, ``col1`` and so on."""
        return cls((f"col{index}", value) for index, value in enumerate(fields))

    def get_column(self, name: str) -> Value:
        """Return the value of ``name``; None when the column is absent or NULL."""
        return self.columns.get(name)

    def fields(self) -> list[Value]:
        return list(self.columns.values())

    def __contains__(self, name: object) -> bool:
        return name in self.columns


@dataclass
class Table:
    """A named list of rows."""

    name: str
    rows: list[Row] = field(default_factory=list)

    def add_row(self, row: Row) -> None:
        self.rows.append(row)


class Executor:
    """Runs physical plans over the tables registered with it."""

    def __init__(self) -> None:
        self._tables: dict[str, Table] = {}

    def register_table(self, name: str, table: Table) -> None:
        self._tables[name] = table

    def validate_plan(self, plan: PhysicalPlan) -> None:
        """Check that every table the plan scans is registered."""
        match plan:
            case SeqScan(table=name):
                if name not in self._tables:
                    raise QueryError(f"Table not found: {name}")
            case PhysicalFilter(input=child) | PhysicalProject(input=child):
                self.validate_plan(child)
            case _:
                raise TypeError(f"not a physical plan: {plan!r}")

    def execute(self, plan: PhysicalPlan) -> list[Row]:
        """Run ``plan`` and return the resulting rows."""
        self.validate_plan(plan)
        match plan:
            case SeqScan(table=name, filter=predicate):
                rows = [Row(row.columns) for row in self._tables[name].rows]
                if predicate is None:
                    return rows
                return [row for row in rows if self._matches(predicate, row)]
            case PhysicalFilter(input=child, predicate=predicate):
                return [row for row in self.execute(child) if self._matches(predicate, row)]
            case PhysicalProject(input=child, columns=columns):
                return [self._project(row, columns) for row in self.execute(child)]
        raise TypeError(f"not a physical plan: {plan!r}")

    def _matches(self, predicate: Expr, row: Row) -> bool:
        return self._eval(predicate, row) is True

    def _eval(self, expr: Expr, row: Row) -> Any:
        match expr:
            case Literal(value=value):
                return value
            case Column(name=name):
                return row.columns.get(name, _MISSING)
            case BinaryOp(op=op, left=left, right=right):
                left_value = self._eval(left, row)
                if left_value is _MISSING:
                    return _MISSING
                right_value = self._eval(right, row)
                if right_value is _MISSING:
                    return _MISSING
                return self._apply(op, left_value, right_value)
        raise TypeError(f"not an expression: {expr!r}")

    @staticmethod
    def _apply(op: BinaryOperator, left: Value, right: Value) -> Any:
        if op is BinaryOperator.EQ:
            return compare_values(left, right) == 0
        if op is BinaryOperator.NE:
            return compare_values(left, right) != 0
        if op in _ORDERINGS:
            ordering: Optional[int] = compare_values(left, right)
            return _MISSING if ordering is None else _ORDERINGS[op](ordering)
        if not (isinstance(left, bool) and isinstance(right, bool)):
            return _MISSING
        if op is BinaryOperator.AND:
            return left and right
        return left or right

    @staticmethod
    def _project(row: Row, columns: Iterable[str]) -> Row:
        return Row.from_values(row.columns[name] for name in columns if name in row.columns)