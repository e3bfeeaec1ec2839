"""Logical and physical query plans and the planner between them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from middb.expr import Expr


@dataclass(frozen=True)
class Scan:
    table: str
    filter: Optional[Expr] = None


@dataclass(frozen=True)
class Filter:
    input: "LogicalPlan"
    predicate: Expr


@dataclass(frozen=True)
class Project:
    input: "LogicalPlan"
    columns: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))


LogicalPlan = Union[Scan, Filter, Project]


@dataclass(frozen=True)
class SeqScan:
    table: str
    filter: Optional[Expr] = None


@dataclass(frozen=True)
class PhysicalFilter:
    input: "PhysicalPlan"
    predicate: Expr


@dataclass(frozen=True)
class PhysicalProject:
    input: "PhysicalPlan"
    columns: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))


PhysicalPlan = Union[SeqScan, PhysicalFilter, PhysicalProject]


def _columns(columns: Iterable[str]) -> tuple[str, ...]:
    return tuple(columns)


class Planner:
    """Builds logical plans and lowers them to physical operators."""

    def plan(self, table: str, filter: Optional[Expr] = None) -> LogicalPlan:
        return Scan(table, filter)

    def to_physical(self, logical: LogicalPlan) -> PhysicalPlan:
        match logical:
            case Scan(table=table, filter=predicate):
                return SeqScan(table, predicate)
            case Filter(input=child, predicate=predicate):
                return PhysicalFilter(self.to_physical(child), predicate)
            case Project(input=child, columns=columns):
                return PhysicalProject(self.to_physical(child), _columns(columns))
        raise TypeError(f"not a logical plan: {logical!r}")