"""Query expressions and the comparison rules for scalar values."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

Value = Union[int, str, bool, bytes, None]


class BinaryOperator(enum.Enum):
    EQ = "Eq"
    NE = "Ne"
    LT = "Lt"
    LE = "Le"
    GT = "Gt"
    GE = "Ge"
    AND = "And"
    OR = "Or"

    def __str__(self) -> str:
        return self.value


def _kind(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "bytes"
    raise TypeError(f"unsupported value type: {type(value).__name__}")


def _normalise(value: object) -> Value:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value  # type: ignore[return-value]


def compare_values(left: Value, right: Value) -> Optional[int]:
    """Order two values of the same kind: negative, zero or positive.

    Returns None when the values are of different kinds.
    """
    kind = _kind(left)
    if kind != _kind(right):
        return None
    if kind == "null":
        return 0
    a, b = _normalise(left), _normalise(right)
    return (a > b) - (a < b)  # type: ignore[operator]


@dataclass(frozen=True, eq=False)
class Literal:
    """A constant value."""

    value: Value

    def __post_init__(self) -> None:
        _kind(self.value)
        object.__setattr__(self, "value", _normalise(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Literal):
            return NotImplemented
        return compare_values(self.value, other.value) == 0

    def __hash__(self) -> int:
        return hash((_kind(self.value), self.value))

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Column:
    """A reference to a column of the current row."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BinaryOp:
    """A comparison or boolean connective applied to two sub-expressions."""

    op: BinaryOperator
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"


Expr = Union[Literal, Column, BinaryOp]