# lexpr/expr/evaluator.py
from __future__ import annotations
import math
from enum import Enum
from typing import Any

# Value semantics of the expression language:
# - values are plain Python objects: int, float, str, bool, None
# - binary numeric promotion: int op float -> float, number op str -> str
# - two ints: integer arithmetic, '/' and '%' truncate toward zero
# - '+' on anything else concatenates the string renderings
# - false values: None, "", False and integer 0; everything else is true


class EvaluationException(Exception):
    """Evaluating an expression failed: a variable is missing, or an operand
    has a type the operator cannot handle."""


class BinaryOperator(Enum):
    LOGICAL_OR = "||"
    LOGICAL_AND = "&&"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    def __str__(self) -> str:
        return self.value


class UnaryOperator(Enum):
    LOGICAL_COMPLEMENT = "!"
    MINUS = "-"

    def __str__(self) -> str:
        return self.value


_ARITHMETIC = frozenset({
    BinaryOperator.PLUS, BinaryOperator.MINUS,
    BinaryOperator.MULTIPLY, BinaryOperator.DIVIDE, BinaryOperator.MODULO,
})


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_boolean(subject: Any) -> bool:
    if subject is None or subject is False:
        return False
    if isinstance(subject, str):
        return subject != ""
    if isinstance(subject, int) and not isinstance(subject, bool):
        return subject != 0
    return True


def to_string(subject: Any) -> str:
    if subject is None:
        return ""
    if isinstance(subject, bool):
        return "true" if subject else "false"
    return str(subject)


def type_name_of(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _promote(value: Any, other: Any) -> Any:
    if value is None or other is None:
        return value
    if is_number(value):
        if isinstance(value, int) and isinstance(other, float):
            return float(value)
        if isinstance(other, str):
            return to_string(value)
    return value


def _incompatible(op: BinaryOperator, lhs: Any, rhs: Any) -> EvaluationException:
    return EvaluationException(
        f"Incompatible types for operator '{op}' ('{type_name_of(lhs)}' and '{type_name_of(rhs)}')"
    )


def _int_divide(lhs: int, rhs: int) -> int:
    q = abs(lhs) // abs(rhs)
    return q if (lhs >= 0) == (rhs > 0) else -q


def _arithmetic(lhs: Any, op: BinaryOperator, rhs: Any) -> Any:
    if op is BinaryOperator.PLUS:
        return lhs + rhs
    if op is BinaryOperator.MINUS:
        return lhs - rhs
    if op is BinaryOperator.MULTIPLY:
        return lhs * rhs
    if rhs == 0:
        raise EvaluationException(f"Division by zero ('{lhs} {op} {rhs}')")
    if isinstance(lhs, int) and isinstance(rhs, int):
        q = _int_divide(lhs, rhs)
        return q if op is BinaryOperator.DIVIDE else lhs - rhs * q
    if op is BinaryOperator.DIVIDE:
        return lhs / rhs
    return math.fmod(lhs, rhs)


def values_equal(lhs: Any, rhs: Any) -> bool:
    # True == 1 in Python, but not in this language.
    if isinstance(lhs, bool) != isinstance(rhs, bool):
        return False
    return lhs == rhs


def compare(lhs: Any, rhs: Any) -> int:
    """Three-way comparison of two non-null values of compatible kinds."""
    comparable = (
        (is_number(lhs) and is_number(rhs))
        or (isinstance(lhs, str) and isinstance(rhs, str))
        or (isinstance(lhs, bool) and isinstance(rhs, bool))
    )
    if not comparable:
        raise EvaluationException(
            f"Operands '{type_name_of(lhs)}' and '{type_name_of(rhs)}' cannot be lexicographically compared"
        )
    return (lhs > rhs) - (lhs < rhs)


def binary_operation(lhs: Any, op: BinaryOperator, rhs: Any) -> Any:
    """Apply a non-logical binary operator to two evaluated operands.

    `&&` and `||` never get here; they are evaluated lazily by their nodes.
    """
    lhsv = _promote(lhs, rhs)
    rhsv = _promote(rhs, lhs)

    if op in _ARITHMETIC and is_number(lhsv) and is_number(rhsv):
        return _arithmetic(lhsv, op, rhsv)

    if op is BinaryOperator.EQUAL:
        return values_equal(lhsv, rhsv)
    if op is BinaryOperator.NOT_EQUAL:
        return not values_equal(lhsv, rhsv)

    if op in (BinaryOperator.LESS, BinaryOperator.LESS_EQUAL,
              BinaryOperator.GREATER, BinaryOperator.GREATER_EQUAL):
        if lhsv is None or rhsv is None:
            return False
        c = compare(lhsv, rhsv)
        if op is BinaryOperator.LESS:
            return c < 0
        if op is BinaryOperator.LESS_EQUAL:
            return c <= 0
        if op is BinaryOperator.GREATER:
            return c > 0
        return c >= 0

    if op is BinaryOperator.PLUS:
        return to_string(lhsv) + to_string(rhsv)

    if op in _ARITHMETIC:
        raise _incompatible(op, lhsv, rhsv)

    raise AssertionError(f"unexpected binary operator {op!r}")


def unary_operation(op: UnaryOperator, operand: Any) -> Any:
    if op is UnaryOperator.LOGICAL_COMPLEMENT:
        return not to_boolean(operand)
    if op is UnaryOperator.MINUS:
        if operand is None:
            return None
        if not is_number(operand):
            raise EvaluationException(f"'{type_name_of(operand)}' operand cannot be negated")
        return -operand
    raise AssertionError(f"unexpected unary operator {op!r}")
