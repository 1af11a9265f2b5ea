# lexpr/expr/ast.py
"""Expression AST
- Constant / Concat / VariableRef: leaves and string interpolation
- UnaryOp / BinaryOp / Conditional: operators, evaluated eagerly per operand
- LogicalAnd / LogicalOr: short-circuit; the right operand is evaluated only when needed

Trees are immutable; build once, evaluate against any number of variable mappings.
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Tuple

from .evaluator import (
    BinaryOperator, UnaryOperator, EvaluationException,
    binary_operation, unary_operation, to_boolean, to_string,
)

_NO_VARIABLES: Mapping[str, Any] = MappingProxyType({})


class Expression:
    """Base of all expression nodes."""

    TRUE: ClassVar["Constant"]
    FALSE: ClassVar["Constant"]
    NULL: ClassVar["Constant"]

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        raise NotImplementedError


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return repr(value)


@dataclass(frozen=True)
class Constant(Expression):
    value: Any

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        return self.value

    def __str__(self) -> str:
        return _literal(self.value)


@dataclass(frozen=True)
class Concat(Expression):
    """String concatenation of the parts' values (the result of expansion)."""
    parts: Tuple[Expression, ...]

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        return "".join(to_string(p.evaluate(variables)) for p in self.parts)

    def __str__(self) -> str:
        # back to template form: text fragments verbatim, everything else as #expr#
        return "".join(
            p.value if isinstance(p, Constant) and isinstance(p.value, str) else f"#{p}#"
            for p in self.parts
        )


@dataclass(frozen=True)
class VariableRef(Expression):
    name: str

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        if self.name not in variables:
            raise EvaluationException(f"Variable '{self.name}' missing")
        return variables[self.name]

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Parenthesized(Expression):
    inner: Expression

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        return self.inner.evaluate(variables)

    def __str__(self) -> str:
        return f"({self.inner})"


@dataclass(frozen=True)
class UnaryOp(Expression):
    op: UnaryOperator
    operand: Expression

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        return unary_operation(self.op, self.operand.evaluate(variables))

    def __str__(self) -> str:
        return f"{self.op}{self.operand}"


@dataclass(frozen=True)
class BinaryOp(Expression):
    op: BinaryOperator
    lhs: Expression
    rhs: Expression

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        return binary_operation(self.lhs.evaluate(variables), self.op, self.rhs.evaluate(variables))

    def __str__(self) -> str:
        return f"{self.lhs} {self.op} {self.rhs}"


@dataclass(frozen=True)
class LogicalAnd(Expression):
    lhs: Expression
    rhs: Expression

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        if to_boolean(self.lhs.evaluate(variables)):
            return self.rhs.evaluate(variables)
        return False

    def __str__(self) -> str:
        return f"{self.lhs} && {self.rhs}"


@dataclass(frozen=True)
class LogicalOr(Expression):
    lhs: Expression
    rhs: Expression

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        if to_boolean(self.lhs.evaluate(variables)):
            return True
        return self.rhs.evaluate(variables)

    def __str__(self) -> str:
        return f"{self.lhs} || {self.rhs}"


@dataclass(frozen=True)
class Conditional(Expression):
    condition: Expression
    if_true: Expression
    if_false: Expression

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        if to_boolean(self.condition.evaluate(variables)):
            return self.if_true.evaluate(variables)
        return self.if_false.evaluate(variables)

    def __str__(self) -> str:
        return f"{self.condition} ? {self.if_true} : {self.if_false}"


Expression.TRUE = Constant(True)
Expression.FALSE = Constant(False)
Expression.NULL = Constant(None)
