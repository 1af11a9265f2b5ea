# lexpr/expr/util.py
"""Builders and helpers around `Expression` trees.

- constant_expression / logical_and / logical_or / concat: node builders;
  the logical ones fold a known-constant left operand away
- expand: "text #expr# text" string interpolation
- evaluate_leniently / evaluate_to_boolean / evaluate: evaluation shortcuts
- to_predicate / from_predicate: bridges to plain Python predicates
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional

from ..lex import Token, TokenProducer
from ..parse import ParseException
from .ast import Expression, Constant, Concat, LogicalAnd, LogicalOr, _NO_VARIABLES
from .evaluator import EvaluationException, to_boolean, to_string, type_name_of
from .scanner import IGNORABLE, TokenType, raw_scanner

# --------- Builders ---------

def constant_expression(value: Any) -> Expression:
    """`True`, `False` and `None` map to the shared singletons."""
    if value is True:
        return Expression.TRUE
    if value is False:
        return Expression.FALSE
    if value is None:
        return Expression.NULL
    return Constant(value)


def logical_and(lhs: Expression, rhs: Expression) -> Expression:
    # FALSE && x -> FALSE, TRUE && x -> x; x is never evaluated for FALSE.
    if lhs is Expression.FALSE:
        return Expression.FALSE
    if lhs is Expression.TRUE:
        return rhs
    return LogicalAnd(lhs, rhs)


def logical_or(lhs: Expression, rhs: Expression) -> Expression:
    if lhs is Expression.TRUE:
        return Expression.TRUE
    if lhs is Expression.FALSE:
        return rhs
    return LogicalOr(lhs, rhs)


def concat(expressions: Iterable[Expression]) -> Expression:
    parts = tuple(expressions)
    if not parts:
        return Constant("")
    if len(parts) == 1:
        return parts[0]
    return Concat(parts)

# --------- Expansion ---------

# tokens that may contain the delimiter without ending the expression
_OPAQUE = frozenset({TokenType.STRING_LITERAL, TokenType.CHARACTER_LITERAL, TokenType.C_COMMENT})

class _DelimitedProducer(TokenProducer):
    """Expression tokens from `start` up to (excluding) the next delimiter.

    Ignorable tokens are skipped. A delimiter inside a string or character
    literal or a comment does not end the expression; any other token that
    swallowed the delimiter is rescanned with the region cut at the delimiter.
    """

    def __init__(self, text: str, start: int, delimiter: str):
        self._scanner = raw_scanner(text, start)
        self._delimiter = delimiter
        self.delimiter_offset = -1

    def produce(self) -> Optional[Token]:
        sc = self._scanner
        while self.delimiter_offset == -1:
            if sc.text.startswith(self._delimiter, sc.offset):
                self.delimiter_offset = sc.offset
                return None
            t = sc.produce()
            if t is None:
                return None
            if t.type not in _OPAQUE and self._delimiter in t.text:
                sc.set_input(sc.text, t.offset, t.offset + t.text.index(self._delimiter))
                continue
            if t.type not in IGNORABLE:
                return t
        return None

    @property
    def offset(self) -> int:
        return self._scanner.offset

    @property
    def previous_token_offset(self) -> int:
        return self._scanner.previous_token_offset

    def __str__(self) -> str:
        return str(self._scanner)


def expand(source: str, is_valid_variable_name=(), delimiter: str = "#") -> Expression:
    """
    Turn `source` into an expression that evaluates to `source` with every
    `#expr#` section replaced by the value of `expr`.

    Text outside the delimiters becomes string constants, in order. A source
    without any delimiter yields a single constant; a source that is exactly
    one embedded expression yields that expression itself (so its value keeps
    its type).
    """
    from .parser import ExpressionParser

    if not delimiter:
        raise ValueError("The delimiter must not be empty")

    parser = ExpressionParser(is_valid_variable_name)
    parts: List[Expression] = []
    pos = 0
    while True:
        idx = source.find(delimiter, pos)
        if idx == -1:
            if pos < len(source):
                parts.append(Constant(source[pos:]))
            break
        if idx > pos:
            parts.append(Constant(source[pos:idx]))

        producer = _DelimitedProducer(source, idx + len(delimiter), delimiter)
        parts.append(parser.parse(producer))
        if producer.delimiter_offset == -1:
            raise ParseException(
                f"Closing '{delimiter}' of the expression starting at offset {idx} missing",
                offset=len(source),
            )
        pos = producer.delimiter_offset + len(delimiter)

    if not parts:
        return Constant("")
    return concat(parts)

# --------- Evaluation helpers ---------

def evaluate_leniently(expression: Expression, variables: Mapping[str, Any] = _NO_VARIABLES) -> str:
    """Evaluate and render as a string; failures render as `<!-- message -->`."""
    try:
        return to_string(expression.evaluate(variables))
    except EvaluationException as ee:
        return f"<!-- {ee} -->"
    except Exception as e:
        return f"<!-- Evaluating '{expression}': {type(e).__name__}: {e} -->"


def evaluate_to_boolean(expression: Expression, variables: Mapping[str, Any] = _NO_VARIABLES) -> bool:
    return to_boolean(expression.evaluate(variables))


def evaluate(text: str, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
    """Parse `text`, allowing exactly the names in `variables`, and evaluate it."""
    from .parser import ExpressionParser

    return ExpressionParser(variables.keys()).parse(text).evaluate(variables)

# --------- Predicate bridges ---------

class _ExpressionPredicate:
    def __init__(self, expression: Expression, parameter_name: str):
        self.expression = expression
        self.parameter_name = parameter_name

    def __call__(self, subject: Any) -> bool:
        return evaluate_to_boolean(self.expression, {self.parameter_name: subject})

    def __str__(self) -> str:
        return str(self.expression)


def _always(subject: Any) -> bool:
    return True


def _never(subject: Any) -> bool:
    return False


def to_predicate(expression: Expression, parameter_name: str) -> Callable[[Any], bool]:
    """Predicate whose subject is bound to `parameter_name` while evaluating."""
    if expression is Expression.TRUE:
        return _always
    if expression is Expression.FALSE:
        return _never
    return _ExpressionPredicate(expression, parameter_name)


@dataclass(frozen=True)
class PredicateExpression(Expression):
    """Evaluates to `predicate(variables[variable_name])`; the value must be a string."""
    predicate: Callable[[str], bool]
    variable_name: str

    def evaluate(self, variables: Mapping[str, Any] = _NO_VARIABLES) -> Any:
        value = variables.get(self.variable_name)
        if value is None:
            raise EvaluationException(f"Variable '{self.variable_name}' not set")
        if not isinstance(value, str):
            raise EvaluationException(
                f"Variable '{self.variable_name}' has unexpected type '{type_name_of(value)}'"
            )
        return bool(self.predicate(value))

    def __str__(self) -> str:
        return f"{getattr(self.predicate, '__name__', 'predicate')}({self.variable_name})"


def from_predicate(predicate: Callable[[str], bool], variable_name: str) -> Expression:
    return PredicateExpression(predicate, variable_name)
