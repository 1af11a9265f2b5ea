# lexpr/expr/__init__.py
"""Small expression language built on lexpr.lex and lexpr.parse.

This package provides:
- AST nodes (`Expression` and its immutable subclasses)
- The expression token grammar and literal decoding
- `ExpressionParser`: precedence-climbing parser producing `Expression` trees
- Value semantics (promotion, truthiness, string rendering)
- Builders and helpers: constant folding, `#...#` string expansion,
  lenient evaluation, predicate bridges
"""

from .evaluator import (
    EvaluationException, BinaryOperator, UnaryOperator, to_boolean, to_string,
)
from .ast import (
    Expression, Constant, Concat, VariableRef, Parenthesized,
    UnaryOp, BinaryOp, LogicalAnd, LogicalOr, Conditional,
)
from .scanner import TokenType, raw_scanner, string_scanner
from .util import (
    constant_expression, logical_and, logical_or, concat, expand,
    evaluate_leniently, evaluate_to_boolean, evaluate,
    to_predicate, from_predicate, PredicateExpression,
)
from .parser import ExpressionParser
