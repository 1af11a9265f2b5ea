# lexpr/expr/parser.py
from __future__ import annotations
from typing import Any, Callable, Collection, Tuple, Union

from ..lex import ScanException
from ..parse import AbstractParser, ParseException
from .ast import (
    Expression, Constant, VariableRef, Parenthesized, UnaryOp, BinaryOp, Conditional,
)
from .evaluator import BinaryOperator, UnaryOperator, is_number
from .scanner import (
    TokenType, string_scanner,
    decode_string_literal, decode_character_literal,
    decode_integer_literal, decode_floating_point_literal,
)
from .util import constant_expression, logical_and, logical_or

# Grammar (ascending precedence):
#   expression      := logical_or ("?" expression ":" expression)?
#   logical_or      := logical_and ("||" logical_and)*
#   logical_and     := relational ("&&" relational)*
#   relational      := additive (("=="|"!="|"<"|"<="|">"|">=") additive)*
#   additive        := multiplicative (("+"|"-") multiplicative)*
#   multiplicative  := unary (("*"|"/"|"%") unary)*
#   unary           := ("!"|"-") unary | primary
#   primary         := "(" expression ")" | literal | "true" | "false" | "null" | IDENT

_RELATIONAL = (
    BinaryOperator.EQUAL, BinaryOperator.NOT_EQUAL,
    BinaryOperator.LESS_EQUAL, BinaryOperator.GREATER_EQUAL,
    BinaryOperator.LESS, BinaryOperator.GREATER,
)
_ADDITIVE = (BinaryOperator.PLUS, BinaryOperator.MINUS)
_MULTIPLICATIVE = (BinaryOperator.MULTIPLY, BinaryOperator.DIVIDE, BinaryOperator.MODULO)

_KEYWORDS = {
    "true": Expression.TRUE,
    "false": Expression.FALSE,
    "null": Expression.NULL,
}

_DECODERS = {
    TokenType.STRING_LITERAL: decode_string_literal,
    TokenType.CHARACTER_LITERAL: decode_character_literal,
    TokenType.INTEGER_LITERAL: decode_integer_literal,
    TokenType.FLOATING_POINT_LITERAL: decode_floating_point_literal,
}

VariableNamePredicate = Union[Callable[[str], bool], Collection[str]]


def _as_predicate(is_valid_variable_name: VariableNamePredicate) -> Callable[[str], bool]:
    if callable(is_valid_variable_name):
        return is_valid_variable_name
    if isinstance(is_valid_variable_name, str):
        # one name, not a collection of characters
        return frozenset({is_valid_variable_name}).__contains__
    names = frozenset(is_valid_variable_name)
    return names.__contains__


class _Parser(AbstractParser):
    """Recursive descent over one token source; one instance per parse."""

    def __init__(self, source, is_valid_variable_name: Callable[[str], bool]):
        super().__init__(source)
        self._is_valid_variable_name = is_valid_variable_name

    def parse_expression(self) -> Expression:
        lhs = self._logical_or()
        if not self.peek_read("?"):
            return lhs
        if_true = self.parse_expression()
        self.read(":")
        if_false = self.parse_expression()
        return Conditional(lhs, if_true, if_false)

    def _logical_or(self) -> Expression:
        e = self._logical_and()
        while self.peek_read("||"):
            e = logical_or(e, self._logical_and())
        return e

    def _logical_and(self) -> Expression:
        e = self._relational()
        while self.peek_read("&&"):
            e = logical_and(e, self._relational())
        return e

    def _binary_level(self, operators, operand) -> Expression:
        e = operand()
        while True:
            op = self.peek_read_enum(*operators)
            if op is None:
                return e
            e = BinaryOp(op, e, operand())

    def _relational(self) -> Expression:
        return self._binary_level(_RELATIONAL, self._additive)

    def _additive(self) -> Expression:
        return self._binary_level(_ADDITIVE, self._multiplicative)

    def _multiplicative(self) -> Expression:
        return self._binary_level(_MULTIPLICATIVE, self._unary)

    def _unary(self) -> Expression:
        if self.peek_read("!"):
            return UnaryOp(UnaryOperator.LOGICAL_COMPLEMENT, self._unary())
        if self.peek_read("-"):
            operand = self._unary()
            # "-7" becomes the constant -7
            if isinstance(operand, Constant) and is_number(operand.value):
                return constant_expression(-operand.value)
            return UnaryOp(UnaryOperator.MINUS, operand)
        return self._primary()

    def _primary(self) -> Expression:
        t = self.peek()
        if t is None:
            raise self._error("Primary expected instead of end-of-input")

        if self.peek_read("("):
            inner = self.parse_expression()
            self.read(")")
            return Parenthesized(inner)

        if t.type is TokenType.KEYWORD:
            self.read()
            return _KEYWORDS[t.text]

        if t.type is TokenType.IDENTIFIER:
            self.read()
            if not self._is_valid_variable_name(t.text):
                raise self._error(f"Unknown variable '{t.text}'")
            return VariableRef(t.text)

        decode = _DECODERS.get(t.type)
        if decode is not None:
            self.read()
            try:
                return constant_expression(decode(t.text))
            except ScanException as se:
                raise ParseException(f"{se} at offset {t.offset}", offset=t.offset) from se

        raise self._error(f'Primary expected instead of "{t}"')


class ExpressionParser:
    """
    ExpressionParser
    ================
    Turns expression text (or any token producer yielding expression tokens)
    into an immutable `Expression` tree.

    `is_valid_variable_name` is either a predicate or a collection of names;
    a bare identifier it rejects is a parse error. The default accepts none.
    """

    def __init__(self, is_valid_variable_name: VariableNamePredicate = ()):
        self._is_valid_variable_name = _as_predicate(is_valid_variable_name)

    def parse(self, text_or_producer: Any) -> Expression:
        """Parse a complete expression; trailing tokens are an error."""
        source = string_scanner(text_or_producer) if isinstance(text_or_producer, str) else text_or_producer
        p = _Parser(source, self._is_valid_variable_name)
        e = p.parse_expression()
        p.eoi()
        return e

    def parse_part(self, text: str) -> Tuple[Expression, int]:
        """Parse the longest expression at the start of `text`.

        Returns the expression and the offset of the first token that is not
        part of it (`len(text)` if the expression extends to the end).
        """
        p = _Parser(string_scanner(text), self._is_valid_variable_name)
        e = p.parse_expression()
        t = p.peek()
        return e, (len(text) if t is None else t.offset)
