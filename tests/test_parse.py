"""Tests for lexpr.parse: the one-token-lookahead parser core."""

from __future__ import annotations

from enum import Enum, auto

import pytest

from lexpr.lex import IterableProducer, RuleTable, ScanException, Token, suppress
from lexpr.parse import AbstractParser, ParseException


class T(Enum):
    SPACE = auto()
    NUM = auto()
    NAME = auto()
    OP = auto()


class Op(Enum):
    PLUS = "+"
    MINUS = "-"

    def __str__(self) -> str:
        return self.value


TABLE = RuleTable()
TABLE.add_rule(r"\s+", T.SPACE)
TABLE.add_rule(r"\d+", T.NUM)
TABLE.add_rule(r"[a-z]+", T.NAME)
TABLE.add_rule(r"[-+*/(),;]", T.OP)


def _parser(text: str) -> AbstractParser:
    return AbstractParser(suppress(TABLE.scanner(text), T.SPACE))


class _SumParser(AbstractParser):
    def parse_sum(self) -> int:
        total = int(self.read(T.NUM))
        while True:
            op = self.peek_read_enum(Op.PLUS, Op.MINUS)
            if op is None:
                return total
            n = int(self.read(T.NUM))
            total = total + n if op is Op.PLUS else total - n


class TestPeek:
    def test_peek_is_idempotent(self) -> None:
        p = _parser("12 ab")
        first = p.peek()
        assert first is p.peek()
        assert first.text == "12"

    def test_peek_forms(self) -> None:
        p = _parser("12 ab")
        assert p.peek("12") is True
        assert p.peek("ab") is False
        assert p.peek(T.NUM) == "12"
        assert p.peek(T.NAME) is None
        assert p.peek(T.NAME, "12", None) == 1
        assert p.peek(T.NAME, None) == -1
        # nothing was consumed
        assert p.read().text == "12"

    def test_peek_at_end(self) -> None:
        p = _parser("")
        assert p.peek() is None
        assert p.peek(None) == 0
        assert p.peek("x") is False
        assert p.peek(T.NUM) is None

    def test_peek_read_consumes_only_on_match(self) -> None:
        p = _parser("a + 1")
        assert p.peek_read("+") is False
        assert p.peek_read(T.NAME) == "a"
        assert p.peek_read(T.NAME) is None
        assert p.peek_read("+") is True
        assert p.peek_read(T.NAME, T.NUM) == 1
        assert p.peek_read(None) == 0

    def test_peek_read_requires_candidate(self) -> None:
        with pytest.raises(TypeError):
            _parser("a").peek_read()

    def test_peek_read_enum(self) -> None:
        p = _parser("- +")
        assert p.peek_read_enum(Op.PLUS) is None
        assert p.peek_read_enum(Op.PLUS, Op.MINUS) is Op.MINUS
        assert p.peek_read_enum(Op.PLUS) is Op.PLUS
        assert p.peek_read_enum(Op.PLUS) is None


class TestRead:
    def test_read_forms(self) -> None:
        p = _parser("a + 1")
        assert p.read(T.NAME) == "a"
        assert p.read("+") == "+"
        assert p.read(T.NAME, T.NUM, None) == 1
        assert p.read(None) == 0

    def test_read_text_mismatch(self) -> None:
        with pytest.raises(ParseException) as ei:
            _parser("12").read("x")
        assert str(ei.value) == "'x' expected instead of \"12\" at offset 0"
        assert ei.value.offset == 0

    def test_read_type_mismatch(self) -> None:
        with pytest.raises(ParseException) as ei:
            _parser("12").read(T.NAME)
        assert str(ei.value) == "'NAME' expected instead of \"12\" at offset 0"

    def test_read_alternatives(self) -> None:
        with pytest.raises(ParseException) as ei:
            _parser("12").read(T.NAME, "+", None)
        assert str(ei.value) == 'One of NAME, "+" or end-of-input expected instead of "12" at offset 0'

    def test_read_alternatives_at_end(self) -> None:
        p = _parser("a")
        p.read()
        with pytest.raises(ParseException) as ei:
            p.read("+", T.NUM)
        assert 'One of "+" or NUM expected instead of end-of-input' in str(ei.value)

    def test_read_at_end(self) -> None:
        with pytest.raises(ParseException, match="Unexpected end of input"):
            _parser("").read()

    def test_read_enum(self) -> None:
        p = _parser("+ *")
        assert p.read_enum(Op.PLUS, Op.MINUS) is Op.PLUS
        with pytest.raises(ParseException) as ei:
            p.read_enum(Op.PLUS, Op.MINUS)
        assert 'Invalid value "*"; allowed values are [+, -]' in str(ei.value)

    def test_messages_without_location(self) -> None:
        p = AbstractParser(IterableProducer([Token(T.NUM, "1")]))
        with pytest.raises(ParseException) as ei:
            p.read("+")
        assert str(ei.value) == "'+' expected instead of \"1\""
        assert ei.value.offset == -1


class TestUnreadAndEnd:
    def test_unread(self) -> None:
        p = _parser("a b")
        t = p.read()
        p.unread(t)
        assert p.read() is t
        assert p.read().text == "b"

    def test_unread_after_peek(self) -> None:
        p = _parser("a b")
        t = p.read()
        p.peek()
        with pytest.raises(RuntimeError):
            p.unread(t)

    def test_eoi(self) -> None:
        p = _parser("a")
        p.read()
        p.eoi()

    def test_eoi_fails_on_remaining_token(self) -> None:
        p = _parser("a b")
        p.read()
        with pytest.raises(ParseException) as ei:
            p.eoi()
        assert str(ei.value) == 'Expected end-of-input instead of "b" at offset 2'


class TestIntegration:
    def test_scan_error_is_wrapped(self) -> None:
        p = _parser("a # b")
        p.read()
        with pytest.raises(ParseException) as ei:
            p.read()
        assert isinstance(ei.value.__cause__, ScanException)
        assert ei.value.offset == 2

    def test_parse_exception_is_syntax_error(self) -> None:
        assert issubclass(ParseException, SyntaxError)

    def test_recursive_descent_subclass(self) -> None:
        p = _SumParser(suppress(TABLE.scanner("1 + 2 - 4"), T.SPACE))
        assert p.parse_sum() == -1
        p.eoi()

    def test_hand_written_producer(self) -> None:
        tokens = [Token(T.NUM, "5"), Token(T.OP, "+"), Token(T.NUM, "6")]
        p = _SumParser(IterableProducer(tokens))
        assert p.parse_sum() == 11
        p.eoi()
