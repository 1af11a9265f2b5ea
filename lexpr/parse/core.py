# lexpr/parse/core.py
"""One-token-lookahead parser core.

`AbstractParser` sits on top of any token source with a `produce()` method
(a `StatefulScanner`, a filtered producer, or a hand-written one) and gives
recursive-descent parsers the usual combinators:

    peek / peek_read / read / unread / eoi

Candidates passed to `peek`, `peek_read` and `read` are dispatched on their
Python type:
  - an `enum.Enum` member is a token *type*
  - a `str` is a token *text*
  - `None` stands for end-of-input
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Optional, Sequence

from ..lex import ScanException, Token, type_name


class ParseException(SyntaxError):
    """The token stream does not fit the grammar (or the scanner gave up)."""

    def __init__(self, message: str, *, offset: int = -1):
        super().__init__(message)
        self.offset = offset


def _candidate_to_string(c: Any) -> str:
    if c is None:
        return "end-of-input"
    if isinstance(c, str):
        return f'"{c}"'
    return type_name(c)


def _matches(t: Optional[Token], c: Any) -> bool:
    if t is None:
        return c is None
    if c is None:
        return False
    if isinstance(c, str):
        return t.text == c
    return t.type == c


class AbstractParser:
    """
    AbstractParser
    ==============
    At most **one** token is buffered (`_current`). `None` in the buffer means
    either "nothing read ahead yet" or "the source is at end-of-input"; asking
    the source again in the second case just yields `None` again.
    """

    def __init__(self, source):
        self.source = source
        self._current: Optional[Token] = None

    # ---- Peek ----
    def peek(self, *candidates: Any) -> Any:
        """Check the next token without consuming it.

        peek()                  -> the next token, or None at end-of-input
        peek(token_type)        -> its text if the next token has that type, else None
        peek(text)              -> whether the next token's text equals `text`
        peek(c1, c2, ...)       -> index of the first matching candidate, or -1
        """
        if self._current is None:
            self._current = self._produce_token()
        c = self._current

        if not candidates:
            return c
        if len(candidates) == 1:
            cand = candidates[0]
            if isinstance(cand, str):
                return c is not None and c.text == cand
            if isinstance(cand, Enum):
                return c.text if c is not None and c.type == cand else None
        for i, cand in enumerate(candidates):
            if _matches(c, cand):
                return i
        return -1

    # ---- Peek-read ----
    def peek_read(self, *candidates: Any) -> Any:
        """Like `peek`, but consume the next token iff it matches.

        peek_read(token_type)   -> the token's text, or None
        peek_read(text)         -> whether the token was consumed
        peek_read(c1, c2, ...)  -> index of the matching candidate, or -1
        """
        if not candidates:
            raise TypeError("peek_read() requires at least one candidate")
        c = self.peek()

        if len(candidates) == 1:
            cand = candidates[0]
            if isinstance(cand, str):
                if c is None or c.text != cand:
                    return False
                self._current = None
                return True
            if isinstance(cand, Enum):
                if c is None or c.type != cand:
                    return None
                self._current = None
                return c.text

        for i, cand in enumerate(candidates):
            if _matches(c, cand):
                self._current = None
                return i
        return -1

    def peek_read_enum(self, *values: Enum) -> Optional[Enum]:
        """Consume the next token iff its text equals `str(value)` of one of `values`."""
        c = self.peek()
        if c is None:
            return None
        for value in values:
            if c.text == str(value):
                self._current = None
                return value
        return None

    # ---- Read ----
    def read(self, *candidates: Any) -> Any:
        """Consume the next token.

        read()                  -> the token (ParseException at end-of-input)
        read(token_type)        -> its text
        read(text)              -> its text
        read(c1, c2, ...)       -> index of the matching candidate
        """
        if not candidates:
            t = self.peek()
            if t is None:
                raise self._error("Unexpected end of input")
            self._current = None
            return t

        if len(candidates) == 1 and candidates[0] is not None:
            cand = candidates[0]
            t = self.read()
            if not _matches(t, cand):
                raise self._error(f"{self._quote(cand)} expected instead of \"{t}\"")
            return t.text

        t = self.peek()
        for i, cand in enumerate(candidates):
            if _matches(t, cand):
                self._current = None
                return i
        raise self._error(
            f"One of {self._alternatives(candidates)} expected instead of "
            + ("end-of-input" if t is None else f'"{t}"')
        )

    def read_enum(self, *values: Enum) -> Enum:
        """Consume the next token and map its text to one of `values` (by `str(value)`)."""
        t = self.read()
        for value in values:
            if t.text == str(value):
                return value
        allowed = ", ".join(str(v) for v in values)
        raise self._error(f'Invalid value "{t.text}"; allowed values are [{allowed}]')

    # ---- Push-back / end ----
    def unread(self, t: Token) -> None:
        """Make `t` the next token. Only legal while nothing is read ahead."""
        if self._current is not None:
            raise RuntimeError(
                f'Cannot unread "{t}" because the next token, "{self._current}", has already been read-ahead'
            )
        self._current = t

    def eoi(self) -> None:
        """Assert that the source is at end-of-input."""
        t = self.peek()
        if t is not None:
            raise self._error(f'Expected end-of-input instead of "{t}"')

    # ---- Internals ----
    @staticmethod
    def _quote(c: Any) -> str:
        return f"'{c}'" if isinstance(c, str) else f"'{type_name(c)}'"

    @staticmethod
    def _alternatives(candidates: Sequence[Any]) -> str:
        if not candidates:
            return "[none]"
        parts = [_candidate_to_string(c) for c in candidates]
        if len(parts) == 1:
            return parts[0]
        return ", ".join(parts[:-1]) + " or " + parts[-1]

    def _location(self) -> int:
        off = getattr(self.source, "previous_token_offset", -1)
        return off if isinstance(off, int) else -1

    def _error(self, message: str) -> ParseException:
        offset = self._location()
        if offset >= 0:
            message = f"{message} at offset {offset}"
        return ParseException(message, offset=offset)

    def _produce_token(self) -> Optional[Token]:
        try:
            return self.source.produce()
        except ScanException as se:
            raise ParseException(str(se), offset=se.offset) from se
