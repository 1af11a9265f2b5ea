# lexpr/expr/scanner.py
"""Token grammar of the expression language, plus literal decoding."""

from __future__ import annotations
from enum import Enum, auto
from functools import lru_cache
from typing import List, Tuple

from ..lex import RuleTable, StatefulScanner, FilteredProducer, ScanException, suppress


class TokenType(Enum):
    SPACE = auto()
    C_COMMENT = auto()

    KEYWORD = auto()
    IDENTIFIER = auto()
    OPERATOR = auto()
    CHARACTER_LITERAL = auto()
    STRING_LITERAL = auto()
    INTEGER_LITERAL = auto()
    FLOATING_POINT_LITERAL = auto()

    INVALID_CHARACTER = auto()


IGNORABLE = frozenset({TokenType.SPACE, TokenType.C_COMMENT})

# Octal escapes first, then any other backslash pair; the decoder rejects invalid ones.
_ESCAPE = r"""\\[0-3][0-7][0-7]|\\[0-7][0-7]|\\[0-7]|\\."""

# (pattern, token type, flags); first match wins, so order matters.
_TOKEN_SPEC: List[Tuple[str, TokenType, str]] = [
    (r"\s+",                                             TokenType.SPACE, ""),
    (r"/\*.*?\*/",                                       TokenType.C_COMMENT, "s"),
    (r"(?:true|false|null)(?![\p{L}\p{Nd}_$])",          TokenType.KEYWORD, ""),
    (r"[\p{L}\p{Sc}\p{Pc}\p{Nl}][\p{L}\p{Sc}\p{Pc}\p{Nl}\p{Nd}\p{Mn}\p{Mc}]*", TokenType.IDENTIFIER, ""),
    (r"&&|\|\||==|!=|<=|>=|<|>|!|\?|:|\+|-|\*|/|%|\(|\)", TokenType.OPERATOR, ""),
    (r"\d+\.\d*(?:[eE][+\-]?\d+)?[fFdD]?",               TokenType.FLOATING_POINT_LITERAL, ""),  # 9.
    (r"\.\d+(?:[eE][+\-]?\d+)?[fFdD]?",                  TokenType.FLOATING_POINT_LITERAL, ""),  # .9
    (r"\d+[eE][+\-]?\d+[fFdD]?",                         TokenType.FLOATING_POINT_LITERAL, ""),  # 9e1
    (r"\d+(?:[eE][+\-]?\d+)?[fFdD]",                     TokenType.FLOATING_POINT_LITERAL, ""),  # 9f
    (r"0[xX][0-9a-fA-F]+[lL]?",                          TokenType.INTEGER_LITERAL, ""),
    (r"(?:0[0-7]+|0|[1-9]\d*)[lL]?",                     TokenType.INTEGER_LITERAL, ""),
    (rf"'(?:{_ESCAPE}|[^\\'])'",                         TokenType.CHARACTER_LITERAL, ""),
    (rf'"(?:{_ESCAPE}|[^\\"])*"',                        TokenType.STRING_LITERAL, ""),
    (rf"'(?:{_ESCAPE}|[^\\'])*'",                        TokenType.STRING_LITERAL, ""),
    # Catch-all, so that stray characters reach the parser as tokens.
    (r".",                                               TokenType.INVALID_CHARACTER, "s"),
]


@lru_cache(maxsize=None)
def rule_table() -> RuleTable:
    """The (frozen) rule table, built on first use and shared afterwards."""
    table = RuleTable()
    for pat, tt, flags in _TOKEN_SPEC:
        table.add_rule(pat, tt, flags=flags)
    return table.freeze()


def raw_scanner(text: str = "", start: int = 0, end: int = None) -> StatefulScanner:
    """Scanner that also yields SPACE and C_COMMENT tokens."""
    return StatefulScanner(rule_table(), text, start, end)


def string_scanner(text: str = "") -> FilteredProducer:
    """Scanner over `text` with the ignorable tokens suppressed."""
    return suppress(raw_scanner(text), *IGNORABLE)

# --------- Literal decoding ---------

_SIMPLE_ESCAPES = {
    "b": "\b", "t": "\t", "n": "\n", "f": "\f", "r": "\r",
    '"': '"', "'": "'", "\\": "\\",
}
_OCTAL = "01234567"


def _unescape(text: str, i: int) -> Tuple[str, int]:
    """Decode one (possibly escaped) character at `i`; returns it and the next index."""
    c = text[i]
    i += 1
    if c != "\\":
        return c, i
    c = text[i]
    i += 1
    if c in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[c], i
    if c in _OCTAL:
        # \0 .. \377
        digits = c
        max_len = 3 if c in "0123" else 2
        while len(digits) < max_len and i < len(text) and text[i] in _OCTAL:
            digits += text[i]
            i += 1
        return chr(int(digits, 8)), i
    raise ScanException(f"Invalid escape sequence '\\{c}'")


def decode_string_literal(text: str) -> str:
    """Strip the quotes and resolve the escape sequences."""
    out = []
    i, last = 1, len(text) - 1
    while i < last:
        ch, i = _unescape(text, i)
        out.append(ch)
    return "".join(out)


def decode_character_literal(text: str) -> str:
    ch, _ = _unescape(text, 1)
    return ch


def decode_integer_literal(text: str) -> int:
    body = text[:-1] if text[-1] in "lL" else text
    negative = body.startswith("-")
    if negative:
        body = body[1:]
    try:
        if body[:2] in ("0x", "0X"):
            value = int(body[2:], 16)
        elif len(body) > 1 and body[0] == "0":
            value = int(body[1:], 8)
        else:
            value = int(body, 10)
    except ValueError as e:
        raise ScanException(f"Invalid integer literal '{text}'") from e
    return -value if negative else value


def decode_floating_point_literal(text: str) -> float:
    body = text[:-1] if text[-1] in "fFdD" else text
    try:
        return float(body)
    except ValueError as e:
        raise ScanException(f"Invalid floating point literal '{text}'") from e
