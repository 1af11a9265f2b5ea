# lexpr/parse/__init__.py
"""Parser core for lexpr.

This package provides:
- `AbstractParser`: one-token-lookahead combinators (peek/peek_read/read/unread/eoi)
  over any object with a `produce()` method
- `ParseException`: raised when the token stream does not fit the grammar
"""

from .core import AbstractParser, ParseException
