# lexpr/__init__.py
"""lexpr: stateful regex scanner, lookahead parser core and a small
expression language with `#...#` string interpolation.

- lexpr.lex   : RuleTable / StatefulScanner / token producers
- lexpr.parse : AbstractParser / ParseException
- lexpr.expr  : Expression trees, ExpressionParser, expand, evaluation helpers
"""

__version__ = "0.1.0"
