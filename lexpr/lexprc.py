# lexpr/lexprc.py
"""lexprc – lexpr CLI

Usage)
    $ python -m lexpr.lexprc lex --text 'a + 0x1F /* c */ "s"'
    $ python -m lexpr.lexprc eval '1 + 2 * 3'
    $ python -m lexpr.lexprc eval 'n > 1 ? "many" : "one"' -v n=3
    $ python -m lexpr.lexprc expand --text 'Hello #name#, #n + 1# messages' -v name=Ann -v n=4

Commands
--------
- lex    : tokenize text with the expression grammar and list the tokens
- eval   : parse and evaluate one expression
- expand : evaluate a template with `#expr#` sections

With -D/--debug, token counts and the parsed expression go to stderr.
"""

from __future__ import annotations
import argparse
import sys
from typing import Any, Dict, List, Optional

# ------------------------------
# Helpers
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _coerce(value: str) -> Any:
    """-v values: int if possible, else float, else the string itself."""
    for conv in (int, float):
        try:
            return conv(value)
        except ValueError:
            pass
    return value


def _parse_variables(pairs: Optional[List[str]]) -> Dict[str, Any]:
    variables: Dict[str, Any] = {}
    for pair in pairs or ():
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Invalid variable assignment {pair!r} (expected NAME=VALUE)")
        variables[name] = _coerce(value)
    return variables


def _read_source(args) -> str:
    if args.text is not None:
        return args.text
    with open(args.input, "r", encoding="utf-8") as f:
        return f.read()


def _report(e: Exception) -> int:
    from .expr import EvaluationException

    if isinstance(e, SyntaxError):
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
    elif isinstance(e, EvaluationException):
        _eprint("[EVAL ERROR]")
        _eprint(str(e))
    else:
        _eprint("[ERROR]", type(e).__name__, str(e))
    return 2

# ------------------------------
# Commands
# ------------------------------

def cmd_lex(args) -> int:
    """Tokenize the input with the expression grammar and print the tokens."""
    from .lex import type_name
    from .expr.scanner import raw_scanner, string_scanner

    try:
        text = _read_source(args)
        sc = raw_scanner(text) if args.all else string_scanner(text)
        i = 0
        for tok in sc:
            print(f"{i:03d}: {type_name(tok.type):<22} {tok.text!r}  @{tok.offset}")
            i += 1
    except Exception as e:
        return _report(e)

    if args.debug:
        _eprint(f"[DEBUG] tokens={i} chars={len(text)}")
    return 0


def cmd_eval(args) -> int:
    from .expr import ExpressionParser, evaluate_leniently, to_string

    try:
        variables = _parse_variables(args.var)
        expr = ExpressionParser(variables.keys()).parse(args.expression)
        if args.debug:
            _eprint(f"[DEBUG] parsed | {expr}")
            _eprint(f"[DEBUG] variables | {variables}")
        if args.lenient:
            print(evaluate_leniently(expr, variables))
        else:
            print(to_string(expr.evaluate(variables)))
    except Exception as e:
        return _report(e)
    return 0


def cmd_expand(args) -> int:
    from .expr import expand, evaluate_leniently, to_string

    try:
        variables = _parse_variables(args.var)
        template = _read_source(args)
        expr = expand(template, variables.keys(), delimiter=args.delimiter)
        if args.debug:
            _eprint(f"[DEBUG] expanded | {type(expr).__name__} {expr}")
        if args.lenient:
            print(evaluate_leniently(expr, variables))
        else:
            print(to_string(expr.evaluate(variables)))
    except Exception as e:
        return _report(e)
    return 0

# ------------------------------
# Entry point
# ------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="lexprc", description="lexpr scanner / expression CLI")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_lex = sub.add_parser("lex", help="tokenize text with the expression grammar")
    src_group = p_lex.add_mutually_exclusive_group(required=True)
    src_group.add_argument("--text", help="input text")
    src_group.add_argument("--input", help="input text file")
    p_lex.add_argument("--all", action="store_true", help="also list whitespace and comment tokens")
    p_lex.add_argument("-D", "--debug", action="store_true", help="print debug information")
    p_lex.set_defaults(func=cmd_lex)

    p_eval = sub.add_parser("eval", help="parse and evaluate an expression")
    p_eval.add_argument("expression", help="expression text")
    p_eval.add_argument("-v", "--var", action="append", metavar="NAME=VALUE", help="variable (repeatable)")
    p_eval.add_argument("--lenient", action="store_true", help="render evaluation errors as <!-- ... -->")
    p_eval.add_argument("-D", "--debug", action="store_true", help="print debug information")
    p_eval.set_defaults(func=cmd_eval)

    p_expand = sub.add_parser("expand", help="evaluate a template with embedded #expr# sections")
    src_group = p_expand.add_mutually_exclusive_group(required=True)
    src_group.add_argument("--text", help="template text")
    src_group.add_argument("--input", help="template file")
    p_expand.add_argument("-v", "--var", action="append", metavar="NAME=VALUE", help="variable (repeatable)")
    p_expand.add_argument("--delimiter", default="#", help="expression delimiter (default: #)")
    p_expand.add_argument("--lenient", action="store_true", help="render evaluation errors as <!-- ... -->")
    p_expand.add_argument("-D", "--debug", action="store_true", help="print debug information")
    p_expand.set_defaults(func=cmd_expand)

    args = ap.parse_args(argv)
    return int(args.func(args))

if __name__ == "__main__":
    sys.exit(main())
