# lexpr/lex/__init__.py
"""lexpr scanner runtime: a rule-driven, stateful lexer.

Features
--------
- Rules (pattern, token type, state transition) are registered once on a
  shared `RuleTable`; every `StatefulScanner` borrows the table and owns only
  its cursor and its state stack.
- Within a state, rules are tried **in registration order** and the first
  rule whose pattern matches a prefix at the current offset wins
  (first match, *not* longest match). Register specific patterns first.
- `Rule.push(state)` saves the current state on the scanner's stack,
  `Rule.pop()` restores it; `Rule.goto(state)` switches without saving.


Matching order:
  1) offset == region end → `None` (end-of-input)
  2) rules of the current state, in order: `pattern.match(text, offset, end)`
     (anchored at the offset, a prefix match is enough)
  3) first matching rule → state transition, then the token
  4) no rule matches → ScanException (offset, state, expected token types)


API
---
- `Token(type, text, captured=(), offset=-1)`: one scanned unit
- `RuleTable(states)` / `add_rule(...) -> Rule` / `Rule.goto|push|pop`
- `StatefulScanner(table, text)`: `produce()`, iteration, `suppress(...)`
- `TokenProducer` protocol, `IterableProducer`, `FilteredProducer`, `suppress`
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple
import regex as re


class _Sentinel:
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


# The default state has no name of its own.
DEFAULT_STATE = None
# goto(REMAIN): stay in the current state after the rule matched.
REMAIN = _Sentinel("REMAIN")
# add_rule(ANY_STATE, ...): the rule applies in every state, default included.
ANY_STATE = _Sentinel("ANY_STATE")

# --------- Public datatypes ---------

@dataclass(frozen=True)
class Token:
    type: Any                               # grammar-specific token type (usually an Enum member)
    text: str                               # lexeme, exactly as in the input
    captured: Tuple[Optional[str], ...] = ()  # capturing groups of the rule's pattern
    offset: int = -1                        # start offset in the input (-1: unknown)

    def __str__(self) -> str:
        return self.text


class ScanException(SyntaxError):
    """No rule of the scanner's current state matches the remaining input."""

    def __init__(self, message: str, *, offset: int = -1, state: Any = None,
                 expected: Iterable[Any] = (), char: Optional[str] = None):
        super().__init__(message)
        self.offset = offset
        self.state = state
        self.expected = tuple(expected)
        self.char = char


def type_name(token_type: Any) -> str:
    """Enum members print as their bare name, anything else via str()."""
    name = getattr(token_type, "name", None)
    return name if isinstance(name, str) else str(token_type)

# --------- Helpers ---------

_FLAG_MAP = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
    'x': re.VERBOSE,
    'A': re.ASCII,
}

def _compile_regex(pat: str, flags: str):
    f = 0
    for ch in flags:
        if ch not in _FLAG_MAP:
            raise ValueError(f"Unknown regex flag {ch!r} for pattern {pat!r}")
        f |= _FLAG_MAP[ch]
    try:
        return re.compile(pat, f)
    except re.error as e:
        raise ValueError(f"Invalid rule pattern {pat!r}: {e}") from e

# --------- Token producers ---------

class TokenProducer:
    """Pull-based token source: `produce()` returns the next token, or `None`
    at end-of-input. Scanners, filters and hand-written sources all follow it,
    so the parser core does not care which one it reads from."""

    def produce(self) -> Optional[Token]:
        raise NotImplementedError

    def __iter__(self) -> Iterator[Token]:
        while True:
            t = self.produce()
            if t is None:
                return
            yield t

    def suppress(self, *token_types: Any) -> "FilteredProducer":
        return suppress(self, *token_types)


class IterableProducer(TokenProducer):
    """Adapts a plain iterable of tokens."""

    def __init__(self, tokens: Iterable[Token]):
        self._it = iter(tokens)

    def produce(self) -> Optional[Token]:
        return next(self._it, None)


class FilteredProducer(TokenProducer):
    """Forwards only the tokens for which `predicate` is true."""

    def __init__(self, source, predicate: Callable[[Token], bool]):
        self._source = source
        self._predicate = predicate

    def produce(self) -> Optional[Token]:
        while True:
            t = self._source.produce()
            if t is None or self._predicate(t):
                return t

    # location of the underlying source, for diagnostics
    @property
    def offset(self) -> int:
        return getattr(self._source, "offset", -1)

    @property
    def previous_token_offset(self) -> int:
        return getattr(self._source, "previous_token_offset", -1)

    def __str__(self) -> str:
        return str(self._source)


def suppress(source, *token_types: Any) -> FilteredProducer:
    """Producer over `source` that skips tokens of the given types."""
    suppressed = frozenset(token_types)
    return FilteredProducer(source, lambda t: t.type not in suppressed)

# --------- Rule/State table ---------

class Rule:
    """One (pattern, token type, transition) entry.

    The transition methods return the rule itself, so a grammar reads as
    `table.add_rule(r'"', STRING_START).push(State.STRING)`.
    A rule has at most one transition, and it can only be set until the
    table is frozen.
    """
    __slots__ = ("pattern", "token_type", "_table", "_next_state", "_push", "_pop", "_transition")

    def __init__(self, table: "RuleTable", regex: str, token_type: Any, flags: str = ""):
        self.pattern = _compile_regex(regex, flags)
        self.token_type = token_type
        self._table = table
        self._next_state: Any = REMAIN
        self._push = False
        self._pop = False
        self._transition: Optional[str] = None

    def _claim_transition(self, kind: str) -> None:
        self._table._check_mutable()
        if self._transition is not None:
            raise RuntimeError(f"Rule {self!r} already has a {self._transition}() transition; cannot add {kind}()")
        self._transition = kind

    def goto(self, state: Any) -> "Rule":
        """Switch to `state` after a match (`REMAIN` keeps the current state,
        `DEFAULT_STATE` returns to the default state)."""
        if state is not REMAIN:
            self._table._require_state(state)
        self._claim_transition("goto")
        self._next_state = state
        return self

    def push(self, state: Any) -> "Rule":
        """Save the current state, then switch to `state`."""
        self._table._require_state(state)
        self._claim_transition("push")
        self._push = True
        self._next_state = state
        return self

    def pop(self) -> "Rule":
        """Restore the most recently pushed state."""
        self._claim_transition("pop")
        self._pop = True
        return self

    @property
    def next_state(self) -> Any:
        return self._next_state

    @property
    def pushes(self) -> bool:
        return self._push

    @property
    def pops(self) -> bool:
        return self._pop

    def __repr__(self) -> str:
        return f">>{self.pattern.pattern}<< => {type_name(self.token_type)}"


class RuleTable:
    """
    RuleTable
    =========
    Default-state rule list plus one rule list per named state.

    - `states` is the closed set of non-default states (an Enum class works).
    - The table is append-only while the grammar is being defined and becomes
      immutable once `freeze()` runs; the first scanner built over the table
      freezes it. Frozen tables can be shared by any number of scanners.
    - Every `goto`/`push` target must be one of the declared states.
    """

    def __init__(self, states: Iterable[Any] = ()):
        self._states: Tuple[Any, ...] = tuple(states)
        self._rules: Dict[Any, List[Rule]] = {DEFAULT_STATE: []}
        for s in self._states:
            if s is DEFAULT_STATE or s in self._rules:
                raise ValueError(f"Duplicate or reserved scanner state {s!r}")
            self._rules[s] = []
        self._frozen_rules: Optional[Dict[Any, Tuple[Rule, ...]]] = None
        self._expected: Dict[Any, Tuple[Any, ...]] = {}

    # ---- Grammar definition ----
    def add_rule(self, *args: Any, flags: str = "") -> Rule:
        """
        add_rule(regex, token_type)          : default state only
        add_rule(state, regex, token_type)   : one named state
        add_rule(states, regex, token_type)  : a set of states (may contain
                                               DEFAULT_STATE), or ANY_STATE
        """
        if len(args) == 2:
            regex, token_type = args
            targets: List[Any] = [DEFAULT_STATE]
        elif len(args) == 3:
            where, regex, token_type = args
            targets = self._targets_of(where)
        else:
            raise TypeError(f"add_rule() takes 2 or 3 positional arguments ({len(args)} given)")
        self._check_mutable()
        rule = Rule(self, regex, token_type, flags)
        for s in targets:
            self._rules[s].append(rule)
        return rule

    def _targets_of(self, where: Any) -> List[Any]:
        if where is ANY_STATE:
            return [DEFAULT_STATE, *self._states]
        if isinstance(where, (set, frozenset, list, tuple)):
            targets = []
            for s in where:
                self._require_state(s)
                if s not in targets:
                    targets.append(s)
            return targets
        self._require_state(where)
        return [where]

    def _require_state(self, state: Any) -> None:
        if state not in self._rules:
            raise KeyError(f"Unknown scanner state {state!r}")

    def _check_mutable(self) -> None:
        if self._frozen_rules is not None:
            raise RuntimeError("Rule table is frozen; rules cannot be added or changed after scanning started")

    def freeze(self) -> "RuleTable":
        if self._frozen_rules is None:
            self._frozen_rules = {s: tuple(rules) for s, rules in self._rules.items()}
        return self

    # ---- Queries ----
    @property
    def frozen(self) -> bool:
        return self._frozen_rules is not None

    @property
    def states(self) -> Tuple[Any, ...]:
        return self._states

    def rules(self, state: Any = DEFAULT_STATE) -> Tuple[Rule, ...]:
        if self._frozen_rules is not None:
            return self._frozen_rules[state]
        self._require_state(state)
        return tuple(self._rules[state])

    def expected(self, state: Any = DEFAULT_STATE) -> Tuple[Any, ...]:
        """Token types the given state can produce, in rule order, without duplicates."""
        cached = self._expected.get(state)
        if cached is not None:
            return cached
        result = tuple(dict.fromkeys(r.token_type for r in self.rules(state)))
        if self.frozen:
            self._expected[state] = result
        return result

    def scanner(self, text: str = "") -> "StatefulScanner":
        return StatefulScanner(self, text)

# --------- Core implementation ---------

class StatefulScanner(TokenProducer):
    """
    StatefulScanner
    ===============
    Cursor over one input string, driven by a (frozen) RuleTable.

    The scanner starts in the default state with an empty state stack. A
    grammar whose push/pop rules come in matched pairs leaves the stack empty
    at end-of-input.

    Caution: a rule whose pattern can match the empty string does not advance
    the offset; if it fires, `produce()` returns empty tokens forever.
    """

    def __init__(self, table: RuleTable, text: str = "", start: int = 0, end: Optional[int] = None):
        self._table = table.freeze()
        self.set_input(text, start, end)

    # ---- Input binding ----
    def set_input(self, text: str, start: int = 0, end: Optional[int] = None) -> "StatefulScanner":
        """Bind a new input region; resets the cursor, the state and the state stack."""
        if end is None:
            end = len(text)
        if not 0 <= start <= end <= len(text):
            raise ValueError(f"Invalid region {start}..{end} for input of length {len(text)}")
        self._text = text
        self._offset = start
        self._end = end
        self._previous_token_offset = -1
        self._state: Any = DEFAULT_STATE
        self._state_stack: List[Any] = []
        return self

    # ---- Cursor/state inspection ----
    @property
    def table(self) -> RuleTable:
        return self._table

    @property
    def text(self) -> str:
        return self._text

    @property
    def offset(self) -> int:
        """Offset of the next token to be scanned."""
        return self._offset

    @property
    def previous_token_offset(self) -> int:
        """Offset of the most recently scanned token, -1 before the first one."""
        return self._previous_token_offset

    @property
    def current_state(self) -> Any:
        """`DEFAULT_STATE` (None) or one of the table's named states."""
        return self._state

    @current_state.setter
    def current_state(self, state: Any) -> None:
        self._table._require_state(state)
        self._state = state

    @property
    def state_depth(self) -> int:
        return len(self._state_stack)

    @property
    def state_stack(self) -> Tuple[Any, ...]:
        return tuple(self._state_stack)

    # ---- Public API ----
    def produce(self) -> Optional[Token]:
        if self._offset == self._end:
            return None

        for rule in self._table.rules(self._state):
            m = rule.pattern.match(self._text, self._offset, self._end)
            if m is None:
                continue

            if rule.pops:
                if not self._state_stack:
                    raise RuntimeError(
                        f"Rule {rule!r} pops the scanner state, but the state stack is empty "
                        f"(offset {self._offset}, {self._describe_state()})"
                    )
                self._state = self._state_stack.pop()
            else:
                if rule.pushes:
                    self._state_stack.append(self._state)
                if rule.next_state is not REMAIN:
                    self._state = rule.next_state

            self._previous_token_offset = self._offset
            self._offset = m.end()
            return Token(rule.token_type, m.group(0), m.groups(), self._previous_token_offset)

        raise self._scan_error()

    # ---- Internals ----
    def _describe_state(self) -> str:
        if self._state is DEFAULT_STATE:
            return "default state"
        return f"state {type_name(self._state)}"

    def _scan_error(self) -> ScanException:
        ch = self._text[self._offset]
        expected = self._table.expected(self._state)
        message = (
            f'Unexpected character "{ch}" at offset {self._offset} '
            f'of input string "{self._text}" in {self._describe_state()}'
        )
        if len(expected) == 1:
            message += f"; expected {type_name(expected[0])}"
        elif expected:
            message += "; expected one of " + ", ".join(type_name(t) for t in expected)
        return ScanException(message, offset=self._offset, state=self._state, expected=expected, char=ch)

    def __str__(self) -> str:
        return f'"{self._text}" at offset {self._previous_token_offset}'
