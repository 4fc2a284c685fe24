"""Conditional stack machine for `if` / `else` / `endif`.

Conditions are a single comparison `KEY<op>VALUE`:
  - `=` compares the parameter value and the literal as strings
  - `>`, `>=`, `<`, `<=` compare both sides as decimal numbers

An undefined KEY or a non-numeric operand makes the condition false.
"""

from __future__ import annotations

import logging
import operator
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import NamedTuple

from dbconcat.exceptions import (
    DanglingConditionalError,
    InvalidCommandFormatError,
    UnclosedConditionalError,
)
from dbconcat.params import ParameterStore

log = logging.getLogger(__name__)

# two-character operators first so `>=` is not read as `>`
OPERATORS: tuple[str, ...] = (">=", "<=", "=", ">", "<")

_NUMERIC_OPS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _to_number(text: str) -> float | None:
    if _DECIMAL.fullmatch(text) is None:
        return None
    return float(text)


@dataclass(frozen=True)
class Condition:
    """A parsed `KEY<op>VALUE` comparison."""

    key: str
    op: str
    value: str

    def evaluate(self, store: ParameterStore) -> bool:
        actual = store.resolve(self.key)
        if actual is None:
            return False
        if self.op == "=":
            return actual == self.value

        left = _to_number(actual)
        right = _to_number(self.value)
        if left is None or right is None:
            return False
        return _NUMERIC_OPS[self.op](left, right)


def parse_condition(text: str) -> Condition:
    """Parse the argument of an `if` directive.

    Raises:
        InvalidCommandFormatError: If no known operator occurs in `text`.
    """
    for op in OPERATORS:
        key, sep, value = text.partition(op)
        if sep:
            return Condition(key, op, value)
    raise InvalidCommandFormatError(f"invalid condition format: {text}")


class Frame(NamedTuple):
    """One open `if`/`else` branch."""

    taken: bool
    # suppression in force when the `if` was reached
    inherited: bool = False

    @property
    def suppressing(self) -> bool:
        return self.inherited or not self.taken


@dataclass
class ConditionalStack:
    """Tracks `if` nesting for one instruction file.

    `suppressed` is True while directives must be parsed but not executed.
    A branch nested inside a suppressed branch stays suppressed whatever its
    own condition says.
    """

    frames: list[Frame] = field(default_factory=list)
    suppressed: bool = False

    @property
    def depth(self) -> int:
        return len(self.frames)

    def handle(self, command: str, args: str, store: ParameterStore) -> None:
        """Apply one `if`, `else` or `endif` directive."""
        if command == "if":
            self.push_if(args, store)
        elif command == "else":
            self.flip()
        elif command == "endif":
            self.pop()
        else:
            raise ValueError(f"not a conditional command: {command}")

    def push_if(self, condition: str, store: ParameterStore) -> None:
        if self.suppressed:
            # never evaluated
            self._push(Frame(taken=False, inherited=True))
            return
        taken = parse_condition(condition).evaluate(store)
        log.debug("if %s -> %s", condition, taken)
        self._push(Frame(taken=taken))

    def flip(self) -> None:
        if not self.frames:
            raise DanglingConditionalError("else")
        frame = self.frames.pop()
        self._push(Frame(taken=not frame.taken, inherited=frame.inherited))

    def pop(self) -> None:
        if not self.frames:
            raise DanglingConditionalError("endif")
        frame = self.frames.pop()
        self.suppressed = frame.inherited

    def close(self) -> None:
        """Check the end of a file: every `if` must have been closed."""
        if self.frames:
            raise UnclosedConditionalError(len(self.frames))

    def _push(self, frame: Frame) -> None:
        self.frames.append(frame)
        self.suppressed = frame.suppressing
