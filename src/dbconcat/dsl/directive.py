"""Directive parser - splits an instruction line into command and argument."""

from __future__ import annotations

from typing import NamedTuple

COMMENT = "#"

# keywords handled before the suppression check
CONDITIONAL_COMMANDS = frozenset({"if", "else", "endif"})
SET_PREFIX = "set-prefix"
CLEAR_PREFIX = "clear-prefix"
TEXT_BEGIN = "text-begin"
TEXT_END = "text-end"


class Directive(NamedTuple):
    command: str
    args: str = ""

    @property
    def is_conditional(self) -> bool:
        return self.command in CONDITIONAL_COMMANDS


def is_ignorable(line: str) -> bool:
    """True for blank lines and comments (first non-space character `#`)."""
    stripped = line.strip()
    return not stripped or stripped.startswith(COMMENT)


def parse_directive(line: str) -> Directive:
    """Split a trimmed line on the first space.

    Example:
        >>> parse_directive("emit hello world")
        Directive(command='emit', args='hello world')
    """
    command, _, args = line.partition(" ")
    return Directive(command, args)


def split_assignment(args: str) -> tuple[str, str] | None:
    """Split `key=value` on the first `=`; None when there is no `=`."""
    key, sep, value = args.partition("=")
    if not sep:
        return None
    return key, value
