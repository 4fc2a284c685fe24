"""Prefix scope guard.

Once `set-prefix P` is seen, a file only acts on lines written as `P:<line>`
until `P:clear-prefix`. Other lines are dropped without error.
"""

from __future__ import annotations

from dataclasses import dataclass

from dbconcat.dsl.directive import CLEAR_PREFIX, SET_PREFIX


@dataclass
class PrefixScope:
    """File-local prefix state. A new scope is created for every file."""

    prefix: str | None = None

    @property
    def active(self) -> bool:
        return bool(self.prefix)

    @property
    def marker(self) -> str:
        return f"{self.prefix}:"

    def set(self, prefix: str) -> None:
        self.prefix = prefix or None

    def clear(self) -> None:
        self.prefix = None

    def strip(self, line: str) -> str:
        """Remove the active `P:` marker from `line` when present."""
        if self.active and line.startswith(self.marker):
            return line[len(self.marker) :]
        return line

    def filter(self, line: str) -> str | None:
        """Return the line to dispatch, or None when it must be dropped.

        `set-prefix` is never filtered. `P:clear-prefix` deactivates the
        scope and is consumed here (returns None).
        """
        if not self.active or _is_set_prefix(line):
            return line
        if not line.startswith(self.marker):
            return None
        line = line[len(self.marker) :]
        if line == CLEAR_PREFIX:
            self.clear()
            return None
        return line


def _is_set_prefix(line: str) -> bool:
    return line == SET_PREFIX or line.startswith(SET_PREFIX + " ")
