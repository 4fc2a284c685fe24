"""Parameter store for dbconcat.

Supports `${KEY}` placeholders. Deliberately minimal: no expressions,
no nested lookups, just name -> string.

Precedence (highest first):
  1. locked parameters supplied by the caller (`--param`)
  2. `set` directives
  3. `param` directives (first one wins)
  4. defaults supplied by the caller (`--param-file`)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

log = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$\{([^}]*)\}")

ESCAPES = (
    ("@@n", "\n"),
    ("@@r", "\r"),
    ("@@t", "\t"),
    ("@@s", " "),
)


def unescape(text: str) -> str:
    """Decode `@@n`, `@@r`, `@@t` and `@@s` escape tokens."""
    for token, char in ESCAPES:
        text = text.replace(token, char)
    return text


class ParameterStore:
    """Mapping of parameter name -> value shared by a whole run.

    One store is built per run and handed to every component that needs it.
    """

    def __init__(
        self,
        defaults: Mapping[str, str] | None = None,
        locked: Mapping[str, str] | None = None,
    ):
        """Initialize the store.

        Args:
            defaults: Lowest-precedence values (parameter files).
            locked: Highest-precedence values; never changed by directives.
        """
        self._values: dict[str, str] = dict(defaults or {})
        self._values.update(locked or {})
        self._locked: set[str] = set(locked or {})
        # names written by `param` or `set` during this traversal
        self._defined: set[str] = set()

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def is_locked(self, name: str) -> bool:
        return name in self._locked

    def resolve(self, name: str) -> str | None:
        """Return the current value of `name`, or None when it has none."""
        return self._values.get(name)

    def define(self, name: str, value: str) -> bool:
        """Handle `param`: set `name` unless locked or already defined.

        Returns True when the store changed.
        """
        if name in self._locked:
            log.debug("param %s ignored: locked by caller", name)
            return False
        if name in self._defined:
            log.debug("param %s ignored: already defined", name)
            return False
        self._values[name] = self.substitute(value)
        self._defined.add(name)
        return True

    def assign(self, name: str, value: str) -> bool:
        """Handle `set`: set `name` unless locked.

        Returns True when the store changed.
        """
        if name in self._locked:
            log.debug("set %s ignored: locked by caller", name)
            return False
        self._values[name] = self.substitute(value)
        self._defined.add(name)
        return True

    def substitute(self, text: str) -> str:
        """Replace `${KEY}` placeholders with current values.

        Unknown keys are left as literal `${KEY}` text. Inserted values are
        not scanned again.

        Example:
            >>> ParameterStore(locked={"V": "1"}).substitute("${V}.sql ${W}")
            '1.sql ${W}'
        """

        def replace(match: re.Match[str]) -> str:
            value = self._values.get(match.group(1))
            return match.group(0) if value is None else value

        return PLACEHOLDER.sub(replace, text)
