"""Engine IR - pending output fragments collected during traversal."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class FileFragment:
    """Bytes of a source file, copied verbatim at render time."""

    path: str  # may still hold ${KEY} placeholders and @@ escapes
    base_dir: Path  # used when `path` is relative


@dataclass(frozen=True)
class TextFragment:
    """Literal text from `emit`, `print` or a text block."""

    text: str
    param: str | None = None  # set for `print`: the parameter it must show


Fragment = FileFragment | TextFragment


@dataclass
class Plan:
    """Everything the walk produced, in execution order."""

    fragments: list[Fragment] = field(default_factory=list)
    output: str | None = None  # first `output` directive seen
    sources: list[Path] = field(default_factory=list)  # instruction files read

    def add(self, fragment: Fragment) -> None:
        self.fragments.append(fragment)

    def set_output(self, path: str) -> bool:
        """Record an `output` directive. Only the first non-empty one is kept."""
        if not path or self.output is not None:
            return False
        self.output = path
        return True
