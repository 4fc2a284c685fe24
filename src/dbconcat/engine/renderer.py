"""Renderer - turns a Plan into output bytes once all parameters are final."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from dbconcat.engine.fragments import FileFragment, Plan, TextFragment
from dbconcat.exceptions import MissingParameterError, OutputError, SourceFileError
from dbconcat.params import ParameterStore, unescape

log = logging.getLogger(__name__)

COPY_BUFSIZE = 64 * 1024


@dataclass(frozen=True)
class Resolved:
    """A fragment with placeholders substituted and escapes decoded."""

    path: Path | None = None  # file to copy
    data: bytes = b""  # literal bytes, when `path` is None

    @property
    def is_file(self) -> bool:
        return self.path is not None


class Renderer:
    """Renders a Plan to a byte sink.

    Rendering is split in two steps so that every fragment is checked
    before anything is written:
      1. `resolve` substitutes, decodes and validates each fragment
      2. `write` streams the resolved fragments in order
    """

    def __init__(self, store: ParameterStore):
        self.store = store

    def output_path(self, plan: Plan, default: Path | None = None) -> Path | None:
        """Pick the destination: `output` directive, then `default`.

        None means the caller's stream (stdout).
        """
        if plan.output is not None:
            return Path(self.store.substitute(plan.output))
        return default

    def resolve(self, plan: Plan) -> list[Resolved]:
        """Resolve every fragment of the plan.

        Raises:
            MissingParameterError: If a `print` names an undefined parameter.
            SourceFileError: If a concatenated file does not exist.
        """
        return [self._resolve_one(fragment) for fragment in plan.fragments]

    def _resolve_one(self, fragment: FileFragment | TextFragment) -> Resolved:
        if isinstance(fragment, TextFragment):
            if fragment.param is not None and self.store.resolve(fragment.param) is None:
                raise MissingParameterError(fragment.param)
            text = unescape(self.store.substitute(fragment.text))
            return Resolved(data=text.encode("utf-8"))

        path = Path(unescape(self.store.substitute(fragment.path)))
        if not path.is_absolute():
            path = fragment.base_dir / path
        if not path.is_file():
            raise SourceFileError(path, "no such file")
        return Resolved(path=path)

    def write(self, resolved: list[Resolved], sink: BinaryIO) -> int:
        """Stream resolved fragments to `sink`. Returns bytes written."""
        written = 0
        for item in resolved:
            if item.is_file:
                written += _copy_file(item.path, sink)
                log.debug("Copied %s", item.path)
            else:
                _write(sink, item.data)
                written += len(item.data)
        return written

    def render(self, plan: Plan, sink: BinaryIO) -> int:
        return self.write(self.resolve(plan), sink)


def _copy_file(path: Path, sink: BinaryIO) -> int:
    try:
        f = path.open("rb")
    except OSError as e:
        raise SourceFileError(path, str(e)) from e

    written = 0
    with f:
        while True:
            try:
                chunk = f.read(COPY_BUFSIZE)
            except OSError as e:
                raise SourceFileError(path, str(e)) from e
            if not chunk:
                return written
            _write(sink, chunk)
            written += len(chunk)


def _write(sink: BinaryIO, data: bytes) -> None:
    try:
        sink.write(data)
    except OSError as e:
        raise OutputError(getattr(sink, "name", "<stream>"), str(e)) from e
