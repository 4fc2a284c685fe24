"""Assembler - runs walk, resolve and write for one set of RunOptions."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from dbconcat.config import RunOptions
from dbconcat.engine.renderer import Renderer
from dbconcat.engine.fragments import Plan
from dbconcat.engine.walker import Walker
from dbconcat.exceptions import OutputError
from dbconcat.params import ParameterStore

log = logging.getLogger(__name__)


@dataclass
class Assembly:
    """Outcome of a successful run."""

    plan: Plan
    store: ParameterStore
    output: Path | None  # None when written to the stream
    bytes_written: int


def assemble(options: RunOptions, stream: BinaryIO | None = None) -> Assembly:
    """Build the output document described by `options`.

    Nothing is written unless the whole instruction tree is valid and every
    fragment resolves, so a failing run leaves no output file behind.

    Args:
        options: Instruction file, parameters and fallback output path.
        stream: Sink used when no output path is chosen (default: stdout).

    Returns:
        Assembly describing what was written where.
    """
    store = ParameterStore(defaults=options.load_defaults(), locked=options.params)
    plan = Walker(store).walk(options.instructions, options.resolved_base_dir)

    renderer = Renderer(store)
    resolved = renderer.resolve(plan)
    target = renderer.output_path(plan, options.output)
    log.info("Writing %d fragment(s) to %s", len(resolved), target or "stdout")

    if target is None:
        sink = stream if stream is not None else sys.stdout.buffer
        written = renderer.write(resolved, sink)
        sink.flush()
        return Assembly(plan=plan, store=store, output=None, bytes_written=written)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        f = target.open("wb")
    except OSError as e:
        raise OutputError(target, str(e)) from e
    with f:
        written = renderer.write(resolved, f)
    return Assembly(plan=plan, store=store, output=target, bytes_written=written)
