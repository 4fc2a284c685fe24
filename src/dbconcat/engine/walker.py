"""Walker - interprets instruction files into a Plan of pending fragments.

The walk is depth-first: an `include` is processed completely before the
including file resumes. All files share one ParameterStore and one Plan;
prefix scope, conditional stack and text-block state belong to one file.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from dbconcat.dsl.conditional import ConditionalStack
from dbconcat.dsl.directive import (
    SET_PREFIX,
    TEXT_BEGIN,
    TEXT_END,
    Directive,
    is_ignorable,
    parse_directive,
    split_assignment,
)
from dbconcat.dsl.prefix import PrefixScope
from dbconcat.engine.fragments import FileFragment, Plan, TextFragment
from dbconcat.exceptions import (
    InstructionError,
    InvalidCommandFormatError,
    SourceFileError,
    UnknownCommandError,
)
from dbconcat.params import ParameterStore

log = logging.getLogger(__name__)

MAX_INCLUDE_DEPTH = 100


@dataclass
class _FileState:
    """Per-file walk state, discarded when the file is done."""

    path: Path
    base_dir: Path
    depth: int = 0
    prefix: PrefixScope = field(default_factory=PrefixScope)
    conditions: ConditionalStack = field(default_factory=ConditionalStack)
    block: list[str] | None = None  # open text-begin buffer
    block_start: int = 0


class Walker:
    """Walks an instruction tree, filling a Plan and mutating the store."""

    def __init__(self, store: ParameterStore, plan: Plan | None = None):
        """Initialize the walker.

        Args:
            store: Parameter store shared by every file of the run.
            plan: Plan to append to. A new one is created when omitted.
        """
        self.store = store
        self.plan = plan if plan is not None else Plan()
        self._handlers: dict[str, Callable[[_FileState, str], None]] = {
            "output": self._output,
            "concat": self._concat,
            "include": self._include,
            "param": self._param,
            "set": self._set,
            "print": self._print,
            "emit": self._emit,
        }

    def walk(self, path: Path, base_dir: Path | None = None) -> Plan:
        """Walk the top-level instruction file.

        Args:
            path: Instruction file.
            base_dir: Directory for its relative `concat` paths. Defaults to
                the file's own directory.

        Returns:
            The Plan holding fragments in execution order.
        """
        path = Path(path)
        self._walk_file(path, Path(base_dir) if base_dir else path.parent, depth=0)
        return self.plan

    def _walk_file(self, path: Path, base_dir: Path, depth: int) -> None:
        lines = _read_lines(path)
        log.info("Processing %s", path)
        self.plan.sources.append(path)

        state = _FileState(path=path, base_dir=base_dir, depth=depth)
        for lineno, line in enumerate(lines, start=1):
            try:
                self._step(state, line, lineno)
            except InstructionError as exc:
                exc.at(path, lineno)
                raise

        if state.block is not None:
            log.warning(
                "%s:%d: text-begin without text-end, block discarded",
                path,
                state.block_start,
            )
        try:
            state.conditions.close()
        except InstructionError as exc:
            exc.at(path)
            raise

    def _step(self, state: _FileState, line: str, lineno: int) -> None:
        if state.block is not None:
            if state.prefix.strip(line.strip()) == TEXT_END:
                self._close_block(state)
            else:
                state.block.append(line + "\n")
            return

        if is_ignorable(line):
            return
        text = state.prefix.filter(line.strip())
        if text is None:
            return

        directive = parse_directive(text)
        if directive.is_conditional:
            state.conditions.handle(directive.command, directive.args, self.store)
            return
        if directive.command == SET_PREFIX:
            state.prefix.set(directive.args)
            return
        if state.conditions.suppressed:
            return
        if directive.command == TEXT_BEGIN:
            state.block = []
            state.block_start = lineno
            return

        self._dispatch(state, directive)

    def _dispatch(self, state: _FileState, directive: Directive) -> None:
        handler = self._handlers.get(directive.command)
        if handler is None:
            raise UnknownCommandError(directive.command)
        handler(state, directive.args)

    def _close_block(self, state: _FileState) -> None:
        self.plan.add(TextFragment("".join(state.block)))
        state.block = None

    # -- directives ---------------------------------------------------------

    def _output(self, state: _FileState, args: str) -> None:
        if not args:
            log.warning("Ignoring output directive without a path")
            return
        if not self.plan.set_output(args):
            log.info("Ignoring output %s: already set to %s", args, self.plan.output)

    def _concat(self, state: _FileState, args: str) -> None:
        self.plan.add(FileFragment(args, state.base_dir))

    def _include(self, state: _FileState, args: str) -> None:
        if state.depth + 1 > MAX_INCLUDE_DEPTH:
            raise InstructionError(f"include nested deeper than {MAX_INCLUDE_DEPTH} levels")
        target = Path(self.store.substitute(args))
        if not target.is_absolute():
            target = (state.path.parent / target).absolute()
        log.debug("Including %s from %s", target, state.path)
        self._walk_file(target, target.parent, state.depth + 1)

    def _param(self, state: _FileState, args: str) -> None:
        key, value = _assignment("param", args)
        self.store.define(key, value)

    def _set(self, state: _FileState, args: str) -> None:
        key, value = _assignment("set", args)
        self.store.assign(key, value)

    def _print(self, state: _FileState, args: str) -> None:
        self.plan.add(TextFragment("${%s}" % args, param=args))

    def _emit(self, state: _FileState, args: str) -> None:
        self.plan.add(TextFragment(args))


def _assignment(command: str, args: str) -> tuple[str, str]:
    parts = split_assignment(args)
    if parts is None:
        raise InvalidCommandFormatError(f"invalid {command} command format: {args}")
    return parts


def _read_lines(path: Path) -> list[str]:
    """Read an instruction file and release it before any include is walked."""
    try:
        with path.open(encoding="utf-8") as f:
            return [line.removesuffix("\n") for line in f]
    except (OSError, UnicodeDecodeError) as e:
        raise SourceFileError(path, str(e)) from e
