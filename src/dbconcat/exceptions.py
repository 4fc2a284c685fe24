"""dbconcat exceptions

Every failure aborts the whole run. The CLI prints the message and exits
with `exit_code`.
"""

from __future__ import annotations

from pathlib import Path


class DbConcatError(Exception):
    """Base exception for dbconcat operations."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class InstructionError(DbConcatError):
    """An error tied to a line of an instruction file."""

    def __init__(
        self,
        message: str,
        source: Path | None = None,
        lineno: int | None = None,
    ) -> None:
        self.source = None
        self.lineno = None
        super().__init__(message)
        if source is not None:
            self.at(source, lineno)

    def at(self, source: Path, lineno: int | None = None) -> "InstructionError":
        """Attach the file location, keeping the innermost one."""
        if self.source is None:
            self.source = source
            self.lineno = lineno
            where = f"{source}:{lineno}" if lineno is not None else str(source)
            self.message = f"{where}: {self.message}"
            self.args = (self.message,)
        return self


class UnknownCommandError(InstructionError):
    """Raised for an unrecognized directive keyword."""

    def __init__(self, command: str, **kwargs) -> None:
        self.command = command
        super().__init__(f"unknown command: {command}", **kwargs)


class InvalidCommandFormatError(InstructionError):
    """Raised when `param`/`set` lack `=` or an `if` condition has no operator."""


class UnclosedConditionalError(InstructionError):
    """Raised when a file ends with open `if` blocks."""

    def __init__(self, depth: int, **kwargs) -> None:
        self.depth = depth
        super().__init__(f"unclosed if block(s) ({depth} open)", **kwargs)


class DanglingConditionalError(InstructionError):
    """Raised for `else`/`endif` with no open `if`."""

    def __init__(self, command: str, **kwargs) -> None:
        self.command = command
        super().__init__(f"{command} without a preceding if", **kwargs)


class MissingParameterError(DbConcatError):
    """Raised when `print` names a parameter that never received a value."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"missing parameter for print: {name}")


class SourceFileError(DbConcatError):
    """Raised when an instruction, include or concat file cannot be read."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"error opening file {path}: {reason}")


class OutputError(DbConcatError):
    """Raised when the output destination cannot be written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"error creating output file {path}: {reason}")


class ParamFileError(DbConcatError):
    """Raised when a parameter file is missing or malformed."""
