"""dbconcat CLI Main Entry Point

Assembles an output document (typically a SQL script) from an instruction
file.

Usage:
    dbconcat build.dsl                          # write to stdout
    dbconcat --output out.sql build.dsl         # write to out.sql
    dbconcat --param ENV=prod build.dsl         # locked parameter
    dbconcat --param-file a.txt,b.yaml build.dsl
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from pydantic import ValidationError

from dbconcat._version import __version__
from dbconcat.config import RunOptions, parse_param_assignment
from dbconcat.engine import assemble
from dbconcat.exceptions import DbConcatError
from dbconcat.utils import setup_logging

log = logging.getLogger(__name__)

typer_app = typer.Typer(add_completion=False)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dbconcat {__version__}")
        raise typer.Exit()


def parse_params(values: Optional[List[str]]) -> dict[str, str]:
    """Turn repeated `--param KEY=VALUE` options into a mapping."""
    params: dict[str, str] = {}
    for item in values or []:
        try:
            key, value = parse_param_assignment(item)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--param") from e
        params[key] = value
    return params


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Print an error on stderr and exit."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)


@typer_app.command()
def cli(
    instructions: Path = typer.Argument(..., help="Instruction file to process."),
    param_files: Optional[List[str]] = typer.Option(
        None,
        "--param-file",
        help="Comma-separated list of parameter files (key=value per line, or YAML).",
    ),
    params: Optional[List[str]] = typer.Option(
        None,
        "--param",
        help="KEY=VALUE parameter. Overrides every other source. Repeatable.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "-o",
        "--output",
        help="Output file. Ignored when the instructions contain 'output'. Default: stdout.",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show progress."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Concatenate files and text as directed by an instruction file."""
    setup_logging(verbose)

    try:
        options = RunOptions(
            instructions=instructions,
            output=output,
            param_files=param_files or [],
            params=parse_params(params),
        )
    except ValidationError as exc:
        exit_with_error(str(exc), exit_code=2)

    try:
        result = assemble(options)
    except DbConcatError as exc:
        log.debug("Run failed", exc_info=True)
        exit_with_error(exc.message, exc.exit_code)

    if result.output is not None:
        typer.echo(f"Successfully concatenated files to {result.output}")


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
