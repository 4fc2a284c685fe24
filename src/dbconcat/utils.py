"""Shared console and logging setup for the CLI"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# stdout carries the assembled document
console = Console(stderr=True)

DEBUG_ENV = "DBCONCAT_DEBUG"


def setup_logging(verbose: bool = False) -> None:
    """Send dbconcat log records to stderr through Rich.

    WARNING is the floor. `--verbose` adds a line per instruction file and
    the chosen output target; setting DBCONCAT_DEBUG adds includes, ignored
    assignments, evaluated conditions and each copied source file.
    """
    debug = bool(os.environ.get(DEBUG_ENV))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("dbconcat")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
