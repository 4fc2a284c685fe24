"""dbconcat - assemble documents from line-oriented instruction files."""

from dbconcat._version import __version__
from dbconcat.config import RunOptions
from dbconcat.engine import Assembly, Plan, Renderer, Walker, assemble
from dbconcat.exceptions import DbConcatError
from dbconcat.params import ParameterStore

__all__ = [
    "Assembly",
    "DbConcatError",
    "ParameterStore",
    "Plan",
    "Renderer",
    "RunOptions",
    "Walker",
    "__version__",
    "assemble",
]
