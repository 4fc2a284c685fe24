"""dbconcat engine - walks instruction files and renders the output."""

from dbconcat.engine.assembler import Assembly, assemble
from dbconcat.engine.renderer import Renderer, Resolved
from dbconcat.engine.fragments import FileFragment, Fragment, Plan, TextFragment
from dbconcat.engine.walker import Walker

__all__ = [
    "Assembly",
    "FileFragment",
    "Fragment",
    "Plan",
    "Renderer",
    "Resolved",
    "TextFragment",
    "Walker",
    "assemble",
]
