"""Instruction language: line parsing, prefix scoping and conditionals."""

from dbconcat.dsl.conditional import Condition, ConditionalStack, parse_condition
from dbconcat.dsl.directive import Directive, is_ignorable, parse_directive, split_assignment
from dbconcat.dsl.prefix import PrefixScope

__all__ = [
    "Condition",
    "ConditionalStack",
    "Directive",
    "PrefixScope",
    "is_ignorable",
    "parse_condition",
    "parse_directive",
    "split_assignment",
]
