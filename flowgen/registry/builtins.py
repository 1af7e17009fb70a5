"""
Built-in Python patterns, keyed by readable function ids.

Operators and type/collection operations are expressions unless they only
make sense as a standalone line (mutation, ``print``, ``del``, ``assert``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from ..core.Types import PatternKind
from .PatternRegistry import PYTHON_LANGUAGE_ID, InMemoryPatternRegistry, SyntaxPattern

OPERATOR_PATTERNS: Dict[str, str] = {
    # arithmetic
    "add":                   "{0} + {1}",
    "subtract":              "{0} - {1}",
    "multiply":              "{0} * {1}",
    "divide":                "{0} / {1}",
    "modulo":                "{0} % {1}",
    "power":                 "{0} ** {1}",
    "floor_divide":          "{0} // {1}",
    # comparison
    "equals":                "{0} == {1}",
    "not_equals":            "{0} != {1}",
    "less_than":             "{0} < {1}",
    "greater_than":          "{0} > {1}",
    "less_than_or_equal":    "{0} <= {1}",
    "greater_than_or_equal": "{0} >= {1}",
    # logic
    "and":                   "{0} and {1}",
    "or":                    "{0} or {1}",
    "not":                   "not {0}",
    # bitwise
    "bitwise_and":           "{0} & {1}",
    "bitwise_or":            "{0} | {1}",
    "bitwise_xor":           "{0} ^ {1}",
    "bitwise_not":           "~{0}",
    "left_shift":            "{0} << {1}",
    "right_shift":           "{0} >> {1}",
    # membership / identity
    "in":                    "{0} in {1}",
    "not_in":                "{0} not in {1}",
    "is":                    "{0} is {1}",
    "is_not":                "{0} is not {1}",
}

TYPE_PATTERNS: Dict[str, str] = {
    "is_instance": "isinstance({0}, {1})",
    "get_type":    "type({0})",
    "to_string":   "str({0})",
    "to_int":      "int({0})",
    "to_float":    "float({0})",
    "to_bool":     "bool({0})",
    "to_list":     "list({0})",
    "to_dict":     "dict({0})",
    "to_set":      "set({0})",
    "to_tuple":    "tuple({0})",
    "length":      "len({0})",
    "get_item":    "{0}[{1}]",
    "contains":    "{1} in {0}",
    "pop":         "{0}.pop({1})",
    "keys":        "{0}.keys()",
    "values":      "{0}.values()",
    "items":       "{0}.items()",
    "range":       "range({0}, {1})",
    "input":       "input({0})",
}

STATEMENT_PATTERNS: Dict[str, str] = {
    "print":       "print({0})",
    "assign":      "{0} = {1}",
    "set_item":    "{0}[{1}] = {2}",
    "delete_item": "del {0}[{1}]",
    "append":      "{0}.append({1})",
    "extend":      "{0}.extend({1})",
    "insert":      "{0}.insert({1}, {2})",
    "remove":      "{0}.remove({1})",
    "assert":      "assert {0}, {1}",
}

BLOCK_PATTERNS: Dict[str, str] = {
    "try_print": "try:\n    print({0})\nexcept Exception as exc:\n    print(exc)",
}

# function id → (pattern, imports)
MODULE_PATTERNS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "sqrt":        ("math.sqrt({0})", ("import math",)),
    "random":      ("random.random()", ("import random",)),
    "random_bool": ("random.random() < 0.5", ("import random",)),
    "now":         ("datetime.now()", ("from datetime import datetime",)),
}


def python_builtins() -> InMemoryPatternRegistry:
    registry = InMemoryPatternRegistry()

    for table, kind in (
        (OPERATOR_PATTERNS, PatternKind.EXPRESSION),
        (TYPE_PATTERNS, PatternKind.EXPRESSION),
        (STATEMENT_PATTERNS, PatternKind.STATEMENT),
        (BLOCK_PATTERNS, PatternKind.BLOCK),
    ):
        for function_id, pattern in table.items():
            registry.register(SyntaxPattern(function_id, pattern, kind, PYTHON_LANGUAGE_ID))

    for function_id, (pattern, imports) in MODULE_PATTERNS.items():
        registry.register(SyntaxPattern(
            function_id, pattern, PatternKind.EXPRESSION, PYTHON_LANGUAGE_ID, imports,
        ))

    return registry


def load_registry(patterns_file: Optional[Union[str, Path]] = None) -> InMemoryPatternRegistry:
    """Built-in patterns, overridden by function id from an optional JSON file."""
    registry = python_builtins()
    if patterns_file:
        registry.register_many(InMemoryPatternRegistry.from_file(patterns_file).patterns())
    return registry


__all__ = ["load_registry", "python_builtins"]
