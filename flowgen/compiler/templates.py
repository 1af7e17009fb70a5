"""
Pattern instantiation helpers
==============================
The pieces the generator uses to turn one node into source lines:

  CodeWriter           indented line accumulator
  apply_pattern()      positional {i} substitution
  emit_pattern()       expression / statement / block emission
  variable_name()      deterministic per-node variable
  default_value_for_type() / python_literal()
                       neutral defaults and declared values

Substitution is single-pass, so an argument that itself contains "{1}" is
never substituted a second time.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

from ..core.GraphPrimitives import Node
from ..core.Types import PatternKind

NEUTRAL_LITERAL = '""'

_PLACEHOLDER = re.compile(r"\{(\d+)\}")
_NON_IDENT = re.compile(r"[^a-z0-9]+")


# ── Code writer ───────────────────────────────────────────────────────────────

class CodeWriter:
    """Indented string accumulator."""

    def __init__(self, indent: int = 0, indent_unit: str = "    "):
        self._lines: List[str] = []
        self._indent = indent
        self._unit = indent_unit
        self.statement_count = 0

    @property
    def indent(self) -> int:
        return self._indent

    @property
    def prefix(self) -> str:
        return self._unit * self._indent

    def writeln(self, line: str = "") -> "CodeWriter":
        if line:
            self._lines.append(self.prefix + line)
            if not line.lstrip().startswith("#"):
                self.statement_count += 1
        else:
            self._lines.append("")
        return self

    def blank(self) -> "CodeWriter":
        return self.writeln()

    def comment(self, text: str) -> "CodeWriter":
        return self.writeln(f"# {text}")

    def push(self) -> "CodeWriter":
        self._indent += 1
        return self

    def pop(self) -> "CodeWriter":
        self._indent = max(0, self._indent - 1)
        return self

    def extend(self, lines: List[str]) -> "CodeWriter":
        for line in lines:
            self.writeln(line)
        return self

    def write_block(self, text: str) -> "CodeWriter":
        """
        Emit a multi-line block.  The first line lands at the current indent;
        every later line is prefixed with the current indent on top of the
        relative indentation it already carries.
        """
        for line in text.split("\n"):
            self.writeln(line.rstrip())
        return self

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def result(self) -> str:
        return "\n".join(self._lines)


# ── Pattern application ───────────────────────────────────────────────────────

def apply_pattern(pattern: str, args: List[str]) -> Tuple[str, List[int]]:
    """
    Replace each ``{i}`` in ``pattern`` with ``args[i]``.

    Returns:
        (text, missing) where ``missing`` lists the placeholder indices that
        had no argument; those positions hold NEUTRAL_LITERAL.
    """
    missing: List[int] = []

    def substitute(match: "re.Match[str]") -> str:
        index = int(match.group(1))
        if index < len(args):
            return args[index]
        if index not in missing:
            missing.append(index)
        return NEUTRAL_LITERAL

    return _PLACEHOLDER.sub(substitute, pattern), missing


def emit_pattern(writer: CodeWriter, kind: PatternKind, text: str, var: str) -> Optional[str]:
    """
    Write an instantiated pattern.  Returns the variable holding the node's
    value for expression patterns, None otherwise.
    """
    if kind is PatternKind.EXPRESSION:
        writer.writeln(f"{var} = {text}")
        return var
    if kind is PatternKind.STATEMENT:
        writer.writeln(text.strip())
        return None
    if kind is PatternKind.BLOCK:
        writer.write_block(text)
        return None
    raise ValueError(f"Unhandled pattern kind: {kind!r}")


# ── Naming and literals ───────────────────────────────────────────────────────

def _normalize(text: str) -> str:
    return _NON_IDENT.sub("_", str(text).lower()).strip("_")


def variable_name(node: Node) -> str:
    """'Print True' + 'node-3' → 'print_true__node_3'.

    Neither half ever contains a double underscore, so two names only clash
    when the normalized ids do.
    """
    name = f"{_normalize(node.label) or 'node'}__{_normalize(node.id) or 'x'}"
    if name[0].isdigit():
        name = f"n_{name}"
    return name


_DEFAULTS = {
    "string": '""',
    "number": "0",
    "integer": "0",
    "float": "0.0",
    "boolean": "False",
    "array": "[]",
    "list": "[]",
    "object": "{}",
    "dictionary": "{}",
}


def default_value_for_type(type_name: Optional[str]) -> str:
    return _DEFAULTS.get((type_name or "").strip().lower(), "None")


def python_literal(value: Any, type_name: Optional[str] = None) -> str:
    """Source literal for a declared value, or the type's neutral default."""
    if value is None:
        return default_value_for_type(type_name)
    return repr(value)


__all__ = [
    "CodeWriter",
    "NEUTRAL_LITERAL",
    "apply_pattern",
    "default_value_for_type",
    "emit_pattern",
    "python_literal",
    "variable_name",
]
