"""
Code generation diagnostics.

Diagnostics never abort generation.  Each one is filed under the result's
``errors`` or ``warnings`` list while the generator carries on with a
best-effort substitute (neutral default, placeholder comment, skipped node).

    [WARNING] No syntax pattern found for function 7
    Node: Print (ID: n3)
    Kind: syntax_pattern_missing

    Suggestions:
      1. Check that the function has a syntax pattern for the target language
      ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..core.GraphPrimitives import FunctionId, Node

logger = logging.getLogger(__name__)


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(Enum):
    SYNTAX_PATTERN_MISSING = "syntax_pattern_missing"
    UNRESOLVED_PLACEHOLDER = "unresolved_placeholder"
    DEPENDENCY_CYCLE = "dependency_cycle"
    DISCONNECTED_REQUIRED_INPUT = "disconnected_required_input"
    TYPE_INCOMPATIBLE = "type_incompatible"
    TYPE_CONVERSION_APPLIED = "type_conversion_applied"
    INITIALIZATION_FAILURE = "initialization_failure"
    INTERNAL_GENERATION_FAILURE = "internal_generation_failure"


DEFAULT_SEVERITY: Dict[DiagnosticKind, Severity] = {
    DiagnosticKind.SYNTAX_PATTERN_MISSING:      Severity.WARNING,
    DiagnosticKind.UNRESOLVED_PLACEHOLDER:      Severity.WARNING,
    DiagnosticKind.DEPENDENCY_CYCLE:            Severity.WARNING,
    DiagnosticKind.DISCONNECTED_REQUIRED_INPUT: Severity.WARNING,
    DiagnosticKind.TYPE_INCOMPATIBLE:           Severity.ERROR,
    DiagnosticKind.TYPE_CONVERSION_APPLIED:     Severity.WARNING,
    DiagnosticKind.INITIALIZATION_FAILURE:      Severity.ERROR,
    DiagnosticKind.INTERNAL_GENERATION_FAILURE: Severity.ERROR,
}

SUGGESTIONS: Dict[DiagnosticKind, Tuple[str, ...]] = {
    DiagnosticKind.SYNTAX_PATTERN_MISSING: (
        "Check that the function has a syntax pattern for the target language",
        "Add the missing pattern to the pattern registry",
    ),
    DiagnosticKind.UNRESOLVED_PLACEHOLDER: (
        "Make sure the pattern placeholders match the node's inputs",
        "Add the missing input port to the node",
    ),
    DiagnosticKind.DEPENDENCY_CYCLE: (
        "Remove one of the connections forming the cycle",
        "Use a loop node to express repetition instead of a circular wire",
    ),
    DiagnosticKind.DISCONNECTED_REQUIRED_INPUT: (
        "Connect a value to the required input",
        "Give the input a default value",
    ),
    DiagnosticKind.TYPE_INCOMPATIBLE: (
        "Insert a conversion node between the two ports",
        "Connect a port with a compatible type",
    ),
    DiagnosticKind.TYPE_CONVERSION_APPLIED: (
        "Connect ports of the same type to avoid the implicit conversion",
    ),
    DiagnosticKind.INITIALIZATION_FAILURE: (
        "Check that the pattern registry is reachable",
        "Retry code generation",
    ),
    DiagnosticKind.INTERNAL_GENERATION_FAILURE: (
        "Check the node's syntax pattern for formatting errors",
        "Report the failing graph together with the generated output",
    ),
}


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    severity: Severity
    message: str
    node_id: Optional[str] = None
    node_label: Optional[str] = None
    function_id: Optional[FunctionId] = None
    suggestions: Tuple[str, ...] = ()
    context: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def detailed_message(self) -> str:
        lines = [f"[{self.severity.value.upper()}] {self.message}"]
        if self.node_id:
            lines.append(f"Node: {self.node_label or 'Unknown'} (ID: {self.node_id})")
        if self.function_id is not None:
            lines.append(f"Function ID: {self.function_id}")
        lines.append(f"Kind: {self.kind.value}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "nodeId": self.node_id,
            "nodeLabel": self.node_label,
            "functionId": self.function_id,
            "suggestions": list(self.suggestions),
            "context": {k: str(v) for k, v in self.context.items()},
        }

    def __str__(self) -> str:
        return self.message


class DiagnosticCollector:
    """Accumulates diagnostics for one generation run."""

    def __init__(self) -> None:
        self.errors: List[Diagnostic] = []
        self.warnings: List[Diagnostic] = []

    def add(
        self,
        kind: DiagnosticKind,
        message: str,
        node: Optional[Node] = None,
        severity: Optional[Severity] = None,
        **context: Any,
    ) -> Diagnostic:
        diag = Diagnostic(
            kind=kind,
            severity=severity or DEFAULT_SEVERITY[kind],
            message=message,
            node_id=node.id if node else None,
            node_label=node.label if node else None,
            function_id=node.function_id if node else None,
            suggestions=SUGGESTIONS.get(kind, ()),
            context=context,
        )
        if diag.is_error:
            logger.error(message)
            self.errors.append(diag)
        else:
            logger.warning(message)
            self.warnings.append(diag)
        return diag

    def __len__(self) -> int:
        return len(self.errors) + len(self.warnings)


__all__ = [
    "DEFAULT_SEVERITY",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticKind",
    "Severity",
]
