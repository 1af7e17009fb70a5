"""
Port type compatibility.

Type names are abstract editor types compared case-insensitively:

    string  number  integer  float  boolean  array  list  object  dictionary  any

Resolution order for ``check_compatibility(source, target)``:
  1. Either side empty               → UNKNOWN
  2. Same type                       → COMPATIBLE
  3. "any" on either side            → COMPATIBLE
  4. Numeric widening                → COMPATIBLE
  5. Registered conversion / alias   → COMPATIBLE_WITH_CONVERSION
  6. Anything else                   → INCOMPATIBLE
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Tuple

from ..core.GraphPrimitives import Edge, Graph, Port
from ..core.Types import Compatibility
from .diagnostics import Severity

logger = logging.getLogger(__name__)

ANY = "any"

_Pair = Tuple[str, str]

# Widening that needs no code at all.
_WIDENING: FrozenSet[_Pair] = frozenset({
    ("integer", "number"),
    ("float", "number"),
    ("integer", "float"),
})

# (source, target) → Python callable wrapped around the value.
CONVERSION_FUNCTIONS: Dict[_Pair, str] = {
    ("number", "string"):  "str",
    ("integer", "string"): "str",
    ("float", "string"):   "str",
    ("boolean", "string"): "str",
    ("string", "number"):  "float",
    ("string", "float"):   "float",
    ("string", "integer"): "int",
    ("number", "integer"): "int",
    ("float", "integer"):  "int",
}

# Same runtime container under two editor names.
CONTAINER_ALIASES: FrozenSet[_Pair] = frozenset({
    ("array", "list"),
    ("list", "array"),
    ("object", "dictionary"),
    ("dictionary", "object"),
})


def normalize_type(type_name: Optional[str]) -> str:
    return (type_name or "").strip().lower()


class ConnectionCheck(NamedTuple):
    valid: bool
    result: Compatibility
    message: Optional[str] = None


class ConnectionIssue(NamedTuple):
    edge_id: str
    severity: Severity
    message: str
    source_node_id: str
    source_port_id: str
    target_node_id: str
    target_port_id: str
    source_type: str
    target_type: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "edgeId": self.edge_id,
            "severity": self.severity.value,
            "message": self.message,
            "sourceNodeId": self.source_node_id,
            "sourcePortId": self.source_port_id,
            "targetNodeId": self.target_node_id,
            "targetPortId": self.target_port_id,
            "sourceType": self.source_type,
            "targetType": self.target_type,
        }


class TypeValidator:

    def check_compatibility(self, source_type: Optional[str], target_type: Optional[str]) -> Compatibility:
        source = normalize_type(source_type)
        target = normalize_type(target_type)

        if not source or not target:
            return Compatibility.UNKNOWN
        if source == target:
            return Compatibility.COMPATIBLE
        if source == ANY or target == ANY:
            return Compatibility.COMPATIBLE
        if (source, target) in _WIDENING:
            return Compatibility.COMPATIBLE
        if (source, target) in CONVERSION_FUNCTIONS or (source, target) in CONTAINER_ALIASES:
            return Compatibility.COMPATIBLE_WITH_CONVERSION
        return Compatibility.INCOMPATIBLE

    def get_conversion_function(self, source_type: Optional[str], target_type: Optional[str]) -> Optional[str]:
        return CONVERSION_FUNCTIONS.get((normalize_type(source_type), normalize_type(target_type)))

    def can_connect_ports(self, source_port: Optional[Port], target_port: Optional[Port]) -> ConnectionCheck:
        if source_port is None or target_port is None:
            return ConnectionCheck(False, Compatibility.UNKNOWN, "Invalid port")

        result = self.check_compatibility(source_port.type, target_port.type)
        if result is Compatibility.COMPATIBLE:
            return ConnectionCheck(True, result)
        if result is Compatibility.COMPATIBLE_WITH_CONVERSION:
            return ConnectionCheck(
                True, result,
                f"Type conversion required: '{source_port.type}' will be converted to '{target_port.type}'",
            )
        if result is Compatibility.INCOMPATIBLE:
            return ConnectionCheck(
                False, result,
                f"Type mismatch: Cannot connect '{source_port.type}' to '{target_port.type}'",
            )
        return ConnectionCheck(False, result, "Unknown port type")

    def can_connect(self, graph: Graph, edge: Edge) -> ConnectionCheck:
        """Check a data edge by resolving its port ids against the graph."""
        source_node = graph.get_node(edge.source)
        target_node = graph.get_node(edge.target)
        source_port = source_node.find_output(edge.source_port) if source_node else None
        target_port = target_node.find_input(edge.target_port) if target_node else None
        return self.can_connect_ports(source_port, target_port)

    def validate_all_connections(self, graph: Graph) -> List[ConnectionIssue]:
        """
        Batch-check every data edge of ``graph``.

        Returns:
            One ConnectionIssue per incompatible edge (severity error) or
            conversion-requiring edge (severity warning).  Compatible edges
            and execution edges produce nothing.
        """
        issues: List[ConnectionIssue] = []
        for edge in graph.data_edges():
            check = self.can_connect(graph, edge)
            if check.result is Compatibility.COMPATIBLE:
                continue

            source_port = graph.get_node(edge.source).find_output(edge.source_port)
            target_port = graph.get_node(edge.target).find_input(edge.target_port)
            source_type = source_port.type if source_port else ""
            target_type = target_port.type if target_port else ""

            if check.result is Compatibility.COMPATIBLE_WITH_CONVERSION:
                severity = Severity.WARNING
            else:
                severity = Severity.ERROR

            issues.append(ConnectionIssue(
                edge_id=edge.id,
                severity=severity,
                message=check.message or "Invalid connection",
                source_node_id=edge.source,
                source_port_id=edge.source_port,
                target_node_id=edge.target,
                target_port_id=edge.target_port,
                source_type=source_type,
                target_type=target_type,
            ))

        if issues:
            logger.debug(f"validate_all_connections: {len(issues)} issue(s)")
        return issues


__all__ = [
    "CONTAINER_ALIASES",
    "CONVERSION_FUNCTIONS",
    "ConnectionCheck",
    "ConnectionIssue",
    "TypeValidator",
    "normalize_type",
]
