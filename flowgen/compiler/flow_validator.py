"""
Structural checks the editor runs before asking for code.

Unlike the generator, which tolerates every one of these problems, the
validator reports them all so the user can fix the canvas:

    cycle                   an edge closes a loop (data and execution edges alike)
    disconnected            a node with no edges at all
    missing_required_input  a required input with no data edge
    missing_dependency      a declared dependency without a direct edge
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Set

from ..core.GraphPrimitives import Graph
from ..core.Types import EdgeKind

logger = logging.getLogger(__name__)


class FlowIssue(NamedTuple):
    type: str
    message: str
    node_id: Optional[str] = None
    dependency_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "nodeId": self.node_id,
            "dependencyId": self.dependency_id,
        }


class FlowValidationResult(NamedTuple):
    valid: bool
    errors: List[FlowIssue]


def detect_cycles(graph: Graph) -> List[FlowIssue]:
    issues: List[FlowIssue] = []
    visited: Set[str] = set()
    stack: Set[str] = set()

    def dfs(node_id: str) -> None:
        visited.add(node_id)
        stack.add(node_id)
        for edge in graph.outgoing(node_id):
            if edge.target not in visited:
                dfs(edge.target)
            elif edge.target in stack:
                issues.append(FlowIssue(
                    "cycle", f"Detected cycle involving node {edge.target}", edge.target,
                ))
        stack.discard(node_id)

    for node_id in graph.node_ids():
        if node_id not in visited:
            dfs(node_id)
    return issues


def detect_disconnected_nodes(graph: Graph) -> List[FlowIssue]:
    if len(graph) < 2:
        return []
    return [
        FlowIssue("disconnected", f"Node {node.id} is disconnected from the flow", node.id)
        for node in graph
        if not graph.incoming(node.id) and not graph.outgoing(node.id)
    ]


def validate_required_inputs(graph: Graph) -> List[FlowIssue]:
    issues: List[FlowIssue] = []
    for node in graph:
        wired = {e.target_port for e in graph.incoming(node.id, EdgeKind.DATA)}
        for port in node.inputs:
            if port.required and port.value is None and port.id not in wired:
                issues.append(FlowIssue(
                    "missing_required_input",
                    f"Node {node.id} requires a connection on input {port.name}",
                    node.id,
                ))
    return issues


def validate_dependencies(graph: Graph) -> List[FlowIssue]:
    issues: List[FlowIssue] = []
    for node in graph:
        sources = {e.source for e in graph.incoming(node.id)}
        for dependency_id in node.dependencies:
            if dependency_id not in sources:
                issues.append(FlowIssue(
                    "missing_dependency",
                    f"Node {node.id} requires a direct connection from dependency {dependency_id}",
                    node.id,
                    dependency_id,
                ))
    return issues


def validate_execution_flow(graph: Graph) -> FlowValidationResult:
    errors: List[FlowIssue] = []
    errors.extend(detect_cycles(graph))
    errors.extend(detect_disconnected_nodes(graph))
    errors.extend(validate_required_inputs(graph))
    errors.extend(validate_dependencies(graph))

    if errors:
        logger.debug(f"Execution flow validation found {len(errors)} issue(s)")
    return FlowValidationResult(not errors, errors)


__all__ = [
    "FlowIssue",
    "FlowValidationResult",
    "detect_cycles",
    "detect_disconnected_nodes",
    "validate_dependencies",
    "validate_execution_flow",
    "validate_required_inputs",
]
