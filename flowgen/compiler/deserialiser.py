"""
Editor JSON → Graph
===================
Builds the immutable Graph the compiler works on from the editor payload
(see schema.py for the format).

Node kind inference
-------------------
The emission shape of every node is decided here, once:

    explicit "kind" field                       → that kind
    type / kind "input"                         → NodeKind.INPUT
    label starts with if / conditional / branch → NodeKind.CONDITIONAL
    label starts with for / foreach / loop      → NodeKind.LOOP
    label starts with while                     → NodeKind.WHILE_LOOP
    anything else                               → NodeKind.PLAIN

In the "Control Flow" category the keyword may appear anywhere in the
label ("Branch If Positive").  Outside it only the first word counts, so
"Format For Display" stays a plain node.

Edge kind inference
-------------------
``data.type`` wins; without it an edge whose handle starts with "exec" is
an execution edge.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..core.GraphPrimitives import Edge, ExecPort, Graph, Node, Port
from ..core.Types import EdgeKind, NodeKind, is_execution_handle
from .schema import node_payload, validate

logger = logging.getLogger(__name__)

CONTROL_FLOW_CATEGORY = "control flow"

_KEYWORD_KINDS: Dict[str, NodeKind] = {
    "if":          NodeKind.CONDITIONAL,
    "conditional": NodeKind.CONDITIONAL,
    "branch":      NodeKind.CONDITIONAL,
    "for":         NodeKind.LOOP,
    "foreach":     NodeKind.LOOP,
    "loop":        NodeKind.LOOP,
    "while":       NodeKind.WHILE_LOOP,
}

_EXPLICIT_KINDS: Dict[str, NodeKind] = {
    "plain":       NodeKind.PLAIN,
    "input":       NodeKind.INPUT,
    "conditional": NodeKind.CONDITIONAL,
    "loop":        NodeKind.LOOP,
    "while_loop":  NodeKind.WHILE_LOOP,
}

_WORD = re.compile(r"[A-Z]?[a-z]+|[A-Z]+(?![a-z])|\d+")


def _words(label: str) -> List[str]:
    """'ForLoopNode' → ['for', 'loop', 'node'];  'If Statement' → ['if', 'statement']."""
    return [w.lower() for w in _WORD.findall(label or "")]


def infer_kind(node: Dict[str, Any]) -> NodeKind:
    explicit = node.get("kind")
    if explicit is not None:
        kind = _EXPLICIT_KINDS.get(str(explicit).lower())
        if kind is not None:
            return kind
        logger.warning(f"Node {node['id']}: unknown kind '{explicit}', treating as plain")
        return NodeKind.PLAIN

    if str(node.get("nodeType", node.get("type", ""))).lower() == "input":
        return NodeKind.INPUT

    words = _words(str(node.get("label", "")))
    if not words:
        return NodeKind.PLAIN

    if str(node.get("category", "")).strip().lower() == CONTROL_FLOW_CATEGORY:
        candidates = words
    else:
        candidates = words[:1]

    for word in candidates:
        if word in _KEYWORD_KINDS:
            return _KEYWORD_KINDS[word]
    return NodeKind.PLAIN


# ── Ports ─────────────────────────────────────────────────────────────────────

def _port(raw: Dict[str, Any]) -> Port:
    return Port(
        id=raw["id"],
        name=raw.get("name") or raw["id"],
        type=raw.get("type") or "any",
        required=bool(raw.get("required", False)),
        value=raw.get("value", raw.get("defaultValue")),
    )


def _exec_port(raw: Dict[str, Any]) -> ExecPort:
    return ExecPort(id=raw["id"], name=raw.get("name") or raw["id"], label=raw.get("label"))


def _ports(raw: Optional[List[Dict[str, Any]]]) -> Tuple[Port, ...]:
    return tuple(_port(p) for p in raw or [])


def _exec_ports(raw: Optional[List[Dict[str, Any]]]) -> Tuple[ExecPort, ...]:
    return tuple(_exec_port(p) for p in raw or [])


# ── Nodes / edges ─────────────────────────────────────────────────────────────

def _build_node(raw: Dict[str, Any]) -> Node:
    data = node_payload(raw)
    kind = infer_kind(data)

    inputs = _ports(data.get("inputs"))
    outputs = _ports(data.get("outputs"))

    if data.get("hasExecutionPorts") is False:
        exec_inputs: Tuple[ExecPort, ...] = ()
        exec_outputs: Tuple[ExecPort, ...] = ()
    else:
        exec_inputs = _exec_ports(data.get("executionInputs"))
        exec_outputs = _exec_ports(data.get("executionOutputs"))

    value_type = data.get("valueType") or data.get("dataType")
    if not value_type:
        value_type = outputs[0].type if outputs else "any"

    imports = data.get("requiredImports") or ()
    if isinstance(imports, str):
        imports = (imports,)

    return Node(
        id=data["id"],
        label=data.get("label") or data["id"],
        kind=kind,
        category=data.get("category") or "",
        inputs=inputs,
        outputs=outputs,
        execution_inputs=exec_inputs,
        execution_outputs=exec_outputs,
        function_id=data.get("functionId"),
        value_type=value_type,
        default_value=data.get("defaultValue", data.get("value")),
        required_imports=tuple(imports),
        dependencies=tuple(data.get("dependencies") or ()),
    )


def _build_edge(raw: Dict[str, Any], index: int) -> Edge:
    source_handle = raw.get("sourceHandle") or ""
    target_handle = raw.get("targetHandle") or ""
    payload = raw.get("data") or {}

    edge_type = payload.get("type")
    if edge_type is not None:
        kind = EdgeKind(edge_type)
    elif is_execution_handle(source_handle) or is_execution_handle(target_handle):
        kind = EdgeKind.EXECUTION
    else:
        kind = EdgeKind.DATA

    return Edge(
        id=raw.get("id") or f"e{index}",
        source=raw["source"],
        target=raw["target"],
        source_handle=source_handle,
        target_handle=target_handle,
        kind=kind,
        label=payload.get("label") or raw.get("label"),
    )


# ── Public API ────────────────────────────────────────────────────────────────

def json_to_graph(data: Dict[str, Any], *, strict: bool = False) -> Graph:
    """
    Validate ``data`` and build a Graph from it.

    Raises:
        SchemaError: If the payload is structurally invalid.
    """
    validate(data, strict=strict)

    nodes = [_build_node(raw) for raw in data["nodes"]]
    edges = [_build_edge(raw, i) for i, raw in enumerate(data["edges"])]
    graph = Graph(nodes, edges)

    dropped = len(edges) - len(graph.edges)
    if dropped:
        logger.warning(f"Ignored {dropped} edge(s) referencing unknown nodes")
    logger.debug(f"Deserialised {graph!r}")
    return graph


def load_graph(path: Union[str, Path], *, strict: bool = False) -> Graph:
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    return json_to_graph(data, strict=strict)


__all__ = ["infer_kind", "json_to_graph", "load_graph"]
