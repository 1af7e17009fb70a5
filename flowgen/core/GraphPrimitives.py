"""
Graph model handed over by the editor.

Nodes, ports and edges are passive, immutable values.  A Graph owns an
ordered node map plus the edge list and answers the neighbourhood queries the
compiler needs; it never changes after construction.

    Node ──(data edge: output-port → input-port)──────────▶ Node
    Node ──(execution edge: exec-output → exec-input)─────▶ Node
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from .Types import EdgeKind, NodeKind, strip_handle

logger = logging.getLogger(__name__)

FunctionId = Union[int, str]


class Port(NamedTuple):
    id: str
    name: str
    type: str = "any"
    required: bool = False
    value: Any = None           # static default used when nothing is wired in


class ExecPort(NamedTuple):
    id: str
    name: str
    label: Optional[str] = None

    @property
    def branch(self) -> str:
        """Branch label carried by edges leaving this port."""
        return (self.label or self.name or "").strip().lower()


class Edge(NamedTuple):
    id: str
    source: str
    target: str
    source_handle: str = ""
    target_handle: str = ""
    kind: EdgeKind = EdgeKind.DATA
    label: Optional[str] = None

    @property
    def source_port(self) -> str:
        return strip_handle(self.source_handle)

    @property
    def target_port(self) -> str:
        return strip_handle(self.target_handle)


@dataclass(frozen=True)
class Node:
    id: str
    label: str
    kind: NodeKind = NodeKind.PLAIN
    category: str = ""
    inputs: Tuple[Port, ...] = ()
    outputs: Tuple[Port, ...] = ()
    execution_inputs: Tuple[ExecPort, ...] = ()
    execution_outputs: Tuple[ExecPort, ...] = ()
    function_id: Optional[FunctionId] = None

    # Pure input nodes: declared type and value of the variable they introduce.
    value_type: str = "any"
    default_value: Any = None

    required_imports: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()   # node ids the editor expects wired in

    @property
    def has_execution_ports(self) -> bool:
        return bool(self.execution_inputs or self.execution_outputs)

    def find_input(self, port_id: str) -> Optional[Port]:
        return next((p for p in self.inputs if p.id == port_id), None)

    def find_output(self, port_id: str) -> Optional[Port]:
        return next((p for p in self.outputs if p.id == port_id), None)

    def find_execution_output(self, port_id: str) -> Optional[ExecPort]:
        return next((p for p in self.execution_outputs if p.id == port_id), None)


class Graph:
    """Immutable node/edge container with neighbourhood queries."""

    def __init__(self, nodes: List[Node], edges: Optional[List[Edge]] = None):
        self._nodes: Dict[str, Node] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate node id '{node.id}'")
            self._nodes[node.id] = node

        self._edges: List[Edge] = []
        for edge in edges or []:
            if edge.source not in self._nodes or edge.target not in self._nodes:
                logger.debug(f"Dropping edge {edge.id}: endpoint not in graph")
                continue
            self._edges.append(edge)

        self._incoming: Dict[str, List[Edge]] = {nid: [] for nid in self._nodes}
        self._outgoing: Dict[str, List[Edge]] = {nid: [] for nid in self._nodes}
        for edge in self._edges:
            self._outgoing[edge.source].append(edge)
            self._incoming[edge.target].append(edge)

    # ── Node access ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def node_ids(self) -> List[str]:
        return list(self._nodes)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    # ── Edge queries ──────────────────────────────────────────────────────

    def data_edges(self) -> List[Edge]:
        return [e for e in self._edges if e.kind is EdgeKind.DATA]

    def execution_edges(self) -> List[Edge]:
        return [e for e in self._edges if e.kind is EdgeKind.EXECUTION]

    def incoming(self, node_id: str, kind: Optional[EdgeKind] = None) -> List[Edge]:
        edges = self._incoming.get(node_id, [])
        return [e for e in edges if kind is None or e.kind is kind]

    def outgoing(self, node_id: str, kind: Optional[EdgeKind] = None) -> List[Edge]:
        edges = self._outgoing.get(node_id, [])
        return [e for e in edges if kind is None or e.kind is kind]

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self._nodes)}, edges={len(self._edges)})"
