"""
Dependency resolution over the dual graph
==========================================
Data edges say "b needs a's value"; execution edges say "b runs after a".
The resolver folds both into the structures the generator walks:

    Graph ──▶ DependencyResolver.resolve()
                 ├─ dependencies        target → [source]            (data)
                 ├─ data bindings       target → {port: DataSource}  (data)
                 ├─ successors          source → [target]            (execution)
                 ├─ branches            source → {label: target}     (execution)
                 ├─ entry / exit points
                 ├─ execution groups    group_N / data_group_N → [node]
                 └─ execution order     dependencies first, each node once

Cycles never raise: the node that closes a cycle is logged, the edge is
abandoned and the walk carries on, so the order still covers every node.
"""

from __future__ import annotations

import logging
from typing import Dict, List, NamedTuple, Optional, Set

from ..core.GraphPrimitives import Graph, Node
from ..core.Types import EdgeKind, NodeKind

logger = logging.getLogger(__name__)


class DataSource(NamedTuple):
    node_id: str
    port_id: str

    def __str__(self) -> str:
        return f"{self.node_id}:{self.port_id}"


def _append_unique(table: Dict[str, List[str]], key: str, value: str) -> None:
    values = table.setdefault(key, [])
    if value not in values:
        values.append(value)


class DependencyResolver:
    def __init__(self, graph: Graph):
        self.graph = graph
        self._reset()

    def _reset(self) -> None:
        self._dependencies: Dict[str, List[str]] = {}
        self._data_bindings: Dict[str, Dict[str, DataSource]] = {}
        self._successors: Dict[str, List[str]] = {}
        self._predecessors: Dict[str, List[str]] = {}
        self._branches: Dict[str, Dict[str, str]] = {}

        self.entry_points: List[str] = []
        self.exit_points: List[str] = []
        self.execution_groups: Dict[str, List[str]] = {}
        self.execution_order: List[str] = []
        self.cycle_nodes: List[str] = []
        self._group_of: Dict[str, str] = {}

    # ── Public entry ──────────────────────────────────────────────────────

    def resolve(self) -> "DependencyResolver":
        """Recompute every derived structure from the graph."""
        self._reset()
        self._index_edges()
        self._find_entry_and_exit_points()
        self._build_execution_groups()
        self._topological_sort()
        logger.debug(
            f"Resolved {len(self.graph)} nodes: entry={self.entry_points} "
            f"exit={self.exit_points} groups={len(self.execution_groups)} "
            f"cycles={self.cycle_nodes}"
        )
        return self

    # ── Edge indexing ─────────────────────────────────────────────────────

    def _index_edges(self) -> None:
        for edge in self.graph.edges:
            if edge.kind is EdgeKind.EXECUTION:
                _append_unique(self._successors, edge.source, edge.target)
                _append_unique(self._predecessors, edge.target, edge.source)
                if edge.label:
                    self._branches.setdefault(edge.source, {})[edge.label.strip().lower()] = edge.target
            else:
                _append_unique(self._dependencies, edge.target, edge.source)
                self._data_bindings.setdefault(edge.target, {})[edge.target_port] = DataSource(
                    edge.source, edge.source_port
                )

    def _find_entry_and_exit_points(self) -> None:
        flow_nodes = [n for n in self.graph if n.has_execution_ports]

        if not flow_nodes:
            self.entry_points = [n.id for n in self.graph if n.kind is NodeKind.INPUT]
            return

        for node in flow_nodes:
            if not self._predecessors.get(node.id):
                self.entry_points.append(node.id)
            if not self._successors.get(node.id):
                self.exit_points.append(node.id)

    # ── Execution groups ──────────────────────────────────────────────────

    def _build_execution_groups(self) -> None:
        visited: Set[str] = set()

        def pull_data(node_id: str, group: List[str]) -> None:
            for dep in self._dependencies.get(node_id, []):
                if dep not in visited:
                    visited.add(dep)
                    group.append(dep)
                    pull_data(dep, group)

        def follow(node_id: str, group: List[str]) -> None:
            if node_id in visited:
                return
            visited.add(node_id)
            group.append(node_id)
            pull_data(node_id, group)
            for succ in self._successors.get(node_id, []):
                follow(succ, group)

        for entry in self.entry_points:
            if entry in visited:
                continue
            group: List[str] = []
            follow(entry, group)
            self.execution_groups[f"group_{len(self.execution_groups)}"] = group

        data_index = 0
        for node_id in self.graph.node_ids():
            if node_id not in visited:
                visited.add(node_id)
                self.execution_groups[f"data_group_{data_index}"] = [node_id]
                data_index += 1

        for name, members in self.execution_groups.items():
            for node_id in members:
                self._group_of[node_id] = name

    # ── Topological order ─────────────────────────────────────────────────

    def _topological_sort(self) -> None:
        visited: Set[str] = set()
        temp: Set[str] = set()
        order: List[str] = []

        def visit(node_id: str) -> None:
            if node_id in temp:
                logger.warning(f"Circular dependency detected at node {node_id}")
                if node_id not in self.cycle_nodes:
                    self.cycle_nodes.append(node_id)
                return
            if node_id in visited:
                return

            temp.add(node_id)
            for dep in self._dependencies.get(node_id, []):
                visit(dep)
            for pred in self._predecessors.get(node_id, []):
                visit(pred)
            temp.discard(node_id)

            visited.add(node_id)
            order.append(node_id)

        for node_id in self.graph.node_ids():
            visit(node_id)

        self.execution_order = order

    # ── Queries ───────────────────────────────────────────────────────────

    def get_execution_order(self) -> List[Node]:
        return [self.graph.get_node(nid) for nid in self.execution_order]

    def get_dependencies(self, node_id: str) -> List[str]:
        return list(self._dependencies.get(node_id, []))

    def get_dependencies_for_node(self, node_id: str) -> List[Node]:
        return [self.graph.get_node(nid) for nid in self._dependencies.get(node_id, [])]

    def get_data_dependencies(self, node_id: str) -> Dict[str, DataSource]:
        """target port id → DataSource feeding it."""
        return dict(self._data_bindings.get(node_id, {}))

    def get_data_source(self, node_id: str, port_id: str) -> Optional[DataSource]:
        return self._data_bindings.get(node_id, {}).get(port_id)

    def get_execution_successors(self, node_id: str) -> List[str]:
        return list(self._successors.get(node_id, []))

    def get_execution_predecessors(self, node_id: str) -> List[str]:
        return list(self._predecessors.get(node_id, []))

    def get_conditional_branches(self, node_id: str) -> Dict[str, str]:
        return dict(self._branches.get(node_id, {}))

    def get_group_of(self, node_id: str) -> Optional[str]:
        return self._group_of.get(node_id)

    def get_nodes_in_same_execution_group(self, node_id: str) -> List[str]:
        group = self._group_of.get(node_id)
        if group is None:
            return []
        return list(self.execution_groups[group])

    def get_execution_path(self, start_id: str) -> List[str]:
        """Depth-first order of nodes reachable from ``start_id`` via execution edges."""
        path: List[str] = []
        seen: Set[str] = set()

        def walk(node_id: str) -> None:
            if node_id in seen:
                return
            seen.add(node_id)
            path.append(node_id)
            for succ in self._successors.get(node_id, []):
                walk(succ)

        if start_id in self.graph:
            walk(start_id)
        return path

    def get_required_imports(self) -> List[str]:
        imports: Set[str] = set()
        for node in self.graph:
            imports.update(node.required_imports)
        return sorted(imports)


__all__ = ["DataSource", "DependencyResolver"]
