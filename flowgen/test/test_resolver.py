import logging

import pytest

from flowgen.compiler.resolver import DataSource, DependencyResolver
from flowgen.core.GraphPrimitives import Edge, ExecPort, Graph, Node, Port
from flowgen.core.Types import EdgeKind, NodeKind


# ── helpers ──────────────────────────────────────────────────────────────────

def data_node(node_id, **kwargs):
    return Node(
        id=node_id,
        label=node_id.upper(),
        inputs=(Port("in", "In", "number"), Port("in2", "In2", "number")),
        outputs=(Port("out", "Out", "number"),),
        **kwargs,
    )


def flow_node(node_id, exec_in=True, exec_out=True, **kwargs):
    return Node(
        id=node_id,
        label=node_id.title(),
        execution_inputs=(ExecPort("exec", "Execute"),) if exec_in else (),
        execution_outputs=(ExecPort("next", "Next"),) if exec_out else (),
        **kwargs,
    )


def data_edge(src, tgt, tport="in", eid=None):
    return Edge(eid or f"{src}->{tgt}:{tport}", src, tgt, "output-out", f"input-{tport}", EdgeKind.DATA)


def exec_edge(src, tgt, label=None):
    return Edge(f"{src}=>{tgt}", src, tgt, "exec-output-next", "exec-input-exec", EdgeKind.EXECUTION, label)


def resolve(nodes, edges):
    return DependencyResolver(Graph(nodes, edges)).resolve()


# ── topological order ────────────────────────────────────────────────────────

class TestExecutionOrder:
    def test_data_edges_order_dependencies_first(self):
        # Diamond, declared in reverse so graph order does not help.
        nodes = [data_node(n) for n in ("d", "c", "b", "a")]
        edges = [
            data_edge("a", "b"),
            data_edge("a", "c"),
            data_edge("b", "d", "in"),
            data_edge("c", "d", "in2"),
        ]
        resolver = resolve(nodes, edges)
        order = resolver.execution_order

        for edge in edges:
            assert order.index(edge.source) < order.index(edge.target)

    def test_execution_edges_order_predecessors_first(self):
        nodes = [flow_node("end", exec_out=False), flow_node("mid"), flow_node("start", exec_in=False)]
        edges = [exec_edge("start", "mid"), exec_edge("mid", "end")]
        order = resolve(nodes, edges).execution_order

        assert order == ["start", "mid", "end"]

    def test_mixed_edges_are_sound(self):
        nodes = [
            flow_node("print", inputs=(Port("in", "In"),)),
            data_node("value"),
            flow_node("start", exec_in=False),
            flow_node("after"),
        ]
        edges = [
            exec_edge("start", "print"),
            exec_edge("print", "after"),
            data_edge("value", "print"),
        ]
        order = resolve(nodes, edges).execution_order

        for edge in edges:
            assert order.index(edge.source) < order.index(edge.target)

    def test_every_node_appears_exactly_once(self):
        nodes = [data_node(str(i)) for i in range(6)]
        edges = [
            data_edge("0", "1"),
            data_edge("1", "2"),
            data_edge("2", "0"),    # cycle
            data_edge("3", "4"),
        ]
        order = resolve(nodes, edges).execution_order

        assert sorted(order) == sorted(n.id for n in nodes)
        assert len(order) == len(set(order))

    def test_cycle_is_tolerated_and_logged(self, caplog):
        caplog.set_level(logging.WARNING)
        nodes = [data_node("1"), data_node("2"), data_node("3")]
        edges = [data_edge("1", "2"), data_edge("2", "3"), data_edge("3", "1")]

        resolver = resolve(nodes, edges)

        assert sorted(resolver.execution_order) == ["1", "2", "3"]
        assert "Circular dependency detected" in caplog.text
        assert resolver.cycle_nodes

    def test_resolve_recomputes_from_scratch(self):
        resolver = DependencyResolver(Graph([data_node("a"), data_node("b")], [data_edge("a", "b")]))
        resolver.resolve()
        first = (list(resolver.execution_order), dict(resolver.execution_groups))
        resolver.resolve()

        assert (resolver.execution_order, resolver.execution_groups) == first
        assert resolver.get_dependencies("b") == ["a"]

    def test_get_execution_order_returns_nodes(self):
        resolver = resolve([data_node("b"), data_node("a")], [data_edge("a", "b")])
        assert [n.id for n in resolver.get_execution_order()] == ["a", "b"]


# ── entry / exit points ──────────────────────────────────────────────────────

class TestEntryAndExitPoints:
    def test_start_and_end(self):
        nodes = [flow_node("start", exec_in=False), flow_node("mid"), flow_node("end", exec_out=False)]
        resolver = resolve(nodes, [exec_edge("start", "mid"), exec_edge("mid", "end")])

        assert resolver.entry_points == ["start"]
        assert resolver.exit_points == ["end"]

    def test_isolated_flow_node_is_both(self):
        resolver = resolve([flow_node("solo")], [])
        assert resolver.entry_points == ["solo"]
        assert resolver.exit_points == ["solo"]

    def test_data_nodes_are_never_entry_points_when_flow_exists(self):
        nodes = [flow_node("start", exec_in=False), data_node("value")]
        resolver = resolve(nodes, [])
        assert resolver.entry_points == ["start"]

    def test_fallback_to_input_nodes(self):
        nodes = [
            Node(id="x", label="X", kind=NodeKind.INPUT, outputs=(Port("out", "Out"),)),
            data_node("y"),
        ]
        resolver = resolve(nodes, [data_edge("x", "y")])

        assert resolver.entry_points == ["x"]
        assert resolver.exit_points == []


# ── groups ───────────────────────────────────────────────────────────────────

class TestExecutionGroups:
    def setup_method(self):
        nodes = [
            flow_node("start", exec_in=False),
            flow_node("mid", inputs=(Port("in", "In"),)),
            data_node("const"),
            data_node("lonely"),
        ]
        edges = [exec_edge("start", "mid"), data_edge("const", "mid")]
        self.resolver = resolve(nodes, edges)

    def test_group_follows_flow_and_pulls_data(self):
        assert self.resolver.execution_groups["group_0"] == ["start", "mid", "const"]

    def test_unreached_nodes_get_data_groups(self):
        assert self.resolver.execution_groups["data_group_0"] == ["lonely"]
        assert self.resolver.get_group_of("lonely") == "data_group_0"

    def test_every_node_in_exactly_one_group(self):
        members = [nid for group in self.resolver.execution_groups.values() for nid in group]
        assert sorted(members) == ["const", "lonely", "mid", "start"]

    def test_same_group_query(self):
        assert set(self.resolver.get_nodes_in_same_execution_group("const")) == {"start", "mid", "const"}
        assert self.resolver.get_nodes_in_same_execution_group("missing") == []


# ── queries ──────────────────────────────────────────────────────────────────

class TestQueries:
    def test_data_bindings(self):
        resolver = resolve([data_node("a"), data_node("b")], [data_edge("a", "b", "in2")])

        assert resolver.get_data_dependencies("b") == {"in2": DataSource("a", "out")}
        assert resolver.get_data_source("b", "in2") == DataSource("a", "out")
        assert resolver.get_data_source("b", "in") is None
        assert [n.id for n in resolver.get_dependencies_for_node("b")] == ["a"]

    def test_conditional_branches_are_lower_cased(self):
        nodes = [flow_node("if"), flow_node("yes"), flow_node("no")]
        edges = [exec_edge("if", "yes", "Then"), exec_edge("if", "no", "else")]
        resolver = resolve(nodes, edges)

        assert resolver.get_conditional_branches("if") == {"then": "yes", "else": "no"}
        assert resolver.get_execution_successors("if") == ["yes", "no"]
        assert resolver.get_execution_predecessors("no") == ["if"]

    def test_execution_path(self):
        nodes = [flow_node("a", exec_in=False), flow_node("b"), flow_node("c"), flow_node("d")]
        edges = [exec_edge("a", "b"), exec_edge("b", "c"), exec_edge("c", "b")]
        resolver = resolve(nodes, edges)

        assert resolver.get_execution_path("a") == ["a", "b", "c"]
        assert resolver.get_execution_path("nope") == []

    def test_required_imports_sorted_and_unique(self):
        nodes = [
            data_node("a", required_imports=("import math",)),
            data_node("b", required_imports=("import random", "import math")),
        ]
        assert resolve(nodes, []).get_required_imports() == ["import math", "import random"]

    def test_dangling_edges_are_ignored(self):
        graph = Graph([data_node("a")], [data_edge("a", "ghost"), data_edge("ghost", "a")])
        resolver = DependencyResolver(graph).resolve()

        assert graph.edges == []
        assert resolver.execution_order == ["a"]

    def test_duplicate_node_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate node id"):
            Graph([data_node("a"), data_node("a")])
