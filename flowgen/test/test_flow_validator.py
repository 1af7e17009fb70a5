from flowgen.compiler.flow_validator import (
    detect_cycles,
    detect_disconnected_nodes,
    validate_dependencies,
    validate_execution_flow,
    validate_required_inputs,
)
from flowgen.core.GraphPrimitives import Edge, Graph, Node, Port
from flowgen.core.Types import EdgeKind


def node(node_id, **kwargs):
    return Node(id=node_id, label=node_id, **kwargs)


def edge(src, tgt, tport="in", kind=EdgeKind.DATA):
    return Edge(f"{src}->{tgt}", src, tgt, "output-out", f"input-{tport}", kind)


class TestCycles:
    def test_no_cycle(self):
        assert detect_cycles(Graph([node("a"), node("b")], [edge("a", "b")])) == []

    def test_cycle_across_edge_kinds(self):
        edges = [edge("a", "b"), Edge("x", "b", "a", "exec-output-next", "exec-input-exec", EdgeKind.EXECUTION)]
        issues = detect_cycles(Graph([node("a"), node("b")], edges))

        assert [i.type for i in issues] == ["cycle"]
        assert issues[0].message == "Detected cycle involving node a"


class TestDisconnected:
    def test_isolated_node(self):
        graph = Graph([node("a"), node("b"), node("c")], [edge("a", "b")])
        issues = detect_disconnected_nodes(graph)

        assert [i.node_id for i in issues] == ["c"]
        assert issues[0].message == "Node c is disconnected from the flow"

    def test_single_node_is_fine(self):
        assert detect_disconnected_nodes(Graph([node("a")])) == []


class TestRequiredInputs:
    def test_unwired_required_input(self):
        sink = node("sink", inputs=(
            Port("in", "Input", required=True),
            Port("opt", "Optional"),
            Port("static", "Static", required=True, value=1),
            Port("missing", "Missing", required=True),
        ))
        graph = Graph([node("src"), sink], [edge("src", "sink")])
        issues = validate_required_inputs(graph)

        assert [i.message for i in issues] == ["Node sink requires a connection on input Missing"]
        assert issues[0].type == "missing_required_input"


class TestDependencies:
    def test_declared_dependency_needs_edge(self):
        graph = Graph(
            [node("a"), node("b"), node("c", dependencies=("a", "b"))],
            [edge("a", "c")],
        )
        issues = validate_dependencies(graph)

        assert len(issues) == 1
        assert issues[0].dependency_id == "b"
        assert issues[0].to_dict()["dependencyId"] == "b"


class TestValidateExecutionFlow:
    def test_valid_flow(self):
        result = validate_execution_flow(Graph([node("a"), node("b")], [edge("a", "b")]))
        assert result.valid
        assert result.errors == []

    def test_collects_everything(self):
        graph = Graph(
            [node("a"), node("b"), node("lonely"), node("c", inputs=(Port("in", "In", required=True),))],
            [edge("a", "b"), edge("b", "a")],
        )
        result = validate_execution_flow(graph)

        assert not result.valid
        assert sorted({i.type for i in result.errors}) == ["cycle", "disconnected", "missing_required_input"]
