import pytest

from flowgen.compiler.diagnostics import Severity
from flowgen.compiler.type_validator import TypeValidator
from flowgen.core.GraphPrimitives import Edge, Graph, Node, Port
from flowgen.core.Types import Compatibility, EdgeKind

CONCRETE = ["string", "number", "integer", "float", "boolean", "array", "list", "object", "dictionary"]


class TestCompatibilityMatrix:
    def setup_method(self):
        self.validator = TypeValidator()

    def test_identity(self):
        assert self.validator.check_compatibility("number", "number") is Compatibility.COMPATIBLE

    def test_conversion_pair(self):
        result = self.validator.check_compatibility("number", "string")
        assert result is Compatibility.COMPATIBLE_WITH_CONVERSION

    def test_incompatible_pair(self):
        assert self.validator.check_compatibility("array", "number") is Compatibility.INCOMPATIBLE

    @pytest.mark.parametrize("other", CONCRETE)
    def test_any_is_compatible_both_ways(self, other):
        assert self.validator.check_compatibility("any", other) is Compatibility.COMPATIBLE
        assert self.validator.check_compatibility(other, "any") is Compatibility.COMPATIBLE

    def test_case_insensitive(self):
        assert self.validator.check_compatibility("NUMBER", "Number") is Compatibility.COMPATIBLE
        result = self.validator.check_compatibility("Boolean", "STRING")
        assert result is Compatibility.COMPATIBLE_WITH_CONVERSION

    def test_numeric_widening(self):
        assert self.validator.check_compatibility("integer", "number") is Compatibility.COMPATIBLE
        assert self.validator.check_compatibility("integer", "float") is Compatibility.COMPATIBLE

    def test_container_aliases_need_conversion(self):
        result = self.validator.check_compatibility("list", "array")
        assert result is Compatibility.COMPATIBLE_WITH_CONVERSION
        assert self.validator.get_conversion_function("list", "array") is None

    def test_string_to_boolean_is_not_registered(self):
        assert self.validator.check_compatibility("string", "boolean") is Compatibility.INCOMPATIBLE

    def test_missing_type_is_unknown(self):
        assert self.validator.check_compatibility("", "number") is Compatibility.UNKNOWN
        assert self.validator.check_compatibility("number", None) is Compatibility.UNKNOWN

    def test_conversion_functions(self):
        assert self.validator.get_conversion_function("number", "string") == "str"
        assert self.validator.get_conversion_function("string", "number") == "float"
        assert self.validator.get_conversion_function("boolean", "string") == "str"
        assert self.validator.get_conversion_function("array", "number") is None


class TestCanConnect:
    def setup_method(self):
        self.validator = TypeValidator()

    def test_ports(self):
        check = self.validator.can_connect_ports(Port("o", "O", "number"), Port("i", "I", "string"))
        assert check.valid
        assert check.result is Compatibility.COMPATIBLE_WITH_CONVERSION
        assert "will be converted" in check.message

    def test_incompatible_ports(self):
        check = self.validator.can_connect_ports(Port("o", "O", "array"), Port("i", "I", "number"))
        assert not check.valid
        assert check.message == "Type mismatch: Cannot connect 'array' to 'number'"

    def test_missing_port_is_unknown(self):
        check = self.validator.can_connect_ports(None, Port("i", "I", "number"))
        assert not check.valid
        assert check.result is Compatibility.UNKNOWN
        assert check.message == "Invalid port"

    def test_edge_handles_are_resolved(self):
        a = Node("a", "A", outputs=(Port("out", "Out", "number"),))
        b = Node("b", "B", inputs=(Port("in", "In", "number"),))
        good = Edge("e1", "a", "b", "output-out", "input-in")
        bad = Edge("e2", "a", "b", "output-nope", "input-in")
        graph = Graph([a, b], [good, bad])

        assert self.validator.can_connect(graph, good).result is Compatibility.COMPATIBLE
        assert self.validator.can_connect(graph, bad).result is Compatibility.UNKNOWN


class TestValidateAllConnections:
    def test_reports_conversions_and_mismatches(self):
        source = Node("src", "Source", outputs=(
            Port("num", "Num", "number"),
            Port("arr", "Arr", "array"),
        ))
        sink = Node("sink", "Sink", inputs=(
            Port("text", "Text", "string"),
            Port("count", "Count", "number"),
            Port("same", "Same", "number"),
        ))
        edges = [
            Edge("conv", "src", "sink", "output-num", "input-text"),
            Edge("bad", "src", "sink", "output-arr", "input-count"),
            Edge("ok", "src", "sink", "output-num", "input-same"),
            Edge("flow", "src", "sink", "exec-output-next", "exec-input-exec", EdgeKind.EXECUTION),
        ]
        issues = TypeValidator().validate_all_connections(Graph([source, sink], edges))

        assert [i.edge_id for i in issues] == ["conv", "bad"]

        conv, bad = issues
        assert conv.severity is Severity.WARNING
        assert conv.message == "Type conversion required: 'number' will be converted to 'string'"
        assert (conv.source_node_id, conv.source_port_id) == ("src", "num")
        assert (conv.target_node_id, conv.target_port_id) == ("sink", "text")
        assert (conv.source_type, conv.target_type) == ("number", "string")

        assert bad.severity is Severity.ERROR
        assert bad.message == "Type mismatch: Cannot connect 'array' to 'number'"
        assert bad.to_dict()["severity"] == "error"
