import logging

from flowgen.compiler.diagnostics import Diagnostic, DiagnosticCollector, DiagnosticKind, Severity
from flowgen.core.GraphPrimitives import Node


class TestDiagnosticCollector:
    def setup_method(self):
        self.collector = DiagnosticCollector()
        self.node = Node(id="n3", label="Print", function_id=7)

    def test_default_severities(self):
        self.collector.add(DiagnosticKind.SYNTAX_PATTERN_MISSING, "missing", self.node)
        self.collector.add(DiagnosticKind.TYPE_INCOMPATIBLE, "mismatch", self.node)
        self.collector.add(DiagnosticKind.INITIALIZATION_FAILURE, "down")

        assert [d.message for d in self.collector.warnings] == ["missing"]
        assert [d.message for d in self.collector.errors] == ["mismatch", "down"]
        assert len(self.collector) == 3

    def test_severity_override(self):
        diag = self.collector.add(DiagnosticKind.DEPENDENCY_CYCLE, "cycle", severity=Severity.ERROR)
        assert diag.is_error
        assert self.collector.errors == [diag]

    def test_node_details_are_copied(self):
        diag = self.collector.add(DiagnosticKind.SYNTAX_PATTERN_MISSING, "missing", self.node, language_id=1)

        assert (diag.node_id, diag.node_label, diag.function_id) == ("n3", "Print", 7)
        assert diag.context == {"language_id": 1}
        assert diag.suggestions

    def test_logged(self, caplog):
        caplog.set_level(logging.WARNING)
        self.collector.add(DiagnosticKind.UNRESOLVED_PLACEHOLDER, "Placeholder {2} not found")
        self.collector.add(DiagnosticKind.INTERNAL_GENERATION_FAILURE, "kaboom")

        levels = {r.getMessage(): r.levelno for r in caplog.records}
        assert levels["Placeholder {2} not found"] == logging.WARNING
        assert levels["kaboom"] == logging.ERROR


class TestDiagnosticRendering:
    def test_detailed_message(self):
        diag = Diagnostic(
            kind=DiagnosticKind.SYNTAX_PATTERN_MISSING,
            severity=Severity.WARNING,
            message="No syntax pattern found for function 7",
            node_id="n3",
            node_label="Print",
            function_id=7,
            suggestions=("Add the pattern",),
            context={"language_id": 1},
        )
        assert diag.detailed_message() == (
            "[WARNING] No syntax pattern found for function 7\n"
            "Node: Print (ID: n3)\n"
            "Function ID: 7\n"
            "Kind: syntax_pattern_missing\n"
            "\n"
            "Suggestions:\n"
            "  1. Add the pattern\n"
            "\n"
            "Context:\n"
            "  language_id: 1"
        )
        assert str(diag) == "No syntax pattern found for function 7"

    def test_minimal_detailed_message(self):
        diag = Diagnostic(DiagnosticKind.INTERNAL_GENERATION_FAILURE, Severity.ERROR, "boom")
        assert diag.detailed_message() == "[ERROR] boom\nKind: internal_generation_failure"

    def test_to_dict(self):
        diag = Diagnostic(DiagnosticKind.TYPE_INCOMPATIBLE, Severity.ERROR, "bad", "n", "N",
                          context={"source_type": "array"})
        assert diag.to_dict() == {
            "kind": "type_incompatible",
            "severity": "error",
            "message": "bad",
            "nodeId": "n",
            "nodeLabel": "N",
            "functionId": None,
            "suggestions": [],
            "context": {"source_type": "array"},
        }
