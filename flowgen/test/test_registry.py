import asyncio
import json

import pytest

from flowgen.core.Types import PatternKind
from flowgen.registry import (
    InMemoryPatternRegistry,
    PatternRegistryError,
    SyntaxPattern,
    load_registry,
    python_builtins,
)


def lookup(registry, function_id, language_id=1):
    return asyncio.run(registry.get_syntax_pattern(function_id, language_id))


class TestSyntaxPattern:
    def test_from_editor_dict(self):
        pattern = SyntaxPattern.from_dict({
            "functionId": 4,
            "languageId": 1,
            "pattern": "print({0})",
            "patternType": "Statement",
            "additionalImports": ["import sys"],
        })
        assert pattern.function_id == 4
        assert pattern.kind is PatternKind.STATEMENT
        assert pattern.imports == ("import sys",)

    def test_defaults(self):
        pattern = SyntaxPattern.from_dict({"function_id": "neg", "pattern": "-{0}"})
        assert pattern.kind is PatternKind.EXPRESSION
        assert pattern.language_id == 1
        assert pattern.imports == ()

    def test_single_import_string(self):
        pattern = SyntaxPattern.from_dict({"functionId": "pi", "pattern": "math.pi", "imports": "import math"})
        assert pattern.imports == ("import math",)

    def test_to_dict_round_trip(self):
        pattern = SyntaxPattern("add", "{0} + {1}")
        assert SyntaxPattern.from_dict(pattern.to_dict()) == pattern

    @pytest.mark.parametrize("entry,message", [
        ({"pattern": "x"}, "missing 'functionId'"),
        ({"functionId": 1, "pattern": 5}, "must be a string"),
        ({"functionId": 1, "pattern": "x", "patternType": "macro"}, "Unknown pattern kind 'macro'"),
        ("print", "JSON object"),
    ])
    def test_invalid_entries(self, entry, message):
        with pytest.raises(PatternRegistryError, match=message):
            SyntaxPattern.from_dict(entry)


class TestInMemoryRegistry:
    def test_lookup_is_keyed_by_function_and_language(self):
        registry = InMemoryPatternRegistry([
            SyntaxPattern(7, "py({0})"),
            SyntaxPattern(7, "js({0})", language_id=2),
        ])
        assert lookup(registry, 7).pattern == "py({0})"
        assert lookup(registry, 7, 2).pattern == "js({0})"
        assert lookup(registry, 8) is None

    def test_numeric_and_string_ids_match(self):
        registry = InMemoryPatternRegistry([SyntaxPattern(7, "x")])
        assert lookup(registry, "7") is not None
        assert 7 in registry and "7" in registry

    def test_register_replaces(self):
        registry = InMemoryPatternRegistry([SyntaxPattern("f", "a")])
        registry.register(SyntaxPattern("f", "b"))
        assert len(registry) == 1
        assert lookup(registry, "f").pattern == "b"

    def test_patterns_filtered_by_language(self):
        registry = InMemoryPatternRegistry([SyntaxPattern("a", "a"), SyntaxPattern("b", "b", language_id=3)])
        assert [p.function_id for p in registry.patterns(3)] == ["b"]
        assert len(registry.patterns()) == 2


class TestLoading:
    def test_from_file_list(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps([{"functionId": "twice", "pattern": "{0} * 2"}]))
        registry = InMemoryPatternRegistry.from_file(path)
        assert lookup(registry, "twice").pattern == "{0} * 2"

    def test_from_file_wrapped(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"patterns": [{"functionId": 1, "pattern": "x"}]}))
        assert len(InMemoryPatternRegistry.from_file(path)) == 1

    def test_from_file_invalid_json(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text("[")
        with pytest.raises(PatternRegistryError, match="invalid JSON"):
            InMemoryPatternRegistry.from_file(path)

    def test_from_file_wrong_shape(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"items": []}))
        with pytest.raises(PatternRegistryError, match="expected a list"):
            InMemoryPatternRegistry.from_file(path)

    def test_load_registry_overrides_builtins(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps([{"functionId": "print", "pattern": "log({0})", "patternType": "statement"}]))

        registry = load_registry(path)

        assert lookup(registry, "print").pattern == "log({0})"
        assert lookup(registry, "add").pattern == "{0} + {1}"
        assert len(registry) == len(python_builtins())


class TestBuiltins:
    def setup_method(self):
        self.registry = python_builtins()

    def test_kinds(self):
        assert lookup(self.registry, "add").kind is PatternKind.EXPRESSION
        assert lookup(self.registry, "print").kind is PatternKind.STATEMENT
        assert lookup(self.registry, "try_print").kind is PatternKind.BLOCK

    def test_module_imports(self):
        assert lookup(self.registry, "sqrt").imports == ("import math",)
        assert lookup(self.registry, "now").imports == ("from datetime import datetime",)
