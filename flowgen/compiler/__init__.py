"""
flowgen compiler
================
Compiles an editor node graph into a Python program.

Pipeline:
    editor JSON → [schema.validate] → [deserialiser.json_to_graph] → Graph
    Graph       → [resolver.DependencyResolver]                    → order, bindings, groups
    Graph       → [generator.ExecutionBasedCodeGenerator]          → GenerationResult

Public API
----------
    from flowgen.compiler import compile_graph, load_graph
    from flowgen.registry import python_builtins

    graph  = load_graph("graph.json")
    result = asyncio.run(compile_graph(graph, python_builtins()))
    print(result.code)
"""

from __future__ import annotations

from .deserialiser import json_to_graph, load_graph
from .diagnostics import Diagnostic, DiagnosticKind, Severity
from .flow_validator import FlowIssue, FlowValidationResult, validate_execution_flow
from .generator import EmitContext, ExecutionBasedCodeGenerator, GenerationResult, compile_graph
from .resolver import DataSource, DependencyResolver
from .schema import SchemaError, validate, validate_file
from .type_conversion import ConversionHelper, TypeConversionService
from .type_validator import ConnectionCheck, ConnectionIssue, TypeValidator

__all__ = [
    "ConnectionCheck",
    "ConnectionIssue",
    "ConversionHelper",
    "DataSource",
    "DependencyResolver",
    "Diagnostic",
    "DiagnosticKind",
    "EmitContext",
    "ExecutionBasedCodeGenerator",
    "FlowIssue",
    "FlowValidationResult",
    "GenerationResult",
    "SchemaError",
    "Severity",
    "TypeConversionService",
    "TypeValidator",
    "compile_graph",
    "json_to_graph",
    "load_graph",
    "validate",
    "validate_execution_flow",
    "validate_file",
]
