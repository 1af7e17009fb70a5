"""
Execution-based code generator
===============================
Turns a Graph into one Python program.

Per call of ``generate_code()``:

    Reset       fresh EmitContext (writer, visited, outputs, diagnostics)
      ↓
    Initialize  resolve dependencies; await the syntax pattern of every node
                that carries a function id (sequentially, memoized per
                generator instance)
      ↓
    Generate    execution path   when some node declares execution ports and the
                                 resolver found entry points
                data-flow path   otherwise
      ↓
    Finalize    prepend the sorted import block
      ↓
    Done        GenerationResult(code, errors, warnings)

Execution path output
---------------------

    # Required Imports
    import random

    def main():
        # Input variables
        flag__flag = True

        # Start execution from Start
        # Start
        # If
        if flag__flag:
            # Print True
            print('yes')
        else:
            # Print False
            print('no')
        # End


    if __name__ == "__main__":
        main()

Control-flow nodes (NodeKind.CONDITIONAL / LOOP / WHILE_LOOP) are emitted
structurally and are never auto-followed; their branch successors are
picked out by edge label or by the label of the execution port the edge
leaves from.  Nodes reachable from both arms of a conditional are emitted
once, after the if/else.

Every recursive emitter receives the EmitContext explicitly, so a generator
holds no per-call state of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from ..core.GraphPrimitives import Graph, Node, Port
from ..core.Types import Compatibility, EdgeKind, NodeKind
from ..registry.PatternRegistry import PYTHON_LANGUAGE_ID, PatternRegistry, SyntaxPattern
from .diagnostics import Diagnostic, DiagnosticCollector, DiagnosticKind
from .resolver import DependencyResolver
from .templates import (
    CodeWriter,
    apply_pattern,
    default_value_for_type,
    emit_pattern,
    python_literal,
    variable_name,
)
from .type_conversion import TypeConversionService
from .type_validator import TypeValidator

logger = logging.getLogger(__name__)

THEN_LABELS = ("then", "true", "yes", "true_out", "on_true")
ELSE_LABELS = ("else", "false", "no", "false_out", "on_false")
BODY_LABELS = ("body", "loop", "loop_body", "each", "do")

_Branch = Tuple[str, str]   # (label, target node id)


# ── Result / context ──────────────────────────────────────────────────────────

@dataclass
class GenerationResult:
    code: str = ""
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "errors": [d.to_dict() for d in self.errors],
            "warnings": [d.to_dict() for d in self.warnings],
        }


@dataclass
class EmitContext:
    writer: CodeWriter
    diagnostics: DiagnosticCollector
    patterns: Dict[str, SyntaxPattern] = field(default_factory=dict)   # node id → pattern

    visited: Set[str] = field(default_factory=set)     # walked along execution edges
    claimed: Set[str] = field(default_factory=set)     # scheduled for emission
    emitted: Set[str] = field(default_factory=set)     # code already written
    outputs: Dict[str, str] = field(default_factory=dict)   # node id → variable
    imports: Set[str] = field(default_factory=set)

    # Merge points of the enclosing conditionals; a branch walk stops there.
    stop_at: FrozenSet[str] = frozenset()


def _pick(branches: List[_Branch], labels: Iterable[str]) -> Optional[str]:
    labels = tuple(labels)
    for label, target in branches:
        if label in labels:
            return target
    return None


# ── Generator ─────────────────────────────────────────────────────────────────

class ExecutionBasedCodeGenerator:
    def __init__(
        self,
        graph: Graph,
        registry: Optional[PatternRegistry] = None,
        language_id: int = PYTHON_LANGUAGE_ID,
        validator: Optional[TypeValidator] = None,
    ):
        self.graph = graph
        self.registry = registry
        self.language_id = language_id
        self.validator = validator or TypeValidator()
        self.converter = TypeConversionService(self.validator)
        self.resolver = DependencyResolver(graph)
        self._pattern_cache: Dict[Tuple[str, int], Optional[SyntaxPattern]] = {}

    async def generate_code(self) -> GenerationResult:
        """
        Generate the program for the graph.

        Never raises: graph-shape problems become diagnostics, and an
        unexpected fault yields a commented failure line as the code.
        """
        diagnostics = DiagnosticCollector()
        try:
            code = await self._generate(diagnostics)
        except Exception as exc:
            logger.debug("Code generation failed", exc_info=True)
            diagnostics.add(
                DiagnosticKind.INTERNAL_GENERATION_FAILURE,
                f"Code generation failed: {exc}",
            )
            code = f"# Code generation failed: {exc}\n"
        return GenerationResult(code, diagnostics.errors, diagnostics.warnings)

    async def _generate(self, diagnostics: DiagnosticCollector) -> str:
        if len(self.graph) == 0:
            return "# No nodes in the graph\n"

        self.resolver.resolve()
        ctx = EmitContext(writer=CodeWriter(), diagnostics=diagnostics)
        await self._initialize(ctx)

        for node_id in self.resolver.cycle_nodes:
            node = self.graph.get_node(node_id)
            diagnostics.add(
                DiagnosticKind.DEPENDENCY_CYCLE,
                f"Circular dependency detected at node {node.label}",
                node,
            )

        if any(n.has_execution_ports for n in self.graph):
            if self.resolver.entry_points:
                self._generate_execution_flow(ctx)
            else:
                looped = [self.graph.get_node(n).label for n in self.resolver.cycle_nodes]
                reason = f" (execution edges loop through {', '.join(looped)})" if looped else ""
                diagnostics.add(
                    DiagnosticKind.DEPENDENCY_CYCLE,
                    f"Execution flow has no entry point{reason}; falling back to data flow generation",
                    cycle_nodes=list(self.resolver.cycle_nodes),
                )
                self._generate_data_flow(ctx)
        else:
            self._generate_data_flow(ctx)

        return self._finalize(ctx)

    # ── Initialize ────────────────────────────────────────────────────────

    async def _initialize(self, ctx: EmitContext) -> None:
        ctx.imports.update(self.resolver.get_required_imports())

        for node in self.graph:
            if node.function_id is None:
                continue
            pattern = await self._load_pattern(ctx, node)
            if pattern is not None:
                ctx.patterns[node.id] = pattern
                ctx.imports.update(pattern.imports)

        logger.debug(f"Loaded {len(ctx.patterns)} syntax patterns")

    async def _load_pattern(self, ctx: EmitContext, node: Node) -> Optional[SyntaxPattern]:
        key = (str(node.function_id), self.language_id)

        if key in self._pattern_cache:
            pattern = self._pattern_cache[key]
        elif self.registry is None:
            pattern = None
        else:
            try:
                pattern = await self.registry.get_syntax_pattern(node.function_id, self.language_id)
            except Exception as exc:
                ctx.diagnostics.add(
                    DiagnosticKind.INITIALIZATION_FAILURE,
                    f"Failed to load syntax pattern for {node.label}: {exc}",
                    node,
                )
                return None
            self._pattern_cache[key] = pattern

        if pattern is None:
            ctx.diagnostics.add(
                DiagnosticKind.SYNTAX_PATTERN_MISSING,
                f"No syntax pattern found for function {node.function_id} ({node.label})",
                node,
                language_id=self.language_id,
            )
        return pattern

    # ── Generate: execution path ──────────────────────────────────────────

    def _generate_execution_flow(self, ctx: EmitContext) -> None:
        w = ctx.writer
        w.writeln("def main():")
        w.push()
        before = w.statement_count

        self._declare_inputs(ctx)

        first = True
        for entry_id in self.resolver.entry_points:
            if entry_id in ctx.visited:
                continue
            if not first:
                w.blank()
            first = False
            w.comment(f"Start execution from {self.graph.get_node(entry_id).label}")
            self._emit_flow(ctx, entry_id)

        if w.statement_count == before:
            w.writeln("pass")
        w.pop()

        w.blank()
        w.blank()
        w.writeln('if __name__ == "__main__":')
        w.push()
        w.writeln("main()")
        w.pop()

    def _emit_flow(self, ctx: EmitContext, node_id: str) -> None:
        if node_id in ctx.visited or node_id in ctx.stop_at:
            return
        node = self.graph.get_node(node_id)
        ctx.visited.add(node_id)
        # Already written as a data dependency: only its successors are left.
        pending = node_id not in ctx.claimed
        ctx.claimed.add(node_id)

        self._emit_dependencies(ctx, node)

        if pending and node.kind.is_control_flow and self._emit_control_flow(ctx, node):
            return

        if pending:
            self._emit_node(ctx, node)
        for succ in self.resolver.get_execution_successors(node_id):
            self._emit_flow(ctx, succ)

    def _emit_dependencies(self, ctx: EmitContext, node: Node) -> None:
        for dep_id in self.resolver.get_dependencies(node.id):
            if dep_id in ctx.claimed:
                continue
            ctx.claimed.add(dep_id)
            dep = self.graph.get_node(dep_id)
            self._emit_dependencies(ctx, dep)
            self._emit_node(ctx, dep)

    # ── Generate: data-flow path ──────────────────────────────────────────

    def _generate_data_flow(self, ctx: EmitContext) -> None:
        self._declare_inputs(ctx)
        for node in self.resolver.get_execution_order():
            if node.id in ctx.claimed:
                continue
            ctx.claimed.add(node.id)
            self._emit_node(ctx, node)

    def _declare_inputs(self, ctx: EmitContext) -> None:
        inputs = [n for n in self.graph if n.kind is NodeKind.INPUT and n.id not in ctx.outputs]
        if not inputs:
            return
        ctx.writer.comment("Input variables")
        for node in inputs:
            self._declare_input(ctx, node)
        ctx.writer.blank()

    def _declare_input(self, ctx: EmitContext, node: Node) -> None:
        var = variable_name(node)
        ctx.writer.writeln(f"{var} = {python_literal(node.default_value, node.value_type)}")
        ctx.outputs[node.id] = var
        ctx.claimed.add(node.id)
        ctx.emitted.add(node.id)

    # ── Node emission ─────────────────────────────────────────────────────

    def _emit_node(self, ctx: EmitContext, node: Node) -> None:
        w = ctx.writer

        if node.kind is NodeKind.INPUT:
            if node.id not in ctx.outputs:
                self._declare_input(ctx, node)
            return

        w.comment(node.label)
        ctx.emitted.add(node.id)
        if node.function_id is None:
            return

        pattern = ctx.patterns.get(node.id)
        if pattern is None:
            w.comment(f"MISSING PATTERN: {node.label} (function {node.function_id})")
            return

        try:
            args = [self._resolve_input(ctx, node, port) for port in node.inputs]
            text, missing = apply_pattern(pattern.pattern, args)
            for index in missing:
                ctx.diagnostics.add(
                    DiagnosticKind.UNRESOLVED_PLACEHOLDER,
                    f"Placeholder {{{index}}} not found in inputs for node {node.label}",
                    node,
                    pattern=pattern.pattern,
                )
            var = emit_pattern(w, pattern.kind, text, variable_name(node))
            if var is not None:
                ctx.outputs[node.id] = var
        except Exception as exc:
            logger.debug(f"Failed to generate code for {node.label}", exc_info=True)
            ctx.diagnostics.add(
                DiagnosticKind.INTERNAL_GENERATION_FAILURE,
                f"Failed to generate code for {node.label}: {exc}",
                node,
            )
            w.comment(f"ERROR: failed to generate code for {node.label}: {exc}")

    # ── Input resolution ──────────────────────────────────────────────────

    def _resolve_input(self, ctx: EmitContext, node: Node, port: Port) -> str:
        """
        Expression feeding ``port``:
          1. Wired port   → upstream variable, converted when types differ
          2. Static value → repr()
          3. Absent       → neutral default for the port type
        """
        source = self.resolver.get_data_source(node.id, port.id)

        if source is None:
            if port.value is not None:
                return repr(port.value)
            if port.required:
                ctx.diagnostics.add(
                    DiagnosticKind.DISCONNECTED_REQUIRED_INPUT,
                    f"Required input {port.name} has no connected source",
                    node,
                    port=port.id,
                )
            return default_value_for_type(port.type)

        src_node = self.graph.get_node(source.node_id)
        var = ctx.outputs.get(source.node_id)
        if var is None:
            if source.node_id not in ctx.emitted:
                ctx.diagnostics.add(
                    DiagnosticKind.DEPENDENCY_CYCLE,
                    f"Input {port.name} of {node.label} depends on {src_node.label}, "
                    f"which is not available yet (circular dependency)",
                    node,
                    source=str(source),
                )
            else:
                ctx.diagnostics.add(
                    DiagnosticKind.DISCONNECTED_REQUIRED_INPUT,
                    f"Input {port.name} of {node.label} is connected to {src_node.label}, "
                    f"which produces no value",
                    node,
                    source=str(source),
                )
            return default_value_for_type(port.type)

        src_port = src_node.find_output(source.port_id)
        if src_port is not None:
            src_type = src_port.type
        elif src_node.kind is NodeKind.INPUT:
            src_type = src_node.value_type
        else:
            return var

        result = self.validator.check_compatibility(src_type, port.type)
        if result is Compatibility.COMPATIBLE_WITH_CONVERSION:
            ctx.diagnostics.add(
                DiagnosticKind.TYPE_CONVERSION_APPLIED,
                f"Type conversion applied: '{src_type}' converted to '{port.type}' "
                f"for input {port.name} of {node.label}",
                node,
                source_type=src_type,
                target_type=port.type,
            )
            return self.converter.get_conversion_expression(var, src_type, port.type)
        if result is Compatibility.INCOMPATIBLE:
            ctx.diagnostics.add(
                DiagnosticKind.TYPE_INCOMPATIBLE,
                f"Type mismatch: Cannot connect '{src_type}' to '{port.type}' "
                f"on input {port.name} of {node.label}",
                node,
                source_type=src_type,
                target_type=port.type,
            )
        return var

    # ── Control flow ──────────────────────────────────────────────────────

    def _emit_control_flow(self, ctx: EmitContext, node: Node) -> bool:
        """Emit a structural node.  False when its shape is not recognised."""
        if not node.inputs:
            logger.debug(f"{node.label}: control-flow node without inputs, emitting as plain")
            return False

        ctx.emitted.add(node.id)
        if node.kind is NodeKind.CONDITIONAL:
            self._emit_conditional(ctx, node)
        elif node.kind is NodeKind.LOOP:
            self._emit_for_loop(ctx, node)
        elif node.kind is NodeKind.WHILE_LOOP:
            self._emit_while_loop(ctx, node)
        else:
            return False
        return True

    def _branch_targets(self, node: Node) -> List[_Branch]:
        branches: List[_Branch] = list(self.resolver.get_conditional_branches(node.id).items())
        labelled = {target for _, target in branches}

        for edge in self.graph.outgoing(node.id, EdgeKind.EXECUTION):
            if edge.target in labelled:
                continue
            port = node.find_execution_output(edge.source_port)
            branches.append((port.branch if port else "", edge.target))
            labelled.add(edge.target)
        return branches

    def _merge_points(self, then_id: Optional[str], else_id: Optional[str]) -> List[str]:
        if then_id is None or else_id is None:
            return []
        common = set(self.resolver.get_execution_path(then_id)) & set(
            self.resolver.get_execution_path(else_id)
        )
        return [nid for nid in self.resolver.execution_order if nid in common]

    def _emit_branch(self, ctx: EmitContext, target_id: Optional[str], stop: Iterable[str] = ()) -> None:
        w = ctx.writer
        w.push()
        before = w.statement_count
        saved = ctx.stop_at
        ctx.stop_at = saved | frozenset(stop)
        try:
            if target_id is not None:
                self._emit_flow(ctx, target_id)
        finally:
            ctx.stop_at = saved
        if w.statement_count == before:
            w.writeln("pass")
        w.pop()

    def _continue_with(self, ctx: EmitContext, targets: Iterable[str]) -> None:
        for target_id in targets:
            self._emit_flow(ctx, target_id)

    def _emit_conditional(self, ctx: EmitContext, node: Node) -> None:
        w = ctx.writer
        condition = self._resolve_input(ctx, node, node.inputs[0])
        branches = self._branch_targets(node)
        then_id = _pick(branches, THEN_LABELS)
        else_id = _pick(branches, ELSE_LABELS)
        merges = self._merge_points(then_id, else_id)

        w.comment(node.label)
        w.writeln(f"if {condition}:")
        self._emit_branch(ctx, then_id, merges)
        if else_id is not None:
            w.writeln("else:")
            self._emit_branch(ctx, else_id, merges)

        rest = [t for _, t in branches if t not in (then_id, else_id)]
        self._continue_with(ctx, merges + rest)

    def _loop_variable(self, ctx: EmitContext, node: Node, port: Port) -> str:
        if self.resolver.get_data_source(node.id, port.id) is not None:
            expr = self._resolve_input(ctx, node, port)
            if expr.isidentifier():
                return expr
        return variable_name(node)

    def _emit_for_loop(self, ctx: EmitContext, node: Node) -> None:
        w = ctx.writer
        if len(node.inputs) >= 2:
            loop_var = self._loop_variable(ctx, node, node.inputs[0])
            sequence = self._resolve_input(ctx, node, node.inputs[1])
        else:
            loop_var = variable_name(node)
            sequence = self._resolve_input(ctx, node, node.inputs[0])

        branches = self._branch_targets(node)
        body_id = _pick(branches, BODY_LABELS)

        w.comment(node.label)
        w.writeln(f"for {loop_var} in {sequence}:")
        ctx.outputs[node.id] = loop_var
        self._emit_branch(ctx, body_id)

        self._continue_with(ctx, [t for _, t in branches if t != body_id])

    def _emit_while_loop(self, ctx: EmitContext, node: Node) -> None:
        w = ctx.writer
        condition = self._resolve_input(ctx, node, node.inputs[0])
        branches = self._branch_targets(node)
        body_id = _pick(branches, BODY_LABELS)

        w.comment(node.label)
        w.writeln(f"while {condition}:")
        self._emit_branch(ctx, body_id)

        self._continue_with(ctx, [t for _, t in branches if t != body_id])

    # ── Finalize ──────────────────────────────────────────────────────────

    def _finalize(self, ctx: EmitContext) -> str:
        lines: List[str] = []
        if ctx.imports:
            lines.append("# Required Imports")
            lines.extend(sorted(ctx.imports))
            lines.append("")
            lines.append("")
        lines.extend(ctx.writer.lines)
        return "\n".join(lines).rstrip() + "\n"


async def compile_graph(
    graph: Graph,
    registry: Optional[PatternRegistry] = None,
    language_id: int = PYTHON_LANGUAGE_ID,
) -> GenerationResult:
    """Convenience wrapper: one generator, one run."""
    return await ExecutionBasedCodeGenerator(graph, registry, language_id).generate_code()


__all__ = [
    "BODY_LABELS",
    "ELSE_LABELS",
    "EmitContext",
    "ExecutionBasedCodeGenerator",
    "GenerationResult",
    "THEN_LABELS",
    "compile_graph",
]
