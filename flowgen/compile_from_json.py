"""
compile_from_json.py — CLI for the flowgen compiler
====================================================
Compiles an editor graph JSON file into a standalone Python script.

Usage
-----
    flowgen-compile <graph.json> [options]
    python -m flowgen.compile_from_json <graph.json> [options]

Options
-------
    --patterns <file>   Extra syntax patterns (JSON) layered over the built-ins
    --language <id>     Pattern language id (default: 1, Python)
    --out      <dir>    Output directory (default: compiled/)
    --print             Print the generated source to stdout instead of writing a file
    --strict            Treat dangling edges and unknown node kinds as errors
    --validate-only     Run schema, type and execution-flow checks, emit nothing
    --verbose           Debug logging

Examples
--------
    flowgen-compile flowgen/examples/if_else.json --print
    flowgen-compile graph.json --patterns my_patterns.json --out build/
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from flowgen.compiler.deserialiser import json_to_graph
from flowgen.compiler.diagnostics import Severity
from flowgen.compiler.flow_validator import validate_execution_flow
from flowgen.compiler.generator import ExecutionBasedCodeGenerator
from flowgen.compiler.schema import SchemaError, validate_file
from flowgen.compiler.type_validator import TypeValidator
from flowgen.registry import PYTHON_LANGUAGE_ID, PatternRegistryError, load_registry

logger = logging.getLogger("flowgen.cli")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="flowgen-compile",
        description="Compile a flowgen editor graph to standalone Python.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "graph_json",
        metavar="graph.json",
        help="Path to the graph JSON file to compile.",
    )
    p.add_argument(
        "--patterns",
        metavar="FILE",
        help="JSON file with additional syntax patterns (overrides built-ins by function id).",
    )
    p.add_argument(
        "--language",
        type=int,
        default=PYTHON_LANGUAGE_ID,
        help=f"Pattern language id (default: {PYTHON_LANGUAGE_ID}).",
    )
    p.add_argument(
        "--out",
        metavar="DIR",
        default="compiled",
        help="Output directory for the compiled .py file (default: compiled/).",
    )
    p.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated source to stdout instead of writing a file.",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Treat dangling edges and unknown node kinds as errors rather than warnings.",
    )
    p.add_argument(
        "--validate-only",
        action="store_true",
        help="Report validation issues without generating code.",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def _graph_name_to_filename(name: str) -> str:
    """Turn 'if-else demo' → 'if_else_demo.py'."""
    safe = name.lower().replace("-", "_").replace(" ", "_")
    return f"{safe}.py"


def _report(message: str) -> None:
    print(f"[flowgen-compile] {message}", file=sys.stderr)


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    json_path = Path(args.graph_json)
    if not json_path.exists():
        print(f"[error] File not found: {json_path}", file=sys.stderr)
        return 1

    # ── Validate + deserialise ───────────────────────────────────────────────
    try:
        data = validate_file(json_path, strict=args.strict)
        graph = json_to_graph(data, strict=args.strict)
    except json.JSONDecodeError as exc:
        print(f"[error] Invalid JSON: {exc}", file=sys.stderr)
        return 1
    except SchemaError as exc:
        print(f"[error] Schema validation failed: {exc}", file=sys.stderr)
        return 1

    graph_name = data.get("graph_name") or data.get("name") or json_path.stem
    _report(f"graph  : {graph_name}")
    _report(f"nodes  : {len(graph)}")
    _report(f"edges  : {len(graph.edges)}")

    if args.validate_only:
        issues = TypeValidator().validate_all_connections(graph)
        flow = validate_execution_flow(graph)
        for issue in issues:
            _report(f"{issue.severity.value:7}: {issue.message} ({issue.edge_id})")
        for problem in flow.errors:
            _report(f"flow   : {problem.message}")
        has_errors = any(i.severity is Severity.ERROR for i in issues)
        return 1 if has_errors or not flow.valid else 0

    # ── Generate ─────────────────────────────────────────────────────────────
    try:
        registry = load_registry(args.patterns)
    except (OSError, PatternRegistryError) as exc:
        print(f"[error] Could not load patterns: {exc}", file=sys.stderr)
        return 1
    logger.debug(f"{len(registry)} syntax patterns available")

    generator = ExecutionBasedCodeGenerator(graph, registry, language_id=args.language)
    result = asyncio.run(generator.generate_code())

    for diag in result.warnings:
        _report(f"warning: {diag.message}")
    for diag in result.errors:
        _report(f"error  : {diag.message}")

    # ── Output ───────────────────────────────────────────────────────────────
    if args.print_only:
        print(result.code, end="")
    else:
        out_dir = Path(args.out)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / _graph_name_to_filename(graph_name)
        out_path.write_text(result.code, encoding="utf-8")
        _report(f"wrote  : {out_path}")

    return 1 if result.has_errors else 0


if __name__ == "__main__":
    sys.exit(main())
