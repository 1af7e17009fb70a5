"""
Editor graph JSON — format and validator
=========================================
The editor posts its canvas as nodes plus edges.  Nodes may be flat or in
the React-Flow shape where the payload sits under ``data``:

    {
      "nodes": [
        {
          "id":       "if-1",                         // unique (str, required)
          "label":    "If",                           // display label (str, optional → id)
          "type":     "functionNode",                 // "input" marks a pure input node
          "kind":     "conditional",                  // optional explicit emission shape
          "category": "Control Flow",
          "inputs":   [{"id": "cond", "name": "Condition", "type": "boolean", "required": true}],
          "outputs":  [],
          "executionInputs":  [{"id": "exec-in",  "name": "Execute"}],
          "executionOutputs": [{"id": "exec-then", "name": "Then"},
                               {"id": "exec-else", "name": "Else"}],
          "functionId": 4,                            // pattern registry key (int | str)
          "requiredImports": ["import random"]
        }
      ],
      "edges": [
        {
          "id":           "e1",
          "source":       "start",                    // (str, required)
          "target":       "if-1",                     // (str, required)
          "sourceHandle": "exec-output-exec-out",
          "targetHandle": "exec-input-exec-in",
          "data":         {"type": "execution", "label": "then"}
        }
      ]
    }

Edges pointing at unknown nodes are dropped during deserialisation; the
validator only warns about them unless ``strict`` is set.
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import Any, Dict, List, Union

KNOWN_EDGE_TYPES = frozenset({"data", "execution"})
KNOWN_KINDS = frozenset({"plain", "input", "conditional", "loop", "while_loop"})

_PORT_LISTS = ("inputs", "outputs", "executionInputs", "executionOutputs")


class SchemaError(ValueError):
    """Raised when graph JSON fails structural validation."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SchemaError(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


def _soft(message: str, strict: bool) -> None:
    if strict:
        raise SchemaError(message)
    warnings.warn(message, stacklevel=3)


def node_payload(node: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a React-Flow node's ``data`` payload over its top-level keys."""
    data = node.get("data")
    if isinstance(data, dict):
        merged = {k: v for k, v in node.items() if k != "data"}
        merged.update(data)
        merged["id"] = node["id"]
        if "type" in node:
            merged.setdefault("nodeType", node["type"])
        return merged
    return node


def _validate_ports(ports: Any, context: str) -> None:
    _require(isinstance(ports, list), f"{context} must be a list")
    seen = set()
    for i, port in enumerate(ports):
        pctx = f"{context}[{i}]"
        _require(isinstance(port, dict), f"{pctx}: each port must be a JSON object")
        _require_keys(port, ["id"], pctx)
        _require(isinstance(port["id"], str), f"{pctx}.id must be a string")
        _require(port["id"] not in seen, f"{pctx}: duplicate port id '{port['id']}'")
        seen.add(port["id"])
        if "type" in port:
            _require(isinstance(port["type"], str), f"{pctx}.type must be a string")


# ── Public validator ─────────────────────────────────────────────────────────

def validate(data: Dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a parsed editor graph dict.

    Args:
        data:   A pre-parsed dict (result of json.load / json.loads).
        strict: When True, dangling edges and unknown node kinds raise.
                When False (default), they produce a warning.

    Raises:
        SchemaError: On any structural violation.
    """
    _require(isinstance(data, dict), "graph JSON must be a JSON object at the top level")
    _require_keys(data, ["nodes", "edges"], "graph root")
    _require(isinstance(data["nodes"], list), "nodes must be a list")
    _require(isinstance(data["edges"], list), "edges must be a list")

    # ── Validate nodes ──────────────────────────────────────────────────────

    node_ids: set[str] = set()

    for i, raw in enumerate(data["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(raw, dict), f"{ctx}: each node must be a JSON object")
        _require_keys(raw, ["id"], ctx)
        _require(isinstance(raw["id"], str), f"{ctx}.id must be a string")
        _require(raw["id"] not in node_ids, f"{ctx}: duplicate node id '{raw['id']}'")
        node_ids.add(raw["id"])

        node = node_payload(raw)
        if "label" in node:
            _require(isinstance(node["label"], str), f"{ctx}.label must be a string")
        for key in _PORT_LISTS:
            if node.get(key) is not None:
                _validate_ports(node[key], f"{ctx}.{key}")

        function_id = node.get("functionId")
        _require(
            function_id is None
            or (isinstance(function_id, (int, str)) and not isinstance(function_id, bool)),
            f"{ctx}.functionId must be an integer or a string",
        )

        kind = node.get("kind")
        if kind is not None and str(kind).lower() not in KNOWN_KINDS:
            _soft(f"{ctx}: unknown node kind '{kind}'", strict)

    # ── Validate edges ──────────────────────────────────────────────────────

    for i, edge in enumerate(data["edges"]):
        ctx = f"edges[{i}]"
        _require(isinstance(edge, dict), f"{ctx}: each edge must be a JSON object")
        _require_keys(edge, ["source", "target"], ctx)

        for field in ("source", "target"):
            _require(isinstance(edge[field], str), f"{ctx}.{field} must be a string")
        for field in ("sourceHandle", "targetHandle"):
            if edge.get(field) is not None:
                _require(isinstance(edge[field], str), f"{ctx}.{field} must be a string")

        payload = edge.get("data")
        if payload is not None:
            _require(isinstance(payload, dict), f"{ctx}.data must be an object")
            edge_type = payload.get("type")
            _require(
                edge_type is None or edge_type in KNOWN_EDGE_TYPES,
                f"{ctx}.data.type must be one of {sorted(KNOWN_EDGE_TYPES)}",
            )

        for field in ("source", "target"):
            if edge[field] not in node_ids:
                _soft(f"{ctx}: {field} '{edge[field]}' not found in nodes (edge ignored)", strict)


def validate_file(path: Union[str, Path], *, strict: bool = False) -> Dict[str, Any]:
    """
    Load and validate a graph JSON file.

    Returns:
        The parsed dict on success.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError: If the graph structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    validate(data, strict=strict)
    return data


__all__ = ["KNOWN_EDGE_TYPES", "KNOWN_KINDS", "SchemaError", "node_payload", "validate", "validate_file"]
