"""
Compiler REST routes.

All routes are mounted under /api by main.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from flowgen.compiler.deserialiser import json_to_graph
from flowgen.compiler.diagnostics import Severity
from flowgen.compiler.flow_validator import validate_execution_flow
from flowgen.compiler.generator import ExecutionBasedCodeGenerator
from flowgen.compiler.schema import SchemaError
from flowgen.compiler.type_conversion import TypeConversionService
from flowgen.compiler.type_validator import TypeValidator
from flowgen.core.GraphPrimitives import Graph
from flowgen.server.state import server_state

logger = logging.getLogger(__name__)

router = APIRouter()


class GraphBody(BaseModel):
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]] = []
    languageId: Optional[int] = None
    strict: bool = False


class ConversionBody(BaseModel):
    sourceType: str
    targetType: str
    value: str = "value"


def _graph_from_body(body: GraphBody) -> Graph:
    try:
        return json_to_graph({"nodes": body.nodes, "edges": body.edges}, strict=body.strict)
    except SchemaError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


# ── POST /compile ─────────────────────────────────────────────────────────────

@router.post("/compile")
async def compile_graph(body: GraphBody) -> Dict[str, Any]:
    graph = _graph_from_body(body)
    language_id = body.languageId or server_state.language_id

    generator = ExecutionBasedCodeGenerator(graph, server_state.registry, language_id=language_id)
    result = await generator.generate_code()
    logger.info(
        f"Compiled {len(graph)} nodes: {len(result.errors)} error(s), "
        f"{len(result.warnings)} warning(s)"
    )
    return result.to_dict()


# ── POST /validate ────────────────────────────────────────────────────────────

@router.post("/validate")
async def validate_graph(body: GraphBody) -> Dict[str, Any]:
    graph = _graph_from_body(body)
    issues = TypeValidator().validate_all_connections(graph)
    flow = validate_execution_flow(graph)
    return {
        "valid": flow.valid and not any(i.severity is Severity.ERROR for i in issues),
        "connections": [issue.to_dict() for issue in issues],
        "flow": [problem.to_dict() for problem in flow.errors],
    }


# ── GET /patterns ─────────────────────────────────────────────────────────────

@router.get("/patterns")
async def list_patterns(languageId: Optional[int] = None) -> List[Dict[str, Any]]:
    language_id = languageId or server_state.language_id
    return [p.to_dict() for p in server_state.registry.patterns(language_id)]


# ── POST /conversions ─────────────────────────────────────────────────────────

@router.post("/conversions")
async def conversion(body: ConversionBody) -> Dict[str, Any]:
    service = TypeConversionService()
    helper = service.conversion_helper(body.sourceType, body.targetType)
    return {
        "compatibility": service.validator.check_compatibility(body.sourceType, body.targetType).value,
        "expression": service.get_conversion_expression(body.value, body.sourceType, body.targetType),
        "label": helper.label,
        "functionName": helper.function_name,
        "functionCode": helper.function_code,
    }
