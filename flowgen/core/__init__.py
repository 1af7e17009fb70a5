from .Types import (
    Compatibility,
    EdgeKind,
    NodeKind,
    PatternKind,
    is_execution_handle,
    strip_handle,
)
from .GraphPrimitives import Edge, ExecPort, FunctionId, Graph, Node, Port

__all__ = [
    "Compatibility",
    "Edge",
    "EdgeKind",
    "ExecPort",
    "FunctionId",
    "Graph",
    "Node",
    "NodeKind",
    "PatternKind",
    "Port",
    "is_execution_handle",
    "strip_handle",
]
