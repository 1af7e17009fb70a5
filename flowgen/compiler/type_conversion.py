"""
Conversion expressions for connections whose port types differ.

    get_conversion_expression("x", "number", "string")   → "str(x)"
    get_conversion_expression("x", "string", "boolean")  → "bool(x)"   (generic fallback)
    get_conversion_expression("x", "list", "array")      → "x"         (container alias)
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from ..core.Types import Compatibility
from .type_validator import CONTAINER_ALIASES, TypeValidator, normalize_type

logger = logging.getLogger(__name__)

_NUMERIC = frozenset({"number", "integer", "float"})


class ConversionHelper(NamedTuple):
    """A standalone conversion function the editor can drop in as a node."""
    label: str
    function_name: str
    function_code: str


def _safe(type_name: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in normalize_type(type_name)) or "unknown"


class TypeConversionService:
    def __init__(self, validator: Optional[TypeValidator] = None):
        self.validator = validator or TypeValidator()

    def get_conversion_expression(self, value_expr: str, source_type: str, target_type: str) -> str:
        """
        Wrap ``value_expr`` so that a ``source_type`` value can feed a
        ``target_type`` port.

        Returns the expression unchanged when the types are already
        compatible, or when no conversion is known for the pair (a warning is
        logged in that case).
        """
        result = self.validator.check_compatibility(source_type, target_type)

        if result is Compatibility.COMPATIBLE:
            return value_expr

        if result is Compatibility.COMPATIBLE_WITH_CONVERSION:
            func = self.validator.get_conversion_function(source_type, target_type)
            if func:
                return f"{func}({value_expr})"

        fallback = self._generic_conversion(value_expr, source_type, target_type)
        if fallback is not None:
            return fallback

        logger.warning(f"No conversion available from '{source_type}' to '{target_type}'")
        return value_expr

    def _generic_conversion(self, value_expr: str, source_type: str, target_type: str) -> Optional[str]:
        source = normalize_type(source_type)
        target = normalize_type(target_type)

        if source == "string":
            if target in ("number", "float"):
                return f"float({value_expr})"
            if target == "integer":
                return f"int({value_expr})"
            if target == "boolean":
                return f"bool({value_expr})"

        if target == "string" and (source in _NUMERIC or source == "boolean"):
            return f"str({value_expr})"

        if (source, target) in CONTAINER_ALIASES:
            return value_expr

        return None

    def conversion_helper(self, source_type: str, target_type: str) -> ConversionHelper:
        source = _safe(source_type)
        target = _safe(target_type)
        function_name = f"convert_{source}_to_{target}"
        expr = self.get_conversion_expression("value", source_type, target_type)
        return ConversionHelper(
            label=f"Convert {source_type} to {target_type}",
            function_name=function_name,
            function_code=f"def {function_name}(value):\n    return {expr}",
        )


__all__ = ["ConversionHelper", "TypeConversionService"]
