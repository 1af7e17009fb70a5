"""
Syntax pattern registry
========================
A syntax pattern is the code template bound to a node's function id for one
target language.  Placeholders are positional: ``{0}`` is the node's first
declared input, ``{1}`` the second, and so on.

    {"functionId": "add", "languageId": 1, "pattern": "{0} + {1}",
     "patternType": "expression", "additionalImports": []}

The compiler only ever reads from a registry, through the awaitable
``get_syntax_pattern``; a backing store may be remote and may fail.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..core.GraphPrimitives import FunctionId
from ..core.Types import PatternKind

logger = logging.getLogger(__name__)

PYTHON_LANGUAGE_ID = 1


class PatternRegistryError(ValueError):
    """Raised when a pattern definition cannot be loaded."""


def _key(function_id: FunctionId, language_id: int) -> Tuple[str, int]:
    # Editors send numeric ids as strings and vice versa; compare as text.
    return (str(function_id), int(language_id))


@dataclass(frozen=True)
class SyntaxPattern:
    function_id: FunctionId
    pattern: str
    kind: PatternKind = PatternKind.EXPRESSION
    language_id: int = PYTHON_LANGUAGE_ID
    imports: Tuple[str, ...] = ()
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyntaxPattern":
        """Build a pattern from snake_case or editor camelCase keys."""
        if not isinstance(data, dict):
            raise PatternRegistryError("pattern entry must be a JSON object")

        function_id = data.get("function_id", data.get("functionId"))
        pattern = data.get("pattern")
        if function_id is None:
            raise PatternRegistryError("pattern entry is missing 'functionId'")
        if not isinstance(pattern, str):
            raise PatternRegistryError(f"pattern for function {function_id} must be a string")

        try:
            kind = PatternKind.parse(data.get("kind", data.get("patternType", "expression")))
        except ValueError as exc:
            raise PatternRegistryError(f"function {function_id}: {exc}") from None

        imports = data.get("imports", data.get("additionalImports")) or ()
        if isinstance(imports, str):
            imports = (imports,)

        return cls(
            function_id=function_id,
            pattern=pattern,
            kind=kind,
            language_id=int(data.get("language_id", data.get("languageId", PYTHON_LANGUAGE_ID))),
            imports=tuple(imports),
            notes=data.get("notes") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "functionId": self.function_id,
            "languageId": self.language_id,
            "pattern": self.pattern,
            "patternType": self.kind.value,
            "additionalImports": list(self.imports),
            "notes": self.notes,
        }


class PatternRegistry(ABC):
    @abstractmethod
    async def get_syntax_pattern(
        self, function_id: FunctionId, language_id: int = PYTHON_LANGUAGE_ID
    ) -> Optional[SyntaxPattern]:
        """Return the pattern for ``function_id`` or None.  May raise."""


class InMemoryPatternRegistry(PatternRegistry):
    def __init__(self, patterns: Optional[Iterable[SyntaxPattern]] = None):
        self._patterns: Dict[Tuple[str, int], SyntaxPattern] = {}
        if patterns:
            self.register_many(patterns)

    def register(self, pattern: SyntaxPattern) -> None:
        key = _key(pattern.function_id, pattern.language_id)
        if key in self._patterns:
            logger.debug(f"Replacing pattern for function {pattern.function_id}")
        self._patterns[key] = pattern

    def register_many(self, patterns: Iterable[SyntaxPattern]) -> None:
        for pattern in patterns:
            self.register(pattern)

    def patterns(self, language_id: Optional[int] = None) -> List[SyntaxPattern]:
        return [
            p for p in self._patterns.values()
            if language_id is None or p.language_id == language_id
        ]

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, function_id: FunctionId) -> bool:
        return _key(function_id, PYTHON_LANGUAGE_ID) in self._patterns

    async def get_syntax_pattern(
        self, function_id: FunctionId, language_id: int = PYTHON_LANGUAGE_ID
    ) -> Optional[SyntaxPattern]:
        return self._patterns.get(_key(function_id, language_id))

    # ── Loading ───────────────────────────────────────────────────────────

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> "InMemoryPatternRegistry":
        return cls(SyntaxPattern.from_dict(item) for item in items)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InMemoryPatternRegistry":
        """
        Load patterns from a JSON file holding either a list of entries or
        ``{"patterns": [...]}``.

        Raises:
            FileNotFoundError: If the file does not exist.
            PatternRegistryError: If the content is not a valid pattern list.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as exc:
                raise PatternRegistryError(f"{path}: invalid JSON ({exc})") from None

        if isinstance(data, dict):
            data = data.get("patterns")
        if not isinstance(data, list):
            raise PatternRegistryError(f"{path}: expected a list of patterns")

        registry = cls.from_dicts(data)
        logger.debug(f"Loaded {len(registry)} patterns from {path}")
        return registry


__all__ = [
    "InMemoryPatternRegistry",
    "PYTHON_LANGUAGE_ID",
    "PatternRegistry",
    "PatternRegistryError",
    "SyntaxPattern",
]
