from .PatternRegistry import (
    PYTHON_LANGUAGE_ID,
    InMemoryPatternRegistry,
    PatternRegistry,
    PatternRegistryError,
    SyntaxPattern,
)
from .builtins import load_registry, python_builtins

__all__ = [
    "InMemoryPatternRegistry",
    "PYTHON_LANGUAGE_ID",
    "PatternRegistry",
    "PatternRegistryError",
    "SyntaxPattern",
    "load_registry",
    "python_builtins",
]
