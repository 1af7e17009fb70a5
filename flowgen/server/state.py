"""
ServerState — the pattern registry and settings shared by every request.

Settings come from the environment (``.env`` is loaded by main.py first):

    FLOWGEN_PATTERNS_FILE   JSON patterns layered over the built-ins
    FLOWGEN_LANGUAGE_ID     default pattern language (1 = Python)
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from flowgen.registry import PYTHON_LANGUAGE_ID, InMemoryPatternRegistry, load_registry

logger = logging.getLogger(__name__)


class ServerState:
    """Holds the registry every compile request reads from."""

    def __init__(self, patterns_file: Optional[str] = None, language_id: int = PYTHON_LANGUAGE_ID) -> None:
        self.patterns_file = patterns_file
        self.language_id = language_id
        self.registry: InMemoryPatternRegistry = load_registry(patterns_file)
        logger.info(
            f"Pattern registry ready: {len(self.registry)} patterns"
            + (f" (extra: {patterns_file})" if patterns_file else "")
        )

    @classmethod
    def from_env(cls) -> "ServerState":
        return cls(
            patterns_file=os.environ.get("FLOWGEN_PATTERNS_FILE") or None,
            language_id=int(os.environ.get("FLOWGEN_LANGUAGE_ID", PYTHON_LANGUAGE_ID)),
        )


server_state = ServerState.from_env()
