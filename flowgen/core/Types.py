from enum import Enum, auto


class EdgeKind(Enum):
    DATA = "data"
    EXECUTION = "execution"


class NodeKind(Enum):
    """Emission shape of a node, decided once when the graph is built."""
    PLAIN = auto()
    INPUT = auto()
    CONDITIONAL = auto()
    LOOP = auto()
    WHILE_LOOP = auto()

    @property
    def is_control_flow(self) -> bool:
        return self in (NodeKind.CONDITIONAL, NodeKind.LOOP, NodeKind.WHILE_LOOP)


class PatternKind(Enum):
    EXPRESSION = "expression"   # yields a value, bound to the node's variable
    STATEMENT = "statement"     # emitted verbatim on one line
    BLOCK = "block"             # multi-line, carries nested indentation

    @staticmethod
    def parse(text: str) -> 'PatternKind':
        try:
            return PatternKind(str(text).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown pattern kind '{text}'") from None


class Compatibility(Enum):
    COMPATIBLE = "compatible"
    COMPATIBLE_WITH_CONVERSION = "compatible_with_conversion"
    INCOMPATIBLE = "incompatible"
    UNKNOWN = "unknown"


# Handle prefixes used by the editor to tell port roles apart.
EXEC_INPUT_PREFIX = "exec-input-"
EXEC_OUTPUT_PREFIX = "exec-output-"
INPUT_PREFIX = "input-"
OUTPUT_PREFIX = "output-"

_HANDLE_PREFIXES = (EXEC_INPUT_PREFIX, EXEC_OUTPUT_PREFIX, INPUT_PREFIX, OUTPUT_PREFIX)


def strip_handle(handle) -> str:
    """'output-out-1' → 'out-1'.  Unprefixed handles are returned as-is."""
    if not handle:
        return ""
    for prefix in _HANDLE_PREFIXES:
        if handle.startswith(prefix):
            return handle[len(prefix):]
    return handle


def is_execution_handle(handle) -> bool:
    return bool(handle) and handle.startswith("exec")
