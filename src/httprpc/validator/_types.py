"""Type definitions for the httprpc validator.

TypeDefs are plain dictionaries in JSON Type Definition form (RFC 8927).
"""

from typing import Any, Literal

TypeDef = dict[str, Any]
Definitions = dict[str, TypeDef]

SchemaRole = Literal["request", "response"]

# Inclusive bounds for the integer types
INTEGER_RANGES: dict[str, tuple[int, int]] = {
    "int8": (-128, 127),
    "uint8": (0, 255),
    "int16": (-32768, 32767),
    "uint16": (0, 65535),
    "int32": (-2147483648, 2147483647),
    "uint32": (0, 4294967295),
}

PRIMITIVE_TYPES = frozenset(
    ["boolean", "string", "timestamp", "float32", "float64", *INTEGER_RANGES]
)

# A TypeDef that only accepts the absence of a value
VOID_SCHEMA: TypeDef = {"metadata": {"void": True}}


class _Undefined:
    """Marker for a value that could not be resolved at an instance path."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Any = _Undefined()


def is_void(type_def: TypeDef | None) -> bool:
    """Check whether a TypeDef is the void sentinel."""
    if not isinstance(type_def, dict):
        return False
    metadata = type_def.get("metadata")
    return isinstance(metadata, dict) and metadata.get("void") is True


__all__ = [
    "TypeDef",
    "Definitions",
    "SchemaRole",
    "INTEGER_RANGES",
    "PRIMITIVE_TYPES",
    "VOID_SCHEMA",
    "UNDEFINED",
    "is_void",
]
