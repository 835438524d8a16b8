"""Human-readable messages for validation failures.

Clients match on these strings, so the shapes below are part of the wire
contract:

    user.name must be string, received number (1)
    must be one of ["A", "B"], received "C"
    must have property 'name', received {}
"""

import json
import math
from typing import Any

from ._types import UNDEFINED
from .models import ValidationFailure


def dotted_path(instance_path: str) -> str:
    """Convert a JSON pointer to dotted form: "/user/name" -> "user.name"."""
    return instance_path[1:].replace("/", ".") if instance_path else ""


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_instance_path(value: Any, instance_path: str) -> Any:
    """Look up the value at a JSON pointer.

    Returns UNDEFINED when a segment is missing or an intermediate value
    cannot be indexed.
    """
    if not instance_path:
        return value

    current = value
    for segment in instance_path[1:].split("/"):
        key = _unescape(segment)
        if isinstance(current, dict):
            if key not in current:
                return UNDEFINED
            current = current[key]
        elif isinstance(current, (list, tuple)):
            if not (key.isascii() and key.isdigit()) or int(key) >= len(current):
                return UNDEFINED
            current = current[int(key)]
        else:
            return UNDEFINED
    return current


def runtime_kind(value: Any) -> str:
    """Kind name of a received value, as reported to clients."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def _js_value(value: Any) -> Any:
    """Whole floats render as integers (1.0 as 1); NaN and infinities as null."""
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, dict):
        return {k: _js_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_js_value(v) for v in value]
    return value


def to_json(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    return json.dumps(_js_value(value), separators=(",", ":"), ensure_ascii=False, default=str)


def format_failure(failure: ValidationFailure, original_input: Any) -> str:
    """Build the single-line message for a validation failure.

    Args:
        failure: The failure reported by a compiled validator
        original_input: The value that was validated

    Returns:
        The dotted instance path followed by a description of what was
        expected and what was received
    """
    path = dotted_path(failure.instance_path)
    prefix = f"{path} " if path else ""
    actual = resolve_instance_path(original_input, failure.instance_path)

    if "type" in failure.params:
        expected = failure.params["type"]
        if failure.params.get("nullable"):
            expected = f"{expected} or null"
        return f"{prefix}must be {expected}, received {runtime_kind(actual)} ({to_json(actual)})"

    if failure.keyword == "enum":
        allowed = ", ".join(to_json(v) for v in failure.params.get("allowedValues", []))
        return f"{prefix}must be one of [{allowed}], received {to_json(actual)}"

    if actual is UNDEFINED:
        return f"{prefix}{failure.message}"
    return f"{prefix}{failure.message}, received {to_json(actual)}"
