"""Failure records produced by compiled validators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ValidationFailure:
    """One rejected value.

    Attributes:
        instance_path: JSON pointer into the validated value, "" for the root.
        schema_path: JSON pointer into the TypeDef that rejected it. Paths
            inside a referenced definition start at "/definitions/<name>".
        keyword: The TypeDef keyword that failed (type, enum, properties, ...).
        params: Keyword parameters, e.g. {"type": "string", "nullable": False}.
        message: Raw message, e.g. "must be string".
    """

    instance_path: str
    schema_path: str
    keyword: str
    message: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "instancePath": self.instance_path,
            "schemaPath": self.schema_path,
            "keyword": self.keyword,
            "params": self.params,
            "message": self.message,
        }
