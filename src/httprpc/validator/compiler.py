"""Compilation of JSON Type Definitions into reusable validators.

A TypeDef and the service's shared definitions pool are checked once and
turned into a tree of small check functions. The resulting
`CompiledValidator` holds no per-call state, so one instance serves every
call of a method concurrently.

Example:
    >>> validator = compile_type_def(
    ...     {"properties": {"user": {"ref": "User"}}},
    ...     {"User": {"properties": {"name": {"type": "string"}}}},
    ... )
    >>> validator.is_valid({"user": {"name": "Ada"}})
    True
    >>> [f.schema_path for f in validator.validate({"user": {"name": 1}})]
    ['/definitions/User/properties/name/type']
"""

import calendar
import logging
import math
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ._types import (
    INTEGER_RANGES,
    PRIMITIVE_TYPES,
    UNDEFINED,
    Definitions,
    SchemaRole,
    TypeDef,
    is_void,
)
from .errors import CompileError
from .loaders import validate_type_def_structure
from .models import ValidationFailure

logger = logging.getLogger(__name__)

# "optionalProperties" on its own is also the properties form
FORM_KEYWORDS = ("ref", "type", "enum", "elements", "properties", "values", "discriminator")

_TIMESTAMP_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt ]([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.[0-9]+)?"
    r"(?:[Zz]|[+-]([0-9]{2}):([0-9]{2}))"
)
_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


class _Run:
    """Failures collected while validating one value."""

    __slots__ = ("failures", "all_errors")

    def __init__(self, all_errors: bool = False):
        self.failures: list[ValidationFailure] = []
        self.all_errors = all_errors

    @property
    def stop(self) -> bool:
        return bool(self.failures) and not self.all_errors

    def fail(
        self,
        instance_path: str,
        schema_path: str,
        keyword: str,
        message: str,
        params: dict[str, Any] | None = None,
    ) -> bool:
        self.failures.append(
            ValidationFailure(
                instance_path=instance_path,
                schema_path=schema_path,
                keyword=keyword,
                message=message,
                params=params or {},
            )
        )
        return False


_Check = Callable[[Any, str, _Run], bool]


def _escape(segment: Any) -> str:
    return str(segment).replace("~", "~0").replace("/", "~1")


def _pointer(path: str, segment: Any) -> str:
    return f"{path}/{_escape(segment)}"


def _type_message(type_name: str, nullable: bool) -> str:
    return f"must be {type_name} or null" if nullable else f"must be {type_name}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integral(value: Any) -> bool:
    if isinstance(value, int):
        return True
    return math.isfinite(value) and float(value).is_integer()


def _integer_in_range(low: int, high: int) -> Callable[[Any], bool]:
    def accept(value: Any) -> bool:
        return _is_number(value) and _is_integral(value) and low <= value <= high

    return accept


def _is_timestamp(value: Any) -> bool:
    if isinstance(value, datetime):
        return True
    if not isinstance(value, str):
        return False

    match = _TIMESTAMP_RE.fullmatch(value)
    if not match:
        return False

    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    if not 1 <= month <= 12:
        return False
    days = 29 if month == 2 and calendar.isleap(year) else _DAYS_IN_MONTH[month - 1]
    if not 1 <= day <= days:
        return False
    # second 60 is a leap second
    if hour > 23 or minute > 59 or second > 60:
        return False

    offset_hour, offset_minute = match.group(7), match.group(8)
    if offset_hour is not None and (int(offset_hour) > 23 or int(offset_minute) > 59):
        return False
    return True


def _direct_refs(schema: Any) -> list[str]:
    """Definition names checked against the same value as `schema` itself."""
    if not isinstance(schema, dict):
        return []
    refs = [schema["ref"]] if "ref" in schema else []
    metadata = schema.get("metadata") or {}
    for member in metadata.get("union") or []:
        refs.extend(_direct_refs(member))
    return refs


class _Compiler:
    """Builds check functions for one root TypeDef and its definitions pool."""

    def __init__(self, definitions: Definitions):
        self._definitions = definitions
        # Filled before any check runs; refs look names up lazily so that
        # recursive definitions work.
        self._compiled: dict[str, _Check] = {}

    def compile_definitions(self) -> None:
        for name, type_def in self._definitions.items():
            self._compiled[name] = self.compile(type_def, f"/definitions/{_escape(name)}")
        self._check_ref_cycles()

    def _check_ref_cycles(self) -> None:
        """Reject definitions that reach themselves without consuming input.

        Refs inside properties, elements, values or mapping only run on a
        nested value, so those cycles terminate. A chain of bare refs (or
        union members) never does.
        """
        for start in self._definitions:
            pending = [(start, (start,))]
            seen = {start}
            while pending:
                name, chain = pending.pop()
                for target in _direct_refs(self._definitions[name]):
                    if target == start:
                        cycle = " -> ".join(f'"{n}"' for n in (*chain, target))
                        raise CompileError(
                            f"circular reference: {cycle}", f"/definitions/{_escape(start)}"
                        )
                    if target in self._definitions and target not in seen:
                        seen.add(target)
                        pending.append((target, (*chain, target)))

    def compile(
        self,
        schema: TypeDef,
        schema_path: str,
        discriminator_tag: str | None = None,
    ) -> _Check:
        if not isinstance(schema, dict):
            raise CompileError(f"schema at {schema_path or '/'} must be an object", schema_path)
        if "definitions" in schema:
            raise CompileError("definitions are only allowed at the root", schema_path)

        nullable = bool(schema.get("nullable", False))
        metadata = schema.get("metadata") or {}

        forms = [k for k in FORM_KEYWORDS if k in schema]
        if "optionalProperties" in schema and "properties" not in schema:
            forms.append("optionalProperties")
        if len(forms) > 1:
            raise CompileError(
                f"schema has more than one form: {', '.join(forms)}", schema_path
            )
        form = forms[0] if forms else None

        if "additionalProperties" in schema and form not in ("properties", "optionalProperties"):
            raise CompileError(
                "additionalProperties is only allowed in the properties form", schema_path
            )
        if ("mapping" in schema) != (form == "discriminator"):
            raise CompileError("discriminator and mapping must be used together", schema_path)

        if form == "ref":
            check = self._ref(schema, schema_path, nullable)
        elif form == "type":
            check = self._type(schema, schema_path, nullable)
        elif form == "enum":
            check = self._enum(schema, schema_path, nullable)
        elif form == "elements":
            check = self._elements(schema, schema_path, nullable)
        elif form in ("properties", "optionalProperties"):
            check = self._properties(schema, schema_path, nullable, discriminator_tag)
        elif form == "values":
            check = self._values(schema, schema_path, nullable)
        elif form == "discriminator":
            check = self._discriminator(schema, schema_path, nullable)
        else:
            check = _accept

        if metadata.get("union"):
            check = self._union(metadata["union"], schema_path, nullable, check)
        if is_void(schema):
            check = self._void(schema_path)

        return check

    def _ref(self, schema: TypeDef, schema_path: str, nullable: bool) -> _Check:
        name = schema["ref"]
        if name not in self._definitions:
            raise CompileError(f'reference "{name}" not resolved', f"{schema_path}/ref")
        compiled = self._compiled

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None and nullable:
                return True
            return compiled[name](value, instance_path, run)

        return check

    def _type(self, schema: TypeDef, schema_path: str, nullable: bool) -> _Check:
        type_name = schema["type"]
        keyword_path = f"{schema_path}/type"
        if type_name not in PRIMITIVE_TYPES:
            raise CompileError(f'unknown type "{type_name}"', keyword_path)
        message = _type_message(type_name, nullable)

        accept: Callable[[Any], bool]
        if type_name == "boolean":
            accept = lambda v: isinstance(v, bool)  # noqa: E731
        elif type_name == "string":
            accept = lambda v: isinstance(v, str)  # noqa: E731
        elif type_name == "timestamp":
            accept = _is_timestamp
        elif type_name in ("float32", "float64"):
            accept = _is_number
        else:
            accept = _integer_in_range(*INTEGER_RANGES[type_name])

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if accept(value) or (value is None and nullable):
                return True
            return run.fail(
                instance_path,
                keyword_path,
                "type",
                message,
                {"type": type_name, "nullable": nullable},
            )

        return check

    def _enum(self, schema: TypeDef, schema_path: str, nullable: bool) -> _Check:
        allowed = list(schema["enum"])
        allowed_set = frozenset(allowed)
        keyword_path = f"{schema_path}/enum"

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if (isinstance(value, str) and value in allowed_set) or (value is None and nullable):
                return True
            return run.fail(
                instance_path,
                keyword_path,
                "enum",
                "must be equal to one of the allowed values",
                {"allowedValues": allowed},
            )

        return check

    def _elements(self, schema: TypeDef, schema_path: str, nullable: bool) -> _Check:
        keyword_path = f"{schema_path}/elements"
        item_check = self.compile(schema["elements"], keyword_path)

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None and nullable:
                return True
            if not isinstance(value, (list, tuple)):
                return run.fail(
                    instance_path,
                    keyword_path,
                    "elements",
                    _type_message("array", nullable),
                    {"type": "array", "nullable": nullable},
                )

            valid = True
            for index, item in enumerate(value):
                if not item_check(item, _pointer(instance_path, index), run):
                    valid = False
                    if run.stop:
                        break
            return valid

        return check

    def _properties(
        self,
        schema: TypeDef,
        schema_path: str,
        nullable: bool,
        discriminator_tag: str | None,
    ) -> _Check:
        required = {
            name: self.compile(sub, f"{schema_path}/properties/{_escape(name)}")
            for name, sub in (schema.get("properties") or {}).items()
        }
        optional = {
            name: self.compile(sub, f"{schema_path}/optionalProperties/{_escape(name)}")
            for name, sub in (schema.get("optionalProperties") or {}).items()
        }

        overlap = set(required) & set(optional)
        if overlap:
            raise CompileError(
                f"properties {sorted(overlap)} are both required and optional", schema_path
            )
        if discriminator_tag is not None and (
            discriminator_tag in required or discriminator_tag in optional
        ):
            raise CompileError(
                f'mapping schema must not define the discriminator tag "{discriminator_tag}"',
                schema_path,
            )

        additional = bool(schema.get("additionalProperties", False))
        keyword = "properties" if "properties" in schema else "optionalProperties"
        keyword_path = f"{schema_path}/{keyword}"

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None and nullable:
                return True
            if not isinstance(value, dict):
                return run.fail(
                    instance_path,
                    keyword_path,
                    keyword,
                    _type_message("object", nullable),
                    {"type": "object", "nullable": nullable},
                )

            valid = True
            for name, prop_check in required.items():
                if name not in value:
                    valid = run.fail(
                        instance_path,
                        f"{schema_path}/properties/{_escape(name)}",
                        "properties",
                        f"must have property '{name}'",
                        {"error": "missing", "missingProperty": name},
                    )
                elif not prop_check(value[name], _pointer(instance_path, name), run):
                    valid = False
                if not valid and run.stop:
                    return False

            for name, prop_check in optional.items():
                if name in value and not prop_check(value[name], _pointer(instance_path, name), run):
                    valid = False
                    if run.stop:
                        return False

            if not additional:
                for key in value:
                    if key in required or key in optional or key == discriminator_tag:
                        continue
                    valid = run.fail(
                        _pointer(instance_path, key),
                        schema_path,
                        keyword,
                        "must NOT have additional properties",
                        {"error": "additional", "additionalProperty": key},
                    )
                    if run.stop:
                        return False

            return valid

        return check

    def _values(self, schema: TypeDef, schema_path: str, nullable: bool) -> _Check:
        keyword_path = f"{schema_path}/values"
        value_check = self.compile(schema["values"], keyword_path)

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None and nullable:
                return True
            if not isinstance(value, dict):
                return run.fail(
                    instance_path,
                    keyword_path,
                    "values",
                    _type_message("object", nullable),
                    {"type": "object", "nullable": nullable},
                )

            valid = True
            for key, item in value.items():
                if not value_check(item, _pointer(instance_path, key), run):
                    valid = False
                    if run.stop:
                        break
            return valid

        return check

    def _discriminator(self, schema: TypeDef, schema_path: str, nullable: bool) -> _Check:
        tag = schema["discriminator"]
        variants: dict[str, _Check] = {}
        for tag_value, variant in schema["mapping"].items():
            variant_path = f"{schema_path}/mapping/{_escape(tag_value)}"
            if not isinstance(variant, dict) or not (
                "properties" in variant or "optionalProperties" in variant
            ):
                raise CompileError("mapping values must be of the properties form", variant_path)
            if variant.get("nullable"):
                raise CompileError("mapping values must not be nullable", variant_path)
            variants[tag_value] = self.compile(variant, variant_path, discriminator_tag=tag)

        discriminator_path = f"{schema_path}/discriminator"
        mapping_path = f"{schema_path}/mapping"

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None and nullable:
                return True
            if not isinstance(value, dict):
                return run.fail(
                    instance_path,
                    discriminator_path,
                    "discriminator",
                    _type_message("object", nullable),
                    {"type": "object", "nullable": nullable},
                )

            tag_value = value.get(tag, UNDEFINED)
            if not isinstance(tag_value, str):
                return run.fail(
                    _pointer(instance_path, tag),
                    discriminator_path,
                    "discriminator",
                    f'tag "{tag}" must be string',
                    {
                        "error": "tag",
                        "tag": tag,
                        "tagValue": None if tag_value is UNDEFINED else tag_value,
                    },
                )

            variant_check = variants.get(tag_value)
            if variant_check is None:
                return run.fail(
                    _pointer(instance_path, tag),
                    mapping_path,
                    "discriminator",
                    f'value of tag "{tag}" must be in mapping',
                    {"error": "mapping", "tag": tag, "tagValue": tag_value},
                )
            return variant_check(value, instance_path, run)

        return check

    def _union(
        self,
        members: list[TypeDef],
        schema_path: str,
        nullable: bool,
        form_check: _Check,
    ) -> _Check:
        union_path = f"{schema_path}/metadata/union"
        member_checks = [
            self.compile(member, f"{union_path}/{index}") for index, member in enumerate(members)
        ]

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None and nullable:
                return True
            # Members are tried in declaration order; their own failures are
            # discarded, only the union failure is reported.
            if not any(member(value, instance_path, _Run()) for member in member_checks):
                return run.fail(
                    instance_path,
                    union_path,
                    "union",
                    "must match a schema in union",
                    {"members": len(member_checks)},
                )
            return form_check(value, instance_path, run)

        return check

    def _void(self, schema_path: str) -> _Check:
        keyword_path = f"{schema_path}/metadata/void"

        def check(value: Any, instance_path: str, run: _Run) -> bool:
            if value is None:
                return True
            return run.fail(instance_path, keyword_path, "void", "must be undefined")

        return check


def _accept(value: Any, instance_path: str, run: _Run) -> bool:
    return True


class CompiledValidator:
    """The runtime form of a TypeDef plus its definitions pool.

    Build one with `compile_type_def`. Instances are immutable and safe to
    share between concurrent calls.

    Attributes:
        type_def: The effective root TypeDef, after request leniency was applied.
        definitions: The definitions pool the TypeDef was compiled against.
        role: "request" or "response".
        all_errors: Whether validation continues after the first failure.
    """

    def __init__(
        self,
        type_def: TypeDef,
        definitions: Definitions,
        check: _Check,
        role: SchemaRole,
        all_errors: bool = False,
    ):
        self.type_def = type_def
        self.definitions = definitions
        self.role = role
        self.all_errors = all_errors
        self._check = check

    def validate(self, value: Any) -> list[ValidationFailure]:
        """Validate a value.

        Returns:
            The failures in the order they were found; empty when the value
            is valid. Unless the validator was compiled with all_errors, at
            most one failure is returned.
        """
        run = _Run(self.all_errors)
        self._check(value, "", run)
        return run.failures

    def is_valid(self, value: Any) -> bool:
        return not self.validate(value)

    def __repr__(self) -> str:
        return f"CompiledValidator(role={self.role!r}, type_def={self.type_def!r})"


def compile_type_def(
    type_def: TypeDef | None,
    definitions: Definitions | None = None,
    *,
    role: SchemaRole = "response",
    all_errors: bool = False,
) -> CompiledValidator:
    """Compile a TypeDef against a shared definitions pool.

    Request TypeDefs are compiled liberally: when the root declares
    `properties`, unlisted properties are accepted unless the TypeDef sets
    `additionalProperties` itself. Response TypeDefs are compiled as written.
    A missing TypeDef compiles to a validator that accepts anything.

    Args:
        type_def: The TypeDef, or None
        definitions: Named TypeDefs that `ref` may point to
        role: "request" or "response"
        all_errors: Keep validating after the first failure

    Returns:
        A reusable CompiledValidator

    Raises:
        CompileError: If the TypeDef or a definition is malformed, or a
            `ref` does not resolve within the pool
    """
    if type_def is None:
        type_def = {}
    if not isinstance(type_def, dict):
        raise CompileError("schema must be an object")
    if definitions is not None and not isinstance(definitions, dict):
        raise CompileError("definitions must be an object")

    root = dict(type_def)
    root_definitions = root.pop("definitions", {})
    if not isinstance(root_definitions, dict):
        raise CompileError("definitions must be an object", "/definitions")
    pool: Definitions = {**(definitions or {}), **root_definitions}

    # Be liberal in what we accept
    if role == "request" and "properties" in root:
        root = {"additionalProperties": True, **root}

    validate_type_def_structure({"definitions": pool, **root})

    compiler = _Compiler(pool)
    compiler.compile_definitions()
    check = compiler.compile(root, "")

    logger.debug(f"Compiled {role} schema with {len(pool)} definitions")
    return CompiledValidator(root, pool, check, role, all_errors)
