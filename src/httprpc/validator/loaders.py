"""Schema loading utilities for the httprpc validator."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import jsonschema
import yaml

from .errors import CompileError

SCHEMAS_DIR = Path(__file__).parent / "schemas"


@lru_cache(maxsize=None)
def _load_json_schema(name: str) -> dict[str, Any]:
    with open(SCHEMAS_DIR / name, encoding="utf-8") as f:
        return cast(dict[str, Any], json.load(f))


def _error_location(error: jsonschema.ValidationError) -> str:
    return ".".join(str(p) for p in error.absolute_path)


def load_schema(content: str, format: str = "yaml") -> dict[str, Any]:
    """Load a service schema document from string content.

    Args:
        content: Schema content as string
        format: Format of the content ('yaml' or 'json')

    Returns:
        Schema dictionary

    Raises:
        ValueError: If format is not supported or parsing fails
    """
    if format == "yaml":
        try:
            return cast(dict[str, Any], yaml.safe_load(content))
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML: {e}") from e
    elif format == "json":
        try:
            return cast(dict[str, Any], json.loads(content))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse JSON: {e}") from e
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'yaml' or 'json'")


def load_schema_from_file(path: str | Path) -> dict[str, Any]:
    """Load and shape-check a service schema from a YAML or JSON file.

    The file holds the same keys `service_with_schema` takes: name, help,
    definitions, methods and optionally strictResponseValidation.

    Args:
        path: Path to the schema file

    Returns:
        Schema dictionary

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file format is not supported, parsing fails or the
            document does not have the shape of a service schema
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    if path.suffix.lower() in [".yaml", ".yml"]:
        format = "yaml"
    elif path.suffix.lower() == ".json":
        format = "json"
    else:
        raise ValueError(f"Unsupported file extension: {path.suffix}. Use .yaml, .yml, or .json")

    content = path.read_text(encoding="utf-8")
    schema = load_schema(content, format=format)
    validate_service_schema_structure(schema)
    return schema


def validate_service_schema_structure(schema: Any) -> None:
    """Validate that a service schema document has the expected structure.

    Raises:
        ValueError: If schema structure is invalid
    """
    try:
        jsonschema.validate(instance=schema, schema=_load_json_schema("service-schema-1.json"))
    except jsonschema.ValidationError as e:
        location = _error_location(e)
        if location:
            raise ValueError(f"Service schema error at '{location}': {e.message}") from e
        raise ValueError(f"Service schema error: {e.message}") from e


def validate_type_def_structure(type_def: Any) -> None:
    """Check that a TypeDef only uses known keywords with well-formed values.

    This is the shape check only; form exclusivity and `ref` resolution are
    left to the compiler.

    Raises:
        CompileError: If the TypeDef is malformed
    """
    validator = jsonschema.Draft7Validator(_load_json_schema("type-def-schema-1.json"))
    error = jsonschema.exceptions.best_match(validator.iter_errors(type_def))
    if error is None:
        return

    schema_path = "".join(f"/{p}" for p in error.absolute_path)
    if schema_path:
        raise CompileError(f"invalid schema at {schema_path}: {error.message}", schema_path)
    raise CompileError(f"invalid schema: {error.message}")
