"""httprpc validator - JSON Type Definition compilation and error messages.

## Key Components

- `compile_type_def`: Compiles a TypeDef plus a definitions pool into a
  reusable `CompiledValidator`
- `format_failure`: Turns a `ValidationFailure` into the message clients see
- `ValidationError` / `ResponseValidationError`: Errors surfaced to callers
- `CompileError`: Raised when a TypeDef cannot be compiled

## Quick Example

```python
from httprpc.validator import compile_type_def, format_failure

validator = compile_type_def(
    {"properties": {"name": {"type": "string"}}},
    role="request",
)

failures = validator.validate({"name": 1, "extra": True})
format_failure(failures[0], {"name": 1, "extra": True})
# "name must be string, received number (1)"
```
"""

from ._types import UNDEFINED, VOID_SCHEMA, Definitions, TypeDef, is_void
from .compiler import CompiledValidator, compile_type_def
from .errors import (
    RESPONSE_VALIDATION_ERROR_TYPE,
    VALIDATION_ERROR_TYPE,
    CompileError,
    ResponseValidationError,
    SchemaValidationError,
    ValidationError,
)
from .formatter import format_failure, resolve_instance_path
from .loaders import load_schema, load_schema_from_file, validate_type_def_structure
from .models import ValidationFailure

__all__ = [
    # Types
    "TypeDef",
    "Definitions",
    "VOID_SCHEMA",
    "UNDEFINED",
    "is_void",
    # Compiler
    "CompiledValidator",
    "compile_type_def",
    "ValidationFailure",
    # Errors
    "CompileError",
    "SchemaValidationError",
    "ValidationError",
    "ResponseValidationError",
    "VALIDATION_ERROR_TYPE",
    "RESPONSE_VALIDATION_ERROR_TYPE",
    # Formatting
    "format_failure",
    "resolve_instance_path",
    # Loaders
    "load_schema",
    "load_schema_from_file",
    "validate_type_def_structure",
]
