"""httprpc - schema-validated RPC services.

Plain service objects are exposed method by method, with every request and
response checked against JSON Type Definitions compiled once at
registration. See `httprpc.service` for registration and dispatch and
`httprpc.validator` for the schema compiler.
"""

from httprpc.service import (
    MethodNotFoundError,
    MissingContextError,
    RequestContexts,
    RpcError,
    ServiceManifest,
    ServiceNotFoundError,
    ServiceRegistry,
    ServiceSet,
    context_service_with_schema,
    error_body,
    request_contexts,
    service_from_file,
    service_with_schema,
)
from httprpc.validator import (
    VOID_SCHEMA,
    CompileError,
    ResponseValidationError,
    ValidationError,
    compile_type_def,
    format_failure,
)

__version__ = "0.1.0"

__all__ = [
    "service_with_schema",
    "service_from_file",
    "context_service_with_schema",
    "ServiceSet",
    "ServiceManifest",
    "ServiceRegistry",
    "RequestContexts",
    "request_contexts",
    "compile_type_def",
    "format_failure",
    "VOID_SCHEMA",
    "CompileError",
    "ValidationError",
    "ResponseValidationError",
    "MissingContextError",
    "MethodNotFoundError",
    "ServiceNotFoundError",
    "RpcError",
    "error_body",
]
