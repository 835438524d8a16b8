"""httprpc service layer - registration, validated calls and dispatch.

```python
from httprpc.service import ServiceRegistry, service_with_schema
from httprpc.validator import VOID_SCHEMA

class Greeter:
    async def greet(self, args):
        return f"hello {args['name']}"

greeter = service_with_schema(
    Greeter(),
    name="greeter",
    methods={
        "greet": {
            "requestTypeDef": {"properties": {"name": {"type": "string"}}},
            "responseTypeDef": {"type": "string"},
        }
    },
)

registry = ServiceRegistry([greeter])
await registry.call("greeter", "greet", {"name": "Ada"})
```
"""

from .context import (
    RequestContexts,
    context_resolver,
    context_service_with_schema,
    request_contexts,
    resolve_context,
)
from .errors import (
    MethodNotFoundError,
    MissingContextError,
    RpcError,
    ServiceNotFoundError,
    error_body,
)
from .models import MethodDescriptor, MethodSchemaModel, ServiceManifest, ServiceSchemaModel
from .registrar import (
    ServiceImplementation,
    ServiceSet,
    build_manifest,
    compile_service_schema,
    parse_service_schema,
    service_from_file,
    service_with_schema,
)
from .registry import ServiceRegistry
from .wrapper import ValidatedMethod, wrap_method

__all__ = [
    # Registration
    "service_with_schema",
    "service_from_file",
    "context_service_with_schema",
    "compile_service_schema",
    "build_manifest",
    "parse_service_schema",
    "ServiceSet",
    "ServiceImplementation",
    "ValidatedMethod",
    "wrap_method",
    # Contexts
    "RequestContexts",
    "request_contexts",
    "resolve_context",
    "context_resolver",
    # Models
    "MethodSchemaModel",
    "ServiceSchemaModel",
    "MethodDescriptor",
    "ServiceManifest",
    # Dispatch
    "ServiceRegistry",
    # Errors
    "MissingContextError",
    "MethodNotFoundError",
    "ServiceNotFoundError",
    "RpcError",
    "error_body",
]
