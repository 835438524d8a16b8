"""Service registration: compile every declared method and build the manifest."""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pydantic

from httprpc.config import default_strict_response_validation
from httprpc.validator import CompileError, CompiledValidator, compile_type_def
from httprpc.validator.loaders import load_schema_from_file

from .errors import MethodNotFoundError
from .models import MethodDescriptor, ServiceManifest, ServiceSchemaModel
from .wrapper import ContextResolver, ErrorLogger, ValidatedMethod

logger = logging.getLogger(__name__)


class ServiceImplementation(Mapping[str, ValidatedMethod]):
    """Read-only table of a service's validated methods.

    Only declared methods are present. Looking up any other name raises
    MethodNotFoundError, even if the underlying service object has an
    attribute of that name.
    """

    def __init__(self, service_name: str, methods: dict[str, ValidatedMethod]):
        self.service_name = service_name
        self._methods = dict(methods)

    def __getitem__(self, method_name: str) -> ValidatedMethod:
        try:
            return self._methods[method_name]
        except KeyError:
            raise MethodNotFoundError(self.service_name, method_name) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    async def call(self, method_name: str, args: Any = None, *, context: Any = None) -> Any:
        return await self[method_name](args, context=context)


@dataclass(frozen=True)
class ServiceSet:
    """A registered service: what to call and what to publish."""

    implementation: ServiceImplementation
    meta: ServiceManifest

    @property
    def name(self) -> str:
        return self.meta.service


@dataclass(frozen=True)
class CompiledMethod:
    request: CompiledValidator
    response: CompiledValidator


def compile_service_schema(schema: ServiceSchemaModel) -> dict[str, CompiledMethod]:
    """Compile the request and response TypeDefs of every declared method.

    Raises:
        CompileError: On the first method that does not compile. The message
            names the method and whether its request or response failed.
    """
    compiled: dict[str, CompiledMethod] = {}
    for method_name, method in schema.methods.items():
        try:
            request = compile_type_def(
                method.request_type_def, schema.definitions, role="request"
            )
        except CompileError as e:
            raise CompileError(
                f'failed to compile "{method_name}" request schema: {e.message}', e.schema_path
            ) from e

        try:
            response = compile_type_def(
                method.response_type_def, schema.definitions, role="response"
            )
        except CompileError as e:
            raise CompileError(
                f'failed to compile "{method_name}" response schema: {e.message}', e.schema_path
            ) from e

        compiled[method_name] = CompiledMethod(request=request, response=response)
    return compiled


def build_manifest(schema: ServiceSchemaModel) -> ServiceManifest:
    """Manifest of a service declaration, methods in declaration order."""
    expose = [
        MethodDescriptor(
            method_name=method_name,
            method_timeout=method.method_timeout,
            help=method.help,
            param_names=method.resolved_param_names(),
            request_type_def=method.request_type_def,
            response_type_def=method.response_type_def,
        )
        for method_name, method in schema.methods.items()
    ]
    return ServiceManifest(
        service=schema.name,
        help=schema.help,
        definitions=schema.definitions,
        expose=tuple(expose),
    )


def parse_service_schema(data: dict[str, Any]) -> ServiceSchemaModel:
    """Parse a service declaration, turning model errors into ValueError."""
    try:
        return ServiceSchemaModel.model_validate(data)
    except pydantic.ValidationError as e:
        name = data.get("name") if isinstance(data, dict) else None
        raise ValueError(f"Invalid schema for service {name!r}: {e}") from e


def _lookup_method(service: Any, service_name: str, method_name: str) -> Any:
    if isinstance(service, Mapping):
        target = service.get(method_name)
    else:
        target = getattr(service, method_name, None)
    if not callable(target):
        raise ValueError(f'Service "{service_name}" has no method "{method_name}"')
    return target


def service_with_schema(
    service: Any,
    *,
    name: str,
    methods: Mapping[str, Any],
    definitions: Mapping[str, Any] | None = None,
    help: str | None = None,
    logger: ErrorLogger | None = None,
    strict_response_validation: bool | None = None,
    context_resolver: ContextResolver | None = None,
) -> ServiceSet:
    """Register a service whose methods are validated against TypeDefs.

    Args:
        service: A mapping of method name to callable, or an object whose
            attributes are the methods
        name: Service name, used for routing and in log messages
        methods: Per-method declarations (methodTimeout, help, paramNames,
            requestTypeDef, responseTypeDef); camelCase or snake_case keys
        definitions: Shared TypeDefs that `ref` can point to
        help: Help text for discovery
        logger: Receives response drift reports when strict response
            validation is off. Defaults to the wrapper module's logger.
        strict_response_validation: Fail calls whose result does not match
            the response TypeDef. Defaults to the environment-based setting.
        context_resolver: Makes every method context-taking; see
            `context_service_with_schema`

    Returns:
        ServiceSet with the validated implementation table and the manifest

    Raises:
        ValueError: If the declaration is malformed or declares a method the
            service does not have
        CompileError: If any TypeDef fails to compile. Nothing is registered.
    """
    schema = parse_service_schema(
        {
            "name": name,
            "help": help,
            "definitions": dict(definitions) if definitions is not None else {},
            "methods": dict(methods),
            "strictResponseValidation": strict_response_validation,
        }
    )
    return _register(service, schema, logger, context_resolver)


def service_from_file(
    service: Any,
    path: str | Path,
    *,
    logger: ErrorLogger | None = None,
    strict_response_validation: bool | None = None,
    context_resolver: ContextResolver | None = None,
) -> ServiceSet:
    """Register a service using a YAML or JSON schema file.

    An explicit strict_response_validation overrides the file's setting.
    """
    schema = parse_service_schema(load_schema_from_file(path))
    if strict_response_validation is not None:
        schema = schema.model_copy(update={"strict_response_validation": strict_response_validation})
    return _register(service, schema, logger, context_resolver)


def _register(
    service: Any,
    schema: ServiceSchemaModel,
    error_logger: ErrorLogger | None,
    context_resolver: ContextResolver | None,
) -> ServiceSet:
    strict = schema.strict_response_validation
    if strict is None:
        strict = default_strict_response_validation()

    targets = {
        method_name: _lookup_method(service, schema.name, method_name)
        for method_name in schema.methods
    }
    compiled = compile_service_schema(schema)

    methods = {
        method_name: ValidatedMethod(
            schema.name,
            method_name,
            targets[method_name],
            compiled[method_name].request,
            compiled[method_name].response,
            strict_response_validation=strict,
            error_logger=error_logger,
            context_resolver=context_resolver,
        )
        for method_name in schema.methods
    }
    manifest = build_manifest(schema)

    logger.debug(
        f"Registered service {schema.name} with {len(methods)} methods "
        f"(strict response validation: {strict})"
    )
    return ServiceSet(ServiceImplementation(schema.name, methods), manifest)
