"""Validated calls: request validation, invocation, response validation."""

import inspect
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

from httprpc.validator import (
    CompiledValidator,
    ResponseValidationError,
    SchemaValidationError,
    ValidationError,
    ValidationFailure,
    format_failure,
)

logger = logging.getLogger(__name__)


class ErrorLogger(Protocol):
    """Anything with an `error(message)` method, e.g. a logging.Logger."""

    def error(self, msg: str, /) -> Any: ...


ContextResolver = Callable[[Any, Any], Any]


def build_validation_error(
    error_class: type[SchemaValidationError],
    failures: list[ValidationFailure],
    value: Any,
    default_message: str,
) -> SchemaValidationError:
    """Build the caller-facing error from the first failure."""
    if not failures:
        return error_class(default_message)
    first = failures[0]
    return error_class(
        format_failure(first, value),
        instance_path=first.instance_path,
        schema_path=first.schema_path,
    )


class ValidatedMethod:
    """One declared method bound to its validators and implementation.

    Each call runs three strictly sequential phases:

    1. The argument is checked against the request validator. A failure
       raises ValidationError before the implementation runs.
    2. The implementation is called (and awaited when it returns an
       awaitable). Its exceptions propagate unchanged.
    3. The result is checked against the response validator. In strict mode
       a failure raises ResponseValidationError; otherwise it is reported
       to the error logger and the result is returned as is.

    When the method takes a context, the context is resolved before phase 1
    and passed as the implementation's first argument.
    """

    def __init__(
        self,
        service_name: str,
        method_name: str,
        implementation: Callable[..., Any],
        request_validator: CompiledValidator,
        response_validator: CompiledValidator,
        *,
        strict_response_validation: bool,
        error_logger: ErrorLogger | None = None,
        context_resolver: ContextResolver | None = None,
    ):
        self.service_name = service_name
        self.method_name = method_name
        self.request_validator = request_validator
        self.response_validator = response_validator
        self.strict_response_validation = strict_response_validation
        self._implementation = implementation
        self._error_logger: ErrorLogger = error_logger if error_logger is not None else logger
        self._context_resolver = context_resolver

    @property
    def takes_context(self) -> bool:
        return self._context_resolver is not None

    async def __call__(self, args: Any = None, *, context: Any = None) -> Any:
        """Validate, invoke and validate the result.

        Args:
            args: The raw argument, already decoded from the wire
            context: Request context for context-taking methods. When
                omitted, the context associated with `args` is used.

        Raises:
            MissingContextError: The method takes a context and none is available
            ValidationError: `args` does not match the request TypeDef
            ResponseValidationError: The result does not match the response
                TypeDef and strict response validation is on
        """
        ctx = self._context_resolver(args, context) if self._context_resolver else None

        failures = self.request_validator.validate(args)
        if failures:
            raise build_validation_error(
                ValidationError, failures, args, "request schema validation error"
            )

        if self._context_resolver is not None:
            result = self._implementation(ctx, args)
        else:
            result = self._implementation(args)
        if inspect.isawaitable(result):
            result = await result

        failures = self.response_validator.validate(result)
        if failures:
            if self.strict_response_validation:
                raise build_validation_error(
                    ResponseValidationError, failures, result, "response schema validation error"
                )
            self._error_logger.error(
                f"rpc response schema validation errors: {self.service_name}.{self.method_name} "
                f"{json.dumps([f.to_dict() for f in failures], default=str)}"
            )

        return result

    def __repr__(self) -> str:
        return f"ValidatedMethod({self.service_name}.{self.method_name})"


def wrap_method(
    service_name: str,
    method_name: str,
    implementation: Callable[..., Any],
    request_validator: CompiledValidator,
    response_validator: CompiledValidator,
    strict_response_validation: bool,
    error_logger: ErrorLogger | None = None,
) -> ValidatedMethod:
    """Bind a method's validators and implementation into one validated call."""
    return ValidatedMethod(
        service_name,
        method_name,
        implementation,
        request_validator,
        response_validator,
        strict_response_validation=strict_response_validation,
        error_logger=error_logger,
    )
