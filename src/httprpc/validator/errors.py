"""Exceptions raised by the httprpc validator."""

from typing import Any

VALIDATION_ERROR_TYPE = "https://errors.loke.global/@loke/http-rpc/validation"
RESPONSE_VALIDATION_ERROR_TYPE = "https://errors.loke.global/@loke/http-rpc/response-validation"


class CompileError(ValueError):
    """A TypeDef is malformed or references an undefined definition."""

    def __init__(self, message: str, schema_path: str = ""):
        super().__init__(message)
        self.message = message
        self.schema_path = schema_path


class SchemaValidationError(ValueError):
    """Base class for values rejected by a compiled validator.

    The shape returned by `to_dict` is what clients receive on the wire.
    """

    code: str = "validation"
    type: str = VALIDATION_ERROR_TYPE

    def __init__(
        self,
        message: str,
        instance_path: str | None = None,
        schema_path: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.instance_path = instance_path
        self.schema_path = schema_path

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "type": self.type,
        }
        if self.instance_path is not None:
            body["instancePath"] = self.instance_path
        if self.schema_path is not None:
            body["schemaPath"] = self.schema_path
        return body


class ValidationError(SchemaValidationError):
    """The caller's request does not match the method's request TypeDef."""

    code = "validation"
    type = VALIDATION_ERROR_TYPE


class ResponseValidationError(SchemaValidationError):
    """The method's result does not match its response TypeDef."""

    code = "response-validation"
    type = RESPONSE_VALIDATION_ERROR_TYPE
