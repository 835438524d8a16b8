"""Pydantic models for service registration and the service manifest.

`ServiceSchemaModel` is what a service declares at registration;
`ServiceManifest` is what the registrar publishes for discovery.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from httprpc.config import DEFAULT_METHOD_TIMEOUT_MS
from httprpc.models import RpcBaseModel
from httprpc.validator import Definitions, TypeDef


class MethodSchemaModel(RpcBaseModel):
    """Declared contract of one exposed method.

    Attributes:
        method_timeout: Advisory timeout in milliseconds. Never enforced here.
        help: Help text for discovery.
        param_names: Parameter names for discovery. Derived from the request
            TypeDef's properties when not given.
        request_type_def: TypeDef of the argument. None accepts anything.
        response_type_def: TypeDef of the result, or VOID_SCHEMA. None
            accepts anything.
    """

    method_timeout: int | None = Field(default=None, alias="methodTimeout", ge=0)
    help: str | None = None
    param_names: list[str] | None = Field(default=None, alias="paramNames")
    request_type_def: TypeDef | None = Field(default=None, alias="requestTypeDef")
    response_type_def: TypeDef | None = Field(default=None, alias="responseTypeDef")

    def resolved_param_names(self) -> list[str]:
        if self.param_names is not None:
            return list(self.param_names)
        type_def = self.request_type_def or {}
        return [
            *(type_def.get("properties") or {}),
            *(type_def.get("optionalProperties") or {}),
        ]


class ServiceSchemaModel(RpcBaseModel):
    """Everything a service declares at registration, except its logger.

    Example:
        >>> schema = ServiceSchemaModel.model_validate({
        ...     "name": "email-service",
        ...     "methods": {
        ...         "send": {
        ...             "requestTypeDef": {"properties": {"to": {"type": "string"}}},
        ...             "responseTypeDef": {"metadata": {"void": True}},
        ...         }
        ...     },
        ... })
    """

    name: str = Field(min_length=1)
    help: str | None = None
    definitions: Definitions = Field(default_factory=dict)
    methods: dict[str, MethodSchemaModel]
    strict_response_validation: bool | None = Field(
        default=None, alias="strictResponseValidation"
    )

    @field_validator("definitions", mode="before")
    @classmethod
    def default_definitions(cls, value: Any) -> Any:
        return {} if value is None else value


class MethodDescriptor(MethodSchemaModel):
    """A method as published in the service manifest."""

    method_name: str = Field(alias="methodName")

    def exposed(self) -> dict[str, Any]:
        """Discovery view with defaults filled in."""
        return {
            "methodName": self.method_name,
            "paramNames": self.resolved_param_names(),
            "methodTimeout": (
                self.method_timeout
                if self.method_timeout is not None
                else DEFAULT_METHOD_TIMEOUT_MS
            ),
            "help": self.help or f"{self.method_name} method",
        }


class ServiceManifest(RpcBaseModel):
    """Read-only metadata of one registered service.

    Attributes:
        service: Display name, also the routing key.
        help: Help text.
        definitions: Shared definitions pool.
        expose: Declared methods in declaration order.
    """

    service: str
    help: str | None = None
    definitions: Definitions = Field(default_factory=dict)
    expose: tuple[MethodDescriptor, ...] = ()

    @property
    def method_names(self) -> list[str]:
        return [m.method_name for m in self.expose]

    def has_method(self, method_name: str) -> bool:
        return any(m.method_name == method_name for m in self.expose)

    def method(self, method_name: str) -> MethodDescriptor | None:
        for descriptor in self.expose:
            if descriptor.method_name == method_name:
                return descriptor
        return None

    def exposed(self) -> dict[str, Any]:
        """Discovery view served by routing layers."""
        return {
            "serviceName": self.service,
            "multiArg": False,
            "help": self.help or f"{self.service} service",
            "interfaces": [m.exposed() for m in self.expose],
        }
