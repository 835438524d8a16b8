"""Tests for httprpc.service.registrar module."""

import pydantic
import pytest

from httprpc.service import (
    MethodNotFoundError,
    ServiceImplementation,
    service_from_file,
    service_with_schema,
)
from httprpc.validator import VOID_SCHEMA, CompileError, ResponseValidationError, ValidationError

USER = {"properties": {"name": {"type": "string"}}}


class UserService:
    def __init__(self):
        self.saved = []

    async def save_user(self, args):
        self.saved.append(args["user"])

    async def get_user(self, args):
        return {"name": args["id"]}

    def internal(self, args):
        return "secret"


def register(service=None, **overrides):
    meta = {
        "name": "user-service",
        "definitions": {"User": USER},
        "methods": {
            "saveUser": {
                "requestTypeDef": {"properties": {"user": {"ref": "User"}}},
                "responseTypeDef": VOID_SCHEMA,
            },
        },
    }
    meta.update(overrides)
    if service is None:
        service = {"saveUser": UserService().save_user}
    return service_with_schema(service, **meta)


class TestServiceWithSchema:
    """Test registering a service from in-code metadata."""

    @pytest.mark.asyncio
    async def test_validation_error_shape(self):
        """Test the exact error a caller sees for a nested type mismatch."""
        service_set = register()

        with pytest.raises(ValidationError) as exc_info:
            await service_set.implementation["saveUser"]({"user": {"name": 1}})

        assert exc_info.value.to_dict() == {
            "message": "user.name must be string, received number (1)",
            "code": "validation",
            "type": "https://errors.loke.global/@loke/http-rpc/validation",
            "instancePath": "/user/name",
            "schemaPath": "/definitions/User/properties/name/type",
        }

    @pytest.mark.asyncio
    async def test_valid_call(self):
        service = UserService()
        service_set = register({"saveUser": service.save_user})

        result = await service_set.implementation.call("saveUser", {"user": {"name": "Ada"}})

        assert result is None
        assert service.saved == [{"name": "Ada"}]

    @pytest.mark.asyncio
    async def test_object_service(self):
        """Test that methods are looked up as attributes of plain objects."""
        service = UserService()
        service_set = register(
            service,
            methods={
                "get_user": {
                    "request_type_def": {"properties": {"id": {"type": "string"}}},
                    "response_type_def": {"ref": "User"},
                }
            },
        )

        assert await service_set.implementation["get_user"]({"id": "Ada"}) == {"name": "Ada"}

    def test_undeclared_methods_are_not_exposed(self):
        service_set = register(UserService())

        assert isinstance(service_set.implementation, ServiceImplementation)
        assert list(service_set.implementation) == ["saveUser"]
        assert "internal" not in service_set.implementation
        with pytest.raises(MethodNotFoundError, match="user-service/internal"):
            service_set.implementation["internal"]

    def test_declared_method_missing_from_service(self):
        with pytest.raises(ValueError, match='Service "user-service" has no method "saveUser"'):
            register({})

    def test_non_callable_method(self):
        with pytest.raises(ValueError, match="has no method"):
            register({"saveUser": "not a function"})

    def test_request_compile_failure(self):
        with pytest.raises(CompileError) as exc_info:
            register(definitions={})

        assert exc_info.value.message == (
            'failed to compile "saveUser" request schema: reference "User" not resolved'
        )

    def test_response_compile_failure(self):
        methods = {"saveUser": {"responseTypeDef": {"type": "text"}}}

        with pytest.raises(CompileError, match='failed to compile "saveUser" response schema'):
            register(methods=methods)

    def test_misspelled_method_key(self):
        methods = {"saveUser": {"requestTypedef": {"type": "string"}}}

        with pytest.raises(ValueError, match="Invalid schema for service 'user-service'"):
            register(methods=methods)

    def test_empty_name(self):
        with pytest.raises(ValueError, match="Invalid schema for service"):
            register(name="")

    def test_name_property(self):
        assert register().name == "user-service"


class TestManifest:
    """Test the metadata published for discovery."""

    def test_manifest(self):
        service_set = register(help="Manages users")
        meta = service_set.meta

        assert meta.service == "user-service"
        assert meta.help == "Manages users"
        assert meta.definitions == {"User": USER}
        assert meta.method_names == ["saveUser"]
        assert meta.expose[0].request_type_def == {"properties": {"user": {"ref": "User"}}}
        assert meta.expose[0].response_type_def == VOID_SCHEMA

    def test_exposed_defaults(self):
        exposed = register().meta.exposed()

        assert exposed == {
            "serviceName": "user-service",
            "multiArg": False,
            "help": "user-service service",
            "interfaces": [
                {
                    "methodName": "saveUser",
                    "paramNames": ["user"],
                    "methodTimeout": 60000,
                    "help": "saveUser method",
                }
            ],
        }

    def test_param_names(self):
        methods = {
            "saveUser": {
                "requestTypeDef": {
                    "properties": {"user": {"ref": "User"}},
                    "optionalProperties": {"notify": {"type": "boolean"}},
                },
            }
        }
        descriptor = register(methods=methods).meta.expose[0]

        assert descriptor.exposed()["paramNames"] == ["user", "notify"]

    def test_explicit_param_names_and_timeout(self):
        methods = {"saveUser": {"paramNames": ["who"], "methodTimeout": 500, "help": "Save"}}
        exposed = register(methods=methods).meta.expose[0].exposed()

        assert exposed["paramNames"] == ["who"]
        assert exposed["methodTimeout"] == 500
        assert exposed["help"] == "Save"

    def test_manifest_is_frozen(self):
        meta = register().meta

        with pytest.raises(pydantic.ValidationError):
            meta.service = "other"


class TestStrictResponseDefault:
    """Test how strict response validation is chosen."""

    @staticmethod
    def drifting():
        return register(
            {"get": lambda args: {"name": 5}},
            methods={"get": {"responseTypeDef": {"ref": "User"}}},
        )

    @pytest.mark.asyncio
    async def test_lenient_outside_production(self):
        assert await self.drifting().implementation["get"](None) == {"name": 5}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("variable", ["HTTPRPC_ENV", "ENV"])
    async def test_strict_in_production(self, monkeypatch, variable):
        monkeypatch.setenv(variable, "production")

        with pytest.raises(ResponseValidationError):
            await self.drifting().implementation["get"](None)

    @pytest.mark.asyncio
    async def test_override_flag(self, monkeypatch):
        monkeypatch.setenv("HTTPRPC_ENV", "production")
        monkeypatch.setenv("HTTPRPC_STRICT_RESPONSES", "false")

        assert await self.drifting().implementation["get"](None) == {"name": 5}

    @pytest.mark.asyncio
    async def test_explicit_setting_wins(self, monkeypatch):
        monkeypatch.setenv("HTTPRPC_ENV", "production")
        service_set = register(
            {"get": lambda args: {"name": 5}},
            methods={"get": {"responseTypeDef": {"ref": "User"}}},
            strict_response_validation=False,
        )

        assert await service_set.implementation["get"](None) == {"name": 5}


class TestServiceFromFile:
    """Test registering a service from a schema file."""

    class Greeter:
        def greet(self, args):
            return f"{args.get('greeting', 'Hello')} {args['user']['name']}"

        def forget(self, args):
            return None

    @pytest.mark.asyncio
    async def test_register_from_yaml(self, schemas_dir):
        service_set = service_from_file(self.Greeter(), schemas_dir / "greeter.yaml")

        assert service_set.name == "greeter"
        assert service_set.meta.method_names == ["greet", "forget"]
        greet = service_set.implementation["greet"]
        assert await greet({"user": {"name": "Ada"}}) == "Hello Ada"
        assert await greet({"user": {"name": "Ada"}, "greeting": "Hi"}) == "Hi Ada"

        with pytest.raises(ValidationError, match="user must have property 'name', received {}"):
            await greet({"user": {}})

    def test_exposed_from_file(self, schemas_dir):
        service_set = service_from_file(self.Greeter(), schemas_dir / "greeter.yaml")
        interfaces = service_set.meta.exposed()["interfaces"]

        assert interfaces[0] == {
            "methodName": "greet",
            "paramNames": ["user", "greeting"],
            "methodTimeout": 5000,
            "help": "Greet a user",
        }
        assert service_set.meta.exposed()["help"] == "Greets people"

    @pytest.mark.asyncio
    async def test_strict_override(self, schemas_dir):
        greeter = self.Greeter()
        greeter.forget = lambda args: "forgotten"
        service_set = service_from_file(
            greeter, schemas_dir / "greeter.yaml", strict_response_validation=True
        )

        with pytest.raises(ResponseValidationError, match="must be undefined"):
            await service_set.implementation["forget"]({"user": {"name": "Ada"}})

    def test_broken_file(self, schemas_dir):
        with pytest.raises(CompileError, match='reference "Missing" not resolved'):
            service_from_file({"lookup": lambda args: None}, schemas_dir / "broken.yaml")
