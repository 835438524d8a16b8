"""Exceptions raised by the service layer and their wire representation."""

from typing import Any


class MissingContextError(RuntimeError):
    """A context-taking method was called without an associated context."""

    def __init__(self, message: str = "missing request context"):
        super().__init__(message)


class ServiceNotFoundError(KeyError):
    """No service with this name is registered."""

    def __init__(self, service_name: str):
        super().__init__(service_name)
        self.service_name = service_name

    def __str__(self) -> str:
        return f"Unknown service: {self.service_name}"


class MethodNotFoundError(KeyError):
    """The method is not declared by the service, whether or not the
    underlying object happens to have an attribute with that name."""

    def __init__(self, service_name: str, method_name: str):
        super().__init__(method_name)
        self.service_name = service_name
        self.method_name = method_name

    def __str__(self) -> str:
        return f"Unknown method: {self.service_name}/{self.method_name}"


class RpcError(Exception):
    """Wraps any failure of a dispatched call.

    The original exception is kept untouched in `inner`; `error_body` decides
    what of it reaches the client.
    """

    def __init__(self, service_name: str, method_name: str, inner: BaseException):
        super().__init__(
            f"An error occurred while executing method {service_name}/{method_name}"
        )
        self.service_name = service_name
        self.method_name = method_name
        self.inner = inner


def _message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    return message if isinstance(message, str) else str(error)


def error_body(error: BaseException) -> dict[str, Any]:
    """JSON-serializable body describing a failed call.

    - Errors carrying a `type` are serialized in full
    - Other errors raised by a method expose only their message and, when
      present, their `code`
    - Anything that is not an RpcError exposes only its message
    """
    if not isinstance(error, RpcError):
        return {"message": _message(error)}

    inner = error.inner
    if getattr(inner, "type", None):
        to_dict = getattr(inner, "to_dict", None)
        if callable(to_dict):
            return dict(to_dict())
        body = {"message": _message(inner)}
        body.update({k: v for k, v in vars(inner).items() if not k.startswith("_")})
        return body

    body = {"message": _message(inner)}
    code = getattr(inner, "code", None)
    if code is not None:
        body["code"] = code
    return body
