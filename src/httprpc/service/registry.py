"""Lookup and dispatch over registered services.

This is the transport-independent half of a routing layer: it finds the
validated method for a (service, method) pair, calls it, and serves the
discovery metadata. Mapping paths, HTTP verbs and status codes onto these
calls is left to the transport.
"""

import logging
from collections.abc import Iterable
from typing import Any

from .errors import MethodNotFoundError, RpcError, ServiceNotFoundError
from .registrar import ServiceSet

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Registered services by name.

    Example:
        >>> registry = ServiceRegistry([email_service, user_service])
        >>> registry.describe()["services"][0]["serviceName"]
        'email-service'
        >>> await registry.call("email-service", "send", {"to": "a@b.c"})
    """

    def __init__(self, services: Iterable[ServiceSet] = ()):
        self._services: dict[str, ServiceSet] = {}
        for service_set in services:
            self.add(service_set)

    def add(self, service_set: ServiceSet) -> None:
        if service_set.name in self._services:
            raise ValueError(f"Service already registered: {service_set.name}")
        self._services[service_set.name] = service_set

    def get(self, service_name: str) -> ServiceSet:
        try:
            return self._services[service_name]
        except KeyError:
            raise ServiceNotFoundError(service_name) from None

    def __contains__(self, service_name: object) -> bool:
        return service_name in self._services

    @property
    def service_names(self) -> list[str]:
        return list(self._services)

    def has_method(self, service_name: str, method_name: str) -> bool:
        service_set = self._services.get(service_name)
        return service_set is not None and service_set.meta.has_method(method_name)

    def describe(self) -> dict[str, Any]:
        """Discovery metadata of every service."""
        return {"services": [s.meta.exposed() for s in self._services.values()]}

    def describe_service(self, service_name: str) -> dict[str, Any]:
        return self.get(service_name).meta.exposed()

    def describe_method(self, service_name: str, method_name: str) -> dict[str, Any]:
        descriptor = self.get(service_name).meta.method(method_name)
        if descriptor is None:
            raise MethodNotFoundError(service_name, method_name)
        return descriptor.exposed()

    async def call(
        self,
        service_name: str,
        method_name: str,
        args: Any = None,
        *,
        context: Any = None,
    ) -> Any:
        """Dispatch one call.

        Raises:
            ServiceNotFoundError: If the service is not registered
            MethodNotFoundError: If the service does not declare the method
            RpcError: If the call fails for any other reason, wrapping the
                original exception
        """
        method = self.get(service_name).implementation[method_name]
        try:
            return await method(args, context=context)
        except Exception as e:
            logger.error(f"Error executing {service_name}/{method_name}: {e}", exc_info=True)
            raise RpcError(service_name, method_name, e) from e
