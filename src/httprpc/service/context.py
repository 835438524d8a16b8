"""Request contexts for context-taking services.

A context-taking method has the shape `method(context, args)`. Only `args`
is described by the request TypeDef, so the context has to travel next to
the argument rather than inside it. Routing layers can do that two ways:

- Pass it explicitly: `await method(args, context=ctx)`
- Associate it with the argument object before dispatch, for call sites
  that can only pass the argument:

    >>> with request_contexts.bound(args, ctx):
    ...     await method(args)

Associations are keyed by object identity, never by value equality, and
last for one call: resolving a context removes it from the table.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from functools import partial
from typing import Any

from .errors import MissingContextError
from .registrar import ServiceSet, service_with_schema
from .wrapper import ContextResolver


class RequestContexts:
    """Identity-keyed table of argument objects and their contexts.

    JSON-decoded arguments are plain dicts and lists, which cannot be weakly
    referenced, so the table holds the argument itself next to its context.
    This keeps the object alive, and its id unique, until a call consumes
    the association or it is released.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Any, Any]] = {}

    def associate(self, args: Any, context: Any) -> None:
        self._entries[id(args)] = (args, context)

    def get(self, args: Any) -> Any:
        entry = self._entries.get(id(args))
        if entry is None or entry[0] is not args:
            return None
        return entry[1]

    def take(self, args: Any) -> Any:
        """Return the context associated with `args` and drop the association."""
        context = self.get(args)
        if context is not None:
            del self._entries[id(args)]
        return context

    def release(self, args: Any) -> None:
        entry = self._entries.get(id(args))
        if entry is not None and entry[0] is args:
            del self._entries[id(args)]

    @contextmanager
    def bound(self, args: Any, context: Any) -> Iterator[Any]:
        """Associate a context with `args` for the duration of a block."""
        self.associate(args, context)
        try:
            yield args
        finally:
            self.release(args)

    def __contains__(self, args: Any) -> bool:
        return self.get(args) is not None

    def __len__(self) -> int:
        return len(self._entries)


# Shared by routing layers that do not bring their own table
request_contexts = RequestContexts()


def resolve_context(
    args: Any,
    context: Any = None,
    *,
    contexts: RequestContexts | None = None,
) -> Any:
    """Return the explicit context, or the one associated with `args`.

    An association is consumed by the call that resolves it.

    Raises:
        MissingContextError: If neither is available
    """
    table = contexts if contexts is not None else request_contexts
    found = table.take(args)
    if context is not None:
        return context
    if found is None:
        raise MissingContextError()
    return found


def context_resolver(contexts: RequestContexts | None = None) -> ContextResolver:
    """Resolver bound to a specific table, for ValidatedMethod."""
    return partial(resolve_context, contexts=contexts)


def context_service_with_schema(
    service: Any,
    *,
    contexts: RequestContexts | None = None,
    **service_meta: Any,
) -> ServiceSet:
    """Register a service whose methods take `(context, args)`.

    Only `args` is validated against the request TypeDef. The context is
    resolved before validation, from the explicit `context=` keyword of the
    call or from `contexts` (the shared table by default); a call with
    neither fails with MissingContextError and never reaches validation.

    Accepts the same keyword arguments as `service_with_schema`.
    """
    return service_with_schema(
        service, context_resolver=context_resolver(contexts), **service_meta
    )
