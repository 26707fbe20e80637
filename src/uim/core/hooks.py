"""Hook registry — ordered lifecycle event handlers keyed by event name.

Plugins subscribe handlers to named events (``install``, ``parse``,
``before.build``, ``build``, ``reverse.build``).  The driver emits each event
once with a shared context; handlers run strictly in registration order and
each is awaited before the next one starts.

Usage::

    registry = HookRegistry()
    registry.register("build", plugin.build, owner="alexa")
    await registry.emit("build", context)
    registry.unregister("alexa")   # drop every pending handler of "alexa"
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from uim.utils.telemetry import ATTR_EVENT, ATTR_PLUGIN_ID, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

EVENT_INSTALL = "install"
EVENT_PARSE = "parse"
EVENT_BEFORE_BUILD = "before.build"
EVENT_BUILD = "build"
EVENT_REVERSE_BUILD = "reverse.build"

Handler = Callable[[Any], "Awaitable[None] | None"]
ErrorCallback = Callable[[Exception, str], None]


class _Registration:
    __slots__ = ("handler", "owner")

    def __init__(self, handler: Handler, owner: str) -> None:
        self.handler = handler
        self.owner = owner


class HookRegistry:
    """Maintains an ordered handler list per event and dispatches events."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[_Registration]] = {}

    def register(self, event: str, handler: Handler, *, owner: str = "") -> None:
        """Append *handler* to the handler list of *event*.

        Registering the same handler twice runs it twice.
        """
        self._handlers.setdefault(event, []).append(_Registration(handler, owner))

    def unregister(self, owner: str) -> int:
        """Remove every handler registered by *owner*, across all events.

        Handlers of an event currently being emitted that have not run yet
        are skipped.  Returns the number of removed handlers.
        """
        removed = 0
        for event, registrations in self._handlers.items():
            kept = [r for r in registrations if r.owner != owner]
            removed += len(registrations) - len(kept)
            self._handlers[event] = kept
        if removed:
            logger.debug("Unregistered %d handler(s) of %s", removed, owner)
        return removed

    def handlers(self, event: str) -> list[Handler]:
        """Return the handlers currently registered for *event*, in order."""
        return [r.handler for r in self._handlers.get(event, [])]

    def owners(self) -> list[str]:
        """Return every owner with at least one registered handler."""
        seen: dict[str, None] = {}
        for registrations in self._handlers.values():
            for r in registrations:
                seen.setdefault(r.owner, None)
        return list(seen)

    async def emit(
        self,
        event: str,
        context: Any,
        *,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Invoke every handler of *event* sequentially with *context*.

        If a handler raises, the remaining handlers are not run and the
        error propagates — unless *on_error* is given.  *on_error* receives
        the error and the owner of the failing handler; if it returns
        normally, dispatch continues with the next still-registered handler.
        """
        with _tracer.start_as_current_span("uim.hooks.emit") as span:
            span.set_attribute(ATTR_EVENT, event)

            for registration in list(self._handlers.get(event, [])):
                # Skip handlers whose owner was unregistered mid-dispatch
                if registration not in self._handlers.get(event, []):
                    continue

                logger.debug("Dispatching %s to %s", event, registration.owner or "<anonymous>")
                try:
                    result = registration.handler(context)
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    span.set_attribute(ATTR_PLUGIN_ID, registration.owner)
                    if on_error is None:
                        raise
                    on_error(exc, registration.owner)


class PluginHook(ABC):
    """Base class for a plugin's set of lifecycle handlers.

    Subclasses map events to bound methods in :meth:`install`; calling
    :meth:`uninstall` removes the whole set from the registry, including
    handlers for events that have not fired yet.
    """

    def __init__(self, owner: str) -> None:
        self.owner = owner
        self._registry: HookRegistry | None = None

    @abstractmethod
    def install(self) -> dict[str, list[Handler]]:
        """Return the handlers of this hook keyed by event name."""
        ...

    def attach(self, registry: HookRegistry) -> None:
        """Register every handler from :meth:`install` on *registry*."""
        self._registry = registry
        for event, handlers in self.install().items():
            for handler in handlers:
                registry.register(event, handler, owner=self.owner)

    def uninstall(self) -> None:
        """Remove this hook's handlers from the registry it is attached to."""
        if self._registry is not None:
            self._registry.unregister(self.owner)
