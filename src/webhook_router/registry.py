"""
Handler registry: event type -> ordered handlers plus terminal callbacks.

The registry is a plain object built once at startup and handed to an
EventDispatcher. It takes no locks; finish registering before dispatching.
"""

from typing import Any, Awaitable, Callable, Iterator, Union

import structlog

from .errors import HandlerNotFoundError
from .models.event import Event

logger = structlog.get_logger(__name__)

# Handlers and callbacks may be plain functions or coroutine functions.
Handler = Callable[[Event], Union[Any, Awaitable[Any]]]
SuccessCallback = Callable[[Event, list[Any]], Union[Any, Awaitable[Any]]]
FailureCallback = Callable[[Event, Exception], Union[None, Awaitable[None]]]


class HandlerRegistry:
    """
    Maps event type tags to handlers, a success callback and a failure callback.

    Registration is append-only. Registering the same function twice for one
    event type makes it run twice per dispatch.
    """

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = {}
        self._success_callbacks: dict[str, SuccessCallback] = {}
        self._failure_callbacks: dict[str, FailureCallback] = {}

    def register(self, event_type: str, *handlers: Handler) -> None:
        """Append handlers to the event type's list, creating it if needed."""
        if not handlers:
            return
        self._handlers.setdefault(event_type, []).extend(handlers)
        logger.debug(
            'registry.handlers_registered',
            event_type=event_type,
            added=len(handlers),
            total=len(self._handlers[event_type]),
        )

    def on(self, event_type: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of ``register``.

        Usage:
            @registry.on('invoice.paid')
            async def create_card(event):
                ...
        """

        def decorator(handler: Handler) -> Handler:
            self.register(event_type, handler)
            return handler

        return decorator

    def set_success_callback(self, event_type: str, callback: SuccessCallback) -> None:
        """Set the success callback for an event type (last write wins)."""
        self._success_callbacks[event_type] = callback

    def set_failure_callback(self, event_type: str, callback: FailureCallback) -> None:
        """Set the failure callback for an event type (last write wins)."""
        self._failure_callbacks[event_type] = callback

    def resolve(self, event_type: str) -> tuple[Handler, ...]:
        """
        Return the handlers for an event type in registration order.

        Raises:
            HandlerNotFoundError: If no handlers are registered for the type
        """
        handlers = self._handlers.get(event_type)
        if not handlers:
            raise HandlerNotFoundError(event_type)
        return tuple(handlers)

    def success_callback(self, event_type: str) -> SuccessCallback | None:
        return self._success_callbacks.get(event_type)

    def failure_callback(self, event_type: str) -> FailureCallback | None:
        return self._failure_callbacks.get(event_type)

    def event_types(self) -> list[str]:
        """Event types with at least one handler, in first-registration order."""
        return list(self._handlers)

    def __contains__(self, event_type: object) -> bool:
        return event_type in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)
