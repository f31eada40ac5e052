"""
Custom exceptions for the webhook router.

Provides:
- Typed exception hierarchy for each dispatch failure mode
- Tagged errors that remember which operation failed and with what arguments
- AggregateError for collecting independent handler failures
"""

from typing import Any, Iterator, Sequence


class WebhookRouterError(Exception):
    """Base exception for all webhook router errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Tagged Errors
# =============================================================================


class TaggedError(WebhookRouterError):
    """
    An error tagged with the operation that produced it.

    Renders as ``"<source> failed for <args>: <cause>"``. ``cause`` may be
    an exception or a plain description.
    """

    def __init__(
        self,
        source: str,
        call_args: Sequence[Any],
        cause: BaseException | str,
        context: dict[str, Any] | None = None,
    ):
        self.source = source
        self.call_args = tuple(call_args)
        self.cause = cause
        rendered = ', '.join(str(arg) for arg in self.call_args)
        super().__init__(f"{source} failed for {rendered}: {cause}", context=context)
        if isinstance(cause, BaseException):
            self.__cause__ = cause


class VerificationError(TaggedError):
    """Webhook signature, header, or body could not be verified."""

    pass


class HandlerNotFoundError(TaggedError):
    """No handlers are registered for an event type."""

    def __init__(self, event_type: str):
        super().__init__(
            'HandlerRegistry.resolve',
            [event_type],
            f"no handlers registered for event type {event_type!r}",
        )
        self.event_type = event_type


class HandlerError(TaggedError):
    """A single handler raised while processing an event."""

    def __init__(self, source: str, index: int, event: Any, cause: BaseException):
        super().__init__(f"{source}.handlers[{index}]", [event], cause)
        self.index = index
        self.event = event


class DispatchError(TaggedError):
    """Dispatch-level wrapper around the failures of a parallel run."""

    pass


class IncompleteResultError(TaggedError):
    """A parallel run produced fewer responses than it had handlers."""

    def __init__(self, source: str, event: Any, expected: int, received: int):
        super().__init__(
            source,
            [event],
            f"not all handlers returned a usable response "
            f"(expected {expected}, received {received})",
        )
        self.expected = expected
        self.received = received


class CallbackError(WebhookRouterError):
    """
    Raised by a success or failure callback.

    The dispatcher never wraps what a callback raises, so this reaches the
    dispatch caller as-is.
    """

    pass


# =============================================================================
# Aggregation
# =============================================================================


class AggregateError(WebhookRouterError):
    """
    One or more tagged errors collected from independent handlers.

    Element order follows collection order, which is non-deterministic when
    the errors come from a parallel dispatch.
    """

    separator = ' - '

    def __init__(self, errors: Sequence[TaggedError]):
        if not errors:
            raise ValueError('AggregateError requires at least one error')
        self.errors: list[TaggedError] = list(errors)
        super().__init__(self.separator.join(str(err) for err in self.errors))

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[TaggedError]:
        return iter(self.errors)

    def __getitem__(self, index: int) -> TaggedError:
        return self.errors[index]
