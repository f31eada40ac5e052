"""
Event dispatcher: sequential and parallel handler execution.

Routes each verified Event to the handlers registered for its type, then
invokes exactly one terminal callback:

- dispatch_sequential() runs handlers in registration order and stops at the
  first failure.
- dispatch_parallel() fans out one unit per handler, waits for all of them
  (no timeout, no cancellation on first error) and aggregates every failure.

When a failure callback is registered it absorbs the error: the error is
passed to it and whatever the callback does (return or raise) becomes the
dispatch outcome. Exceptions raised by callbacks are never wrapped.
"""

import asyncio
import contextvars
import functools
import inspect
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import structlog

from .errors import (
    AggregateError,
    DispatchError,
    HandlerError,
    HandlerNotFoundError,
    IncompleteResultError,
    TaggedError,
)
from .logging import DispatchTimer, logging_context
from .models.event import Event
from .registry import Handler, HandlerRegistry

logger = structlog.get_logger(__name__)


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    """Call a plain or coroutine function and return its result."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _run_isolated(
    handler: Handler,
    event: Event,
    executor: ThreadPoolExecutor | None,
) -> Any:
    """Run one handler as its own concurrent unit.

    Coroutine handlers run on the event loop; plain handlers run on their own
    thread of ``executor`` so a blocking handler does not stall the others.
    """
    if inspect.iscoroutinefunction(handler):
        return await handler(event)
    loop = asyncio.get_running_loop()
    context = contextvars.copy_context()
    result = await loop.run_in_executor(
        executor, functools.partial(context.run, handler, event)
    )
    if inspect.isawaitable(result):
        result = await result
    return result


def _drain(queue: asyncio.Queue) -> list[Any]:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


class EventDispatcher:
    """
    Dispatches verified events using a HandlerRegistry.

    The registry is read-only from the dispatcher's point of view.
    """

    def __init__(self, registry: HandlerRegistry):
        """
        Initialize with a fully populated registry.

        Args:
            registry: Registry whose registration phase has finished
        """
        self.registry = registry

    async def dispatch(self, event: Event, parallel: bool = False) -> None:
        """Dispatch with the chosen strategy."""
        if parallel:
            await self.dispatch_parallel(event)
        else:
            await self.dispatch_sequential(event)

    async def dispatch_sequential(self, event: Event) -> None:
        """
        Run handlers one at a time in registration order.

        Flow:
        1. Resolve handlers (HandlerNotFoundError, no callback invoked)
        2. Invoke each handler; on the first failure wrap it in a HandlerError
           and hand it to the failure callback, or raise it. Later handlers
           never run.
        3. On full success pass the responses, in handler order, to the
           success callback.

        Args:
            event: Verified event to route

        Raises:
            HandlerNotFoundError: No handlers for ``event.type``
            HandlerError: A handler failed and no failure callback is set
        """
        source = 'EventDispatcher.dispatch_sequential'
        timer = DispatchTimer()

        with logging_context(event_id=event.id, event_type=event.type):
            log = logger.bind(strategy='sequential')
            log.info('dispatcher.started')

            with timer.stage('resolve'):
                handlers = self._resolve(event, log)

            responses: list[Any] = []
            with timer.stage('handlers'):
                for index, handler in enumerate(handlers):
                    try:
                        response = await _call(handler, event)
                    except Exception as exc:
                        error = HandlerError(source, index, event, exc)
                        log.error(
                            'dispatcher.handler_failed',
                            index=index,
                            error=str(exc),
                            error_type=type(exc).__name__,
                            skipped=len(handlers) - index - 1,
                        )
                        with timer.stage('callback'):
                            await self._fail(event, error, log)
                        log.info('dispatcher.complete', success=False, **timer.summary())
                        return
                    responses.append(response)

            with timer.stage('callback'):
                await self._succeed(event, responses, log)

            log.info(
                'dispatcher.complete',
                success=True,
                handler_count=len(handlers),
                **timer.summary(),
            )

    async def dispatch_parallel(self, event: Event) -> None:
        """
        Run every handler concurrently and aggregate the outcome.

        Flow:
        1. Resolve handlers (HandlerNotFoundError, no callback invoked)
        2. Start one unit per handler; each publishes its response or a
           HandlerError into a queue sized to the handler count
        3. Wait for every unit (barrier), then drain both queues
        4. Any errors -> AggregateError wrapped in DispatchError
           Missing responses -> IncompleteResultError
           Otherwise -> success callback with the responses (unordered)

        A handler that returns None without raising publishes no response.

        Args:
            event: Verified event to route

        Raises:
            HandlerNotFoundError: No handlers for ``event.type``
            DispatchError: One or more handlers failed and no failure callback is set
            IncompleteResultError: Fewer responses than handlers and no failure callback is set
        """
        source = 'EventDispatcher.dispatch_parallel'
        timer = DispatchTimer()

        with logging_context(event_id=event.id, event_type=event.type):
            log = logger.bind(strategy='parallel')
            log.info('dispatcher.started')

            with timer.stage('resolve'):
                handlers = self._resolve(event, log)

            expected = len(handlers)
            responses: asyncio.Queue = asyncio.Queue(maxsize=expected)
            errors: asyncio.Queue = asyncio.Queue(maxsize=expected)

            async def unit(index: int, handler: Handler) -> None:
                try:
                    response = await _run_isolated(handler, event, executor)
                except Exception as exc:
                    log.error(
                        'dispatcher.handler_failed',
                        index=index,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    errors.put_nowait(HandlerError(source, index, event, exc))
                    return
                if response is None:
                    log.warning('dispatcher.handler_returned_none', index=index)
                    return
                responses.put_nowait(response)

            # ------------------------------------------------------------------
            # Fan out and wait for every unit
            # ------------------------------------------------------------------
            # One thread per plain handler; no shared worker cap.
            blocking = sum(1 for handler in handlers if not inspect.iscoroutinefunction(handler))
            executor = (
                ThreadPoolExecutor(max_workers=blocking, thread_name_prefix='webhook-router')
                if blocking
                else None
            )
            try:
                with timer.stage('handlers'):
                    await asyncio.gather(
                        *(unit(index, handler) for index, handler in enumerate(handlers))
                    )
            finally:
                if executor is not None:
                    executor.shutdown(wait=False)

            failures = _drain(errors)
            collected = _drain(responses)

            # ------------------------------------------------------------------
            # Classify the outcome
            # ------------------------------------------------------------------
            with timer.stage('callback'):
                if failures:
                    error: TaggedError = DispatchError(
                        source, [event], AggregateError(failures)
                    )
                    await self._fail(event, error, log)
                elif len(collected) != expected:
                    error = IncompleteResultError(source, event, expected, len(collected))
                    log.error(
                        'dispatcher.incomplete_results',
                        expected=expected,
                        received=len(collected),
                    )
                    await self._fail(event, error, log)
                else:
                    await self._succeed(event, collected, log)

            log.info(
                'dispatcher.complete',
                success=not failures and len(collected) == expected,
                handler_count=expected,
                failed=len(failures),
                **timer.summary(),
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve(self, event: Event, log: Any) -> tuple[Handler, ...]:
        try:
            handlers = self.registry.resolve(event.type)
        except HandlerNotFoundError:
            log.warning('dispatcher.no_handlers')
            raise
        log.debug('dispatcher.resolved', handler_count=len(handlers))
        return handlers

    async def _fail(self, event: Event, error: TaggedError, log: Any) -> None:
        """Hand an error to the failure callback, or raise it if there is none."""
        callback = self.registry.failure_callback(event.type)
        if callback is None:
            raise error
        log.info('dispatcher.failure_callback', error_type=type(error).__name__)
        await _call(callback, event, error)

    async def _succeed(self, event: Event, responses: list[Any], log: Any) -> None:
        """Invoke the success callback; its return value is discarded."""
        callback = self.registry.success_callback(event.type)
        if callback is None:
            return
        log.info('dispatcher.success_callback', response_count=len(responses))
        await _call(callback, event, responses)
