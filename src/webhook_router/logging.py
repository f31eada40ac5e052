"""
Structured logging configuration for the webhook router.

Uses structlog for structured, context-aware logging with:
- JSON output for production
- Pretty console output for development
- Stage timing for dispatch runs
- Event ID / event type propagation from the verified Event
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import get_settings

# Context variables for request-scoped data
_event_id: ContextVar[str | None] = ContextVar('event_id', default=None)
_event_type: ContextVar[str | None] = ContextVar('event_type', default=None)


def get_event_id() -> str | None:
    """Get the current event ID from context."""
    return _event_id.get()


def get_event_type() -> str | None:
    """Get the current event type from context."""
    return _event_type.get()


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that adds context variables to log entries."""
    event_id = get_event_id()
    event_type = get_event_type()

    if event_id:
        event_dict['event_id'] = event_id
    if event_type:
        event_dict['event_type'] = event_type

    return event_dict


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON logs (for production).
                    If False, output pretty console logs (for development).
        log_level: Override log level (defaults to settings LOG_LEVEL)
    """
    level = log_level or get_settings().LOG_LEVEL
    level_num = getattr(logging, level.upper(), logging.INFO)

    # Standard library logging config
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=level_num,
    )

    # Shared processors
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        # Production: JSON output
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Development: Pretty console output
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def logging_context(
    event_id: str | None = None,
    event_type: str | None = None,
) -> Generator[None, None, None]:
    """
    Context manager for setting logging context variables.

    Usage:
        with logging_context(event_id="evt_123", event_type="invoice.paid"):
            logger.info("Dispatching")  # Includes event_id and event_type
    """
    old_id = _event_id.get()
    old_type = _event_type.get()

    try:
        if event_id is not None:
            _event_id.set(event_id)
        if event_type is not None:
            _event_type.set(event_type)
        yield
    finally:
        _event_id.set(old_id)
        _event_type.set(old_type)


class DispatchTimer:
    """
    Timer for tracking dispatch stage durations.

    Usage:
        timer = DispatchTimer()
        with timer.stage("resolve"):
            # look up handlers
        with timer.stage("handlers"):
            # run handlers
        log.info("done", **timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time a dispatch stage, recording it even if the stage raises."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.stages[name] = (time.perf_counter() - started) * 1000

    def record(self, name: str, duration_ms: float) -> None:
        """Manually record a stage duration."""
        self.stages[name] = duration_ms

    @property
    def total_ms(self) -> float:
        """Total elapsed time since timer creation in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get timing summary as a dictionary."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Initialize logging on module import (development mode by default)
# Production deployments should call configure_logging(json_output=True)
configure_logging(json_output=get_settings().LOG_JSON)
