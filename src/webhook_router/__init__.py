"""
Webhook Router

Routes verified webhook events to registered handlers, sequentially or
concurrently, and reports each event through a single success or failure
callback.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .client import WebhookClient
from .dispatcher import EventDispatcher
from .registry import HandlerRegistry
from .models import Event, EventResponse, PayloadResponse
from .verify import sign_payload, verify
from .logging import (
    configure_logging,
    logging_context,
    DispatchTimer,
)
from .errors import (
    WebhookRouterError,
    TaggedError,
    VerificationError,
    HandlerNotFoundError,
    HandlerError,
    DispatchError,
    IncompleteResultError,
    CallbackError,
    AggregateError,
)

__all__ = [
    # Version
    '__version__',
    # Routing
    'WebhookClient',
    'EventDispatcher',
    'HandlerRegistry',
    # Models
    'Event',
    'EventResponse',
    'PayloadResponse',
    # Verification
    'sign_payload',
    'verify',
    # Logging
    'configure_logging',
    'logging_context',
    'DispatchTimer',
    # Errors
    'WebhookRouterError',
    'TaggedError',
    'VerificationError',
    'HandlerNotFoundError',
    'HandlerError',
    'DispatchError',
    'IncompleteResultError',
    'CallbackError',
    'AggregateError',
]
