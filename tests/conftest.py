"""
Pytest configuration and shared fixtures.

Key fixtures:
- registry: empty HandlerRegistry per test
- dispatcher: EventDispatcher over that registry
- signing_secret: secret used to sign test deliveries
- make_body: builder for raw Stripe-style JSON bodies
- make_event: builder for verified Events

No network access or credentials required.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from webhook_router.dispatcher import EventDispatcher
from webhook_router.models.event import Event
from webhook_router.registry import HandlerRegistry


def build_body(event_type: str, event_id: str = 'evt_test_001', **data: Any) -> bytes:
    """Build a Stripe-style JSON webhook body."""
    return json.dumps({
        'id': event_id,
        'object': 'event',
        'type': event_type,
        'created': 1760700000,
        'livemode': False,
        'data': {'object': data},
    }).encode('utf-8')


@pytest.fixture
def registry() -> HandlerRegistry:
    """Isolated registry per test."""
    return HandlerRegistry()


@pytest.fixture
def dispatcher(registry) -> EventDispatcher:
    """Dispatcher over the per-test registry."""
    return EventDispatcher(registry)


@pytest.fixture
def signing_secret() -> str:
    """Signing secret for test deliveries."""
    return 'whsec_test_secret'


@pytest.fixture
def make_body() -> Callable[..., bytes]:
    """Factory for raw webhook bodies."""
    return build_body


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory for verified events."""

    def _make(event_type: str = 'invoice.paid', event_id: str = 'evt_test_001', **data: Any) -> Event:
        return Event.from_payload(build_body(event_type, event_id, **data))

    return _make
