"""Data models for the webhook router."""

from .event import Event
from .response import EventResponse, PayloadResponse

__all__ = [
    'Event',
    'EventResponse',
    'PayloadResponse',
]
