"""
Verified webhook event model.

An Event is built from the raw JSON body of a webhook delivery after its
signature has been checked. The raw bytes are kept alongside the decoded
fields so handlers can re-parse them however they need to.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """
    Immutable, already-verified webhook event.

    Only ``type`` and ``payload`` matter to routing; the remaining fields are
    decoded from the body for handler convenience.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description='Provider event identifier (REQUIRED)')
    type: str = Field(..., description='Event type tag used as the registry key (REQUIRED)')
    payload: bytes = Field(default=b'', description='Raw JSON body as delivered')
    data: dict[str, Any] = Field(default_factory=dict, description='Decoded `data` object')
    created: datetime | None = Field(default=None, description='Provider creation time')
    livemode: bool = Field(default=False, description='True for production deliveries')

    @classmethod
    def from_payload(cls, raw: bytes) -> 'Event':
        """
        Decode a JSON webhook body into an Event.

        Raises:
            ValueError: If the body is not a JSON object or lacks id/type
        """
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid JSON in webhook body: {e}") from e

        if not isinstance(body, dict):
            raise ValueError(
                f"Webhook body must be a JSON object, got {type(body).__name__}"
            )

        return cls.model_validate({
            'id': body.get('id'),
            'type': body.get('type'),
            'payload': raw,
            'data': body.get('data') or {},
            'created': body.get('created'),
            'livemode': body.get('livemode', False),
        })

    @property
    def object(self) -> dict[str, Any]:
        """The resource the event is about (``data.object``), or empty."""
        return self.data.get('object') or {}

    def __str__(self) -> str:
        return f"Event(id={self.id}, type={self.type})"
