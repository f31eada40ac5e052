"""
Handler response capability.

Handlers may return any object exposing ``parse_data()``; the router never
looks inside a response, it only collects them for the success callback.
"""

import json
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field, PrivateAttr


@runtime_checkable
class EventResponse(Protocol):
    """Result produced by a handler for one event."""

    def parse_data(self) -> None:
        """Decode the response's raw content; raise on malformed content."""
        ...


class PayloadResponse(BaseModel):
    """
    Response carrying a raw JSON body returned by a downstream service.

    ``parse_data()`` decodes ``raw`` into ``data``.
    """

    source: str = Field(..., description='Name of the handler or service that produced it')
    raw: bytes = Field(default=b'{}', description='Raw JSON response body')

    _data: dict[str, Any] | None = PrivateAttr(default=None)

    def parse_data(self) -> None:
        try:
            decoded = json.loads(self.raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"{self.source} returned invalid JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise ValueError(
                f"{self.source} returned {type(decoded).__name__}, expected an object"
            )
        self._data = decoded

    @property
    def data(self) -> dict[str, Any]:
        """Decoded body; parsed on first access."""
        if self._data is None:
            self.parse_data()
        return self._data
