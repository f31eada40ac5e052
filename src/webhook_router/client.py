"""
WebhookClient: verify a raw delivery, then route it.

Thin convenience wrapper tying verify() to an EventDispatcher. Transport
stays with the caller: hand it the raw body and signature header from
whatever web framework receives the request.
"""

import structlog

from .config import get_settings
from .dispatcher import EventDispatcher
from .errors import VerificationError
from .models.event import Event
from .registry import HandlerRegistry
from .verify import verify

logger = structlog.get_logger(__name__)


class WebhookClient:
    """Verifies deliveries with a signing secret and dispatches them."""

    def __init__(
        self,
        registry: HandlerRegistry | None = None,
        signing_secret: str | None = None,
        tolerance: int | None = None,
    ):
        """
        Args:
            registry: Registry to dispatch against (a new empty one if omitted)
            signing_secret: Defaults to WEBHOOK_SIGNING_SECRET
            tolerance: Defaults to WEBHOOK_TOLERANCE_SECONDS
        """
        settings = get_settings()
        self.registry = registry if registry is not None else HandlerRegistry()
        self.dispatcher = EventDispatcher(self.registry)
        self.signing_secret = (
            signing_secret if signing_secret is not None else settings.WEBHOOK_SIGNING_SECRET
        )
        self.tolerance = tolerance if tolerance is not None else settings.WEBHOOK_TOLERANCE_SECONDS

    def construct_event(self, payload: bytes | str, signature: str) -> Event:
        """
        Verify a delivery and return its Event.

        Raises:
            VerificationError: If no signing secret is configured or
                verification fails
        """
        if not self.signing_secret:
            raise VerificationError(
                'WebhookClient.construct_event',
                [signature],
                'no signing secret configured',
            )
        return verify(payload, signature, self.signing_secret, tolerance=self.tolerance)

    async def handle(
        self,
        payload: bytes | str,
        signature: str,
        parallel: bool = False,
    ) -> Event:
        """
        Verify a delivery and dispatch it.

        Returns:
            The dispatched Event
        """
        event = self.construct_event(payload, signature)
        logger.info('client.event_verified', event_id=event.id, event_type=event.type)
        await self.dispatcher.dispatch(event, parallel=parallel)
        return event
