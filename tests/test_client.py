"""
Tests for WebhookClient: verification followed by dispatch.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from webhook_router.client import WebhookClient
from webhook_router.config import get_settings
from webhook_router.errors import HandlerError, HandlerNotFoundError, VerificationError
from webhook_router.models.response import PayloadResponse
from webhook_router.verify import sign_payload


def _ok(event):
    return PayloadResponse(source='ok', raw=b'{"card_id": "c_1"}')


@pytest.fixture
def client(registry, signing_secret) -> WebhookClient:
    return WebhookClient(registry, signing_secret=signing_secret)


class TestConstructEvent:
    def test_verified_event(self, client, signing_secret, make_body):
        body = make_body('invoice.paid', event_id='evt_client')

        event = client.construct_event(body, sign_payload(body, signing_secret))

        assert event.id == 'evt_client'

    def test_bad_signature(self, client, make_body):
        body = make_body('invoice.paid')

        with pytest.raises(VerificationError):
            client.construct_event(body, sign_payload(body, 'whsec_wrong'))

    def test_no_secret_configured(self, registry, make_body):
        client = WebhookClient(registry, signing_secret='')
        body = make_body('invoice.paid')

        with pytest.raises(VerificationError) as exc_info:
            client.construct_event(body, sign_payload(body, 'anything'))

        assert exc_info.value.source == 'WebhookClient.construct_event'

    def test_defaults_from_settings(self):
        env = {
            'WEBHOOK_SIGNING_SECRET': 'whsec_from_env',
            'WEBHOOK_TOLERANCE_SECONDS': '60',
        }
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, env, clear=False):
                client = WebhookClient()
        finally:
            get_settings.cache_clear()

        assert client.signing_secret == 'whsec_from_env'
        assert client.tolerance == 60
        assert len(client.registry) == 0


class TestHandle:
    @pytest.mark.asyncio
    @pytest.mark.parametrize('parallel', [False, True])
    async def test_handle_dispatches(self, client, registry, signing_secret, make_body, parallel):
        on_success = MagicMock()
        registry.register('invoice.paid', _ok, _ok)
        registry.set_success_callback('invoice.paid', on_success)
        body = make_body('invoice.paid')

        event = await client.handle(body, sign_payload(body, signing_secret), parallel=parallel)

        assert event.type == 'invoice.paid'
        responses = on_success.call_args[0][1]
        assert [r.data for r in responses] == [{'card_id': 'c_1'}, {'card_id': 'c_1'}]

    @pytest.mark.asyncio
    async def test_unverified_delivery_never_dispatched(self, client, registry, make_body):
        handler = MagicMock()
        registry.register('invoice.paid', handler)
        body = make_body('invoice.paid')

        with pytest.raises(VerificationError):
            await client.handle(body, sign_payload(body, 'whsec_wrong'))

        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_ascii_signature_rejected(self, client, registry, make_body):
        handler = MagicMock()
        registry.register('invoice.paid', handler)

        with pytest.raises(VerificationError):
            await client.handle(make_body('invoice.paid'), 't=1700000000,v1=café')

        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_dispatch_errors_surface(self, client, registry, signing_secret, make_body):
        registry.register('invoice.paid', MagicMock(side_effect=RuntimeError('trello down')))
        body = make_body('invoice.paid')

        with pytest.raises(HandlerError):
            await client.handle(body, sign_payload(body, signing_secret))

        other = make_body('invoice.voided')
        with pytest.raises(HandlerNotFoundError):
            await client.handle(other, sign_payload(other, signing_secret))
