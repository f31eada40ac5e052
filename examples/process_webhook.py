#!/usr/bin/env python3
"""
Example: Route a signed payment webhook to card-creation handlers.

This script demonstrates:
1. Registering handlers and terminal callbacks at startup
2. Verifying and dispatching a delivery sequentially
3. Dispatching the same delivery in parallel, with one handler failing

No credentials required; the delivery is signed locally.

Usage:
    python examples/process_webhook.py
"""

import asyncio
import json
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from webhook_router import HandlerRegistry, PayloadResponse, WebhookClient, sign_payload

SECRET = 'whsec_example'

DELIVERY = json.dumps({
    'id': 'evt_1Example',
    'object': 'event',
    'type': 'invoice.paid',
    'created': 1760700000,
    'data': {'object': {'customer': 'cus_123', 'amount_paid': 4200}},
}).encode('utf-8')


def build_registry() -> HandlerRegistry:
    registry = HandlerRegistry()

    @registry.on('invoice.paid')
    async def create_card(event):
        await asyncio.sleep(0.05)
        amount = event.object['amount_paid'] / 100
        return PayloadResponse(
            source='create_card',
            raw=json.dumps({'title': f"Invoice paid: ${amount:.2f}"}).encode('utf-8'),
        )

    @registry.on('invoice.paid')
    def label_customer(event):
        return PayloadResponse(
            source='label_customer',
            raw=json.dumps({'label': event.object['customer']}).encode('utf-8'),
        )

    def on_success(event, responses):
        for response in responses:
            print(f"  {event.type} -> {response.source}: {response.data}")

    def on_failure(event, error):
        print(f"  {event.type} failed: {error}")

    registry.set_success_callback('invoice.paid', on_success)
    registry.set_failure_callback('invoice.paid', on_failure)
    return registry


async def main():
    registry = build_registry()
    client = WebhookClient(registry, signing_secret=SECRET)
    signature = sign_payload(DELIVERY, SECRET)

    print('Sequential dispatch:')
    await client.handle(DELIVERY, signature)

    def archive_board(event):
        raise RuntimeError('board is read-only')

    registry.register('invoice.paid', archive_board)

    print('Parallel dispatch with a failing handler:')
    await client.handle(DELIVERY, signature, parallel=True)


if __name__ == '__main__':
    asyncio.run(main())
