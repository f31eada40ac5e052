"""
Webhook signature verification.

Deliveries carry a header of the form ``t=<unix>,v1=<hex>[,v1=<hex>...]``.
The v1 value is the hex HMAC-SHA256 of ``"<t>.<raw body>"`` keyed with the
endpoint's signing secret. Several v1 entries may be present while a secret
is being rolled; any one matching is enough.
"""

import hashlib
import hmac
import string
import time

import structlog

from .errors import VerificationError
from .models.event import Event

logger = structlog.get_logger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300
SIGNATURE_SCHEME = 'v1'

_HEX_DIGITS = frozenset(string.hexdigits)


def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    """Hex HMAC-SHA256 of ``"<timestamp>.<payload>"``."""
    signed = f"{timestamp}.".encode('utf-8') + payload
    return hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()


def sign_payload(payload: bytes | str, secret: str, timestamp: int | None = None) -> str:
    """Build a signature header for ``payload`` (used by senders and tests)."""
    if isinstance(payload, str):
        payload = payload.encode('utf-8')
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},{SIGNATURE_SCHEME}={compute_signature(payload, secret, timestamp)}"


def _parse_header(header: str) -> tuple[int, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []
    for item in header.split(','):
        key, sep, value = item.strip().partition('=')
        if not sep:
            continue
        if key == 't':
            try:
                timestamp = int(value)
            except ValueError as e:
                raise ValueError(f"Invalid timestamp in signature header: {value!r}") from e
        elif key == SIGNATURE_SCHEME:
            if not value or not set(value) <= _HEX_DIGITS:
                raise ValueError(f"Signature is not a hex digest: {value!r}")
            signatures.append(value)

    if timestamp is None:
        raise ValueError('Signature header has no timestamp')
    if not signatures:
        raise ValueError(f"Signature header has no {SIGNATURE_SCHEME} signatures")
    return timestamp, signatures


def verify(
    payload: bytes | str,
    signature: str,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> Event:
    """
    Verify a webhook delivery and decode it into an Event.

    Args:
        payload: Raw request body, exactly as received
        signature: Value of the signature header
        secret: Endpoint signing secret
        tolerance: Maximum age of the signature timestamp in seconds (0 disables)

    Returns:
        The verified Event

    Raises:
        VerificationError: Malformed header, signature mismatch, stale
            timestamp, or an undecodable body
    """
    if isinstance(payload, str):
        payload = payload.encode('utf-8')
    source = 'verify'

    try:
        timestamp, candidates = _parse_header(signature)
    except ValueError as e:
        raise VerificationError(source, [signature], e) from e

    expected = compute_signature(payload, secret, timestamp)
    if not any(hmac.compare_digest(expected, candidate) for candidate in candidates):
        logger.warning('verify.signature_mismatch', timestamp=timestamp)
        raise VerificationError(
            source,
            [signature],
            'no signatures found matching the expected signature for payload',
        )

    age = int(time.time()) - timestamp
    if tolerance and age > tolerance:
        logger.warning('verify.timestamp_expired', age_seconds=age, tolerance=tolerance)
        raise VerificationError(
            source,
            [signature],
            f"timestamp outside the tolerance zone ({age}s > {tolerance}s)",
            context={'age_seconds': age},
        )

    try:
        event = Event.from_payload(payload)
    except ValueError as e:
        raise VerificationError(source, [signature], e) from e

    logger.debug('verify.verified', event_id=event.id, event_type=event.type)
    return event
