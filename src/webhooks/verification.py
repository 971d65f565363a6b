"""Webhook signature verification: constant-time HMAC plus a replay window.

MaintainX sends: x-maintainx-webhook-body-signature header with format:
t=<unix-seconds>,v1=<hex HMAC-SHA256 of "<t>.<raw body>">

Security contract:
- Digest comparison uses hmac.compare_digest() (constant-time, no timing attacks)
- Any failure returns False, never raises; the caller answers 401
- Requests older than the tolerance window are rejected to prevent replay
- Future timestamps are not rejected (only staleness is checked)
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Mapping

from src.clock import Clock, utc_now
from src.config import Settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-maintainx-webhook-body-signature"

DEFAULT_TOLERANCE_MINUTES = 5


def parse_signature_header(signature_header: str) -> tuple[str, str] | None:
    """Split a signature header into its (timestamp, digest) components.

    Pairs are comma-separated key=value; unknown keys are ignored and the last
    occurrence of a key wins.

    Returns:
        (timestamp, digest) as sent, or None if either component is missing
    """
    parts: dict[str, str] = {}
    for item in signature_header.split(","):
        kv = item.strip().split("=", 1)
        if len(kv) == 2:
            key, value = kv
            parts[key.strip()] = value.strip()

    timestamp = parts.get("t")
    digest = parts.get("v1")
    if not timestamp or not digest:
        return None
    return timestamp, digest


def compute_signature(timestamp: str, raw_body: bytes, secret: str) -> str:
    """Lower-case hex HMAC-SHA256 over the signed string "<timestamp>.<body>"."""
    signed_payload = f"{timestamp}.".encode("utf-8") + raw_body
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def _parse_timestamp(value: str) -> int | None:
    """Unix seconds as a non-negative int, or None if not plain ASCII digits."""
    if not (value.isascii() and value.isdigit()):
        return None
    try:
        return int(value)
    except ValueError:
        # Longer than the interpreter's int conversion limit
        return None


def verify_signature(
    signature_header: str | None,
    raw_body: bytes | None,
    secret: str,
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
    *,
    now: Clock = utc_now,
) -> bool:
    """Verify a webhook signature and its freshness.

    Args:
        signature_header: Value of the signature header (None if absent)
        raw_body: Raw request body bytes, exactly as received
        secret: Shared webhook secret
        tolerance_minutes: Maximum age of the signed timestamp
        now: Time source for the replay check

    Returns:
        True only if the digest matches and the timestamp is fresh
    """
    if not signature_header:
        logger.warning("Webhook signature header missing, rejecting")
        return False
    if raw_body is None:
        logger.warning("Webhook raw body missing, rejecting")
        return False

    parsed = parse_signature_header(signature_header)
    if parsed is None:
        logger.warning("Malformed webhook signature header, rejecting")
        return False
    timestamp_str, provided = parsed

    timestamp = _parse_timestamp(timestamp_str)
    if timestamp is None:
        logger.warning("Malformed webhook signature timestamp: %.32r, rejecting", timestamp_str)
        return False

    expected = compute_signature(timestamp_str, raw_body, secret)
    # Compare as bytes: compare_digest raises on non-ASCII str input
    digest_valid = hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
    if not digest_valid:
        logger.warning("Webhook signature mismatch, rejecting")

    # Integer milliseconds: an arbitrarily large timestamp must not overflow a float
    now_ms = int(now().timestamp() * 1000)
    fresh = now_ms - timestamp * 1000 < tolerance_minutes * 60 * 1000
    if not fresh:
        logger.warning(
            "Webhook timestamp too old: %s (tolerance %s min), rejecting",
            timestamp_str[:32],
            tolerance_minutes,
        )

    return digest_valid and fresh


def verify_request(
    headers: Mapping[str, str],
    raw_body: bytes | None,
    settings: Settings,
    *,
    now: Clock = utc_now,
) -> bool:
    """Verify an inbound request against the configured secret and tolerance.

    Args:
        headers: Request headers (lowercase keys, or a case-insensitive mapping)
        raw_body: Raw request body
        settings: Service settings carrying the shared secret

    Returns:
        True if the signature is valid and fresh
    """
    return verify_signature(
        headers.get(SIGNATURE_HEADER),
        raw_body,
        settings.webhook_secret,
        settings.signature_tolerance_minutes,
        now=now,
    )
