"""Webhook HTTP handler: FastAPI route for inbound MaintainX work-order webhooks.

The handler:
1. Reads raw body (needed for HMAC verification)
2. Verifies signature + timestamp freshness
3. Returns 200 immediately (MaintainX retries slow or failed deliveries)
4. Parses and dispatches the event for detached processing

Security contract:
- Return 401 only for signature failures, with no detail
- Never return processing errors to the caller (processing happens after the response)
- Log all webhook activity for audit trail
"""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from src.webhooks.dispatcher import dispatch_event, parse_event
from src.webhooks.processor import EventProcessor
from src.webhooks.verification import verify_request

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/maintainx-webhook"


def _log_webhook(work_order_id: object, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info("WEBHOOK_AUDIT wo=%s status=%s", work_order_id, status)


async def handle_webhook(request: Request) -> PlainTextResponse:
    """Verify an inbound webhook and hand it off for async processing.

    Returns 401 on signature failure, otherwise 200.
    """
    settings = request.app.state.settings
    processor: EventProcessor = request.app.state.processor

    body = await request.body()

    if not verify_request(request.headers, body, settings):
        _log_webhook("unknown", "signature_failed")
        logger.error("Webhook signature verification failed or timestamp is old. Denying request.")
        return PlainTextResponse("Unauthorized", status_code=401)

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None

    event = parse_event(payload)
    if event is None:
        # Authentic but unusable; a retry from MaintainX would not help
        _log_webhook("unknown", "invalid_payload")
        return PlainTextResponse("Webhook received, processing asynchronously.", status_code=200)

    # Detached: the 200 goes out without waiting for the update call
    dispatch_event(processor, event)
    _log_webhook(event.work_order_id, "dispatched")
    return PlainTextResponse("Webhook received, processing asynchronously.", status_code=200)


def register_webhook_routes(app: FastAPI) -> None:
    """Register the webhook endpoint on the FastAPI app.

    Expects app.state.settings and app.state.processor to be set (see src.serve).
    """
    app.add_api_route(WEBHOOK_PATH, handle_webhook, methods=["POST"])

    logger.info("Webhook route registered: %s", WEBHOOK_PATH)
