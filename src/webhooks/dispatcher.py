"""Webhook event dispatcher: parses payloads and runs the processor detached.

The HTTP handler has answered MaintainX before processing starts, so each
event runs as its own asyncio task. Outcomes are observable in the logs only.

Contract:
- Invalid payloads are logged and dropped (parse_event returns None)
- Exceptions never escape a dispatched task to the event loop or the caller
- A strong reference is held per task until it finishes (the loop keeps weak ones)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from src.webhooks.processor import EventProcessor
from src.workorders.models import WorkOrderEvent

logger = logging.getLogger(__name__)

_background_tasks: set[asyncio.Task[None]] = set()


def parse_event(payload: Any) -> WorkOrderEvent | None:
    """Parse a decoded webhook payload into a WorkOrderEvent.

    Args:
        payload: Parsed JSON body of the webhook

    Returns:
        WorkOrderEvent ready for dispatch, or None if the payload is invalid
    """
    if not isinstance(payload, dict):
        logger.warning("Webhook payload is not a JSON object (%s), skipping", type(payload).__name__)
        return None

    try:
        return WorkOrderEvent.model_validate(payload)
    except ValidationError as e:
        logger.warning("Invalid work-order webhook payload, skipping: %d error(s)", e.error_count())
        logger.debug("Payload validation errors: %s", e)
        return None


def _on_task_done(task: asyncio.Task[None]) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Work-order processing task failed: %s", task.get_name(), exc_info=exc)


def dispatch_event(processor: EventProcessor, event: WorkOrderEvent) -> asyncio.Task[None]:
    """Schedule processing of an event without waiting for it.

    Must be called from within a running event loop. The returned task is for
    tests and shutdown draining; callers are not expected to await it.
    """
    task = asyncio.get_running_loop().create_task(
        processor.process_event(event),
        name=f"workorder-{event.work_order_id}",
    )
    _background_tasks.add(task)
    task.add_done_callback(_on_task_done)

    logger.info("Dispatched work-order event: WO %s", event.work_order_id)
    return task


def pending_tasks() -> set[asyncio.Task[None]]:
    """Snapshot of dispatched tasks that have not finished yet."""
    return set(_background_tasks)


async def drain(timeout: float | None = None) -> None:
    """Wait for in-flight processing to finish (used on shutdown)."""
    tasks = pending_tasks()
    if not tasks:
        return
    logger.info("Waiting for %d in-flight work-order task(s)", len(tasks))
    _, still_pending = await asyncio.wait(tasks, timeout=timeout)
    for task in still_pending:
        task.cancel()
    if still_pending:
        logger.warning("Cancelled %d work-order task(s) still running at shutdown", len(still_pending))
