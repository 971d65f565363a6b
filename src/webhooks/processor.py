"""Work-order event processor: priority -> due date -> PATCH back to MaintainX.

Per event:
1. Resolve work-order details (embedded snapshot, else GET /workorders/{id})
2. Skip if no priority is set (no default due date for priority-less orders)
3. Compute the due date from the priority
4. PATCH /workorders/{id} with {"dueDate": ...}
5. Log the success, or classify and log the failure (rate limited / failed)

Every step ends in a log line, never a return value: the HTTP layer has
already answered the webhook by the time this runs. Rate-limit responses are
surfaced in the logs only; nothing here retries.
"""

from __future__ import annotations

import logging
from enum import Enum

import httpx

from src.clock import Clock, utc_now
from src.workorders.client import (
    RATE_LIMIT_REMAINING_HEADER,
    RATE_LIMIT_RESET_HEADER,
    WorkOrderClient,
    WorkOrderPayloadError,
)
from src.workorders.due_dates import calculate_due_date
from src.workorders.models import WorkOrderEvent, WorkOrderSnapshot

logger = logging.getLogger(__name__)

# Seconds to report when a 429 carries no x-rate-limit-reset header
DEFAULT_RATE_LIMIT_RESET_SECONDS = 10


class UpdateOutcome(str, Enum):
    """Classification of a failed due-date update attempt."""

    RATE_LIMITED = "rate_limited"  # 429, needs an external retry
    FAILED = "failed"              # Any other status or a transport error


def classify_update_error(error: Exception) -> UpdateOutcome:
    """Map an update exception to an outcome."""
    if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429:
        return UpdateOutcome.RATE_LIMITED
    return UpdateOutcome.FAILED


def _error_detail(error: Exception) -> str:
    """Prefer the remote response body; fall back to the exception message."""
    if isinstance(error, httpx.HTTPStatusError) and error.response.text:
        return error.response.text
    return str(error) or type(error).__name__


def _header_or_na(response: httpx.Response, name: str) -> str:
    return response.headers.get(name) or "N/A"


class EventProcessor:
    """Applies the due-date automation to one work-order event at a time.

    Holds no per-event state; one instance serves every in-flight event.
    """

    def __init__(self, client: WorkOrderClient, *, clock: Clock = utc_now) -> None:
        self._client = client
        self._clock = clock

    async def process(self, event: WorkOrderEvent) -> None:
        """Run the automation for a single event. Always returns None."""
        work_order_id = event.work_order_id

        snapshot = await self._resolve_snapshot(event)
        if snapshot is None:
            return

        priority = snapshot.priority
        if not priority:
            logger.info(
                "Work Order %s has no priority set. Skipping due date automation.",
                work_order_id,
            )
            return

        due_date = calculate_due_date(priority, now=self._clock)
        logger.info(
            "Calculated new due date for WO %s (Priority: %s): %s",
            work_order_id,
            priority,
            due_date,
        )

        try:
            response = await self._client.update_due_date(work_order_id, due_date)
        except httpx.HTTPError as e:
            self._log_update_failure(work_order_id, e)
            return

        self._log_update_success(work_order_id, response)

    async def process_event(self, event: WorkOrderEvent) -> None:
        """Error boundary around process() for fire-and-forget dispatch."""
        try:
            await self.process(event)
        except Exception:
            logger.exception(
                "Unhandled error while processing event for Work Order %s",
                event.work_order_id,
            )

    async def _resolve_snapshot(self, event: WorkOrderEvent) -> WorkOrderSnapshot | None:
        """Use the embedded work order, or fetch it when the event carries none."""
        if event.snapshot is not None:
            return event.snapshot

        work_order_id = event.work_order_id
        logger.info(
            "Work Order event for WO %s has no embedded work order. Fetching details.",
            work_order_id,
        )
        try:
            return await self._client.get_work_order(work_order_id)
        except httpx.HTTPStatusError as e:
            logger.error(
                "Failed to fetch Work Order %s from MaintainX (HTTP %d): %s",
                work_order_id,
                e.response.status_code,
                _error_detail(e),
            )
        except (httpx.HTTPError, WorkOrderPayloadError) as e:
            logger.error(
                "Failed to fetch Work Order %s from MaintainX: %s",
                work_order_id,
                _error_detail(e),
            )
        return None

    def _log_update_success(self, work_order_id: int, response: httpx.Response) -> None:
        logger.info(
            "Successfully updated Work Order %s. Status: %d",
            work_order_id,
            response.status_code,
        )
        logger.info(
            "Rate Limit Remaining: %s",
            _header_or_na(response, RATE_LIMIT_REMAINING_HEADER),
        )
        logger.info(
            "Rate Limit Reset: %s seconds",
            _header_or_na(response, RATE_LIMIT_RESET_HEADER),
        )

    def _log_update_failure(self, work_order_id: int, error: httpx.HTTPError) -> None:
        if classify_update_error(error) is UpdateOutcome.RATE_LIMITED:
            # Only an HTTPStatusError classifies as rate limited
            retry_after = (
                error.response.headers.get(RATE_LIMIT_RESET_HEADER)
                or DEFAULT_RATE_LIMIT_RESET_SECONDS
            )
            logger.warning(
                "Rate limited updating Work Order %s. Retrying after %s seconds. "
                "(Not retried here; left to an external retry mechanism)",
                work_order_id,
                retry_after,
            )
            return

        logger.error(
            "Failed to update Work Order %s in MaintainX: %s",
            work_order_id,
            _error_detail(error),
        )
