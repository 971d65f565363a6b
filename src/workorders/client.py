"""MaintainX work-order REST client.

Only the two calls the due-date automation needs:
- GET   /workorders/{id}  -> {"workOrder": {...}}
- PATCH /workorders/{id}  <- {"dueDate": "<ISO-8601>"}

Non-2xx responses raise httpx.HTTPStatusError (via raise_for_status) so the
caller can classify them; transport failures surface as httpx.HTTPError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.config import Settings
from src.workorders.models import WorkOrderSnapshot

logger = logging.getLogger(__name__)

RATE_LIMIT_REMAINING_HEADER = "x-rate-limit-remaining"
RATE_LIMIT_RESET_HEADER = "x-rate-limit-reset"


class WorkOrderPayloadError(ValueError):
    """GET /workorders/{id} returned a body without a usable work order."""


class WorkOrderClient:
    """Async client for the work-order API, configured from Settings."""

    def __init__(self, settings: Settings, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.api_key
        self._org_id = settings.org_id
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.http_timeout,
        )

    def auth_headers(self) -> dict[str, str]:
        """Bearer auth, plus x-organization-id for multi-organization tokens."""
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._org_id:
            headers["x-organization-id"] = self._org_id
        return headers

    async def get_work_order(self, work_order_id: int) -> WorkOrderSnapshot:
        logger.debug("Fetching work order %s", work_order_id)
        response = await self._client.get(
            f"/workorders/{work_order_id}",
            headers=self.auth_headers(),
        )
        response.raise_for_status()

        try:
            body: Any = response.json()
        except ValueError as e:
            raise WorkOrderPayloadError(f"Work order {work_order_id}: response is not JSON") from e

        work_order = body.get("workOrder") if isinstance(body, dict) else None
        if not isinstance(work_order, dict):
            raise WorkOrderPayloadError(f"Work order {work_order_id}: response has no workOrder object")

        return WorkOrderSnapshot.model_validate(work_order)

    async def update_due_date(self, work_order_id: int, due_date: str) -> httpx.Response:
        """PATCH the work order's dueDate. Returns the 2xx response."""
        headers = self.auth_headers()
        headers["Content-Type"] = "application/json"

        response = await self._client.patch(
            f"/workorders/{work_order_id}",
            json={"dueDate": due_date},
            headers=headers,
        )
        response.raise_for_status()
        return response

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WorkOrderClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
