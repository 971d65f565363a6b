"""Work-order data models as they arrive in webhook payloads and API responses.

Wire fields are camelCase; attributes are snake_case. Both models are frozen:
an event is parsed once at the boundary and never mutated afterwards.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Priority(str, Enum):
    """Work-order urgency tags recognised by the due-date rules."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"  # Explicitly set to "no priority", distinct from unset


class WorkOrderSnapshot(BaseModel):
    """Point-in-time business fields of a work order.

    Fields are not type-checked: ``priority`` is handed to the due-date rules
    as sent (unrecognised values, including non-strings, warn and fall back),
    and everything else is opaque pass-through data.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    priority: Any = None
    title: Any = None
    description: Any = None
    due_date: Any = Field(default=None, alias="dueDate")
    asset_id: Any = Field(default=None, alias="assetId")
    location_id: Any = Field(default=None, alias="locationId")


class WorkOrderEvent(BaseModel):
    """A work-order webhook notification (new or changed work order)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    work_order_id: int = Field(
        validation_alias=AliasChoices("workOrderId", "work_order_id"),
    )
    organization_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("orgId", "organizationId", "organization_id"),
    )
    occurred_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("occurredAt", "occurred_at"),
    )
    # Only some event variants embed the work order; others need a fetch
    snapshot: WorkOrderSnapshot | None = Field(
        default=None,
        validation_alias=AliasChoices("newWorkOrder", "workOrder", "snapshot"),
    )
