"""Priority -> due date rules.

HIGH is due tomorrow, MEDIUM in 3 days, LOW in a week and NONE in two weeks.
Anything else (including a missing priority) gets the LOW offset plus a warning.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from src.clock import Clock, utc_now
from src.workorders.models import Priority

logger = logging.getLogger(__name__)

PRIORITY_OFFSET_DAYS: dict[Priority, int] = {
    Priority.HIGH: 1,
    Priority.MEDIUM: 3,
    Priority.LOW: 7,
    Priority.NONE: 14,
}

DEFAULT_OFFSET_DAYS = PRIORITY_OFFSET_DAYS[Priority.LOW]


def format_timestamp(value: datetime) -> str:
    """Render as UTC ISO-8601 with millisecond precision, e.g. 2024-06-16T12:00:00.000Z.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def calculate_due_date(priority: Priority | str | Any | None, now: Clock = utc_now) -> str:
    """Compute the due date for a work order with the given priority.

    Args:
        priority: A Priority member or its string value. Unknown values are tolerated.
        now: Time source; inject a fixed clock in tests.

    Returns:
        The due date as a UTC ISO-8601 string. Never raises.
    """
    try:
        days = PRIORITY_OFFSET_DAYS[Priority(priority)]
    except (ValueError, TypeError):
        days = DEFAULT_OFFSET_DAYS
        logger.warning(
            'Unknown or undefined priority: "%s". Defaulting to %d days.',
            priority,
            days,
        )

    return format_timestamp(now() + timedelta(days=days))
