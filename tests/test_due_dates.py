"""Tests for priority -> due date rules.

Tests:
- Offsets per priority against a fixed clock (HIGH/MEDIUM/LOW/NONE)
- Unknown / missing priority falls back to 7 days with a warning
- Output format (UTC, millisecond precision, Z suffix)
- Default clock honours freezegun
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

import pytest
from freezegun import freeze_time
from hypothesis import given, settings
from hypothesis import strategies as st

from src.workorders.due_dates import (
    PRIORITY_OFFSET_DAYS,
    calculate_due_date,
    format_timestamp,
)
from src.workorders.models import Priority

from tests.conftest import FIXED_NOW

ISO_MILLIS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestKnownPriorities:
    """Each known priority maps to a fixed day offset."""

    @pytest.mark.parametrize(
        ("priority", "expected"),
        [
            ("HIGH", "2024-06-16T12:00:00.000Z"),
            ("MEDIUM", "2024-06-18T12:00:00.000Z"),
            ("LOW", "2024-06-22T12:00:00.000Z"),
            ("NONE", "2024-06-29T12:00:00.000Z"),
        ],
    )
    def test_offsets(self, fixed_clock, priority, expected):
        assert calculate_due_date(priority, now=fixed_clock) == expected

    def test_accepts_enum_members(self, fixed_clock):
        assert calculate_due_date(Priority.MEDIUM, now=fixed_clock) == "2024-06-18T12:00:00.000Z"

    def test_known_priority_does_not_warn(self, fixed_clock, caplog):
        with caplog.at_level(logging.WARNING, logger="src.workorders.due_dates"):
            calculate_due_date("HIGH", now=fixed_clock)
        assert caplog.records == []


class TestUnknownPriority:
    """Anything outside the four tags gets the LOW offset and a warning."""

    @pytest.mark.parametrize("priority", ["UNKNOWN", "high", "", None, 3])
    def test_defaults_to_seven_days(self, fixed_clock, priority):
        assert calculate_due_date(priority, now=fixed_clock) == "2024-06-22T12:00:00.000Z"

    def test_warning_names_the_value(self, fixed_clock, caplog):
        with caplog.at_level(logging.WARNING, logger="src.workorders.due_dates"):
            calculate_due_date("URGENT", now=fixed_clock)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Unknown or undefined priority" in warnings[0].getMessage()
        assert "URGENT" in warnings[0].getMessage()

    def test_missing_priority_warns(self, fixed_clock, caplog):
        with caplog.at_level(logging.WARNING, logger="src.workorders.due_dates"):
            calculate_due_date(None, now=fixed_clock)
        assert "None" in caplog.records[0].getMessage()


class TestFormat:
    """Output is always UTC ISO-8601 with milliseconds."""

    def test_iso_format(self, fixed_clock):
        assert ISO_MILLIS.match(calculate_due_date("HIGH", now=fixed_clock))

    def test_non_utc_clock_normalized(self):
        plus_two = timezone(timedelta(hours=2))
        local_now = datetime(2024, 6, 15, 14, 0, 0, tzinfo=plus_two)
        assert calculate_due_date("HIGH", now=lambda: local_now) == "2024-06-16T12:00:00.000Z"

    def test_naive_clock_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 6, 15, 12, 0, 0)) == "2024-06-15T12:00:00.000Z"

    def test_truncates_to_milliseconds(self):
        value = datetime(2024, 6, 15, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-06-15T12:00:00.123Z"

    @freeze_time("2024-06-15T12:00:00Z")
    def test_default_clock_is_wall_clock(self):
        """Without an injected clock, the current time is used (frozen here)."""
        assert calculate_due_date("NONE") == "2024-06-29T12:00:00.000Z"


class TestHypothesisProperties:
    @given(
        st.sampled_from(list(Priority)),
        st.datetimes(
            min_value=datetime(2000, 1, 1),
            max_value=datetime(2100, 1, 1),
            timezones=st.just(timezone.utc),
        ),
    )
    @settings(max_examples=50)
    def test_offset_matches_table(self, priority: Priority, now: datetime) -> None:
        """Due date is always now + the table offset, to the millisecond."""
        due = calculate_due_date(priority, now=lambda: now)
        expected = now + timedelta(days=PRIORITY_OFFSET_DAYS[priority])
        assert due == format_timestamp(expected)
        assert ISO_MILLIS.match(due)

    @given(st.text().filter(lambda s: s not in {p.value for p in Priority}))
    @settings(max_examples=50)
    def test_any_other_string_uses_low_offset(self, priority: str) -> None:
        assert calculate_due_date(priority, now=lambda: FIXED_NOW) == "2024-06-22T12:00:00.000Z"
