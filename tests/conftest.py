"""Shared fixtures for the due-date automation test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.config import Settings

# 2024-06-15 is a Saturday; all due-date expectations are relative to this
FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

WEBHOOK_SECRET = "test_secret_123"


@pytest.fixture()
def fixed_clock():
    """Clock pinned to FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture()
def settings() -> Settings:
    """Explicit settings; never read from the process environment."""
    return Settings(
        webhook_secret=WEBHOOK_SECRET,
        api_key="test_api_key",
        org_id="test_org_id",
        base_url="https://api.testmaintainx.com/v1",
        _env_file=None,
    )
