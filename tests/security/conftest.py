"""Security test fixtures.

Responsibilities:
- Creates the FastAPI `app` fixture with explicit settings (no environment reads)
- Replaces the event processor with a mock (no outbound MaintainX calls)
- Wraps in a TestClient (attacker perspective: no credentials beyond the body signature)
- Provides sign_body for valid signature headers

The global tests/conftest.py provides settings and the fixed clock.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.serve import create_app

from tests.conftest import WEBHOOK_SECRET


@pytest.fixture
def processor():
    """Stand-in EventProcessor; process_event is an AsyncMock."""
    mock = MagicMock()
    mock.process_event = AsyncMock()
    return mock


@pytest.fixture
def app(settings, processor):
    return create_app(settings, processor=processor)


@pytest.fixture
def client(app):
    """Unauthenticated TestClient."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def sign_body():
    """Factory for x-maintainx-webhook-body-signature values.

    Signs with the test secret at the current wall-clock time, or at
    `age_seconds` in the past.
    """

    def _sign(body: bytes, age_seconds: int = 0, secret: str = WEBHOOK_SECRET) -> str:
        ts = int(time.time()) - age_seconds
        sig = hmac.new(secret.encode(), f"{ts}.".encode() + body, hashlib.sha256).hexdigest()
        return f"t={ts},v1={sig}"

    return _sign
