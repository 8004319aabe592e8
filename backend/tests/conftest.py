"""Shared pytest fixtures for test suite."""

import os

# Required secrets must exist before app modules build Settings at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("ADMIN_SECRET_KEY", "test-admin-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timezone  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi import Request  # noqa: E402

# =============================================================================
# Mock Request Fixtures
# =============================================================================


@pytest.fixture
def mock_request():
    """Create a mock FastAPI Request object."""
    request = MagicMock(spec=Request)
    request.state = MagicMock()
    request.headers = {}
    request.client.host = "203.0.113.7"
    return request


# =============================================================================
# Mock Supabase Client
# =============================================================================


@pytest.fixture
def mock_supabase():
    """Create a mock Supabase client for database operations.

    Every query builder method returns the same mock, so a chained call
    like table().select().eq().order().limit().execute() ends at
    mock.execute.
    """
    mock = MagicMock()
    for method in (
        "table",
        "select",
        "eq",
        "neq",
        "in_",
        "gte",
        "order",
        "limit",
        "range",
        "single",
        "insert",
        "update",
    ):
        getattr(mock, method).return_value = mock
    mock.execute.return_value = MagicMock(data=None, count=None)
    return mock


# =============================================================================
# Cache isolation
# =============================================================================


@pytest.fixture(autouse=True)
def fake_cache_client(monkeypatch):
    """Replace the sync Redis cache client with an always-miss mock."""
    import app.core.cache as cache_module

    client = MagicMock()
    client.get.return_value = None
    client.scan.return_value = (0, [])
    monkeypatch.setattr(cache_module, "_sync_redis", client)
    return client


# =============================================================================
# Time helpers
# =============================================================================


@pytest.fixture
def now() -> datetime:
    """A fixed reference instant for time-dependent scoring."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)