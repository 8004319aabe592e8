"""Unit tests for the public report intake router.

Tests:
- POST / - submit_report: acknowledgement, forwarded client metadata
- Domain errors map to {error, code} bodies
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.models.report import (
    DuplicateReportError,
    PersistenceError,
    ReportValidationError,
    SubmitReportResponse,
)
from app.models.triage import Priority

PREFIX = "/api/v1/reports"

VALID_BODY = {
    "target_type": "post",
    "target_id": "post-1",
    "category": "harassment",
    "reporter_id": "user-1",
    "description": "Repeated insults in the thread",
}


@pytest.fixture
def mock_report_service():
    """Create a mock ReportIntakeService."""
    svc = MagicMock()
    svc.submit_report = AsyncMock(
        return_value=SubmitReportResponse(
            report_id="report-1",
            message="Report received.",
            estimated_time="within 1 hour",
            priority=Priority.HIGH,
        )
    )
    return svc


@pytest.fixture
def client(mock_report_service):
    """Create test client with a mocked intake service."""
    from app.main import app
    from app.routers.reports import get_report_service

    app.dependency_overrides[get_report_service] = lambda: mock_report_service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


# =============================================================================
# POST / - submit_report
# =============================================================================


class TestSubmitReport:
    """Tests for POST /api/v1/reports/."""

    @pytest.mark.unit
    def test_returns_acknowledgement(self, client) -> None:
        resp = client.post(f"{PREFIX}/", json=VALID_BODY)

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["report_id"] == "report-1"
        assert data["priority"] == "high"
        assert data["estimated_time"] == "within 1 hour"

    @pytest.mark.unit
    def test_forwards_body_and_client_metadata(self, client, mock_report_service) -> None:
        client.post(
            f"{PREFIX}/",
            json=VALID_BODY,
            headers={"X-Forwarded-For": "198.51.100.4, 10.0.0.2", "User-Agent": "pytest-agent"},
        )

        args, kwargs = mock_report_service.submit_report.call_args
        assert args[0].target_id == "post-1"
        assert args[0].category == "harassment"
        assert kwargs["ip_address"] == "198.51.100.4"
        assert kwargs["user_agent"] == "pytest-agent"

    @pytest.mark.unit
    def test_missing_fields_reach_service_validation(self, client, mock_report_service) -> None:
        mock_report_service.submit_report.side_effect = ReportValidationError(
            "Missing required fields: target_type, target_id"
        )

        resp = client.post(f"{PREFIX}/", json={"category": "spam"})

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"
        assert "target_type" in resp.json()["error"]

    @pytest.mark.unit
    def test_duplicate_is_400(self, client, mock_report_service) -> None:
        mock_report_service.submit_report.side_effect = DuplicateReportError(
            "You have already reported this content within the last 24 hours"
        )

        resp = client.post(f"{PREFIX}/", json=VALID_BODY)

        assert resp.status_code == 400
        assert resp.json()["code"] == "DUPLICATE_REPORT"

    @pytest.mark.unit
    def test_storage_failure_is_503(self, client, mock_report_service) -> None:
        mock_report_service.submit_report.side_effect = PersistenceError("insert failed")

        resp = client.post(f"{PREFIX}/", json=VALID_BODY)

        assert resp.status_code == 503
        assert resp.json()["code"] == "PERSISTENCE_ERROR"

    @pytest.mark.unit
    def test_overlong_description_is_422(self, client, mock_report_service) -> None:
        body = {**VALID_BODY, "description": "x" * 5000}

        resp = client.post(f"{PREFIX}/", json=body)

        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"
        mock_report_service.submit_report.assert_not_called()

    @pytest.mark.unit
    def test_response_carries_request_id(self, client) -> None:
        resp = client.post(f"{PREFIX}/", json=VALID_BODY, headers={"X-Request-ID": "req-42"})

        assert resp.headers["X-Request-ID"] == "req-42"
