"""Unit tests for report tasks (moderator notification).

Tests:
- notify_moderators: skipped when SMTP unset, sends, retries on failure
"""

from unittest.mock import patch

import pytest
from celery.exceptions import Retry

from app.services.email_service import EmailDeliveryError
from app.tasks.report_tasks import notify_moderators

TASK_KWARGS = {
    "report_id": "report-1",
    "category": "violence",
    "priority": "critical",
    "target_type": "post",
    "target_id": "post-1",
    "score": 90.0,
}


# =============================================================================
# notify_moderators() Tests
# =============================================================================


class TestNotifyModerators:
    """Tests for the moderator notification task."""

    @pytest.mark.unit
    def test_skips_when_email_not_configured(self) -> None:
        with (
            patch("app.tasks.report_tasks.is_email_configured", return_value=False),
            patch("app.tasks.report_tasks.send_email") as mock_send,
        ):
            result = notify_moderators(**TASK_KWARGS)

        assert result == {"sent": False}
        mock_send.assert_not_called()

    @pytest.mark.unit
    def test_sends_to_moderator_inbox(self) -> None:
        with (
            patch("app.tasks.report_tasks.is_email_configured", return_value=True),
            patch("app.tasks.report_tasks.send_email") as mock_send,
            patch("app.tasks.report_tasks.get_settings") as mock_settings,
        ):
            mock_settings.return_value.moderator_email = "mods@example.com"
            result = notify_moderators(**TASK_KWARGS)

        assert result == {"sent": True}
        to_address, subject, body = mock_send.call_args[0]
        assert to_address == "mods@example.com"
        assert subject.startswith("[CRITICAL]")
        assert "report-1" in body

    @pytest.mark.unit
    def test_retries_on_delivery_failure(self) -> None:
        with (
            patch("app.tasks.report_tasks.is_email_configured", return_value=True),
            patch(
                "app.tasks.report_tasks.send_email",
                side_effect=EmailDeliveryError("connection refused"),
            ),
            patch.object(notify_moderators, "retry", side_effect=Retry("retrying")) as mock_retry,
        ):
            with pytest.raises(Retry):
                notify_moderators(**TASK_KWARGS)

        assert isinstance(mock_retry.call_args.kwargs["exc"], EmailDeliveryError)
