"""SMTP helper for moderator notification emails."""

import logging
import smtplib
from email.message import EmailMessage

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when SMTP is not configured or the transport fails."""


def is_email_configured() -> bool:
    settings = get_settings()
    return bool(settings.email_host and settings.email_from_address and settings.moderator_email)


def send_email(to_address: str, subject: str, body: str) -> None:
    """Send a plain-text email through the configured SMTP server."""
    settings = get_settings()
    if not settings.email_host or not settings.email_from_address:
        raise EmailDeliveryError("SMTP is not fully configured")

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.email_from_address
    message["To"] = to_address
    message.set_content(body)

    username = settings.email_username.strip()

    try:
        with smtplib.SMTP(settings.email_host, settings.email_port, timeout=20) as smtp:
            if settings.email_use_tls:
                smtp.starttls()
            if username:
                smtp.login(username, settings.email_password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("SMTP delivery failed for %s: %s", to_address, exc)
        raise EmailDeliveryError(str(exc)) from exc


def build_report_notification(
    report_id: str,
    category: str,
    priority: str,
    target_type: str,
    target_id: str,
    score: float,
) -> tuple[str, str]:
    """Subject and body for a new-report alert."""
    settings = get_settings()
    subject = f"[{priority.upper()}] New {category} report on {target_type} {target_id}"
    body = "\n".join(
        [
            "A new report needs moderator attention.",
            "",
            f"Report ID: {report_id}",
            f"Category: {category}",
            f"Priority: {priority} (score {score:.1f})",
            f"Target: {target_type} {target_id}",
            "",
            f"Review it in the admin panel: {settings.admin_panel_url}/{report_id}",
        ]
    )
    return subject, body
