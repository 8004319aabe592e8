"""
Celery tasks for report handling.

Handles:
- Emailing moderators about new critical/high priority reports
"""

import logging

from app.core.celery_app import celery_app
from app.core.config import get_settings
from app.services.email_service import (
    EmailDeliveryError,
    build_report_notification,
    is_email_configured,
    send_email,
)

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def notify_moderators(
    self,
    report_id: str,
    category: str,
    priority: str,
    target_type: str,
    target_id: str,
    score: float,
) -> dict:
    """
    Email the moderator inbox about a newly triaged report.

    Skips quietly when SMTP is not configured. Transport failures are
    retried up to 3 times, 60 seconds apart.

    Returns:
        Dict with "sent" flag
    """
    if not is_email_configured():
        logger.info("Moderator email not configured, skipping report=%s", report_id)
        return {"sent": False}

    subject, body = build_report_notification(
        report_id=report_id,
        category=category,
        priority=priority,
        target_type=target_type,
        target_id=target_id,
        score=score,
    )

    try:
        send_email(get_settings().moderator_email, subject, body)
    except EmailDeliveryError as e:
        logger.error("Failed to notify moderators about report %s: %s", report_id, e)
        raise self.retry(exc=e)

    logger.info("Moderators notified about report=%s priority=%s", report_id, priority)
    return {"sent": True}
