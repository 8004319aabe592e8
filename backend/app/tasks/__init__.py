"""Background tasks for report handling."""

from app.tasks.report_tasks import notify_moderators

__all__ = ["notify_moderators"]
