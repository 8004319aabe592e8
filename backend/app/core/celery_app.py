"""
Celery application configuration for the report triage service.

Handles background work that must not slow down report intake:
- Moderator email notifications for critical/high priority reports
"""

from celery import Celery

from app.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "report_triage",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.tasks.report_tasks",
    ],
)

celery_app.conf.update(
    # Task serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_track_started=True,
    task_time_limit=300,  # 5 minute hard limit
    task_soft_time_limit=240,  # 4 minute soft limit
    # Result backend
    result_expires=3600,  # Results expire after 1 hour
    # Worker
    worker_prefetch_multiplier=1,  # Fair task distribution
    worker_concurrency=4,  # Concurrent tasks per worker
)
