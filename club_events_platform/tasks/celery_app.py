"""
Celery application configuration for background tasks.
"""

from celery import Celery
from ..config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "club_events_platform",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "club_events_platform.tasks.registration_tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Periodic tasks configuration
celery_app.conf.beat_schedule = {
    "reconcile-event-counts": {
        "task": "reconcile_event_counts_task",
        "schedule": settings.reconciliation_interval_seconds,
    },
}
