"""Celery application configuration"""

from celery import Celery
from tablemind.config import settings

# Create Celery app
celery_app = Celery(
    "tablemind",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "tablemind.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "sweep-no-shows": {
            "task": "sweep_no_shows",
            "schedule": settings.no_show_sweep_interval_seconds,
        },
        "purge-waitlist": {
            "task": "purge_waitlist",
            "schedule": 86400.0,  # Daily
        },
    },
)
