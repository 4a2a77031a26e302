"""Celery application and the daily curation schedule.

Start a worker with ``celery -A taskcurator.worker worker`` and the
scheduler with ``celery -A taskcurator.worker beat``.
"""

from celery import Celery
from celery.schedules import crontab

from taskcurator.config import get_settings

settings = get_settings()

celery_app = Celery(
    "taskcurator",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["taskcurator.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # A single user's run covers all of their projects
    task_soft_time_limit=540,
    task_time_limit=600,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "schedule-daily-curation": {
            "task": "taskcurator.tasks.schedule_daily_curation",
            "schedule": crontab(
                hour=settings.curation_schedule_hour,
                minute=settings.curation_schedule_minute,
            ),
        },
    },
)
