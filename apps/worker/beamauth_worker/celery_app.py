"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from beamauth_worker.settings import get_settings

settings = get_settings()

celery_app = Celery(
    "beamauth_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
)

celery_app.conf.beat_schedule = {
    "expiration-check-hourly": {
        "task": "beamauth_worker.tasks.perform_expiration_check",
        "schedule": crontab(minute=settings.expiration_check_minute),
        "kwargs": {"include_upcoming": False},
    },
    "expiration-check-daily-upcoming": {
        "task": "beamauth_worker.tasks.perform_expiration_check",
        "schedule": crontab(hour=settings.upcoming_check_hour, minute=settings.upcoming_check_minute),
        "kwargs": {"include_upcoming": True},
    },
}

# Import tasks to register them with Celery
# This must be done after celery_app is created
from beamauth_worker import tasks  # noqa: F401, E402
