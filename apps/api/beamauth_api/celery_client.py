"""Shared Celery client the API uses to enqueue worker tasks.

Configured to match the worker (serializer, timezone, broker). Tasks are
sent by name so the API never imports worker code.
"""

import logging
from typing import Optional

from celery import Celery

from beamauth_api.settings import get_settings

logger = logging.getLogger(__name__)

EXPIRATION_CHECK_TASK = "beamauth_worker.tasks.perform_expiration_check"
DOWNGRADE_NOTIFICATION_TASK = "beamauth_worker.tasks.notify_verification_downgraded"

_celery_app: Optional[Celery] = None


def get_celery_app() -> Celery:
    """
    Get or create singleton Celery app instance.

    Configured to match worker expectations:
    - JSON serializer
    - UTC timezone
    - Redis broker + backend
    """
    global _celery_app

    if _celery_app is None:
        settings = get_settings()

        _celery_app = Celery("beamauth_api")
        _celery_app.conf.update(
            broker_url=settings.redis_url,
            result_backend=settings.redis_url,
            task_serializer="json",
            accept_content=["json"],
            result_serializer="json",
            timezone="UTC",
            enable_utc=True,
        )

        logger.info("Initialized Celery client for beamauth_api")

    return _celery_app
