"""Celery tasks for scheduled expiration checks."""

import logging
from typing import Optional

from celery import Task
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from beamauth_worker.celery_app import celery_app
from beamauth_worker.db import get_db

logger = logging.getLogger(__name__)


class DatabaseTask(Task):
    """Task with database session."""

    _db: Optional[Session] = None

    @property
    def db(self) -> Session:
        """Get database session."""
        if self._db is None:
            self._db = next(get_db())
        return self._db

    def after_return(self, *args, **kwargs):
        """Close database session after task."""
        if self._db:
            self._db.close()
            self._db = None


# Serializable conflicts and dropped connections surface as OperationalError
@celery_app.task(
    base=DatabaseTask,
    bind=True,
    max_retries=3,
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
)
def perform_expiration_check(self, include_upcoming: bool = False):
    """Revoke expired permissions and notify recipients."""
    from beamauth_api.expiration.scanner import ExpirationScanner
    from beamauth_api.routes.deps import get_dispatcher
    from beamauth_api.settings import get_settings

    log_extra = {
        "task": "perform_expiration_check",
        "include_upcoming": include_upcoming,
    }

    try:
        scanner = ExpirationScanner.build(self.db, get_settings(), get_dispatcher())
        report = scanner.perform_expiration_check(include_upcoming)
    except Exception as e:
        logger.error(f"Expiration check failed: {e}", extra=log_extra, exc_info=True)
        raise

    logger.info("Expiration check task finished", extra=log_extra)
    return report.as_dict()


@celery_app.task
def notify_verification_downgraded(notices: list[dict], author: str):
    """Send the logbook entry and email for verifications downgraded by a user edit."""
    from beamauth_api.notifications.notices import VerificationNotice
    from beamauth_api.routes.deps import get_dispatcher

    downgrades = [VerificationNotice.from_dict(notice) for notice in notices]
    entry_ids = get_dispatcher().notify_verification_downgraded(downgrades, author)

    logger.info(
        "Downgrade notification task finished",
        extra={"task": "notify_verification_downgraded", "author": author, "entry_ids": entry_ids},
    )
    return entry_ids
