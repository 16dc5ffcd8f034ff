"""Admin routes for on-demand expiration checks."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from beamauth_api.auth.permissions import PermissionOracle
from beamauth_api.celery_client import EXPIRATION_CHECK_TASK, get_celery_app
from beamauth_api.db.session import get_db
from beamauth_api.expiration.scanner import ExpirationScanner
from beamauth_api.notifications.dispatcher import NotificationDispatcher
from beamauth_api.routes.deps import get_dispatcher, get_remote_user
from beamauth_api.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/expiration-check")
def run_expiration_check(
    include_upcoming: bool = False,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    username: str = Depends(get_remote_user),
):
    """Queue an expiration check, running it in-process if the worker is unreachable."""
    PermissionOracle(db).check_admin(username)
    logger.info("Expiration check requested", extra={"actor": username, "include_upcoming": include_upcoming})

    try:
        result = get_celery_app().send_task(EXPIRATION_CHECK_TASK, kwargs={"include_upcoming": include_upcoming})
        return {"status": "queued", "task_id": result.id}
    except Exception as e:
        # Fallback to sync if worker unavailable
        logger.warning(f"Worker unavailable, checking expirations synchronously: {e}")

    scanner = ExpirationScanner.build(db, get_settings(), dispatcher)
    report = scanner.perform_expiration_check(include_upcoming)
    return {"status": "completed", **report.as_dict()}
