"""Credited control verification routes."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from beamauth_api.celery_client import DOWNGRADE_NOTIFICATION_TASK, get_celery_app
from beamauth_api.db.session import get_db
from beamauth_api.notifications.dispatcher import NotificationDispatcher
from beamauth_api.notifications.notices import verification_notices
from beamauth_api.routes.deps import get_dispatcher, get_remote_user
from beamauth_api.settings import get_settings
from beamauth_api.verification.service import VerificationRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verifications", tags=["verifications"])


class VerificationResponse(BaseModel):
    """Verification response."""

    id: int
    credited_control_id: int
    beam_destination_id: int
    verification_id: int
    verification_date: Optional[datetime] = None
    verified_by_id: Optional[int] = None
    expiration_date: Optional[datetime] = None
    comments: Optional[str] = None
    modified_by_id: int
    modified_date: datetime

    class Config:
        from_attributes = True


class ToggleRequest(BaseModel):
    """Toggle a (control, destination) verification on or off."""

    control_id: int
    destination_id: int


class EditRequest(BaseModel):
    """Apply one verification status to several verifications."""

    verification_ids: Optional[list[Optional[int]]] = None
    verification_id: Optional[int] = None
    verification_date: Optional[datetime] = None
    verified_by: Optional[str] = None
    expiration_date: Optional[datetime] = None
    comments: Optional[str] = None


def get_registry(db: Session = Depends(get_db)) -> VerificationRegistry:
    settings = get_settings()
    return VerificationRegistry(
        db,
        system_username=settings.system_username,
        upcoming_days=settings.upcoming_verification_days,
    )


@router.get("", response_model=list[VerificationResponse])
def list_verifications(
    destination_id: int,
    registry: VerificationRegistry = Depends(get_registry),
):
    """List verifications for a beam destination in control order."""
    return registry.find_by_destination(destination_id)


@router.post("/toggle")
def toggle_verification(
    request: ToggleRequest,
    registry: VerificationRegistry = Depends(get_registry),
    username: str = Depends(get_remote_user),
):
    """Create or remove the verification of a control at a destination."""
    verification = registry.toggle(request.control_id, request.destination_id, username)
    return {
        "created": verification is not None,
        "verification": VerificationResponse.model_validate(verification) if verification else None,
    }


@router.put("")
def edit_verifications(
    request: EditRequest,
    registry: VerificationRegistry = Depends(get_registry),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    username: str = Depends(get_remote_user),
):
    """Edit verifications; downgrades revoke beam permission and notify."""
    downgrades = registry.edit(
        request.verification_ids,
        request.verification_id,
        request.verification_date,
        request.verified_by,
        request.expiration_date,
        request.comments,
        username,
    )

    response = {
        "downgraded": [v.id for v in downgrades],
        "notification": None,
        "logbook_entry_ids": [],
    }
    if not downgrades:
        return response

    notices = verification_notices(downgrades)

    # Enqueue the notification; the logbook and SMTP round trips happen in the worker
    try:
        get_celery_app().send_task(
            DOWNGRADE_NOTIFICATION_TASK,
            args=[[notice.as_dict() for notice in notices], username],
        )
        response["notification"] = "queued"
        return response
    except Exception as e:
        # Fallback to sync if worker unavailable
        logger.warning(f"Worker unavailable, notifying synchronously: {e}")

    try:
        response["logbook_entry_ids"] = dispatcher.notify_verification_downgraded(notices, username)
        response["notification"] = "sent"
    except Exception as e:
        logger.warning(f"Unable to send downgrade notification: {e}", exc_info=True)
        response["notification"] = "failed"

    return response
