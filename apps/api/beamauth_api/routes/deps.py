"""Shared request dependencies."""

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from beamauth_api.notifications.config import NotificationConfig
from beamauth_api.notifications.dispatcher import NotificationDispatcher
from beamauth_api.notifications.transport import LogbookClient, SmtpEmailSender
from beamauth_api.settings import get_settings


def get_remote_user(x_remote_user: Optional[str] = Header(default=None)) -> str:
    """Username of the caller, authenticated by the upstream proxy."""
    if not x_remote_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated user. Provide x-remote-user header.",
        )
    return x_remote_user


@lru_cache()
def get_dispatcher() -> NotificationDispatcher:
    """Get cached notification dispatcher built from settings."""
    settings = get_settings()
    return NotificationDispatcher(
        NotificationConfig.from_settings(settings),
        SmtpEmailSender(settings.smtp_server, settings.smtp_port),
        LogbookClient(settings.logbook_server, settings.logbooks, settings.logbook_timeout_seconds),
    )
