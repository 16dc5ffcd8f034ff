"""Notification configuration."""

from pydantic import BaseModel

from beamauth_api.settings import Settings, split_csv


class NotificationConfig(BaseModel):
    """Recipients, subjects and hosts used when dispatching notifications."""

    sender: str
    admin_recipients: list[str] = []
    ops_recipients: list[str] = []
    downgraded_recipients: list[str] = []
    upcoming_expiration_subject: str
    expired_subject: str
    downgraded_subject: str
    proxy_hostname: str
    logbook_server: str
    logbooks: list[str] = ["TLOG"]
    logbook_tags: list[str] = ["Readme"]
    staff_email_domain: str = "jlab.org"
    group_email_enabled: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationConfig":
        """Build the notification configuration from application settings."""
        return cls(
            sender=settings.email_sender,
            admin_recipients=split_csv(settings.admin_email_csv),
            ops_recipients=split_csv(settings.ops_email_csv),
            downgraded_recipients=split_csv(settings.downgraded_email_csv),
            upcoming_expiration_subject=settings.upcoming_expiration_subject,
            expired_subject=settings.expired_subject,
            downgraded_subject=settings.downgraded_subject,
            proxy_hostname=settings.proxy_hostname,
            logbook_server=settings.logbook_server,
            logbooks=settings.logbooks,
            logbook_tags=split_csv(settings.logbook_tags_csv) or ["Readme"],
            staff_email_domain=settings.staff_email_domain,
            group_email_enabled=settings.group_email_enabled,
        )
