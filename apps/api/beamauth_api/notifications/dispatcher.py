"""Notification routing to admins, operations, group leaders and the logbook."""

import logging
from typing import Optional, Sequence

from beamauth_api.exceptions import TransportFailure
from beamauth_api.notifications.config import NotificationConfig
from beamauth_api.notifications.messages import render_downgraded_body, render_expired_body
from beamauth_api.notifications.notices import AuthorizationNotice, VerificationNotice
from beamauth_api.utils.metrics import notifications

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Best-effort notification fan-out.

    Every channel is attempted independently: a failure in one channel is
    logged and counted, and never stops the others or reaches the caller.
    """

    def __init__(self, config: NotificationConfig, email_sender, logbook_client=None):
        """Initialize dispatcher with explicit configuration and transports."""
        self.config = config
        self.email_sender = email_sender
        self.logbook_client = logbook_client

    def _send_email(self, channel: str, recipients: Sequence[str], subject: str, body: str) -> bool:
        if not recipients:
            logger.warning("No recipients configured for notification", extra={"channel": channel})
            notifications.labels(channel=channel, status="failed").inc()
            return False

        to_csv = ",".join(recipients)
        try:
            self.email_sender.send_email(
                self.config.sender,
                self.config.sender,
                to_csv,
                subject,
                body,
                True,
            )
        except TransportFailure as e:
            logger.warning(f"Unable to send email: {e}", extra={"channel": channel, "to": to_csv})
            notifications.labels(channel=channel, status="failed").inc()
            return False

        logger.info("Notification sent", extra={"channel": channel, "to": to_csv})
        notifications.labels(channel=channel, status="sent").inc()
        return True

    def _attempt(self, channel: str, send, *args):
        """Run one channel, containing any failure to that channel."""
        try:
            return send(*args)
        except Exception as e:
            logger.warning(f"Notification channel failed: {e}", extra={"channel": channel}, exc_info=True)
            notifications.labels(channel=channel, status="failed").inc()
            return None

    def notify_admins(
        self,
        expired_authorizations: Sequence[AuthorizationNotice],
        expired_verifications: Sequence[VerificationNotice],
        upcoming_authorizations: Sequence[AuthorizationNotice],
        upcoming_verifications: Sequence[VerificationNotice],
    ) -> bool:
        """Send admins one message covering all four sets."""
        body = render_expired_body(
            self.config.proxy_hostname,
            expired_authorizations,
            expired_verifications,
            upcoming_authorizations,
            upcoming_verifications,
        )
        return self._send_email(
            "admins",
            self.config.admin_recipients,
            self.config.upcoming_expiration_subject,
            body,
        )

    def notify_ops(
        self,
        expired_authorizations: Sequence[AuthorizationNotice],
        expired_verifications: Sequence[VerificationNotice],
    ) -> bool:
        """Send operations a message covering only what has expired."""
        body = render_expired_body(
            self.config.proxy_hostname,
            expired_authorizations,
            expired_verifications,
        )
        return self._send_email("ops", self.config.ops_recipients, self.config.expired_subject, body)

    def group_addresses(self, leader_usernames: Sequence[str]) -> list[str]:
        return [f"{username}@{self.config.staff_email_domain}" for username in leader_usernames]

    def notify_groups(
        self,
        expired_verifications: Optional[Sequence[VerificationNotice]],
        upcoming_verifications: Optional[Sequence[VerificationNotice]],
    ) -> int:
        """
        Send each leader workgroup a message scoped to its own verifications.

        Returns the number of group messages sent.
        """
        # (workgroup id, name, leader usernames) -> (expired, upcoming)
        by_group: dict[tuple, tuple[list[VerificationNotice], list[VerificationNotice]]] = {}

        for index, notices in enumerate((expired_verifications, upcoming_verifications)):
            for notice in notices or []:
                if notice.workgroup_id is None:
                    logger.warning(
                        "Credited control has no leader workgroup",
                        extra={"control": notice.control_name},
                    )
                    continue
                key = (notice.workgroup_id, notice.workgroup_name, notice.leader_usernames)
                by_group.setdefault(key, ([], []))[index].append(notice)

        sent = 0
        for (workgroup_id, workgroup_name, leader_usernames), (expired, upcoming) in by_group.items():
            if self._attempt("groups", self._notify_group, workgroup_name, leader_usernames, expired, upcoming):
                sent += 1

        return sent

    def _notify_group(
        self,
        workgroup_name: str,
        leader_usernames: Sequence[str],
        expired: Sequence[VerificationNotice],
        upcoming: Sequence[VerificationNotice],
    ) -> bool:
        to_addresses = self.group_addresses(leader_usernames)
        if not to_addresses:
            logger.warning("Workgroup has no leaders to notify", extra={"workgroup": workgroup_name})
            return False

        body = render_expired_body(self.config.proxy_hostname, None, expired, None, upcoming)

        if not self.config.group_email_enabled:
            logger.info(
                "Group email disabled; not sending",
                extra={"workgroup": workgroup_name, "to": ",".join(to_addresses)},
            )
            logger.debug(body)
            return False

        return self._send_email("groups", to_addresses, self.config.upcoming_expiration_subject, body)

    def notify_expirations(
        self,
        expired_authorizations: Optional[Sequence[AuthorizationNotice]] = None,
        expired_verifications: Optional[Sequence[VerificationNotice]] = None,
        upcoming_authorizations: Optional[Sequence[AuthorizationNotice]] = None,
        upcoming_verifications: Optional[Sequence[VerificationNotice]] = None,
    ) -> None:
        """Route expired and upcoming sets to every interested party."""
        expired_authorizations = expired_authorizations or []
        expired_verifications = expired_verifications or []
        upcoming_authorizations = upcoming_authorizations or []
        upcoming_verifications = upcoming_verifications or []

        if not (expired_authorizations or expired_verifications or upcoming_authorizations or upcoming_verifications):
            logger.debug("Nothing to notify users about")
            return

        logger.debug("Notifying users")

        self._attempt(
            "admins",
            self.notify_admins,
            expired_authorizations,
            expired_verifications,
            upcoming_authorizations,
            upcoming_verifications,
        )

        if expired_authorizations or expired_verifications:
            self._attempt("ops", self.notify_ops, expired_authorizations, expired_verifications)

        if expired_verifications or upcoming_verifications:
            self._attempt("groups", self.notify_groups, expired_verifications, upcoming_verifications)

    def notify_verification_downgraded(
        self, downgrades: Sequence[VerificationNotice], author: str
    ) -> list[int]:
        """
        Post a logbook entry and an email for each downgraded credited control.

        Returns the ids of the logbook entries created.
        """
        by_control: dict[int, list[VerificationNotice]] = {}
        for notice in downgrades or []:
            by_control.setdefault(notice.control_id, []).append(notice)

        entry_ids = []
        for control_notices in by_control.values():
            entry_id = self._attempt("downgraded", self._notify_downgraded_control, control_notices, author)
            if entry_id is not None:
                entry_ids.append(entry_id)

        return entry_ids

    def _notify_downgraded_control(
        self, control_notices: Sequence[VerificationNotice], author: str
    ) -> Optional[int]:
        body = render_downgraded_body(self.config.proxy_hostname, control_notices)

        entry_id = None
        if self.logbook_client is not None:
            try:
                entry_id = self.logbook_client.submit(
                    self.config.downgraded_subject,
                    body,
                    self.config.logbook_tags,
                    author,
                )
                notifications.labels(channel="logbook", status="sent").inc()
            except Exception as e:
                logger.warning(
                    f"Unable to send elog: {e}", extra={"control": control_notices[0].control_name}, exc_info=True
                )
                notifications.labels(channel="logbook", status="failed").inc()

        self._send_email(
            "downgraded",
            self.config.downgraded_recipients,
            self.config.downgraded_subject,
            body,
        )
        return entry_id
