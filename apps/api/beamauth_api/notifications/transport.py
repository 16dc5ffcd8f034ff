"""Email and logbook transports."""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

import httpx

from beamauth_api.exceptions import TransportFailure

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """Send email through an SMTP relay."""

    def __init__(self, server: Optional[str], port: int = 25, timeout: int = 30):
        """Initialize email sender."""
        self.server = server
        self.port = port
        self.timeout = timeout

    def send_email(
        self,
        sender: str,
        reply_to: str,
        to_csv: str,
        subject: str,
        body: str,
        html: bool = True,
    ) -> None:
        """Send one message to a comma-separated recipient list."""
        recipients = [address.strip() for address in (to_csv or "").split(",") if address.strip()]
        if not recipients:
            raise TransportFailure("no email recipients")
        if not self.server:
            raise TransportFailure("SMTP server is not configured")

        try:
            msg = EmailMessage()
            msg["Subject"] = subject
            msg["From"] = sender
            msg["Reply-To"] = reply_to
            msg["To"] = ", ".join(recipients)
            if html:
                msg.set_content(body, subtype="html")
            else:
                msg.set_content(body)

            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as s:
                s.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            # ValueError covers malformed headers such as line breaks in a subject.
            raise TransportFailure(f"Unable to send email: {e}") from e


class LogbookClient:
    """Submit HTML entries to the electronic logbook."""

    def __init__(self, server: str, logbooks: list[str], timeout: int = 10):
        """Initialize logbook client."""
        self.server = server
        self.logbooks = logbooks
        self.timeout = timeout

    @property
    def submit_url(self) -> str:
        return f"https://{self.server}/incoming"

    def submit(self, subject: str, body: str, tags: list[str], author: str) -> int:
        """Submit an entry and return its logbook id."""
        payload = {
            "title": subject,
            "body": body,
            "body_type": "html",
            "logbooks": self.logbooks,
            "tags": tags,
            "author": author,
        }
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.submit_url, json=payload)
                response.raise_for_status()
                entry_id = response.json()["id"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise TransportFailure(f"Unable to send elog: {e}") from e

        logger.info("Logbook entry submitted", extra={"entry_id": entry_id, "author": author})
        return int(entry_id)
