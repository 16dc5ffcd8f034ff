"""Periodic expiration check of director's authorizations and verifications."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from beamauth_api.authorization.store import AuthorizationStore
from beamauth_api.notifications.dispatcher import NotificationDispatcher
from beamauth_api.notifications.notices import (
    AuthorizationNotice,
    VerificationNotice,
    authorization_notices,
    verification_notices,
)
from beamauth_api.revocation.engine import RevocationEngine
from beamauth_api.settings import Settings
from beamauth_api.utils.metrics import expiration_checks
from beamauth_api.verification.service import VerificationRegistry

logger = logging.getLogger(__name__)


@dataclass
class ExpirationReport:
    """What one expiration check found and changed."""

    expired_authorizations: list[AuthorizationNotice] = field(default_factory=list)
    expired_verifications: list[VerificationNotice] = field(default_factory=list)
    upcoming_authorizations: list[AuthorizationNotice] = field(default_factory=list)
    upcoming_verifications: list[VerificationNotice] = field(default_factory=list)
    new_authorization_ids: list[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        """
        Summarize the report as JSON-safe ids.

        Authorization entries are beam destination ids; verification entries
        are control verification ids. `new_authorization_ids` lists the
        director's authorization versions written by this check.
        """
        return {
            "expired_authorizations": [n.destination_id for n in self.expired_authorizations],
            "expired_verifications": [n.verification_id for n in self.expired_verifications],
            "upcoming_authorizations": [n.destination_id for n in self.upcoming_authorizations],
            "upcoming_verifications": [n.verification_id for n in self.upcoming_verifications],
            "new_authorization_ids": self.new_authorization_ids,
        }


class ExpirationScanner:
    """Revoke what has expired, then tell everyone about it."""

    def __init__(
        self,
        db: Session,
        registry: VerificationRegistry,
        store: AuthorizationStore,
        engine: RevocationEngine,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        """Initialize expiration scanner."""
        self.db = db
        self.registry = registry
        self.store = store
        self.engine = engine
        self.dispatcher = dispatcher

    @classmethod
    def build(
        cls,
        db: Session,
        settings: Settings,
        dispatcher: Optional[NotificationDispatcher] = None,
    ) -> "ExpirationScanner":
        """Wire the registry, store and engine onto one session."""
        store = AuthorizationStore(db, upcoming_days=settings.upcoming_authorization_days)
        registry = VerificationRegistry(
            db,
            system_username=settings.system_username,
            upcoming_days=settings.upcoming_verification_days,
        )
        engine = RevocationEngine(db, store=store, system_staff_provider=registry.system_staff)
        registry.revocation_engine = engine
        return cls(db, registry, store, engine, dispatcher)

    def perform_expiration_check(self, include_upcoming: bool) -> ExpirationReport:
        """Run one expiration check; each revocation step commits atomically."""
        report = ExpirationReport()
        expiration_checks.labels(include_upcoming=str(include_upcoming).lower()).inc()

        logger.debug("Expiration Check: Director's authorizations...")
        try:
            current = self.store.find_current()
            expired_authorizations = self.store.check_for_authorized_but_expired(current)
            report.expired_authorizations = authorization_notices(expired_authorizations)
            if expired_authorizations:
                logger.debug("Expiration Check: Revoking expired authorization")
                new_version = self.engine.revoke_expired_authorizations(expired_authorizations)
                if new_version is not None:
                    report.new_authorization_ids.append(new_version.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.debug("Expiration Check: Checking for expired verifications...")
        try:
            # Only verified or provisionally verified rows need revoking.
            expired_verifications = self.registry.check_for_verified_but_expired()
            report.expired_verifications = verification_notices(expired_verifications)
            if expired_verifications:
                logger.debug("Expiration Check: Revoking expired verifications...")
                new_version = self.registry.revoke_expired(expired_verifications)
                if new_version is not None:
                    report.new_authorization_ids.append(new_version.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if include_upcoming:
            logger.debug("Expiration Check: Checking for upcoming verification expirations...")
            report.upcoming_verifications = verification_notices(
                self.registry.check_for_upcoming_expirations()
            )

            logger.debug("Expiration Check: Checking for upcoming authorization expirations...")
            report.upcoming_authorizations = authorization_notices(
                self.store.check_for_upcoming_authorization_expirations(self.store.find_current())
            )

        if self.dispatcher is not None:
            try:
                self.dispatcher.notify_expirations(
                    report.expired_authorizations,
                    report.expired_verifications,
                    report.upcoming_authorizations,
                    report.upcoming_verifications,
                )
            except Exception as e:
                logger.warning(f"Unable to dispatch expiration notifications: {e}", exc_info=True)

        logger.info("Expiration check complete", extra=report.as_dict())
        return report
