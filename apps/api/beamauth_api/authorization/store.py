"""Copy-on-write store of director's authorization versions."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from beamauth_api.models import (
    BEAM_MODE_NONE,
    Authorization,
    BeamDestination,
    DestinationAuthorization,
    Staff,
)

logger = logging.getLogger(__name__)


class AuthorizationStore:
    """Append-only versions of per-destination beam permission."""

    def __init__(self, db: Session, upcoming_days: int = 3):
        """Initialize authorization store."""
        self.db = db
        self.upcoming_days = upcoming_days

    def find_current(self) -> Optional[Authorization]:
        """Get the most recently created authorization version."""
        return (
            self.db.query(Authorization)
            .options(joinedload(Authorization.destination_authorizations))
            .order_by(Authorization.id.desc())
            .first()
        )

    def find_history(self, limit: int = 50) -> list[Authorization]:
        """Get authorization versions, newest first."""
        return self.db.query(Authorization).order_by(Authorization.id.desc()).limit(limit).all()

    def clone_forward(
        self,
        current: Authorization,
        modified_by: Optional[Staff] = None,
    ) -> tuple[Authorization, list[DestinationAuthorization]]:
        """
        Clone the current version and its destination rows.

        Neither the new version nor the clones are added to the session; the
        clones carry no version key until `persist` assigns it. Callers mutate
        the clones, then persist or discard them.
        """
        new_version = Authorization(
            authorization_date=current.authorization_date,
            authorized_by_id=current.authorized_by_id,
            comments=current.comments,
            modified_by_id=modified_by.id if modified_by else current.modified_by_id,
            modified_date=datetime.utcnow(),
        )

        clones = [
            DestinationAuthorization(
                beam_destination_id=row.beam_destination_id,
                beam_mode=row.beam_mode,
                cw_limit=row.cw_limit,
                expiration_date=row.expiration_date,
                comments=row.comments,
            )
            for row in current.destination_authorizations or []
        ]

        return new_version, clones

    def persist(
        self,
        new_version: Authorization,
        clones: list[DestinationAuthorization],
    ) -> Authorization:
        """Persist a cloned version, keying every clone to its new identity."""
        self.db.add(new_version)
        self.db.flush()

        for clone in clones:
            clone.authorization_id = new_version.id
            new_version.destination_authorizations.append(clone)
        self.db.flush()

        logger.info(
            "Authorization version created",
            extra={"authorization_id": new_version.id, "destinations": len(clones)},
        )
        return new_version

    def check_for_authorized_but_expired(
        self, current: Optional[Authorization]
    ) -> list[DestinationAuthorization]:
        """Destinations on the current version still permitted beam past expiration."""
        if current is None:
            return []

        now = datetime.utcnow()
        return (
            self.db.query(DestinationAuthorization)
            .join(BeamDestination, DestinationAuthorization.beam_destination_id == BeamDestination.id)
            .filter(
                DestinationAuthorization.authorization_id == current.id,
                DestinationAuthorization.expiration_date < now,
                DestinationAuthorization.beam_mode != BEAM_MODE_NONE,
                BeamDestination.active == True,  # noqa: E712
            )
            .order_by(DestinationAuthorization.beam_destination_id.asc())
            .all()
        )

    def check_for_upcoming_authorization_expirations(
        self, current: Optional[Authorization]
    ) -> list[DestinationAuthorization]:
        """Permitted destinations on the current version expiring within the look-ahead."""
        if current is None:
            return []

        now = datetime.utcnow()
        horizon = now + timedelta(days=self.upcoming_days)
        return (
            self.db.query(DestinationAuthorization)
            .join(BeamDestination, DestinationAuthorization.beam_destination_id == BeamDestination.id)
            .filter(
                DestinationAuthorization.authorization_id == current.id,
                DestinationAuthorization.expiration_date > now,
                DestinationAuthorization.expiration_date < horizon,
                DestinationAuthorization.beam_mode != BEAM_MODE_NONE,
                BeamDestination.active == True,  # noqa: E712
            )
            .order_by(DestinationAuthorization.beam_destination_id.asc())
            .all()
        )
