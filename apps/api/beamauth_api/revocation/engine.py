"""Cascading revocation of director's authorization."""

import logging
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session

from beamauth_api.authorization.store import AuthorizationStore
from beamauth_api.models import (
    BEAM_MODE_NONE,
    Authorization,
    ControlVerification,
    DestinationAuthorization,
    Staff,
)
from beamauth_api.utils.metrics import authorization_versions_created, destination_permissions_revoked

logger = logging.getLogger(__name__)

REASON_DOWNGRADE = "downgrade"
REASON_EXPIRATION = "expiration"
REASON_DIRECTOR_EXPIRATION = "director's authorization expiration"

CONTROL_REVOCATION_COMMENT = "Permission automatically revoked due to group credited control verification {reason}"
DIRECTOR_REVOCATION_COMMENT = "Permission automatically revoked due to director's authorization expiration"


class RevocationEngine:
    """
    Clear beam permission by cloning the current authorization forward.

    The engine never commits; the caller's transaction covers the read of the
    current version, the clone and the write of the new version.
    """

    def __init__(
        self,
        db: Session,
        store: Optional[AuthorizationStore] = None,
        system_staff_provider: Optional[Callable[[], Staff]] = None,
    ):
        """Initialize revocation engine."""
        self.db = db
        self.store = store or AuthorizationStore(db)
        self.system_staff_provider = system_staff_provider

    def clear_for_downgrade(self, verifications: Iterable[ControlVerification]) -> Optional[Authorization]:
        """Revoke permission for destinations of downgraded verifications."""
        return self._clear_by_verifications(verifications, REASON_DOWNGRADE)

    def clear_for_expiration(self, verifications: Iterable[ControlVerification]) -> Optional[Authorization]:
        """Revoke permission for destinations of expired verifications."""
        return self._clear_by_verifications(verifications, REASON_EXPIRATION)

    def clear_for_destination_authorizations(
        self, rows: Iterable[DestinationAuthorization]
    ) -> Optional[Authorization]:
        """Revoke permission for the given destination authorization rows."""
        keys = {row.key for row in rows}
        return self._clear(
            lambda row: row.key in keys,
            DIRECTOR_REVOCATION_COMMENT,
            REASON_DIRECTOR_EXPIRATION,
        )

    def revoke_expired_authorizations(self, rows: Iterable[DestinationAuthorization]) -> Optional[Authorization]:
        """Revoke director's authorizations found expired by the scanner."""
        logger.debug("Revoking expired director's authorizations")
        return self.clear_for_destination_authorizations(rows)

    def _clear_by_verifications(
        self, verifications: Iterable[ControlVerification], reason: str
    ) -> Optional[Authorization]:
        destination_ids = {v.beam_destination_id for v in verifications}
        return self._clear(
            lambda row: row.beam_destination_id in destination_ids,
            CONTROL_REVOCATION_COMMENT.format(reason=reason),
            reason,
        )

    def _clear(
        self,
        matches: Callable[[DestinationAuthorization], bool],
        comment: str,
        reason: str,
    ) -> Optional[Authorization]:
        current = self.store.find_current()

        # Two triggers (director's expiration and credited control expiration or
        # downgrade) may race to clear the same version; whichever loses finds
        # nothing left to clear.
        if current is None or not current.destination_authorizations:
            logger.warning(
                "Current authorization has no destination rows; nothing to clear",
                extra={"authorization_id": current.id if current else None, "reason": reason},
            )
            return None

        system_staff = self.system_staff_provider() if self.system_staff_provider else None
        new_version, clones = self.store.clone_forward(current, modified_by=system_staff)

        revoked = []
        # clone_forward preserves row order
        for original, clone in zip(current.destination_authorizations, clones):
            if original.beam_mode == BEAM_MODE_NONE:
                continue
            if matches(original):
                clone.beam_mode = BEAM_MODE_NONE
                clone.cw_limit = None
                clone.comments = comment
                revoked.append(clone.beam_destination_id)

        if not revoked:
            logger.debug("No destination permission to revoke", extra={"reason": reason})
            return None

        self.store.persist(new_version, clones)

        authorization_versions_created.labels(reason=reason).inc()
        destination_permissions_revoked.labels(reason=reason).inc(len(revoked))
        logger.info(
            "Beam permission revoked",
            extra={
                "reason": reason,
                "previous_authorization_id": current.id,
                "authorization_id": new_version.id,
                "destination_ids": revoked,
            },
        )
        return new_version
