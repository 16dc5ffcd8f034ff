"""Credited control verification registry."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from beamauth_api.auth.directory import StaffDirectory
from beamauth_api.auth.permissions import PermissionOracle
from beamauth_api.exceptions import NotFound, ValidationError
from beamauth_api.models import (
    NOT_VERIFIED,
    PROVISIONALLY_VERIFIED,
    VERIFIED,
    Authorization,
    BeamDestination,
    ControlVerification,
    CreditedControl,
    Staff,
    VerificationHistory,
)
from beamauth_api.models.verification import VERIFICATION_STATUS_NAMES, is_downgrade
from beamauth_api.revocation.engine import RevocationEngine
from beamauth_api.utils.metrics import verification_downgrades, verifications_expired

logger = logging.getLogger(__name__)

EXPIRED_COMMENT = "Expired"
ACTIVE_STATUSES = (VERIFIED, PROVISIONALLY_VERIFIED)


def as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize aware datetimes to the naive UTC values stored in the database."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class VerificationRegistry:
    """Create, edit and expire credited control verifications."""

    def __init__(
        self,
        db: Session,
        revocation_engine: Optional[RevocationEngine] = None,
        oracle: Optional[PermissionOracle] = None,
        system_username: str = "beamauth-system",
        upcoming_days: int = 7,
    ):
        """Initialize verification registry."""
        self.db = db
        self.directory = StaffDirectory(db)
        self.oracle = oracle or PermissionOracle(db, self.directory)
        self.system_username = system_username
        self.upcoming_days = upcoming_days
        self.revocation_engine = revocation_engine or RevocationEngine(
            db, system_staff_provider=self.system_staff
        )

    def system_staff(self) -> Staff:
        """Automated account credited with expiration revocations."""
        return self.directory.get_or_create(
            self.system_username,
            first_name="Beam Authorization",
            last_name="System",
        )

    def _ordered_query(self):
        return (
            self.db.query(ControlVerification)
            .join(CreditedControl, ControlVerification.credited_control_id == CreditedControl.id)
            .options(joinedload(ControlVerification.credited_control))
        )

    def find_by_destination(self, destination_id: int) -> list[ControlVerification]:
        """Verifications for a destination ordered by control weight."""
        return (
            self._ordered_query()
            .filter(ControlVerification.beam_destination_id == destination_id)
            .order_by(CreditedControl.weight.asc(), CreditedControl.id.asc())
            .all()
        )

    def find(self, control_id: int, destination_id: int) -> Optional[ControlVerification]:
        """Verification of one (control, destination) pair, if any."""
        return (
            self.db.query(ControlVerification)
            .filter(
                ControlVerification.credited_control_id == control_id,
                ControlVerification.beam_destination_id == destination_id,
            )
            .first()
        )

    def find_with_credited_control(self, verification_id: int) -> Optional[ControlVerification]:
        """Verification by id with its credited control loaded."""
        return (
            self.db.query(ControlVerification)
            .options(joinedload(ControlVerification.credited_control))
            .filter(ControlVerification.id == verification_id)
            .first()
        )

    def toggle(self, control_id: int, destination_id: int, actor: str) -> Optional[ControlVerification]:
        """
        Create a Not Verified verification for the pair, or delete the existing one.

        Returns the created verification, or None when one was removed.
        """
        staff = self.oracle.check_admin(actor)

        try:
            verification = self.find(control_id, destination_id)

            if verification is None:
                control = self.db.get(CreditedControl, control_id)
                if control is None:
                    raise NotFound(f"credited control with ID {control_id} not found")
                destination = self.db.get(BeamDestination, destination_id)
                if destination is None:
                    raise NotFound(f"beam destination with ID {destination_id} not found")

                verification = ControlVerification(
                    credited_control_id=control.id,
                    beam_destination_id=destination.id,
                    verification_id=NOT_VERIFIED,
                    modified_by_id=staff.id,
                    modified_date=datetime.utcnow(),
                )
                self.db.add(verification)
                logger.info(
                    "Verification created",
                    extra={"control_id": control_id, "destination_id": destination_id, "actor": actor},
                )
            else:
                self.db.delete(verification)
                verification = None
                logger.info(
                    "Verification removed",
                    extra={"control_id": control_id, "destination_id": destination_id, "actor": actor},
                )

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return verification

    def edit(
        self,
        verification_ids: Optional[Sequence[Optional[int]]],
        new_status: Optional[int],
        verification_date: Optional[datetime],
        verified_by_username: Optional[str],
        expiration_date: Optional[datetime],
        comments: Optional[str],
        actor: Optional[str],
    ) -> list[ControlVerification]:
        """
        Apply a verification status to one or more verifications.

        Every edit is recorded in the verification history. Downgraded
        verifications clear director's permission for their destinations in
        the same transaction and are returned to the caller.
        """
        try:
            modified_staff = self.directory.find_by_username(actor)
        except NotFound as e:
            raise ValidationError(f"staff with username {actor} not found") from e

        if verified_by_username is None or not verified_by_username.strip():
            raise ValidationError("verified by must not be empty")

        try:
            verified_staff = self.directory.find_by_username(verified_by_username)
        except NotFound as e:
            raise ValidationError(f"verified by with username {verified_by_username} not found") from e

        if new_status is None:
            raise ValidationError("verification status must not be empty")

        if new_status not in VERIFICATION_STATUS_NAMES:
            raise ValidationError(f"verification status {new_status} is not one of 1, 50, 100")

        if verification_date is None:
            raise ValidationError("verification date must not be empty")

        if verification_ids is None:
            raise ValidationError("control verification ID array must not be empty")

        verification_date = as_utc_naive(verification_date)
        expiration_date = as_utc_naive(expiration_date)

        if expiration_date is not None and expiration_date < datetime.utcnow():
            raise ValidationError("expiration date cannot be in the past")

        downgrades: list[ControlVerification] = []

        try:
            for verification_id in verification_ids:
                if verification_id is None:
                    raise ValidationError("control verification ID must not be null")

                verification = self.find_with_credited_control(verification_id)

                if verification is None:
                    raise ValidationError(f"control verification with ID {verification_id} not found")

                self.oracle.check_admin_or_group_leader(
                    modified_staff, verification.credited_control.group.leader_workgroup
                )

                downgrade = is_downgrade(verification.verification_id, new_status)

                modified_date = datetime.utcnow()

                verification.modified_by_id = modified_staff.id
                verification.modified_date = modified_date
                verification.verification_id = new_status
                verification.verification_date = verification_date
                verification.verified_by_id = verified_staff.id
                verification.expiration_date = expiration_date
                verification.comments = comments

                if downgrade:
                    downgrades.append(verification)

                self.db.add(self._history_of(verification))

            self.db.flush()

            if downgrades:
                verification_downgrades.inc(len(downgrades))
                logger.info(
                    "Verification downgraded",
                    extra={"verification_ids": [v.id for v in downgrades], "actor": actor},
                )
                self.revocation_engine.clear_for_downgrade(downgrades)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return downgrades

    def _active_destination_query(self):
        return self._ordered_query().join(
            BeamDestination, ControlVerification.beam_destination_id == BeamDestination.id
        ).filter(BeamDestination.active == True)  # noqa: E712

    def check_for_expired(self) -> list[ControlVerification]:
        """All expired verifications on active destinations, regardless of status."""
        return (
            self._active_destination_query()
            .filter(ControlVerification.expiration_date < datetime.utcnow())
            .order_by(CreditedControl.weight.asc(), CreditedControl.id.asc())
            .all()
        )

    def check_for_verified_but_expired(self) -> list[ControlVerification]:
        """Verified or provisionally verified rows whose expiration has passed."""
        return (
            self._active_destination_query()
            .filter(
                ControlVerification.expiration_date < datetime.utcnow(),
                ControlVerification.verification_id.in_(ACTIVE_STATUSES),
            )
            .order_by(CreditedControl.weight.asc(), CreditedControl.id.asc())
            .all()
        )

    def check_for_upcoming_expirations(self) -> list[ControlVerification]:
        """Verified or provisionally verified rows expiring within the look-ahead window."""
        now = datetime.utcnow()
        return (
            self._active_destination_query()
            .filter(
                ControlVerification.expiration_date >= now,
                ControlVerification.expiration_date <= now + timedelta(days=self.upcoming_days),
                ControlVerification.verification_id.in_(ACTIVE_STATUSES),
            )
            .order_by(CreditedControl.weight.asc(), CreditedControl.id.asc())
            .all()
        )

    def revoke_expired(self, expired: Sequence[ControlVerification]) -> Optional[Authorization]:
        """
        Mark expired verifications Not Verified and clear their destinations.

        Runs inside the caller's transaction; the caller commits. Returns the
        authorization version created by the clear, if any.
        """
        if not expired:
            return None

        system_staff = self.system_staff()
        modified_date = datetime.utcnow()

        for verification in expired:
            verification.verification_id = NOT_VERIFIED
            verification.comments = EXPIRED_COMMENT
            verification.verified_by_id = None
            verification.verification_date = modified_date
            verification.modified_date = modified_date
            verification.modified_by_id = system_staff.id

        self.insert_expired_history(expired, modified_date, system_staff)
        self.db.flush()

        verifications_expired.inc(len(expired))
        logger.info(
            "Expired verifications revoked",
            extra={"verification_ids": [v.id for v in expired]},
        )

        return self.revocation_engine.clear_for_expiration(expired)

    def insert_expired_history(
        self,
        expired: Sequence[ControlVerification],
        modified_date: datetime,
        system_staff: Staff,
    ) -> None:
        """Append one history row per expired verification."""
        for verification in expired:
            self.db.add(
                VerificationHistory(
                    control_verification=verification,
                    credited_control_id=verification.credited_control_id,
                    beam_destination_id=verification.beam_destination_id,
                    verification_id=NOT_VERIFIED,
                    verification_date=modified_date,
                    verified_by_id=None,
                    expiration_date=verification.expiration_date,
                    comments=EXPIRED_COMMENT,
                    modified_by_id=system_staff.id,
                    modified_date=modified_date,
                )
            )

    @staticmethod
    def _history_of(verification: ControlVerification) -> VerificationHistory:
        return VerificationHistory(
            control_verification=verification,
            credited_control_id=verification.credited_control_id,
            beam_destination_id=verification.beam_destination_id,
            verification_id=verification.verification_id,
            verification_date=verification.verification_date,
            verified_by_id=verification.verified_by_id,
            expiration_date=verification.expiration_date,
            comments=verification.comments,
            modified_by_id=verification.modified_by_id,
            modified_date=verification.modified_date,
        )
