"""Credited control verification models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from beamauth_api.db.base import Base

VERIFIED = 1
PROVISIONALLY_VERIFIED = 50
NOT_VERIFIED = 100

VERIFICATION_STATUS_NAMES = {
    VERIFIED: "Verified",
    PROVISIONALLY_VERIFIED: "Provisionally Verified",
    NOT_VERIFIED: "Not Verified",
}


def verification_status_name(code: int) -> str:
    """Human-readable name of a verification status code."""
    return VERIFICATION_STATUS_NAMES.get(code, VERIFICATION_STATUS_NAMES[NOT_VERIFIED])


def is_downgrade(old_status: int, new_status: int) -> bool:
    """Lower codes are stronger; moving to a higher code is a downgrade."""
    return old_status != new_status and old_status < new_status


class ControlVerification(Base):
    """Current verification status of one (control, destination) pair."""

    __tablename__ = "control_verifications"
    __table_args__ = (
        UniqueConstraint("credited_control_id", "beam_destination_id", name="uq_control_destination"),
    )

    id = Column(Integer, primary_key=True, index=True)
    credited_control_id = Column(Integer, ForeignKey("credited_controls.id"), nullable=False, index=True)
    beam_destination_id = Column(Integer, ForeignKey("beam_destinations.id"), nullable=False, index=True)
    verification_id = Column(Integer, default=NOT_VERIFIED, nullable=False)  # 1, 50 or 100
    verification_date = Column(DateTime, nullable=True)
    verified_by_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    expiration_date = Column(DateTime, nullable=True, index=True)  # NULL never expires
    comments = Column(Text, nullable=True)
    modified_by_id = Column(Integer, ForeignKey("staff.id"), nullable=False)
    modified_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    credited_control = relationship("CreditedControl", back_populates="verifications")
    beam_destination = relationship("BeamDestination", back_populates="verifications")
    verified_by = relationship("Staff", foreign_keys=[verified_by_id])
    modified_by = relationship("Staff", foreign_keys=[modified_by_id])
    history = relationship(
        "VerificationHistory",
        back_populates="control_verification",
        order_by="VerificationHistory.id",
    )

    def __repr__(self) -> str:
        return (
            f"<ControlVerification control={self.credited_control_id} "
            f"destination={self.beam_destination_id} status={self.verification_id}>"
        )


class VerificationHistory(Base):
    """Append-only snapshot of a verification at the moment of a change."""

    __tablename__ = "verification_history"

    id = Column(Integer, primary_key=True, index=True)
    # Nulled when a toggle-off removes the verification; the pair below keeps the row readable.
    control_verification_id = Column(
        Integer,
        ForeignKey("control_verifications.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    credited_control_id = Column(Integer, ForeignKey("credited_controls.id"), nullable=False, index=True)
    beam_destination_id = Column(Integer, ForeignKey("beam_destinations.id"), nullable=False, index=True)
    verification_id = Column(Integer, nullable=False)
    verification_date = Column(DateTime, nullable=True)
    verified_by_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    expiration_date = Column(DateTime, nullable=True)
    comments = Column(Text, nullable=True)
    modified_by_id = Column(Integer, ForeignKey("staff.id"), nullable=False)
    modified_date = Column(DateTime, nullable=False)

    # Relationships
    control_verification = relationship("ControlVerification", back_populates="history")
    verified_by = relationship("Staff", foreign_keys=[verified_by_id])
    modified_by = relationship("Staff", foreign_keys=[modified_by_id])
