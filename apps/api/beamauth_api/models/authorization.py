"""Director's authorization models (copy-on-write versions)."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from beamauth_api.db.base import Base

BEAM_MODE_NONE = "None"


class Authorization(Base):
    """One version of the director-level permission set.

    Versions are append-only: the current version is the one with the greatest
    id, and changing any permission means persisting a new version.
    """

    __tablename__ = "authorizations"

    id = Column(Integer, primary_key=True, index=True)
    authorization_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    authorized_by_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    comments = Column(Text, nullable=True)
    modified_by_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    modified_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    authorized_by = relationship("Staff", foreign_keys=[authorized_by_id])
    modified_by = relationship("Staff", foreign_keys=[modified_by_id])
    destination_authorizations = relationship(
        "DestinationAuthorization",
        back_populates="authorization",
        order_by="DestinationAuthorization.beam_destination_id",
    )

    def __repr__(self) -> str:
        return f"<Authorization {self.id}>"


class DestinationAuthorization(Base):
    """Permission for one destination within one authorization version."""

    __tablename__ = "destination_authorizations"

    beam_destination_id = Column(Integer, ForeignKey("beam_destinations.id"), primary_key=True)
    authorization_id = Column(Integer, ForeignKey("authorizations.id"), primary_key=True, index=True)
    beam_mode = Column(String(64), default=BEAM_MODE_NONE, nullable=False)  # "None" means no beam
    cw_limit = Column(Float, nullable=True)
    expiration_date = Column(DateTime, nullable=True)
    comments = Column(Text, nullable=True)

    # Relationships
    authorization = relationship("Authorization", back_populates="destination_authorizations")
    destination = relationship("BeamDestination")

    @property
    def key(self) -> tuple:
        """Composite identity (authorization id, destination id)."""
        return (self.authorization_id, self.beam_destination_id)

    def __repr__(self) -> str:
        return (
            f"<DestinationAuthorization auth={self.authorization_id} "
            f"destination={self.beam_destination_id} mode={self.beam_mode}>"
        )
