"""Credited control and beam destination models."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from beamauth_api.db.base import Base


class Group(Base):
    """Group owning a set of credited controls."""

    __tablename__ = "control_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    leader_workgroup_id = Column(Integer, ForeignKey("workgroups.id"), nullable=False, index=True)

    # Relationships
    leader_workgroup = relationship("Workgroup")
    controls = relationship("CreditedControl", back_populates="group")


class CreditedControl(Base):
    """Named safety control whose verification gates beam."""

    __tablename__ = "credited_controls"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    group_id = Column(Integer, ForeignKey("control_groups.id"), nullable=False, index=True)
    weight = Column(Integer, default=0, nullable=False)  # display/processing order only

    # Relationships
    group = relationship("Group", back_populates="controls")
    verifications = relationship("ControlVerification", back_populates="credited_control")

    def __repr__(self) -> str:
        return f"<CreditedControl {self.name}>"


class BeamDestination(Base):
    """Physical target location for beam."""

    __tablename__ = "beam_destinations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    active = Column(Boolean, default=True, nullable=False)  # inactive destinations are never scanned
    weight = Column(Integer, default=0, nullable=False)

    # Relationships
    verifications = relationship("ControlVerification", back_populates="beam_destination")

    def __repr__(self) -> str:
        return f"<BeamDestination {self.name}>"
