"""Staff and workgroup models."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from beamauth_api.db.base import Base

workgroup_leaders = Table(
    "workgroup_leaders",
    Base.metadata,
    Column("workgroup_id", Integer, ForeignKey("workgroups.id"), primary_key=True),
    Column("staff_id", Integer, ForeignKey("staff.id"), primary_key=True),
)


class Staff(Base):
    """Facility staff member."""

    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)

    # Relationships
    led_workgroups = relationship("Workgroup", secondary=workgroup_leaders, back_populates="leaders")

    def display_name(self) -> str:
        """Format as 'Last, First (username)'."""
        if self.last_name or self.first_name:
            return f"{self.last_name or ''}, {self.first_name or ''} ({self.username})"
        return self.username

    def __repr__(self) -> str:
        return f"<Staff {self.username}>"


class Workgroup(Base):
    """Organizational unit whose leaders receive escalations."""

    __tablename__ = "workgroups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)

    # Relationships
    leaders = relationship("Staff", secondary=workgroup_leaders, back_populates="led_workgroups")

    def __repr__(self) -> str:
        return f"<Workgroup {self.name}>"
