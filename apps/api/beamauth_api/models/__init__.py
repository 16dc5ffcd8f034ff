"""Database models - import all models here for Alembic discovery."""

from beamauth_api.models.authorization import BEAM_MODE_NONE, Authorization, DestinationAuthorization
from beamauth_api.models.control import BeamDestination, CreditedControl, Group
from beamauth_api.models.staff import Staff, Workgroup, workgroup_leaders
from beamauth_api.models.verification import (
    NOT_VERIFIED,
    PROVISIONALLY_VERIFIED,
    VERIFIED,
    ControlVerification,
    VerificationHistory,
)

__all__ = [
    "Staff",
    "Workgroup",
    "workgroup_leaders",
    "Group",
    "CreditedControl",
    "BeamDestination",
    "ControlVerification",
    "VerificationHistory",
    "Authorization",
    "DestinationAuthorization",
    "BEAM_MODE_NONE",
    "VERIFIED",
    "PROVISIONALLY_VERIFIED",
    "NOT_VERIFIED",
]
