"""Immutable snapshots of rows named in a notification.

Notifications are sent after the revocation commits, by which time expired rows
have been rewritten; notices capture what expired.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from beamauth_api.models import ControlVerification, DestinationAuthorization
from beamauth_api.models.verification import verification_status_name

_DATE_FIELDS = ("verification_date", "expiration_date", "modified_date")


@dataclass(frozen=True)
class VerificationNotice:
    verification_id: int
    control_id: int
    control_name: str
    destination_id: int
    destination_name: str
    status: int
    verification_date: Optional[datetime]
    verified_by: str
    expiration_date: Optional[datetime]
    comments: str
    modified_by: str
    modified_date: Optional[datetime]
    workgroup_id: Optional[int]
    workgroup_name: Optional[str]
    leader_usernames: tuple[str, ...]

    @property
    def status_name(self) -> str:
        return verification_status_name(self.status)

    @classmethod
    def from_verification(cls, verification: ControlVerification) -> "VerificationNotice":
        control = verification.credited_control
        workgroup = control.group.leader_workgroup if control.group else None
        return cls(
            verification_id=verification.id,
            control_id=control.id,
            control_name=control.name,
            destination_id=verification.beam_destination_id,
            destination_name=verification.beam_destination.name,
            status=verification.verification_id,
            verification_date=verification.verification_date,
            verified_by=verification.verified_by.display_name() if verification.verified_by else "",
            expiration_date=verification.expiration_date,
            comments=verification.comments or "",
            modified_by=verification.modified_by.display_name() if verification.modified_by else "",
            modified_date=verification.modified_date,
            workgroup_id=workgroup.id if workgroup else None,
            workgroup_name=workgroup.name if workgroup else None,
            leader_usernames=tuple(
                leader.username for leader in (workgroup.leaders if workgroup else []) if leader.username
            ),
        )

    def as_dict(self) -> dict:
        """JSON-safe form for handing the snapshot to a worker."""
        data = asdict(self)
        for key in _DATE_FIELDS:
            if data[key] is not None:
                data[key] = data[key].isoformat()
        data["leader_usernames"] = list(self.leader_usernames)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "VerificationNotice":
        values = dict(data)
        for key in _DATE_FIELDS:
            if values.get(key):
                values[key] = datetime.fromisoformat(values[key])
        values["leader_usernames"] = tuple(values.get("leader_usernames") or ())
        return cls(**values)


@dataclass(frozen=True)
class AuthorizationNotice:
    authorization_id: int
    destination_id: int
    destination_name: str
    beam_mode: str
    expiration_date: Optional[datetime]
    comments: str

    @classmethod
    def from_destination_authorization(cls, row: DestinationAuthorization) -> "AuthorizationNotice":
        return cls(
            authorization_id=row.authorization_id,
            destination_id=row.beam_destination_id,
            destination_name=row.destination.name,
            beam_mode=row.beam_mode,
            expiration_date=row.expiration_date,
            comments=row.comments or "",
        )


def verification_notices(verifications) -> list[VerificationNotice]:
    return [VerificationNotice.from_verification(v) for v in verifications or []]


def authorization_notices(rows) -> list[AuthorizationNotice]:
    return [AuthorizationNotice.from_destination_authorization(row) for row in rows or []]
