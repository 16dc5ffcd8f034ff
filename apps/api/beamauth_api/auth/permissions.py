"""Actor permission checks for verification changes."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from beamauth_api.auth.directory import StaffDirectory
from beamauth_api.exceptions import NotFound, PermissionDenied
from beamauth_api.models import Staff, Workgroup

logger = logging.getLogger(__name__)


class PermissionOracle:
    """Answer who an actor is and what the actor may do."""

    def __init__(self, db: Session, directory: Optional[StaffDirectory] = None):
        """Initialize permission oracle."""
        self.db = db
        self.directory = directory or StaffDirectory(db)

    def resolve_actor(self, username: Optional[str]) -> Staff:
        """Resolve the calling user; raises NotFound when unknown."""
        return self.directory.find_by_username(username)

    def is_admin(self, staff: Staff) -> bool:
        return bool(staff.is_admin)

    def is_leader(self, staff: Staff, workgroup: Optional[Workgroup]) -> bool:
        if workgroup is None:
            return False
        return any(leader.id == staff.id for leader in workgroup.leaders)

    def check_admin(self, username: Optional[str]) -> Staff:
        """Return the actor if it holds the administrative capability."""
        try:
            staff = self.resolve_actor(username)
        except NotFound as e:
            raise PermissionDenied(f"user {username} is not authorized") from e
        if not self.is_admin(staff):
            logger.warning("Admin capability denied", extra={"username": username})
            raise PermissionDenied(f"user {username} is not authorized")
        return staff

    def check_admin_or_group_leader(self, staff: Staff, workgroup: Optional[Workgroup]) -> None:
        """Allow administrators and leaders of the given workgroup."""
        if self.is_admin(staff) or self.is_leader(staff, workgroup):
            return
        logger.warning(
            "Group leader permission denied",
            extra={"username": staff.username, "workgroup": workgroup.name if workgroup else None},
        )
        raise PermissionDenied(
            f"user {staff.username} must be an admin or a leader of workgroup "
            f"{workgroup.name if workgroup else '(none)'}"
        )
