"""Staff directory lookups."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from beamauth_api.exceptions import NotFound
from beamauth_api.models import Staff

logger = logging.getLogger(__name__)


class StaffDirectory:
    """Resolve usernames to staff records."""

    def __init__(self, db: Session):
        """Initialize staff directory."""
        self.db = db

    def find_by_username(self, username: Optional[str]) -> Staff:
        """Return the staff member with this username or raise NotFound."""
        staff = None
        if username:
            staff = self.db.query(Staff).filter(Staff.username == username.strip()).first()
        if staff is None:
            raise NotFound(f"staff with username {username} not found")
        return staff

    def get_or_create(self, username: str, **attributes) -> Staff:
        """Return the staff member with this username, creating it when missing."""
        staff = self.db.query(Staff).filter(Staff.username == username).first()
        if staff is None:
            logger.info("Creating staff record", extra={"username": username})
            staff = Staff(username=username, **attributes)
            self.db.add(staff)
            self.db.flush()
        return staff
