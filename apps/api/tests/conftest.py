"""Pytest configuration and fixtures for integration tests."""

import os

# Route the application engine at SQLite before any settings are cached.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from beamauth_api.db.base import Base
from beamauth_api.models import (
    BEAM_MODE_NONE,
    VERIFIED,
    Authorization,
    BeamDestination,
    ControlVerification,
    CreditedControl,
    DestinationAuthorization,
    Group,
    Staff,
    Workgroup,
)
from beamauth_api.notifications.config import NotificationConfig
from beamauth_api.notifications.dispatcher import NotificationDispatcher

# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite:///:memory:"
)


@pytest.fixture(scope="function")
def db():
    """
    Create a test database session.

    For integration tests, use TEST_DATABASE_URL environment variable
    to point to a real PostgreSQL instance.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        # SQLite in-memory for fast unit tests
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        # PostgreSQL for integration tests
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def make_staff(db: Session):
    """Factory for staff members."""

    def _make(username: str, is_admin: bool = False, **attrs) -> Staff:
        staff = Staff(username=username, is_admin=is_admin, **attrs)
        db.add(staff)
        db.commit()
        return staff

    return _make


@pytest.fixture
def admin(make_staff) -> Staff:
    return make_staff("admin", is_admin=True, first_name="Ada", last_name="Admin")


@pytest.fixture
def leader(make_staff) -> Staff:
    return make_staff("leader", first_name="Lee", last_name="Leader")


@pytest.fixture
def operator(make_staff) -> Staff:
    """Staff member with no admin or leader role."""
    return make_staff("operator", first_name="Otto", last_name="Operator")


@pytest.fixture
def make_workgroup(db: Session):
    """Factory for workgroups with their leaders."""

    def _make(name: str, leaders=()) -> Workgroup:
        workgroup = Workgroup(name=name)
        workgroup.leaders.extend(leaders)
        db.add(workgroup)
        db.commit()
        return workgroup

    return _make


@pytest.fixture
def workgroup(make_workgroup, leader) -> Workgroup:
    return make_workgroup("Safety Systems", leaders=[leader])


@pytest.fixture
def make_control(db: Session):
    """Factory for credited controls, one owning group per workgroup."""

    def _make(name: str, workgroup: Workgroup, weight: int = 0) -> CreditedControl:
        group = db.query(Group).filter(Group.leader_workgroup_id == workgroup.id).first()
        if group is None:
            group = Group(name=f"{workgroup.name} Group", leader_workgroup_id=workgroup.id)
            db.add(group)
            db.flush()
        control = CreditedControl(name=name, group_id=group.id, weight=weight)
        db.add(control)
        db.commit()
        return control

    return _make


@pytest.fixture
def control(make_control, workgroup) -> CreditedControl:
    return make_control("Beam Envelope Limit", workgroup, weight=1)


@pytest.fixture
def make_destination(db: Session):
    """Factory for beam destinations."""

    def _make(name: str, active: bool = True, weight: int = 0) -> BeamDestination:
        destination = BeamDestination(name=name, active=active, weight=weight)
        db.add(destination)
        db.commit()
        return destination

    return _make


@pytest.fixture
def d1(make_destination) -> BeamDestination:
    return make_destination("Hall A", weight=1)


@pytest.fixture
def d2(make_destination) -> BeamDestination:
    return make_destination("Hall B", weight=2)


@pytest.fixture
def make_verification(db: Session, admin):
    """Factory for control verifications."""

    def _make(
        control: CreditedControl,
        destination: BeamDestination,
        status: int = VERIFIED,
        expiration_date=None,
        verified_by: Staff = None,
        comments: str = None,
    ) -> ControlVerification:
        now = datetime.utcnow()
        verification = ControlVerification(
            credited_control_id=control.id,
            beam_destination_id=destination.id,
            verification_id=status,
            verification_date=now - timedelta(days=30),
            verified_by_id=(verified_by or admin).id,
            expiration_date=expiration_date,
            comments=comments,
            modified_by_id=admin.id,
            modified_date=now - timedelta(days=30),
        )
        db.add(verification)
        db.commit()
        return verification

    return _make


@pytest.fixture
def make_authorization(db: Session, admin):
    """
    Factory for authorization versions.

    Each row is a (destination, beam_mode, expiration_date) tuple.
    """

    def _make(*rows, comments: str = "Director approval") -> Authorization:
        now = datetime.utcnow()
        authorization = Authorization(
            authorization_date=now,
            authorized_by_id=admin.id,
            comments=comments,
            modified_by_id=admin.id,
            modified_date=now,
        )
        db.add(authorization)
        db.flush()
        for destination, beam_mode, expiration_date in rows:
            authorization.destination_authorizations.append(
                DestinationAuthorization(
                    beam_destination_id=destination.id,
                    authorization_id=authorization.id,
                    beam_mode=beam_mode,
                    cw_limit=None if beam_mode == BEAM_MODE_NONE else 100.0,
                    expiration_date=expiration_date,
                    comments="Approved",
                )
            )
        db.commit()
        return authorization

    return _make


@pytest.fixture
def notification_config() -> NotificationConfig:
    return NotificationConfig(
        sender="beamauth@example.org",
        admin_recipients=["admin@example.org"],
        ops_recipients=["ops@example.org"],
        downgraded_recipients=["safety@example.org"],
        upcoming_expiration_subject="Upcoming and Expired",
        expired_subject="Expired",
        downgraded_subject="Downgraded",
        proxy_hostname="ace.example.org",
        logbook_server="logbooks.example.org",
        logbooks=["TLOG"],
        logbook_tags=["Readme"],
        staff_email_domain="example.org",
        group_email_enabled=True,
    )


@pytest.fixture
def email_sender() -> MagicMock:
    return MagicMock()


@pytest.fixture
def logbook_client() -> MagicMock:
    client = MagicMock()
    client.submit.return_value = 1234
    return client


@pytest.fixture
def dispatcher(notification_config, email_sender, logbook_client) -> NotificationDispatcher:
    return NotificationDispatcher(notification_config, email_sender, logbook_client)
