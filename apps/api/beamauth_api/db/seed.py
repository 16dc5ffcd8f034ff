"""Seed data for development and testing."""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from beamauth_api.auth.directory import StaffDirectory
from beamauth_api.models import (
    NOT_VERIFIED,
    VERIFIED,
    Authorization,
    BeamDestination,
    ControlVerification,
    CreditedControl,
    DestinationAuthorization,
    Group,
    Workgroup,
)
from beamauth_api.settings import get_settings


def seed_staff(db: Session):
    """Seed the system account, an administrator and a group leader."""
    settings = get_settings()
    directory = StaffDirectory(db)
    directory.get_or_create(settings.system_username, first_name="Beam Authorization", last_name="System")
    admin = directory.get_or_create("admin", first_name="Ada", last_name="Admin", is_admin=True)
    leader = directory.get_or_create("leader", first_name="Lee", last_name="Leader")
    db.commit()
    print(f"✓ Staff ready: {admin.username}, {leader.username}")
    return admin, leader


def seed_controls(db: Session, leader):
    """Seed a workgroup, its control group, controls and destinations."""
    workgroup = db.query(Workgroup).filter(Workgroup.name == "Safety Systems").first()
    if workgroup:
        print(f"✓ Workgroup already exists: {workgroup.name}")
        return

    workgroup = Workgroup(name="Safety Systems")
    workgroup.leaders.append(leader)
    db.add(workgroup)
    db.flush()

    group = Group(name="Personnel Safety", leader_workgroup_id=workgroup.id)
    db.add(group)
    db.flush()

    controls = [
        CreditedControl(name="Beam Envelope Limit", description="Limits beam power", group_id=group.id, weight=1),
        CreditedControl(name="Area Access Interlock", description="Door interlocks", group_id=group.id, weight=2),
    ]
    destinations = [
        BeamDestination(name="Hall A", active=True, weight=1),
        BeamDestination(name="Hall B", active=True, weight=2),
        BeamDestination(name="Injector Dump", active=False, weight=3),
    ]
    db.add_all(controls + destinations)
    db.flush()

    now = datetime.utcnow()
    for control in controls:
        for destination in destinations:
            db.add(
                ControlVerification(
                    credited_control_id=control.id,
                    beam_destination_id=destination.id,
                    verification_id=VERIFIED if destination.active else NOT_VERIFIED,
                    verification_date=now if destination.active else None,
                    verified_by_id=leader.id if destination.active else None,
                    expiration_date=now + timedelta(days=180) if destination.active else None,
                    modified_by_id=leader.id,
                    modified_date=now,
                )
            )

    db.commit()
    print(f"✓ Created {len(controls)} controls and {len(destinations)} destinations")


def seed_authorization(db: Session, admin):
    """Seed an initial director's authorization."""
    if db.query(Authorization).first():
        print("✓ Authorization already exists")
        return

    now = datetime.utcnow()
    authorization = Authorization(
        authorization_date=now,
        authorized_by_id=admin.id,
        comments="Initial authorization",
        modified_by_id=admin.id,
        modified_date=now,
    )
    db.add(authorization)
    db.flush()

    for destination in db.query(BeamDestination).filter(BeamDestination.active == True).all():  # noqa: E712
        db.add(
            DestinationAuthorization(
                authorization_id=authorization.id,
                beam_destination_id=destination.id,
                beam_mode="CW",
                cw_limit=1000.0,
                expiration_date=now + timedelta(days=30),
            )
        )

    db.commit()
    print(f"✓ Created authorization {authorization.id}")


def seed_all(db: Session):
    """Seed all initial data."""
    admin, leader = seed_staff(db)
    seed_controls(db, leader)
    seed_authorization(db, admin)
