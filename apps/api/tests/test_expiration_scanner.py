"""Tests for the periodic expiration check."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from beamauth_api.authorization.store import AuthorizationStore
from beamauth_api.expiration.scanner import ExpirationScanner
from beamauth_api.models import BEAM_MODE_NONE, NOT_VERIFIED, VERIFIED, Authorization
from beamauth_api.revocation.engine import CONTROL_REVOCATION_COMMENT, DIRECTOR_REVOCATION_COMMENT
from beamauth_api.settings import Settings


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite:///:memory:",
        system_username="beamauth-system",
        upcoming_verification_days=7,
        upcoming_authorization_days=3,
    )


@pytest.fixture
def mock_dispatcher():
    return MagicMock()


@pytest.fixture
def scanner(db, settings, mock_dispatcher):
    return ExpirationScanner.build(db, settings, mock_dispatcher)


def _current_rows(db):
    current = AuthorizationStore(db).find_current()
    return {row.beam_destination_id: row for row in current.destination_authorizations}


def test_expired_verification_revokes_destination(
    db, scanner, mock_dispatcher, control, d1, d2, make_verification, make_authorization
):
    future = datetime.utcnow() + timedelta(days=10)
    expired = make_verification(control, d1, status=VERIFIED, expiration_date=datetime.utcnow() - timedelta(hours=1))
    make_verification(control, d2, status=VERIFIED, expiration_date=future)
    make_authorization((d1, "CW", future), (d2, "CW", future))

    report = scanner.perform_expiration_check(include_upcoming=False)

    assert len(report.new_authorization_ids) == 1
    rows = _current_rows(db)
    assert rows[d1.id].beam_mode == BEAM_MODE_NONE
    assert rows[d1.id].comments == CONTROL_REVOCATION_COMMENT.format(reason="expiration")
    assert rows[d2.id].beam_mode == "CW"
    assert scanner.registry.find(control.id, d1.id).verification_id == NOT_VERIFIED

    # notices describe what expired, not the revoked state
    assert [n.verification_id for n in report.expired_verifications] == [expired.id]
    assert report.expired_verifications[0].status == VERIFIED
    mock_dispatcher.notify_expirations.assert_called_once_with([], report.expired_verifications, [], [])


def test_expired_authorization_revoked(db, scanner, mock_dispatcher, d1, d2, make_authorization):
    make_authorization(
        (d1, "CW", datetime.utcnow() - timedelta(hours=1)),
        (d2, "CW", datetime.utcnow() + timedelta(days=10)),
    )

    report = scanner.perform_expiration_check(include_upcoming=False)

    rows = _current_rows(db)
    assert rows[d1.id].beam_mode == BEAM_MODE_NONE
    assert rows[d1.id].comments == DIRECTOR_REVOCATION_COMMENT
    assert rows[d2.id].beam_mode == "CW"
    assert [n.destination_id for n in report.expired_authorizations] == [d1.id]
    assert report.expired_authorizations[0].beam_mode == "CW"


def test_both_steps_create_separate_versions(
    db, scanner, control, d1, d2, make_verification, make_authorization
):
    make_verification(control, d2, status=VERIFIED, expiration_date=datetime.utcnow() - timedelta(hours=1))
    make_authorization(
        (d1, "CW", datetime.utcnow() - timedelta(hours=1)),
        (d2, "CW", datetime.utcnow() + timedelta(days=10)),
    )

    report = scanner.perform_expiration_check(include_upcoming=False)

    assert len(report.new_authorization_ids) == 2
    assert db.query(Authorization).count() == 3
    rows = _current_rows(db)
    assert rows[d1.id].beam_mode == BEAM_MODE_NONE
    assert rows[d2.id].beam_mode == BEAM_MODE_NONE


def test_upcoming_only_when_requested(
    db, scanner, control, d1, d2, make_verification, make_authorization
):
    make_verification(control, d1, status=VERIFIED, expiration_date=datetime.utcnow() + timedelta(days=2))
    make_authorization((d2, "CW", datetime.utcnow() + timedelta(days=1)))

    hourly = scanner.perform_expiration_check(include_upcoming=False)
    assert hourly.upcoming_verifications == []
    assert hourly.upcoming_authorizations == []

    daily = scanner.perform_expiration_check(include_upcoming=True)
    assert [n.destination_id for n in daily.upcoming_verifications] == [d1.id]
    assert [n.destination_id for n in daily.upcoming_authorizations] == [d2.id]
    assert daily.new_authorization_ids == []


def test_nothing_expired_creates_nothing(db, scanner, d1, make_authorization):
    make_authorization((d1, "CW", datetime.utcnow() + timedelta(days=10)))

    report = scanner.perform_expiration_check(include_upcoming=True)

    assert report.new_authorization_ids == []
    assert db.query(Authorization).count() == 1


def test_notification_failure_keeps_revocation(
    db, scanner, mock_dispatcher, control, d1, make_verification, make_authorization
):
    mock_dispatcher.notify_expirations.side_effect = RuntimeError("smtp down")
    make_verification(control, d1, status=VERIFIED, expiration_date=datetime.utcnow() - timedelta(hours=1))
    make_authorization((d1, "CW", None))

    report = scanner.perform_expiration_check(include_upcoming=False)

    assert len(report.new_authorization_ids) == 1
    assert _current_rows(db)[d1.id].beam_mode == BEAM_MODE_NONE


def test_report_as_dict(db, scanner, control, d1, make_verification):
    verification = make_verification(control, d1, status=VERIFIED, expiration_date=datetime.utcnow() - timedelta(hours=1))

    report = scanner.perform_expiration_check(include_upcoming=False)

    assert report.as_dict() == {
        "expired_authorizations": [],
        "expired_verifications": [verification.id],
        "upcoming_authorizations": [],
        "upcoming_verifications": [],
        "new_authorization_ids": [],
    }
