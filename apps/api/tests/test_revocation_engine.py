"""Tests for cascading revocation of director's authorization."""

from datetime import datetime, timedelta

from beamauth_api.authorization.store import AuthorizationStore
from beamauth_api.models import BEAM_MODE_NONE, Authorization, DestinationAuthorization
from beamauth_api.revocation.engine import (
    CONTROL_REVOCATION_COMMENT,
    DIRECTOR_REVOCATION_COMMENT,
    RevocationEngine,
)


def _rows(db, authorization_id):
    return {
        row.beam_destination_id: (row.beam_mode, row.cw_limit, row.expiration_date, row.comments)
        for row in db.query(DestinationAuthorization)
        .filter(DestinationAuthorization.authorization_id == authorization_id)
        .all()
    }


def test_clear_for_expiration_carries_other_rows_forward(
    db, control, d1, d2, make_destination, make_verification, make_authorization
):
    d3 = make_destination("Hall C")
    expires = datetime.utcnow() + timedelta(days=7)
    verification = make_verification(control, d1)
    original = make_authorization((d1, "CW", expires), (d2, "Pulsed", expires), (d3, BEAM_MODE_NONE, None))
    original_id = original.id
    before = _rows(db, original_id)

    new_version = RevocationEngine(db).clear_for_expiration([verification])
    db.commit()

    after = _rows(db, new_version.id)
    assert after[d1.id] == (
        BEAM_MODE_NONE,
        None,
        expires,
        CONTROL_REVOCATION_COMMENT.format(reason="expiration"),
    )
    assert after[d2.id] == before[d2.id]
    assert after[d3.id] == before[d3.id]
    # previous version untouched
    assert _rows(db, original_id) == before


def test_already_revoked_rows_are_not_revoked_again(db, control, d1, d2, make_verification, make_authorization):
    verification = make_verification(control, d1)
    make_authorization((d1, BEAM_MODE_NONE, None), (d2, "CW", None))

    assert RevocationEngine(db).clear_for_downgrade([verification]) is None
    assert db.query(Authorization).count() == 1


def test_no_current_version_is_noop(db, control, d1, make_verification):
    verification = make_verification(control, d1)

    assert RevocationEngine(db).clear_for_downgrade([verification]) is None
    assert db.query(Authorization).count() == 0


def test_empty_current_version_is_noop(db, control, d1, make_verification, make_authorization):
    verification = make_verification(control, d1)
    make_authorization()

    assert RevocationEngine(db).clear_for_expiration([verification]) is None
    assert db.query(Authorization).count() == 1


def test_clear_for_destination_authorizations(db, d1, d2, make_authorization):
    past = datetime.utcnow() - timedelta(hours=1)
    make_authorization((d1, "CW", past), (d2, "CW", datetime.utcnow() + timedelta(days=1)))
    store = AuthorizationStore(db)
    expired = store.check_for_authorized_but_expired(store.find_current())

    new_version = RevocationEngine(db, store=store).revoke_expired_authorizations(expired)
    db.commit()

    after = _rows(db, new_version.id)
    assert after[d1.id][0] == BEAM_MODE_NONE
    assert after[d1.id][3] == DIRECTOR_REVOCATION_COMMENT
    assert after[d2.id][0] == "CW"


def test_rows_from_stale_version_do_not_match(db, d1, make_authorization):
    stale = make_authorization((d1, "CW", None))
    stale_rows = list(stale.destination_authorizations)
    make_authorization((d1, "CW", None))

    assert RevocationEngine(db).clear_for_destination_authorizations(stale_rows) is None


def test_system_staff_recorded_as_modifier(db, admin, control, d1, make_verification, make_authorization):
    verification = make_verification(control, d1)
    make_authorization((d1, "CW", None))

    new_version = RevocationEngine(db, system_staff_provider=lambda: admin).clear_for_downgrade([verification])

    assert new_version.modified_by_id == admin.id
