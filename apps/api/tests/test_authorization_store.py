"""Tests for the authorization version store."""

from datetime import datetime, timedelta

from beamauth_api.authorization.store import AuthorizationStore
from beamauth_api.models import BEAM_MODE_NONE, Authorization


def test_find_current_is_latest_version(db, d1, make_authorization):
    make_authorization((d1, "CW", None), comments="first")
    latest = make_authorization((d1, "Pulsed", None), comments="second")

    current = AuthorizationStore(db).find_current()

    assert current.id == latest.id
    assert [row.beam_mode for row in current.destination_authorizations] == ["Pulsed"]


def test_find_current_none_when_empty(db):
    assert AuthorizationStore(db).find_current() is None


def test_find_history_newest_first(db, d1, make_authorization):
    first = make_authorization((d1, "CW", None))
    second = make_authorization((d1, "CW", None))

    assert [a.id for a in AuthorizationStore(db).find_history()] == [second.id, first.id]


def test_clone_forward_is_transient(db, admin, d1, d2, make_authorization):
    expires = datetime.utcnow() + timedelta(days=5)
    current = make_authorization((d1, "CW", expires), (d2, BEAM_MODE_NONE, None))
    store = AuthorizationStore(db)

    new_version, clones = store.clone_forward(store.find_current(), modified_by=admin)

    assert new_version not in db
    assert all(clone not in db for clone in clones)
    assert new_version.comments == current.comments
    assert new_version.modified_by_id == admin.id
    assert [(c.beam_destination_id, c.beam_mode, c.cw_limit, c.expiration_date) for c in clones] == [
        (d1.id, "CW", 100.0, expires),
        (d2.id, BEAM_MODE_NONE, None, None),
    ]
    assert all(clone.authorization_id is None for clone in clones)


def test_persist_keys_clones_to_new_version(db, d1, make_authorization):
    make_authorization((d1, "CW", None))
    store = AuthorizationStore(db)

    new_version, clones = store.clone_forward(store.find_current())
    persisted = store.persist(new_version, clones)
    db.commit()

    assert db.query(Authorization).count() == 2
    assert [row.authorization_id for row in persisted.destination_authorizations] == [persisted.id]
    assert store.find_current().id == persisted.id


def test_authorized_but_expired(db, d1, d2, make_destination, make_authorization):
    past = datetime.utcnow() - timedelta(hours=1)
    d3 = make_destination("Hall C")
    inactive = make_destination("Injector Dump", active=False)
    make_authorization((d1, "CW", past))
    current = make_authorization(
        (d1, "CW", past),
        (d2, BEAM_MODE_NONE, past),
        (d3, "Pulsed", datetime.utcnow() + timedelta(days=1)),
        (inactive, "CW", past),
    )
    store = AuthorizationStore(db)

    expired = store.check_for_authorized_but_expired(store.find_current())

    assert [(row.authorization_id, row.beam_destination_id) for row in expired] == [(current.id, d1.id)]


def test_upcoming_authorization_expirations(db, d1, d2, make_destination, make_authorization):
    d3 = make_destination("Hall C")
    make_authorization(
        (d1, "CW", datetime.utcnow() + timedelta(days=1)),
        (d2, "CW", datetime.utcnow() + timedelta(days=10)),
        (d3, BEAM_MODE_NONE, datetime.utcnow() + timedelta(days=1)),
    )
    store = AuthorizationStore(db, upcoming_days=3)

    upcoming = store.check_for_upcoming_authorization_expirations(store.find_current())

    assert [row.beam_destination_id for row in upcoming] == [d1.id]


def test_expiration_checks_without_current_version(db):
    store = AuthorizationStore(db)
    assert store.check_for_authorized_but_expired(None) == []
    assert store.check_for_upcoming_authorization_expirations(None) == []
