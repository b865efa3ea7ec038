from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from session_auth.schemas.sessions import SessionRecord
from session_auth.services.session_store import (
    SessionConflictError,
    SessionStoreError,
    session_store,
)

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def _record(session_id: str, user_id: int, created_at: datetime = T0) -> SessionRecord:
    return SessionRecord(
        session_id=session_id,
        user_id=user_id,
        owner_email="u1@example.com",
        created_at=created_at,
        expires_at=created_at + timedelta(hours=1),
        last_active_at=created_at,
        revoked_at=None,
        ip="127.0.0.1",
        user_agent="curl/8.5.0",
        device="Desktop device",
        browser="curl/8.5.0",
    )


def test_insert_and_find_round_trip(user):
    session_store.insert(_record("sid-1", user.user_id))

    found = session_store.find_by_id("sid-1")

    assert found is not None
    assert found.user_id == user.user_id
    assert found.expires_at == T0 + timedelta(hours=1)
    assert found.expires_at.tzinfo is not None
    assert found.revoked_at is None


def test_find_missing_returns_none():
    assert session_store.find_by_id("missing") is None


def test_insert_duplicate_id_raises_conflict(user):
    session_store.insert(_record("sid-1", user.user_id))

    with pytest.raises(SessionConflictError):
        session_store.insert(_record("sid-1", user.user_id))


def test_conflict_is_a_store_error():
    assert issubclass(SessionConflictError, SessionStoreError)


def test_find_does_not_filter_revoked_or_expired(user):
    session_store.insert(_record("sid-1", user.user_id))
    session_store.mark_revoked("sid-1", T0 + timedelta(days=2))

    found = session_store.find_by_id("sid-1")

    assert found is not None
    assert found.revoked_at == T0 + timedelta(days=2)


def test_mark_revoked_is_idempotent_and_keeps_first_timestamp(user):
    session_store.insert(_record("sid-1", user.user_id))

    assert session_store.mark_revoked("sid-1", T0 + timedelta(minutes=1)) == 1
    assert session_store.mark_revoked("sid-1", T0 + timedelta(minutes=2)) == 0
    assert session_store.find_by_id("sid-1").revoked_at == T0 + timedelta(minutes=1)


def test_mark_revoked_with_foreign_owner_changes_nothing(user, other_user):
    session_store.insert(_record("sid-1", user.user_id))

    assert session_store.mark_revoked("sid-1", T0, owner_id=other_user.user_id) == 0
    assert session_store.find_by_id("sid-1").revoked_at is None


def test_update_last_active_skips_revoked_rows(user):
    session_store.insert(_record("sid-1", user.user_id))
    session_store.mark_revoked("sid-1", T0 + timedelta(minutes=1))

    assert session_store.update_last_active("sid-1", T0 + timedelta(minutes=5)) == 0
    assert session_store.find_by_id("sid-1").last_active_at == T0


def test_update_last_active_never_moves_backwards(user):
    session_store.insert(_record("sid-1", user.user_id))
    later = T0 + timedelta(minutes=10)

    session_store.update_last_active("sid-1", later)
    session_store.update_last_active("sid-1", T0 + timedelta(minutes=3))

    assert session_store.find_by_id("sid-1").last_active_at == later


def test_mark_all_revoked_except_keeps_one(user, other_user):
    for session_id in ("a", "b", "c"):
        session_store.insert(_record(session_id, user.user_id))
    session_store.insert(_record("foreign", other_user.user_id))

    changed = session_store.mark_all_revoked_except(user.user_id, "b", T0)

    assert changed == 2
    assert [r.session_id for r in session_store.list_active_by_owner(user.user_id)] == ["b"]
    assert session_store.find_by_id("foreign").revoked_at is None


def test_mark_all_revoked_without_keep_revokes_everything(user):
    for session_id in ("a", "b"):
        session_store.insert(_record(session_id, user.user_id))

    assert session_store.mark_all_revoked_except(user.user_id, None, T0) == 2
    assert session_store.mark_all_revoked_except(user.user_id, None, T0) == 0
    assert session_store.list_active_by_owner(user.user_id) == []


def test_list_active_orders_by_last_activity_then_creation(user):
    session_store.insert(_record("oldest", user.user_id, T0))
    session_store.insert(_record("middle", user.user_id, T0 + timedelta(minutes=1)))
    session_store.insert(_record("newest", user.user_id, T0 + timedelta(minutes=2)))
    session_store.update_last_active("oldest", T0 + timedelta(minutes=30))

    listed = session_store.list_active_by_owner(user.user_id)

    assert [r.session_id for r in listed] == ["oldest", "newest", "middle"]


def test_list_active_is_capped(user):
    for index in range(5):
        session_store.insert(
            _record(f"sid-{index}", user.user_id, T0 + timedelta(seconds=index))
        )

    assert len(session_store.list_active_by_owner(user.user_id, limit=3)) == 3


def test_rejected_row_is_not_reported_as_id_collision():
    record = _record("sid-1", None)

    with pytest.raises(SessionStoreError) as excinfo:
        session_store.insert(record)

    assert not isinstance(excinfo.value, SessionConflictError)


def test_list_active_cap_skips_expired_rows(user):
    session_store.insert(_record("live", user.user_id, T0 - timedelta(minutes=10)))
    later = T0 + timedelta(minutes=5)
    for index in range(3):
        stale = _record(f"stale-{index}", user.user_id, later)
        session_store.insert(replace(stale, expires_at=later + timedelta(seconds=1)))

    listed = session_store.list_active_by_owner(
        user.user_id, limit=2, now=later + timedelta(minutes=1)
    )

    assert [r.session_id for r in listed] == ["live"]
