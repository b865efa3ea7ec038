from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from session_auth.config import settings
from session_auth.database import session_scope
from session_auth.models.session import SessionEntry
from session_auth.schemas.sessions import SessionRecord


class SessionStoreError(RuntimeError):
    """The session table could not be read or written."""


class SessionConflictError(SessionStoreError):
    """A session with the same id already exists."""


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back without tzinfo; everything is stored as UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_record(entry: SessionEntry) -> SessionRecord:
    return SessionRecord(
        session_id=entry.session_id,
        user_id=entry.user_id,
        owner_email=entry.owner_email,
        created_at=_as_utc(entry.created_at),
        expires_at=_as_utc(entry.expires_at),
        last_active_at=_as_utc(entry.last_active_at),
        revoked_at=_as_utc(entry.revoked_at),
        ip=entry.ip,
        user_agent=entry.user_agent,
        device=entry.device,
        browser=entry.browser,
    )


@contextmanager
def _store_scope():
    try:
        with session_scope() as session:
            yield session
    except SessionStoreError:
        raise
    except SQLAlchemyError as exc:
        raise SessionStoreError("Session store operation failed") from exc


class SessionStore:
    """Persistence for session rows.

    Every mutating write is conditioned on ``revoked_at IS NULL`` so repeated
    or concurrent calls converge on the same end state without locking.
    Expiry is only judged when a caller passes ``now`` to the listing query.
    """

    def insert(self, record: SessionRecord) -> None:
        entry = SessionEntry(
            session_id=record.session_id,
            user_id=record.user_id,
            owner_email=record.owner_email,
            created_at=record.created_at,
            expires_at=record.expires_at,
            last_active_at=record.last_active_at or record.created_at,
            revoked_at=None,
            ip=record.ip,
            user_agent=record.user_agent,
            device=record.device,
            browser=record.browser,
        )
        with _store_scope() as session:
            session.add(entry)
            try:
                session.flush()
            except IntegrityError as exc:
                session.rollback()
                taken = session.execute(
                    select(SessionEntry.id).where(
                        SessionEntry.session_id == record.session_id
                    )
                ).first()
                if taken is not None:
                    raise SessionConflictError("Session id already exists") from exc
                raise SessionStoreError("Session row was rejected") from exc

    def find_by_id(self, session_id: str) -> Optional[SessionRecord]:
        with _store_scope() as session:
            entry = session.execute(
                select(SessionEntry).where(SessionEntry.session_id == session_id)
            ).scalar_one_or_none()
            if entry is None:
                return None
            return _to_record(entry)

    def update_last_active(self, session_id: str, timestamp: datetime) -> int:
        with _store_scope() as session:
            result = session.execute(
                update(SessionEntry)
                .where(
                    SessionEntry.session_id == session_id,
                    SessionEntry.revoked_at.is_(None),
                    or_(
                        SessionEntry.last_active_at.is_(None),
                        SessionEntry.last_active_at < timestamp,
                    ),
                )
                .values(last_active_at=timestamp)
            )
            return result.rowcount

    def mark_revoked(
        self, session_id: str, timestamp: datetime, owner_id: Optional[int] = None
    ) -> int:
        conditions = [
            SessionEntry.session_id == session_id,
            SessionEntry.revoked_at.is_(None),
        ]
        if owner_id is not None:
            conditions.append(SessionEntry.user_id == owner_id)
        with _store_scope() as session:
            result = session.execute(
                update(SessionEntry).where(*conditions).values(revoked_at=timestamp)
            )
            return result.rowcount

    def mark_all_revoked_except(
        self, owner_id: int, keep_id: Optional[str], timestamp: datetime
    ) -> int:
        conditions = [
            SessionEntry.user_id == owner_id,
            SessionEntry.revoked_at.is_(None),
        ]
        if keep_id is not None:
            conditions.append(SessionEntry.session_id != keep_id)
        with _store_scope() as session:
            result = session.execute(
                update(SessionEntry).where(*conditions).values(revoked_at=timestamp)
            )
            return result.rowcount

    def list_active_by_owner(
        self,
        owner_id: int,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[SessionRecord]:
        limit = limit or settings.session_list_limit
        conditions = [
            SessionEntry.user_id == owner_id,
            SessionEntry.revoked_at.is_(None),
        ]
        # The cap must apply to live rows only, or stale rows crowd them out.
        if now is not None:
            conditions.append(SessionEntry.expires_at > now)
        with _store_scope() as session:
            entries = session.execute(
                select(SessionEntry)
                .where(*conditions)
                .order_by(
                    SessionEntry.last_active_at.desc(),
                    SessionEntry.created_at.desc(),
                )
                .limit(limit)
            ).scalars().all()
            return [_to_record(entry) for entry in entries]


session_store = SessionStore()
