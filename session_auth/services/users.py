from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select

from session_auth.database import session_scope
from session_auth.models.user import UserEntry
from session_auth.schemas.auth import Identity

ACTIVE_STATUS = "active"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _to_identity(entry: UserEntry) -> Identity:
    return Identity(
        user_id=entry.id,
        email=entry.email,
        status=entry.status or ACTIVE_STATUS,
    )


class UserStore:
    """Read access to the externally managed user table."""

    def get_by_email(self, email: str) -> Optional[Identity]:
        if not email:
            return None
        with session_scope() as session:
            entry = session.execute(
                select(UserEntry).where(UserEntry.email == _normalize_email(email))
            ).scalar_one_or_none()
            if entry is None:
                return None
            return _to_identity(entry)

    def ensure_user(self, email: str, status: str = ACTIVE_STATUS) -> Identity:
        key = _normalize_email(email)
        if not key or "@" not in key:
            raise ValueError("A valid email is required")
        with session_scope() as session:
            entry = session.execute(
                select(UserEntry).where(UserEntry.email == key)
            ).scalar_one_or_none()
            if entry is None:
                entry = UserEntry(
                    email=key,
                    status=status,
                    created_at=datetime.now(timezone.utc),
                )
                session.add(entry)
            elif entry.status != status:
                entry.status = status
            session.flush()
            return _to_identity(entry)


user_store = UserStore()
