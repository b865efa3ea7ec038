from datetime import datetime, timedelta, timezone
import logging
import secrets
from typing import Callable, Optional

from session_auth.config import settings
from session_auth.schemas.sessions import SessionRecord, SessionView
from session_auth.services.network import normalize_ip
from session_auth.services.session_store import (
    SessionConflictError,
    SessionStore,
    SessionStoreError,
    session_store,
)
from session_auth.services.user_agent import (
    UNKNOWN_BROWSER,
    UNKNOWN_DEVICE,
    classify_user_agent,
)

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def _short(session_id: Optional[str]) -> str:
    if not session_id:
        return "-"
    return f"{session_id[:6]}..."


def _to_view(record: SessionRecord, current_id: Optional[str] = None) -> SessionView:
    return SessionView(
        session_id=record.session_id,
        user_id=record.user_id,
        owner_email=record.owner_email,
        device=record.device or UNKNOWN_DEVICE,
        browser=record.browser or UNKNOWN_BROWSER,
        ip=normalize_ip(record.ip),
        created_at=record.created_at,
        expires_at=record.expires_at,
        last_active_at=record.last_active_at or record.created_at,
        is_current=current_id is not None and record.session_id == current_id,
    )


class SessionManager:
    """Issues, validates and revokes device sessions.

    A session is active while it has no ``revoked_at`` and the clock is before
    ``expires_at``. Expiry is never written; it is evaluated on every read.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = new_session_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def create(
        self,
        owner_id: int,
        email: str,
        client_addr: Optional[str],
        raw_agent: Optional[str],
        ttl_seconds: Optional[int] = None,
    ) -> str:
        ttl = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        labels = classify_user_agent(raw_agent)
        attempts = max(1, settings.session_id_attempts)
        for attempt in range(1, attempts + 1):
            now = self._clock()
            record = SessionRecord(
                session_id=self._id_factory(),
                user_id=owner_id,
                owner_email=email,
                created_at=now,
                expires_at=now + timedelta(seconds=ttl),
                last_active_at=now,
                revoked_at=None,
                ip=normalize_ip(client_addr),
                user_agent=raw_agent or None,
                device=labels.device,
                browser=labels.browser,
            )
            try:
                self._store.insert(record)
            except SessionConflictError:
                LOGGER.warning(
                    "Session id collision for user %s (attempt %s/%s)",
                    owner_id,
                    attempt,
                    attempts,
                )
                continue
            LOGGER.info(
                "Created session %s for user %s on %s",
                _short(record.session_id),
                owner_id,
                labels.device,
            )
            return record.session_id
        raise SessionStoreError(
            f"Could not allocate a unique session id after {attempts} attempts"
        )

    def validate(self, session_id: Optional[str]) -> Optional[SessionView]:
        if not session_id:
            return None
        record = self._store.find_by_id(session_id)
        if record is None or not record.is_active(self._clock()):
            return None
        return _to_view(record)

    def touch(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        try:
            self._store.update_last_active(session_id, self._clock())
        except Exception:
            LOGGER.warning(
                "Failed to record activity for session %s",
                _short(session_id),
                exc_info=True,
            )

    def revoke(self, owner_id: int, session_id: Optional[str]) -> None:
        if not session_id:
            return
        revoked = self._store.mark_revoked(session_id, self._clock(), owner_id=owner_id)
        if revoked:
            LOGGER.info("Revoked session %s for user %s", _short(session_id), owner_id)

    def revoke_others(self, owner_id: int, keep_id: Optional[str]) -> int:
        revoked = self._store.mark_all_revoked_except(owner_id, keep_id, self._clock())
        LOGGER.info(
            "Revoked %s session(s) for user %s, kept %s",
            revoked,
            owner_id,
            _short(keep_id),
        )
        return revoked

    def list_sessions(
        self, owner_id: int, current_id: Optional[str]
    ) -> list[SessionView]:
        now = self._clock()
        return [
            _to_view(record, current_id)
            for record in self._store.list_active_by_owner(owner_id, now=now)
            if record.is_active(now)
        ]


session_manager = SessionManager(session_store)
