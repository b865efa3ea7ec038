import logging
import os
import threading
from contextlib import contextmanager

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

LOGGER = logging.getLogger(__name__)


def _build_database_url() -> str:
    raw_url = os.getenv("DATABASE_URL", "")
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


DATABASE_URL = _build_database_url()
engine = create_engine(DATABASE_URL, pool_pre_ping=True) if DATABASE_URL else None
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
)
Base = declarative_base()

# Columns added to the sessions table after it first shipped. Older
# deployments get them patched in once at startup.
_SESSION_COLUMNS = {
    "owner_email": "VARCHAR(255)",
    "last_active_at": "TIMESTAMP",
    "revoked_at": "TIMESTAMP",
    "ip": "VARCHAR(64)",
    "user_agent": "TEXT",
    "device": "VARCHAR(64)",
    "browser": "VARCHAR(255)",
}

_init_lock = threading.Lock()
_initialized = False


def init_db() -> None:
    global _initialized
    if _initialized:
        return
    with _init_lock:
        if _initialized:
            return
        if engine is None:
            raise RuntimeError("DATABASE_URL is not configured")
        from session_auth.models import session as _session  # noqa: F401
        from session_auth.models import user as _user  # noqa: F401

        Base.metadata.create_all(bind=engine)
        _patch_session_columns()
        _initialized = True


def _patch_session_columns() -> None:
    inspector = inspect(engine)
    if "sessions" not in inspector.get_table_names():
        return
    columns = {column["name"] for column in inspector.get_columns("sessions")}
    missing = [name for name in _SESSION_COLUMNS if name not in columns]
    if not missing:
        return
    with engine.begin() as connection:
        for name in missing:
            LOGGER.info("Adding missing sessions column %s", name)
            connection.execute(
                text(f"ALTER TABLE sessions ADD COLUMN {name} {_SESSION_COLUMNS[name]}")
            )
        if "last_active_at" in missing:
            connection.execute(
                text(
                    "UPDATE sessions SET last_active_at = created_at "
                    "WHERE last_active_at IS NULL"
                )
            )


def ping_db() -> None:
    if engine is None:
        raise RuntimeError("DATABASE_URL is not configured")
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
