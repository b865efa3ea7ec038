import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test_sessions.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["CREDENTIAL_SECRET"] = "test-credential-secret-with-enough-bytes-0123456789"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["SESSION_TTL_SECONDS"] = "3600"
os.environ.setdefault("SEED_EMAIL", "")

import session_auth.main as main  # noqa: E402  (import after env vars are set)
from session_auth.config import settings  # noqa: E402
from session_auth.database import Base, engine, init_db  # noqa: E402
from session_auth.routers.auth import get_verified_identity  # noqa: E402
from session_auth.schemas.auth import Identity  # noqa: E402
from session_auth.services.sessions import SessionManager, session_manager  # noqa: E402
from session_auth.services.session_store import session_store  # noqa: E402
from session_auth.services.users import user_store  # noqa: E402

BROWSER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Safari/605.1.15"
)
PHONE_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


def make_legacy_token(email: str, max_age: int = 3600) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "type": "session",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=max_age)).timestamp()),
    }
    return jwt.encode(payload, settings.credential_secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_db():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def manager(clock):
    return SessionManager(session_store, clock=clock)


@pytest.fixture()
def patched_clock(monkeypatch, clock):
    """Drive the application-wide session manager from the fake clock."""
    monkeypatch.setattr(session_manager, "_clock", clock)
    return clock


@pytest.fixture()
def user():
    return user_store.ensure_user("u1@example.com")


@pytest.fixture()
def other_user():
    return user_store.ensure_user("u2@example.com")


@pytest.fixture()
def client():
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.pop(get_verified_identity, None)


def login_as(
    client: TestClient,
    identity: Identity,
    user_agent: str = BROWSER_AGENT,
    forwarded_for: str = "192.168.1.10",
) -> str:
    main.app.dependency_overrides[get_verified_identity] = lambda: identity
    response = client.post(
        "/api/auth/login",
        headers={"User-Agent": user_agent, "X-Forwarded-For": forwarded_for},
    )
    assert response.status_code == 200, response.text
    return response.json()["session_id"]
