"""Client-held credential codec.

The credential is a signed token carrying ``sub`` (the account email) and,
for credentials issued since session tracking, ``sid`` (the session id).
Tokens without ``sid`` are the legacy shape: still accepted, never issued.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
import logging
from typing import ClassVar, Optional, Union

import jwt

from session_auth.config import settings
from session_auth.services.sessions import SessionManager, session_manager

LOGGER = logging.getLogger(__name__)

CREDENTIAL_TYPE = "session"


class CredentialError(ValueError):
    pass


class MalformedCredentialError(CredentialError):
    pass


class InvalidCredentialError(CredentialError):
    pass


class CredentialConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class CurrentCredential:
    identity: str
    session_id: str
    user_id: Optional[int] = None

    degraded: ClassVar[bool] = False


@dataclass(frozen=True)
class LegacyCredential:
    identity: str

    session_id: ClassVar[None] = None
    degraded: ClassVar[bool] = True


Credential = Union[CurrentCredential, LegacyCredential]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _secret() -> str:
    if not settings.credential_secret:
        raise CredentialConfigError("Credential secret is not configured")
    return settings.credential_secret


def encode_credential(
    identity: str, session_id: str, max_age_seconds: Optional[int] = None
) -> str:
    if not identity:
        raise ValueError("identity is required")
    if not session_id:
        raise ValueError("session_id is required")
    now = _utcnow()
    max_age = max_age_seconds or settings.session_ttl_seconds
    payload = {
        "sub": identity,
        "sid": session_id,
        "type": CREDENTIAL_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=max_age)).timestamp()),
    }
    return jwt.encode(payload, _secret(), algorithm=settings.credential_algorithm)


def parse_credential(token: Optional[str]) -> Credential:
    if not token:
        raise MalformedCredentialError("Credential is missing")
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[settings.credential_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidCredentialError("Credential has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise MalformedCredentialError("Credential could not be decoded") from exc
    if payload.get("type", CREDENTIAL_TYPE) != CREDENTIAL_TYPE:
        raise MalformedCredentialError("Invalid credential type")
    identity = payload.get("sub")
    if not isinstance(identity, str) or not identity.strip():
        raise MalformedCredentialError("Credential identity is missing")
    session_id = payload.get("sid")
    # Tokens without `sid` were signed by deployments whose logins did not yet
    # create session rows. Their older unsigned JSON cookies fail decoding above.
    if session_id is None or session_id == "":
        return LegacyCredential(identity=identity)
    if not isinstance(session_id, str):
        raise MalformedCredentialError("Credential session id is invalid")
    return CurrentCredential(identity=identity, session_id=session_id)


def decode_credential(
    token: Optional[str], manager: Optional[SessionManager] = None
) -> Credential:
    credential = parse_credential(token)
    if isinstance(credential, LegacyCredential):
        return credential
    manager = manager or session_manager
    view = manager.validate(credential.session_id)
    if view is None:
        raise InvalidCredentialError("Session is not active")
    if view.owner_email != credential.identity:
        LOGGER.warning(
            "Credential identity does not match session owner for user %s",
            view.user_id,
        )
        raise InvalidCredentialError("Credential does not match session")
    return replace(credential, user_id=view.user_id)
