import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from session_auth.schemas.auth import AuthContext
from session_auth.services.cookies import read_credential
from session_auth.services.credentials import (
    CredentialError,
    LegacyCredential,
    decode_credential,
)
from session_auth.services.sessions import SessionManager, session_manager
from session_auth.services.users import ACTIVE_STATUS, UserStore, user_store

LOGGER = logging.getLogger(__name__)


def authenticate(
    token: Optional[str],
    manager: Optional[SessionManager] = None,
    users: Optional[UserStore] = None,
) -> Optional[AuthContext]:
    """Resolve a raw credential to an authenticated context.

    Returns ``None`` for a missing, malformed or invalid credential. Session
    store failures are not caught and reach the caller.
    """
    if not token:
        return None
    manager = manager or session_manager
    try:
        credential = decode_credential(token, manager)
    except CredentialError as exc:
        LOGGER.debug("Rejected credential: %s", exc)
        return None

    if isinstance(credential, LegacyCredential):
        identity = (users or user_store).get_by_email(credential.identity)
        if identity is None or identity.status != ACTIVE_STATUS:
            return None
        return AuthContext(
            user_id=identity.user_id,
            identity=credential.identity,
            session_id=None,
            degraded=True,
        )

    manager.touch(credential.session_id)
    return AuthContext(
        user_id=credential.user_id,
        identity=credential.identity,
        session_id=credential.session_id,
        degraded=False,
    )


def get_auth_context(request: Request) -> Optional[AuthContext]:
    return authenticate(read_credential(request))


def require_auth_context(
    context: Optional[AuthContext] = Depends(get_auth_context),
) -> AuthContext:
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not logged in",
        )
    return context
