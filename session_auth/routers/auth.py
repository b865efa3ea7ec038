from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from session_auth.config import settings
from session_auth.schemas.auth import AuthContext, Identity, LoginResponse, MeResponse
from session_auth.schemas.sessions import MessageResponse
from session_auth.services.auth_guard import get_auth_context, require_auth_context
from session_auth.services.cookies import clear_credential_cookie, set_credential_cookie
from session_auth.services.credentials import encode_credential
from session_auth.services.network import client_ip_from_headers
from session_auth.services.sessions import session_manager
from session_auth.services.users import ACTIVE_STATUS

router = APIRouter(prefix="/auth", tags=["auth"])


def get_verified_identity() -> Identity:
    """Identity of a caller whose password was checked by the identity layer.

    Deployments wire their provider in with ``app.dependency_overrides``.
    """
    raise HTTPException(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        detail="Identity provider is not configured",
    )


@router.post("/login", response_model=LoginResponse)
def login(
    request: Request,
    response: Response,
    identity: Identity = Depends(get_verified_identity),
) -> LoginResponse:
    if identity.status != ACTIVE_STATUS:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active",
        )
    email = identity.email.strip().lower()
    peer_host = request.client.host if request.client else None
    session_id = session_manager.create(
        identity.user_id,
        email,
        client_ip_from_headers(request.headers, peer_host),
        request.headers.get("user-agent"),
    )
    set_credential_cookie(response, encode_credential(email, session_id))
    return LoginResponse(
        message="Logged in",
        session_id=session_id,
        expires_in_seconds=settings.session_ttl_seconds,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    context: Optional[AuthContext] = Depends(get_auth_context),
) -> MessageResponse:
    if context is not None and context.session_id:
        session_manager.revoke(context.user_id, context.session_id)
    clear_credential_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
def get_me(context: AuthContext = Depends(require_auth_context)) -> MeResponse:
    return MeResponse(
        user_id=context.user_id,
        email=context.identity,
        session_id=context.session_id,
        degraded=context.degraded,
    )
