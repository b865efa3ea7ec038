from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from session_auth.schemas.auth import AuthContext
from session_auth.schemas.sessions import (
    MessageResponse,
    SessionItem,
    SessionListResponse,
    SessionView,
)
from session_auth.services.auth_guard import require_auth_context
from session_auth.services.cookies import clear_credential_cookie
from session_auth.services.network import location_label
from session_auth.services.sessions import session_manager

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _to_item(view: SessionView) -> SessionItem:
    return SessionItem(
        id=view.session_id,
        device=view.device,
        browser=view.browser,
        ip=view.ip,
        location=location_label(view.ip),
        last_active=view.last_active_at,
        created_at=view.created_at,
        expires_at=view.expires_at,
        is_current=view.is_current,
    )


@router.get("", response_model=SessionListResponse)
def list_sessions(
    context: AuthContext = Depends(require_auth_context),
) -> SessionListResponse:
    views = session_manager.list_sessions(context.user_id, context.session_id)
    return SessionListResponse(
        items=[_to_item(view) for view in views],
        degraded=context.degraded,
    )


@router.delete("", response_model=MessageResponse)
def revoke_session(
    response: Response,
    session_id: Optional[str] = Query(default=None, alias="id", max_length=128),
    context: AuthContext = Depends(require_auth_context),
) -> MessageResponse:
    if not session_id or session_id == context.session_id:
        session_manager.revoke(context.user_id, context.session_id)
        clear_credential_cookie(response)
        return MessageResponse(message="Current session revoked")
    session_manager.revoke(context.user_id, session_id)
    return MessageResponse(message="Session revoked")


@router.post("/revoke-others", response_model=MessageResponse)
def revoke_other_sessions(
    response: Response,
    confirm_all: bool = Query(default=False),
    context: AuthContext = Depends(require_auth_context),
) -> MessageResponse:
    if context.session_id:
        session_manager.revoke_others(context.user_id, context.session_id)
        return MessageResponse(message="Other sessions revoked")
    # Without a current session id every session of the account goes,
    # including the one making this request.
    if not confirm_all:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Current session is not tracked; confirm to sign out of every device",
        )
    session_manager.revoke_others(context.user_id, None)
    clear_credential_cookie(response)
    return MessageResponse(message="All sessions revoked")
