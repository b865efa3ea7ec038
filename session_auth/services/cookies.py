from typing import Optional

from fastapi import Request, Response

from session_auth.config import settings


def read_credential(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name) or None


def set_credential_cookie(
    response: Response, token: str, max_age_seconds: Optional[int] = None
) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age_seconds or settings.session_ttl_seconds,
        path=settings.session_cookie_path,
        httponly=True,
        samesite=settings.session_cookie_samesite,
        secure=settings.session_cookie_secure,
    )


def clear_credential_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path=settings.session_cookie_path,
        httponly=True,
        samesite=settings.session_cookie_samesite,
        secure=settings.session_cookie_secure,
    )
