from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel


@dataclass(frozen=True)
class Identity:
    """A user whose credentials were verified by the identity layer."""

    user_id: int
    email: str
    status: str = "active"


@dataclass(frozen=True)
class AuthContext:
    user_id: int
    identity: str
    session_id: Optional[str]
    degraded: bool


class LoginResponse(BaseModel):
    message: str
    session_id: str
    expires_in_seconds: int


class MeResponse(BaseModel):
    user_id: int
    email: str
    session_id: Optional[str] = None
    degraded: bool = False
