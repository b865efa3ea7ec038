from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


@dataclass(frozen=True)
class DeviceLabels:
    device: str
    browser: str


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    user_id: int
    owner_email: Optional[str]
    created_at: datetime
    expires_at: datetime
    last_active_at: Optional[datetime]
    revoked_at: Optional[datetime]
    ip: Optional[str]
    user_agent: Optional[str]
    device: Optional[str]
    browser: Optional[str]

    def is_active(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.expires_at


@dataclass(frozen=True)
class SessionView:
    session_id: str
    user_id: int
    owner_email: Optional[str]
    device: str
    browser: str
    ip: str
    created_at: datetime
    expires_at: datetime
    last_active_at: datetime
    is_current: bool = False


class SessionItem(BaseModel):
    id: str
    device: str
    browser: str
    ip: str
    location: str
    last_active: datetime
    created_at: datetime
    expires_at: datetime
    is_current: bool


class SessionListResponse(BaseModel):
    items: list[SessionItem]
    degraded: bool = False


class MessageResponse(BaseModel):
    message: str
