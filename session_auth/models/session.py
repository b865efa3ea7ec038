from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from session_auth.database import Base


class SessionEntry(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True)
    session_id = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    last_active_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    device = Column(String(64), nullable=True)
    browser = Column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_sessions_expires_at", "expires_at"),
        Index("ix_sessions_last_active_at", "last_active_at"),
        Index("ix_sessions_revoked_at", "revoked_at"),
    )
