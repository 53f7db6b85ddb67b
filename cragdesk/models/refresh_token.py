"""ORM model for rotating refresh tokens (one row per login session)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from cragdesk.core.clock import utcnow
from cragdesk.models.base import Base


class RefreshToken(Base):
    """
    A login session backed by a refresh secret.

    Only the non-secret selector and the SHA-256 of the verifier half are
    stored. No ON DELETE cascade: user deletion removes these rows explicitly.
    """

    __tablename__ = "refresh_tokens"
    # Ids are never reused, so a stale id cannot name a newer session.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    selector = Column(String(64), nullable=False, unique=True, index=True)
    token_hash = Column(String(128), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    device_info = Column(String(255), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
