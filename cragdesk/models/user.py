"""ORM model for application users (credential store)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from cragdesk.core.clock import utcnow
from cragdesk.models.base import Base


class User(Base):
    """
    User account for cookie/JWT authentication.

    username is stored lower-case and unique. password_salt is only set on
    records created by the legacy client-side hashing scheme; it is cleared the
    first time the password is stored with bcrypt.
    """

    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    is_global_admin = Column(Boolean, nullable=False, default=False)
    password_hash = Column(String(255), nullable=False)
    password_salt = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} admin={self.is_global_admin}>"
