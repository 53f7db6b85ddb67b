"""SQLAlchemy ORM models."""

from cragdesk.models.base import Base
from cragdesk.models.refresh_token import RefreshToken
from cragdesk.models.user import User

__all__ = ["Base", "RefreshToken", "User"]
