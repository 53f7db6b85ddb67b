"""Session enumeration and revocation on top of the refresh-token store."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from cragdesk.core.errors import Forbidden, NotFound
from cragdesk.models import RefreshToken
from cragdesk.schemas.auth import Claims
from cragdesk.services.refresh_tokens import RefreshTokenStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionView:
    token: RefreshToken
    is_current: bool


class SessionManager:
    """Owner-or-admin access to a user's refresh-token-backed sessions."""

    def __init__(self, refresh_tokens: RefreshTokenStore) -> None:
        self._tokens = refresh_tokens

    def list(
        self,
        db: Session,
        user_id: int,
        caller: Claims,
        current_secret: str | None = None,
    ) -> list[SessionView]:
        if user_id != caller.user_id and not caller.is_global_admin:
            raise Forbidden()
        current = self._tokens.resolve(db, current_secret) if current_secret else None
        current_id = current.id if current is not None else None
        return [
            SessionView(token=row, is_current=row.id == current_id)
            for row in self._tokens.list_for_user(db, user_id)
        ]

    def revoke(
        self,
        db: Session,
        session_id: int,
        caller: Claims,
        current_secret: str | None = None,
    ) -> bool:
        """
        Delete one session. Raises NotFound or Forbidden.

        Returns True when the revoked session is the one backing the caller's
        own refresh cookie, so the caller's cookies should be cleared too.
        """
        row = self._tokens.get(db, session_id)
        if row is None:
            raise NotFound("Session not found")
        if row.user_id != caller.user_id and not caller.is_global_admin:
            logger.warning(
                "User id=%s tried to revoke session id=%s owned by user id=%s",
                caller.user_id,
                session_id,
                row.user_id,
            )
            raise Forbidden()

        current = self._tokens.resolve(db, current_secret) if current_secret else None
        is_current = current is not None and current.id == session_id

        if not self._tokens.revoke(db, row):
            raise NotFound("Session not found")
        logger.info("User id=%s revoked session id=%s (current=%s)", caller.user_id, session_id, is_current)
        return is_current

    def revoke_all(self, db: Session, user_id: int) -> int:
        return self._tokens.revoke_all_for_user(db, user_id)
