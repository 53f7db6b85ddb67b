"""Credential store: persisted user records and their password hashes."""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cragdesk.core.config import Settings
from cragdesk.core.errors import MalformedRequest, UsernameTaken
from cragdesk.core.security import hash_password, normalize_username
from cragdesk.models import RefreshToken, User

logger = logging.getLogger(__name__)


class UserStore:
    """Owns the users table. Every password write goes through bcrypt and clears the legacy salt."""

    def __init__(self, settings: Settings) -> None:
        self._rounds = settings.BCRYPT_ROUNDS

    def get(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)

    def get_by_username(self, db: Session, username: str) -> User | None:
        normalized = normalize_username(username)
        if not normalized:
            return None
        return db.execute(
            select(User).where(func.lower(User.username) == normalized)
        ).scalar_one_or_none()

    def list(self, db: Session) -> list[User]:
        return list(db.execute(select(User).order_by(User.id)).scalars())

    def create(
        self,
        db: Session,
        username: str,
        password: str,
        full_name: str | None = None,
        is_global_admin: bool = False,
    ) -> User:
        """Create a user; raises UsernameTaken on a case-insensitive duplicate."""
        normalized = normalize_username(username)
        if not normalized:
            raise MalformedRequest("username and password required")
        if self.get_by_username(db, normalized) is not None:
            raise UsernameTaken()
        user = User(
            username=normalized,
            full_name=(full_name or "").strip() or normalized,
            is_global_admin=is_global_admin,
            password_hash=hash_password(password, rounds=self._rounds),
            password_salt=None,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same name.
            db.rollback()
            raise UsernameTaken() from exc
        db.refresh(user)
        logger.info("Created user id=%s username=%s admin=%s", user.id, user.username, is_global_admin)
        return user

    def update(
        self,
        db: Session,
        user: User,
        full_name: str | None = None,
        is_global_admin: bool | None = None,
    ) -> User:
        if full_name is not None:
            user.full_name = full_name.strip() or user.username
        if is_global_admin is not None:
            user.is_global_admin = is_global_admin
        db.commit()
        db.refresh(user)
        return user

    def set_password(self, db: Session, user: User, password: str) -> User:
        user.password_hash = hash_password(password, rounds=self._rounds)
        user.password_salt = None
        db.commit()
        db.refresh(user)
        return user

    def delete(self, db: Session, user: User) -> None:
        """Delete a user and, first, every refresh token that references it."""
        tokens_deleted = db.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user.id)
        ).rowcount
        db.delete(user)
        db.commit()
        logger.info("Deleted user id=%s username=%s sessions_removed=%s", user.id, user.username, tokens_deleted)
