"""
Credential verification with a one-time legacy-hash migration.

Primary path is bcrypt. Accounts created by the old client-side scheme carry
a base64 salt and a base64 SHA-256 digest; when bcrypt fails and a salt is
present, the legacy digest is tried. A legacy match authenticates the user and
flags the record for an opportunistic rehash, which runs after the response
(see run_legacy_migration) so storage failures there cannot fail the login.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from cragdesk.core.clock import utcnow
from cragdesk.core.config import Settings
from cragdesk.core.errors import InvalidCredentials
from cragdesk.core.security import (
    dummy_password_hash,
    hash_password,
    verify_legacy_password,
    verify_password,
)
from cragdesk.models import User
from cragdesk.services.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verification:
    """Successful verification. legacy_match means the password still needs rehashing."""

    user: User
    legacy_match: bool = False


class CredentialVerifier:
    def __init__(self, settings: Settings, users: UserStore) -> None:
        self._rounds = settings.BCRYPT_ROUNDS
        self._users = users

    def verify(self, db: Session, username: str, password: str) -> Verification:
        """
        Check username/password. Raises InvalidCredentials for every failure
        (unknown user, wrong password, legacy mismatch) without telling them apart.
        """
        user = self._users.get_by_username(db, username)
        if user is None:
            # Spend a bcrypt comparison anyway so timing does not reveal unknown names.
            verify_password(password, dummy_password_hash(self._rounds))
            raise InvalidCredentials()

        if verify_password(password, user.password_hash):
            return Verification(user=user)

        if user.password_salt and verify_legacy_password(
            password, user.password_salt, user.password_hash
        ):
            logger.info("Legacy password match for user id=%s; scheduling rehash", user.id)
            return Verification(user=user, legacy_match=True)

        raise InvalidCredentials()

    def migrate_legacy(self, db: Session, user_id: int, password: str) -> bool:
        """
        Replace a legacy digest with a bcrypt hash and clear the salt.

        Conditional on the salt still being present, so a password changed in
        the meantime is never overwritten. Best effort: errors are logged and
        swallowed. Returns True if the row was upgraded.
        """
        try:
            result = db.execute(
                update(User)
                .where(User.id == user_id, User.password_salt.is_not(None))
                .values(
                    password_hash=hash_password(password, rounds=self._rounds),
                    password_salt=None,
                    updated_at=utcnow(),
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Legacy password migration failed for user id=%s", user_id)
            return False
        migrated = result.rowcount == 1
        if migrated:
            logger.info("Migrated legacy password hash for user id=%s", user_id)
        return migrated


def run_legacy_migration(
    session_factory: sessionmaker[Session],
    verifier: CredentialVerifier,
    user_id: int,
    password: str,
) -> None:
    """Background-task entrypoint: own session, never raises."""
    try:
        db = session_factory()
    except Exception:
        logger.exception("Could not open a session for legacy migration of user id=%s", user_id)
        return
    try:
        verifier.migrate_legacy(db, user_id, password)
    finally:
        db.close()
