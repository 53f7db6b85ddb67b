"""Operator-token-gated reset of the designated admin account."""

import hmac
import logging

from sqlalchemy.orm import Session

from cragdesk.core.config import Settings
from cragdesk.core.errors import InvalidCredentials, MalformedRequest, RecoveryDisabled
from cragdesk.core.security import PASSWORD_MIN_LEN, normalize_username
from cragdesk.models import User
from cragdesk.services.refresh_tokens import RefreshTokenStore
from cragdesk.services.user_store import UserStore

logger = logging.getLogger(__name__)


class RecoveryService:
    """
    Create-or-reset an admin account with the out-of-band RECOVERY_TOKEN.

    Without a configured token the endpoint is disabled outright.
    """

    def __init__(self, settings: Settings, users: UserStore, refresh_tokens: RefreshTokenStore) -> None:
        self._token = settings.RECOVERY_TOKEN
        self._full_name = settings.ADMIN_FULL_NAME
        self._users = users
        self._refresh_tokens = refresh_tokens

    @property
    def enabled(self) -> bool:
        return self._token is not None

    def reset_admin(
        self,
        db: Session,
        admin_username: str | None,
        recovery_token: str | None,
        new_password: str | None,
    ) -> tuple[User, bool]:
        """Returns (user, created). Check order: username, enabled, token, password."""
        username = normalize_username(admin_username or "")
        if not username:
            raise MalformedRequest("admin_username is required")
        if self._token is None:
            raise RecoveryDisabled()
        expected = self._token.get_secret_value().encode("utf-8")
        if not recovery_token or not hmac.compare_digest(recovery_token.encode("utf-8"), expected):
            logger.warning("Recovery attempted with an invalid token for username=%s", username)
            raise InvalidCredentials("Invalid recovery token")
        if not new_password or len(new_password) < PASSWORD_MIN_LEN:
            raise MalformedRequest(f"Password must be at least {PASSWORD_MIN_LEN} characters")

        user = self._users.get_by_username(db, username)
        if user is None:
            user = self._users.create(
                db, username, new_password, full_name=self._full_name, is_global_admin=True
            )
            logger.warning("Recovery: created admin user %s", username)
            return user, True

        self._users.update(db, user, is_global_admin=True)
        self._users.set_password(db, user, new_password)
        self._refresh_tokens.revoke_all_for_user(db, user.id)
        logger.warning("Recovery: reset admin password for %s", username)
        return user, False
