"""Access-token issuing and validation (signed JWT, not encrypted)."""

import logging
from datetime import timedelta
from typing import Any

import jwt
from pydantic import ValidationError

from cragdesk.core.clock import utcnow
from cragdesk.core.config import Settings
from cragdesk.schemas.auth import Claims

logger = logging.getLogger(__name__)

# Used only when APP_ENV=dev and JWT_SECRET is unset.
DEV_JWT_SECRET = "cragdesk-dev-only-jwt-secret-do-not-deploy"
ACCESS_TOKEN_TYPE = "access"


class TokenIssuer:
    """
    Signs and verifies short-lived access tokens carrying Claims.

    Refuses to construct in prod without an explicit JWT_SECRET.
    """

    def __init__(self, settings: Settings) -> None:
        if settings.JWT_SECRET is None:
            if settings.APP_ENV == "prod":
                raise RuntimeError("JWT_SECRET must be set when APP_ENV=prod")
            logger.warning("JWT_SECRET is not set; using the development signing secret")
            self._secret = DEV_JWT_SECRET
        else:
            self._secret = settings.JWT_SECRET.get_secret_value()
        self._algorithm = settings.JWT_ALGORITHM
        self.default_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue(self, claims: Claims, ttl: timedelta | None = None) -> str:
        """Create a JWT with sub (user id), username, admin flag, iat and exp."""
        now = utcnow()
        payload: dict[str, Any] = {
            "sub": str(claims.user_id),
            "username": claims.username,
            "is_global_admin": claims.is_global_admin,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.default_ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str | None) -> Claims | None:
        """
        Return the token's Claims, or None if it is malformed, tampered with,
        expired or not an access token. Never raises.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWTError:
            return None
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            return None
        try:
            return Claims(
                user_id=int(payload["sub"]),
                username=payload["username"],
                is_global_admin=payload.get("is_global_admin", False),
            )
        except (KeyError, TypeError, ValueError, ValidationError):
            return None
