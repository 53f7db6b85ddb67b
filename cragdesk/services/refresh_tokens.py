"""
Rotating refresh tokens.

A raw refresh secret is "<selector>.<verifier>". The selector is a random,
non-secret, indexed key; only a SHA-256 of the verifier is stored. Lookup is
one indexed query plus one constant-time comparison, instead of scanning and
slow-hash-comparing every outstanding row.

Rotation claims the old row with a conditional DELETE and only the caller whose
DELETE removed the row goes on to mint a replacement. Two concurrent rotations
of the same secret therefore yield exactly one new session.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from cragdesk.core.clock import as_utc, utcnow
from cragdesk.core.config import Settings
from cragdesk.core.security import (
    generate_refresh_secret,
    split_refresh_secret,
    verify_refresh_verifier,
)
from cragdesk.models import RefreshToken, User
from cragdesk.schemas.auth import Claims
from cragdesk.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenMetadata:
    """Caller-supplied context shown back to the user when listing sessions."""

    device_info: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class Rotation:
    refresh_token: str
    access_token: str
    user: User


def _clip(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    return value[:limit]


class RefreshTokenStore:
    def __init__(self, settings: Settings, issuer: TokenIssuer) -> None:
        self.default_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        self._issuer = issuer

    def create(
        self,
        db: Session,
        user_id: int,
        metadata: TokenMetadata | None = None,
        ttl: timedelta | None = None,
        commit: bool = True,
    ) -> str:
        """Persist a new session for user_id and return its raw secret."""
        raw_secret, selector, token_hash = generate_refresh_secret()
        metadata = metadata or TokenMetadata()
        now = utcnow()
        db.add(
            RefreshToken(
                user_id=user_id,
                selector=selector,
                token_hash=token_hash,
                expires_at=now + (ttl if ttl is not None else self.default_ttl),
                created_at=now,
                device_info=_clip(metadata.device_info, 255),
                ip_address=_clip(metadata.ip_address, 64),
                user_agent=_clip(metadata.user_agent, 512),
                last_used_at=now,
            )
        )
        if commit:
            db.commit()
        return raw_secret

    def resolve(self, db: Session, raw_secret: str | None) -> RefreshToken | None:
        """
        Find the live row for a presented secret, or None.

        An expired match is deleted on the spot and reported as None.
        """
        if not raw_secret:
            return None
        parts = split_refresh_secret(raw_secret)
        if parts is None:
            return None
        selector, verifier = parts
        row = db.execute(
            select(RefreshToken).where(RefreshToken.selector == selector)
        ).scalar_one_or_none()
        if row is None or not verify_refresh_verifier(verifier, row.token_hash):
            return None
        if as_utc(row.expires_at) <= utcnow():
            logger.info("Pruning expired refresh token id=%s user_id=%s", row.id, row.user_id)
            self._claim(db, row.id, row.selector)
            db.commit()
            return None
        return row

    def _claim(self, db: Session, token_id: int, selector: str) -> bool:
        """
        Conditional delete; True only for the caller that actually removed the row.

        Matching on the selector as well as the id means a caller holding a
        stale row can never remove a different session.
        """
        result = db.execute(
            delete(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.selector == selector)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    def rotate(
        self, db: Session, raw_secret: str | None, metadata: TokenMetadata | None = None
    ) -> Rotation | None:
        """
        Exchange a valid refresh secret for a new secret and a new access token.

        Returns None when the secret is missing, malformed, unknown, expired,
        belongs to a deleted user, or was already consumed by a concurrent call.
        """
        row = self.resolve(db, raw_secret)
        if row is None:
            return None
        row_id, selector, user_id, device_info = row.id, row.selector, row.user_id, row.device_info

        user = db.get(User, user_id)
        if user is None:
            logger.warning("Refresh token id=%s references missing user id=%s; deleting", row_id, user_id)
            self._claim(db, row_id, selector)
            db.commit()
            return None

        if not self._claim(db, row_id, selector):
            db.rollback()
            logger.warning("Refresh token id=%s was already rotated by a concurrent request", row_id)
            return None

        metadata = metadata or TokenMetadata()
        new_secret = self.create(
            db,
            user_id,
            TokenMetadata(
                device_info=metadata.device_info or device_info,
                ip_address=metadata.ip_address,
                user_agent=metadata.user_agent,
            ),
            commit=False,
        )
        db.commit()
        access_token = self._issuer.issue(Claims.from_user(user))
        logger.debug("Rotated refresh token id=%s for user id=%s", row_id, user_id)
        return Rotation(refresh_token=new_secret, access_token=access_token, user=user)

    def get(self, db: Session, token_id: int) -> RefreshToken | None:
        return db.get(RefreshToken, token_id)

    def list_for_user(self, db: Session, user_id: int) -> list[RefreshToken]:
        """Non-expired sessions for user_id, newest first."""
        return list(
            db.execute(
                select(RefreshToken)
                .where(RefreshToken.user_id == user_id, RefreshToken.expires_at > utcnow())
                .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
            ).scalars()
        )

    def revoke(self, db: Session, token: RefreshToken) -> bool:
        """Delete exactly this session row; False if it is already gone."""
        removed = self._claim(db, token.id, token.selector)
        db.commit()
        return removed

    def revoke_all_for_user(self, db: Session, user_id: int) -> int:
        count = db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session="evaluate")
        ).rowcount
        db.commit()
        if count:
            logger.info("Revoked %s refresh token(s) for user id=%s", count, user_id)
        return count
