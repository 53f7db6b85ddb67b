"""Sweep of expired refresh tokens. Lookups also prune lazily; this bounds table growth."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlalchemy.orm import Session

from cragdesk.core.clock import utcnow
from cragdesk.models import RefreshToken

if TYPE_CHECKING:
    from cragdesk.core.config import Settings

logger = logging.getLogger(__name__)


def purge_expired_refresh_tokens(session: Session, settings: "Settings") -> int:
    """
    Delete refresh tokens whose expires_at has passed.

    Returns the number of rows deleted. Idempotent: safe to run repeatedly.
    """
    if not settings.REFRESH_TOKEN_SWEEP_ENABLED:
        logger.info("Refresh token sweep is disabled (REFRESH_TOKEN_SWEEP_ENABLED=false); skipping.")
        return 0

    cutoff = utcnow()
    deleted_count = session.execute(
        delete(RefreshToken)
        .where(RefreshToken.expires_at <= cutoff)
        .execution_options(synchronize_session=False)
    ).rowcount
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Refresh token sweep: cutoff=%s, tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
