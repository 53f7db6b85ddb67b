"""
CLI entrypoint for the expired refresh-token sweep. Run from cron, e.g.:

  python -m cragdesk.reaper

Or hourly: 0 * * * * cd /path/to/cragdesk && .venv/bin/python -m cragdesk.reaper
"""

import logging
import sys

from dotenv import load_dotenv

from cragdesk.core.config import get_settings
from cragdesk.core.database import build_engine, build_session_factory
from cragdesk.services.token_reaper import purge_expired_refresh_tokens

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete refresh tokens whose expiry has passed."""
    load_dotenv()
    settings = get_settings()
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        tokens_deleted = purge_expired_refresh_tokens(db, settings)
        logger.info("Refresh token sweep completed: tokens_deleted=%s", tokens_deleted)
        return 0
    except Exception as e:
        logger.exception("Refresh token sweep failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
