"""First-run creation of the initial admin account."""

import logging
import os
import secrets
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cragdesk.core.config import Settings
from cragdesk.models import User
from cragdesk.services.user_store import UserStore

logger = logging.getLogger(__name__)


def _write_password_file(path: Path, username: str, password: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(f"username: {username}\npassword: {password}\n")


def ensure_initial_admin(db: Session, settings: Settings, users: UserStore) -> User | None:
    """
    Create ADMIN_USERNAME as a global admin if no users exist yet.

    In dev without ADMIN_PASSWORD a random password is generated and written to
    ADMIN_PASSWORD_FILE (mode 0600); it is never logged. In prod ADMIN_PASSWORD
    is required. Returns the created user, or None when nothing was created.
    """
    if not settings.BOOTSTRAP_ADMIN:
        return None
    if db.execute(select(func.count()).select_from(User)).scalar_one() > 0:
        return None

    generated = False
    if settings.ADMIN_PASSWORD is not None:
        password = settings.ADMIN_PASSWORD.get_secret_value()
    elif settings.APP_ENV == "prod":
        logger.error("ADMIN_PASSWORD must be set in prod to create the initial admin user; skipping")
        return None
    else:
        password = secrets.token_urlsafe(12)
        generated = True

    user = users.create(
        db,
        settings.ADMIN_USERNAME,
        password,
        full_name=settings.ADMIN_FULL_NAME,
        is_global_admin=True,
    )
    if generated:
        path = Path(settings.ADMIN_PASSWORD_FILE).resolve()
        try:
            _write_password_file(path, user.username, password)
            logger.warning("Default admin %r created; password written to %s", user.username, path)
        except OSError:
            logger.exception("Default admin created but the generated password could not be written to %s", path)
    else:
        logger.info("Initial admin %r created from ADMIN_PASSWORD", user.username)
    return user
