"""
Create a user out of band (e.g. an extra admin). Creates missing tables when
DATABASE_AUTO_CREATE is on; otherwise run `alembic upgrade head` first. From project root:
  python -m cragdesk.scripts.create_user USERNAME PASSWORD [--admin] [--full-name NAME]
Example:
  python -m cragdesk.scripts.create_user setter your-secure-password --admin
"""
import argparse
import sys

from dotenv import load_dotenv
from sqlalchemy.exc import OperationalError

from cragdesk.core.config import get_settings
from cragdesk.core.database import build_engine, build_session_factory
from cragdesk.core.errors import UsernameTaken
from cragdesk.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    normalize_username,
)
from cragdesk.models import Base
from cragdesk.services.user_store import UserStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Cragdesk user.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars, stored lower-case)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--admin", action="store_true", help="Grant the global admin flag")
    parser.add_argument("--full-name", default=None, help="Display name (defaults to the username)")
    args = parser.parse_args(argv)

    username = normalize_username(args.username)
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    load_dotenv()
    settings = get_settings()
    engine = build_engine(settings)
    if settings.DATABASE_AUTO_CREATE:
        Base.metadata.create_all(engine)
    db = build_session_factory(engine)()
    try:
        user = UserStore(settings).create(
            db, username, args.password, full_name=args.full_name, is_global_admin=args.admin
        )
    except UsernameTaken:
        print(f"User '{username}' already exists.", file=sys.stderr)
        return 1
    except OperationalError as e:
        print(f"Database error: {e.orig}. Run `alembic upgrade head` first.", file=sys.stderr)
        return 1
    finally:
        db.close()
        engine.dispose()
    role = "admin" if user.is_global_admin else "user"
    print(f"Created user '{user.username}' ({role}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
