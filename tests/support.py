"""Shared builders for tests: settings, in-memory databases, users, and an app client."""

import base64

from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cragdesk.core.config import Settings
from cragdesk.core.database import build_engine, build_session_factory
from cragdesk.core.security import hash_password, legacy_password_digest
from cragdesk.models import Base, User

TEST_JWT_SECRET = "test-only-signing-secret-0123456789abcdef"
TEST_ORIGIN = "http://localhost:5173"


def make_settings(**overrides: object) -> Settings:
    """Fast, isolated settings: in-memory SQLite, low bcrypt cost, no bootstrap admin."""
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_JWT_SECRET,
        "BCRYPT_ROUNDS": 4,
        "BOOTSTRAP_ADMIN": False,
        "ALLOWED_ORIGINS": TEST_ORIGIN,
        "SERVER_ORIGIN": "http://testserver",
        "RECOVERY_TOKEN": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_database(settings: Settings) -> tuple[Engine, sessionmaker[Session]]:
    engine = build_engine(settings)
    Base.metadata.create_all(engine)
    return engine, build_session_factory(engine)


def add_user(
    db: Session,
    username: str,
    password: str,
    is_global_admin: bool = False,
) -> User:
    user = User(
        username=username,
        full_name=username,
        is_global_admin=is_global_admin,
        password_hash=hash_password(password, rounds=4),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_legacy_user(
    db: Session,
    username: str,
    password: str,
    salt: bytes = b"legacy-salt-1234",
) -> User:
    """A user as written by the old client-side scheme: base64 salt + base64 SHA-256."""
    salt_b64 = base64.b64encode(salt).decode("ascii")
    user = User(
        username=username,
        full_name=username,
        is_global_admin=False,
        password_hash=legacy_password_digest(salt_b64, password),
        password_salt=salt_b64,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_client(settings: Settings | None = None) -> TestClient:
    """App client with tables created; the app's session factory is app.state.session_factory."""
    from cragdesk.main import create_app

    app = create_app(settings or make_settings())
    Base.metadata.create_all(app.state.engine)
    return TestClient(app)
