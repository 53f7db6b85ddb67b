"""Alembic environment for Cragdesk. The database URL and engine options come from Settings."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from cragdesk.core.config import get_settings
from cragdesk.core.database import build_engine
from cragdesk.models import Base, RefreshToken, User  # noqa: F401

alembic_config = context.config
if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name, disable_existing_loggers=False)

settings = get_settings()


def _migrate(connection: Connection) -> None:
    # SQLite cannot ALTER most constraints in place.
    context.configure(
        connection=connection,
        target_metadata=Base.metadata,
        render_as_batch=connection.dialect.name == "sqlite",
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def emit_sql() -> None:
    """Offline mode: print the migration SQL for DATABASE_URL instead of executing it."""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.DATABASE_URL.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def apply_online() -> None:
    engine = build_engine(settings)
    with engine.connect() as connection:
        _migrate(connection)
    engine.dispose()


if context.is_offline_mode():
    emit_sql()
else:
    apply_online()
