"""Run the Alembic migrations against a temp SQLite file and check the resulting schema."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from cragdesk.core.config import get_settings

ROOT = Path(__file__).resolve().parent.parent


class TestMigrations(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.database_url = f"sqlite:///{os.path.join(self.tmpdir.name, 'migrated.db')}"
        get_settings.cache_clear()

    def tearDown(self) -> None:
        get_settings.cache_clear()
        self.tmpdir.cleanup()

    def upgrade(self) -> None:
        config = Config(str(ROOT / "alembic.ini"))
        config.set_main_option("script_location", str(ROOT / "alembic"))
        with patch.dict(os.environ, {"DATABASE_URL": self.database_url}):
            command.upgrade(config, "head")

    def test_upgrade_creates_tables_with_non_reused_ids(self) -> None:
        self.upgrade()
        engine = create_engine(self.database_url)
        try:
            self.assertTrue({"users", "refresh_tokens"} <= set(inspect(engine).get_table_names()))
            with engine.connect() as conn:
                for table in ("users", "refresh_tokens"):
                    ddl = conn.execute(
                        text("SELECT sql FROM sqlite_master WHERE type = 'table' AND name = :name"),
                        {"name": table},
                    ).scalar_one()
                    self.assertIn("AUTOINCREMENT", ddl.upper())
        finally:
            engine.dispose()

    def test_upgrade_is_idempotent(self) -> None:
        self.upgrade()
        self.upgrade()


if __name__ == "__main__":
    unittest.main()
