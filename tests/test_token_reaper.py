"""Unit and integration tests for the expired refresh-token sweep."""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy import func, select

from cragdesk import reaper
from cragdesk.models import RefreshToken
from cragdesk.services.refresh_tokens import RefreshTokenStore
from cragdesk.services.token_reaper import purge_expired_refresh_tokens
from cragdesk.services.tokens import TokenIssuer
from support import add_user, make_database, make_settings


class TestSweepDisabled(unittest.TestCase):
    """When REFRESH_TOKEN_SWEEP_ENABLED is False, nothing is deleted."""

    def test_returns_zero_and_does_not_query(self) -> None:
        settings = MagicMock()
        settings.REFRESH_TOKEN_SWEEP_ENABLED = False
        session = MagicMock()
        self.assertEqual(purge_expired_refresh_tokens(session, settings), 0)
        session.execute.assert_not_called()
        session.commit.assert_not_called()


class TestSweepCounts(unittest.TestCase):
    def test_returns_rowcount_and_commits(self) -> None:
        settings = MagicMock()
        settings.REFRESH_TOKEN_SWEEP_ENABLED = True
        session = MagicMock()
        session.execute.return_value.rowcount = 3
        self.assertEqual(purge_expired_refresh_tokens(session, settings), 3)
        session.commit.assert_called_once()


class TestSweepIntegration(unittest.TestCase):
    """Real SQLite: expired rows go, live rows stay, and a second run finds nothing."""

    def test_deletes_only_expired_tokens(self) -> None:
        settings = make_settings()
        engine, Session = make_database(settings)
        store = RefreshTokenStore(settings, TokenIssuer(settings))
        db = Session()
        try:
            user = add_user(db, "alice", "Secret123!")
            live = store.create(db, user.id)
            store.create(db, user.id, ttl=timedelta(seconds=-1))
            store.create(db, user.id, ttl=timedelta(days=-3))

            self.assertEqual(purge_expired_refresh_tokens(db, settings), 2)
            self.assertEqual(purge_expired_refresh_tokens(db, settings), 0)

            remaining = db.execute(select(func.count()).select_from(RefreshToken)).scalar_one()
            self.assertEqual(remaining, 1)
            self.assertIsNotNone(store.resolve(db, live))
        finally:
            db.close()
            engine.dispose()


class TestReaperCli(unittest.TestCase):
    def test_main_reports_failure_with_exit_code(self) -> None:
        settings = make_settings()
        with patch.object(reaper, "get_settings", return_value=settings), patch.object(
            reaper, "purge_expired_refresh_tokens", side_effect=RuntimeError("boom")
        ):
            self.assertEqual(reaper.main(), 1)

    def test_main_succeeds(self) -> None:
        settings = make_settings()
        with patch.object(reaper, "get_settings", return_value=settings), patch.object(
            reaper, "purge_expired_refresh_tokens", return_value=0
        ) as purge:
            self.assertEqual(reaper.main(), 0)
        purge.assert_called_once()


if __name__ == "__main__":
    unittest.main()
