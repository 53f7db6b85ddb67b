"""Tests for RecoveryService: operator-token admin reset."""

import unittest

from cragdesk.core.errors import InvalidCredentials, MalformedRequest, RecoveryDisabled
from cragdesk.core.security import verify_password
from cragdesk.services import build_auth_components
from support import add_legacy_user, add_user, make_database, make_settings

RECOVERY_TOKEN = "operator-recovery-token"


class RecoveryTestCase(unittest.TestCase):
    recovery_token: str | None = RECOVERY_TOKEN

    def setUp(self) -> None:
        settings = make_settings(RECOVERY_TOKEN=self.recovery_token)
        self.engine, Session = make_database(settings)
        self.db = Session()
        self.auth = build_auth_components(settings)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()


class TestRecoveryDisabled(RecoveryTestCase):
    recovery_token = None

    def test_disabled_without_configured_token(self) -> None:
        self.assertFalse(self.auth.recovery.enabled)
        with self.assertRaises(RecoveryDisabled) as ctx:
            self.auth.recovery.reset_admin(self.db, "admin", "anything", "NewPass123!")
        self.assertEqual(ctx.exception.status_code, 503)

    def test_missing_username_is_reported_first(self) -> None:
        with self.assertRaises(MalformedRequest):
            self.auth.recovery.reset_admin(self.db, "  ", None, None)


class TestRecoveryEnabled(RecoveryTestCase):
    def test_wrong_token_is_rejected(self) -> None:
        for token in (None, "", "wrong-token"):
            with self.subTest(token=token):
                with self.assertRaises(InvalidCredentials):
                    self.auth.recovery.reset_admin(self.db, "admin", token, "NewPass123!")

    def test_short_password_is_rejected(self) -> None:
        with self.assertRaises(MalformedRequest):
            self.auth.recovery.reset_admin(self.db, "admin", RECOVERY_TOKEN, "short")

    def test_creates_missing_admin(self) -> None:
        user, created = self.auth.recovery.reset_admin(self.db, "Admin", RECOVERY_TOKEN, "NewPass123!")
        self.assertTrue(created)
        self.assertEqual(user.username, "admin")
        self.assertTrue(user.is_global_admin)
        self.assertTrue(verify_password("NewPass123!", user.password_hash))

    def test_resets_existing_user_and_signs_them_out(self) -> None:
        user = add_user(self.db, "root", "OldPass123!")
        raw = self.auth.refresh_tokens.create(self.db, user.id)

        reset, created = self.auth.recovery.reset_admin(self.db, "root", RECOVERY_TOKEN, "NewPass123!")

        self.assertFalse(created)
        self.assertEqual(reset.id, user.id)
        self.assertTrue(reset.is_global_admin)
        self.assertTrue(verify_password("NewPass123!", reset.password_hash))
        self.assertIsNone(self.auth.refresh_tokens.resolve(self.db, raw))

    def test_reset_clears_legacy_salt(self) -> None:
        add_legacy_user(self.db, "carol", "old-pass")
        user, _ = self.auth.recovery.reset_admin(self.db, "carol", RECOVERY_TOKEN, "NewPass123!")
        self.assertIsNone(user.password_salt)


if __name__ == "__main__":
    unittest.main()
