"""Unit tests for cragdesk.core.config: validation, origins, cookie posture."""

import unittest

from pydantic import ValidationError

from cragdesk.core.config import normalize_origin
from support import make_settings


class TestNormalizeOrigin(unittest.TestCase):
    def test_reduces_urls_to_origin(self) -> None:
        self.assertEqual(normalize_origin("https://Gym.Example.com/boulders?x=1"), "https://gym.example.com")
        self.assertEqual(normalize_origin("http://localhost:5173/login"), "http://localhost:5173")

    def test_drops_default_ports(self) -> None:
        self.assertEqual(normalize_origin("https://example.com:443"), "https://example.com")
        self.assertEqual(normalize_origin("http://example.com:80/"), "http://example.com")

    def test_rejects_values_without_scheme_or_host(self) -> None:
        for bad in ("null", "example.com", "ftp://example.com", "http://", "http://host:notaport"):
            with self.subTest(bad=bad):
                self.assertIsNone(normalize_origin(bad))


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.ACCESS_TOKEN_EXPIRE_MINUTES, 15)
        self.assertEqual(settings.REFRESH_TOKEN_EXPIRE_DAYS, 14)
        self.assertEqual(settings.COOKIE_SAMESITE, "lax")

    def test_allowed_origins_include_server_origin_once(self) -> None:
        settings = make_settings(
            ALLOWED_ORIGINS=" http://localhost:5173, https://gym.example.com/ ,,http://testserver",
            SERVER_ORIGIN="http://testserver",
        )
        self.assertEqual(
            settings.allowed_origins,
            ("http://localhost:5173", "https://gym.example.com", "http://testserver"),
        )

    def test_cookie_secure_follows_environment(self) -> None:
        self.assertFalse(make_settings(APP_ENV="dev").cookie_secure)
        self.assertTrue(make_settings(APP_ENV="prod").cookie_secure)
        self.assertTrue(make_settings(APP_ENV="dev", COOKIE_SECURE=True).cookie_secure)

    def test_blank_secrets_count_as_unset(self) -> None:
        settings = make_settings(JWT_SECRET="   ", RECOVERY_TOKEN="")
        self.assertIsNone(settings.JWT_SECRET)
        self.assertIsNone(settings.RECOVERY_TOKEN)

    def test_rejects_unsupported_database_url(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://user:pw@localhost/db")

    def test_rejects_out_of_range_values(self) -> None:
        for field, value in (
            ("ACCESS_TOKEN_EXPIRE_MINUTES", 0),
            ("REFRESH_TOKEN_EXPIRE_DAYS", 0),
            ("BCRYPT_ROUNDS", 3),
            ("JWT_ALGORITHM", "RS256"),
        ):
            with self.subTest(field=field):
                with self.assertRaises(ValidationError):
                    make_settings(**{field: value})

    def test_settings_are_immutable(self) -> None:
        settings = make_settings()
        with self.assertRaises(ValidationError):
            settings.APP_ENV = "prod"


if __name__ == "__main__":
    unittest.main()
