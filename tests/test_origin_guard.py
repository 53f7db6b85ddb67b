"""Tests for the Origin/Referer guard on state-changing requests."""

import unittest

from cragdesk.core.csrf import is_request_origin_allowed
from support import TEST_ORIGIN, make_client

ALLOWED = ("http://localhost:5173", "https://gym.example.com")


class TestIsRequestOriginAllowed(unittest.TestCase):
    def test_safe_methods_always_pass(self) -> None:
        for method in ("GET", "HEAD", "OPTIONS"):
            with self.subTest(method=method):
                self.assertTrue(is_request_origin_allowed(method, "https://evil.example", None, ALLOWED))

    def test_requests_without_origin_or_referer_pass(self) -> None:
        self.assertTrue(is_request_origin_allowed("POST", None, None, ALLOWED))
        self.assertTrue(is_request_origin_allowed("POST", "  ", "", ALLOWED))

    def test_allow_listed_origin_passes(self) -> None:
        self.assertTrue(is_request_origin_allowed("POST", "https://GYM.example.com", None, ALLOWED))
        self.assertTrue(is_request_origin_allowed("delete", "https://gym.example.com:443", None, ALLOWED))

    def test_foreign_origin_is_rejected(self) -> None:
        self.assertFalse(is_request_origin_allowed("POST", "https://evil.example", None, ALLOWED))
        self.assertFalse(is_request_origin_allowed("PATCH", "http://localhost:5174", None, ALLOWED))

    def test_referer_is_used_when_origin_is_absent(self) -> None:
        self.assertTrue(
            is_request_origin_allowed("POST", None, "http://localhost:5173/sessions?tab=1", ALLOWED)
        )
        self.assertFalse(is_request_origin_allowed("POST", None, "https://evil.example/page", ALLOWED))

    def test_origin_wins_over_referer(self) -> None:
        self.assertFalse(
            is_request_origin_allowed("POST", "https://evil.example", "http://localhost:5173/", ALLOWED)
        )

    def test_unparseable_origin_is_rejected(self) -> None:
        self.assertFalse(is_request_origin_allowed("POST", "null", None, ALLOWED))


class TestOriginGuardMiddleware(unittest.TestCase):
    def setUp(self) -> None:
        self.client = make_client()

    def test_cross_origin_post_is_rejected_before_the_route(self) -> None:
        response = self.client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "Secret123!"},
            headers={"Origin": "https://evil.example"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"detail": "Cross-origin requests are not allowed"})

    def test_allowed_origin_reaches_the_route(self) -> None:
        response = self.client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "Secret123!"},
            headers={"Origin": TEST_ORIGIN},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers.get("access-control-allow-origin"), TEST_ORIGIN)

    def test_cross_origin_get_is_not_guarded(self) -> None:
        response = self.client.get("/api/health", headers={"Origin": "https://evil.example"})
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
