"""Tests for /api/users: admin management and owner profile edits."""

import unittest

from support import add_user, make_client


class UsersApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.client = make_client()
        self.app = self.client.app
        with self.app.state.session_factory() as db:
            add_user(db, "admin", "AdminPass1!", is_global_admin=True)
            add_user(db, "alice", "Secret123!")

    def login_as(self, username: str, password: str) -> None:
        self.client.cookies.clear()
        response = self.client.post("/api/auth/login", json={"username": username, "password": password})
        self.assertEqual(response.status_code, 200)


class TestAdminUserManagement(UsersApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.login_as("admin", "AdminPass1!")

    def test_list_users(self) -> None:
        response = self.client.get("/api/users")
        self.assertEqual(response.status_code, 200)
        usernames = [u["username"] for u in response.json()["users"]]
        self.assertEqual(usernames, ["admin", "alice"])

    def test_create_user(self) -> None:
        response = self.client.post(
            "/api/users",
            json={"username": "Setter", "password": "Holds1234", "full_name": "Route Setter"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["username"], "setter")
        self.login_as("setter", "Holds1234")

    def test_create_duplicate_conflicts(self) -> None:
        response = self.client.post("/api/users", json={"username": "alice", "password": "Holds1234"})
        self.assertEqual(response.status_code, 409)

    def test_admin_sets_password_and_signs_user_out(self) -> None:
        with self.app.state.session_factory() as db:
            alice = self.app.state.auth.users.get_by_username(db, "alice")
            secret = self.app.state.auth.refresh_tokens.create(db, alice.id)
        response = self.client.patch(
            "/api/users/alice", json={"password": "Reset1234!", "is_global_admin": True}
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["user"]["is_global_admin"])
        with self.app.state.session_factory() as db:
            self.assertIsNone(self.app.state.auth.refresh_tokens.resolve(db, secret))
        self.login_as("alice", "Reset1234!")

    def test_delete_user_removes_sessions(self) -> None:
        with self.app.state.session_factory() as db:
            alice = self.app.state.auth.users.get_by_username(db, "alice")
            self.app.state.auth.refresh_tokens.create(db, alice.id)
        response = self.client.delete("/api/users/alice")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["username"], "alice")
        self.assertEqual(self.client.delete("/api/users/alice").status_code, 404)

        self.client.cookies.clear()
        login = self.client.post("/api/auth/login", json={"username": "alice", "password": "Secret123!"})
        self.assertEqual(login.status_code, 401)


class TestNonAdminAccess(UsersApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.login_as("alice", "Secret123!")

    def test_admin_routes_are_forbidden(self) -> None:
        self.assertEqual(self.client.get("/api/users").status_code, 403)
        self.assertEqual(
            self.client.post("/api/users", json={"username": "x", "password": "Holds1234"}).status_code,
            403,
        )
        self.assertEqual(self.client.delete("/api/users/admin").status_code, 403)

    def test_owner_edits_own_full_name(self) -> None:
        response = self.client.patch("/api/users/alice", json={"full_name": "Alice Crimper"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["full_name"], "Alice Crimper")

    def test_owner_cannot_promote_self(self) -> None:
        response = self.client.patch("/api/users/alice", json={"is_global_admin": True})
        self.assertEqual(response.status_code, 403)
        self.assertFalse(self.client.get("/api/auth/me").json()["user"]["is_global_admin"])

    def test_cannot_edit_someone_else(self) -> None:
        response = self.client.patch("/api/users/admin", json={"full_name": "Pwned"})
        self.assertEqual(response.status_code, 403)

    def test_admin_flag_is_read_fresh(self) -> None:
        with self.app.state.session_factory() as db:
            alice = self.app.state.auth.users.get_by_username(db, "alice")
            self.app.state.auth.users.update(db, alice, is_global_admin=True)
        # The access token was minted before promotion; the database wins.
        self.assertEqual(self.client.get("/api/users").status_code, 200)


if __name__ == "__main__":
    unittest.main()
