"""
tests/test_web_routes.py -- Integration tests for the server-rendered pages.

Uses follow_redirects=False throughout and asserts on Location headers.

Coverage:
  - Edge filter: no cookie -> 302 /login for every page path
  - Gate: junk cookie -> 302 /login; non-admin on admin pages -> 302 /
  - Login form: error codes map to whitelisted messages only
  - Welcome page: name, role label, admin-only "Manage Users" link
  - User management: list, create, edit, delete through HTML forms
  - Store failures re-render the page with a generic message
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from auth.passwords import verify_password
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, USER_EMAIL

ADMIN_PAGES = ["/dashboard/users", "/dashboard/users/1/edit"]


class TestAccessRedirects:
    @pytest.mark.parametrize("path", ["/", "/dashboard", *ADMIN_PAGES])
    def test_anonymous_redirects_to_login(self, client: TestClient, path: str) -> None:
        resp = client.get(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"

    @pytest.mark.parametrize("path", ["/", *ADMIN_PAGES])
    def test_junk_cookie_redirects_to_login(self, client: TestClient, path: str) -> None:
        """The edge filter lets any cookie through; the gate must still refuse it."""
        client.cookies.set("session", "1")
        resp = client.get(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"

    @pytest.mark.parametrize("path", ADMIN_PAGES)
    def test_non_admin_redirects_home(self, user_client: TestClient, path: str) -> None:
        resp = user_client.get(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"

    def test_non_admin_cannot_post_create(self, user_client: TestClient, accounts) -> None:
        resp = user_client.post("/dashboard/users", data={"email": "x@example.com", "password": "secret1"})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert accounts.store.get_by_email("x@example.com") is None

    def test_dashboard_redirects_to_users(self, admin_client: TestClient) -> None:
        resp = admin_client.get("/dashboard")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/dashboard/users"

    def test_static_paths_skip_the_filter(self, client: TestClient) -> None:
        """No redirect for static assets; there are none, so it is a plain 404."""
        assert client.get("/favicon.ico").status_code == 404


class TestLoginPage:
    def test_login_page_renders(self, client: TestClient) -> None:
        resp = client.get("/login")
        assert resp.status_code == 200
        assert 'name="email"' in resp.text
        assert 'name="password"' in resp.text

    def test_known_error_code_shows_message(self, client: TestClient) -> None:
        resp = client.get("/login?error=bad_credentials")
        assert "Invalid email or password" in resp.text

    def test_unknown_error_code_is_not_reflected(self, client: TestClient) -> None:
        resp = client.get("/login?error=<script>alert(1)</script>")
        assert resp.status_code == 200
        assert "<script>alert(1)</script>" not in resp.text

    def test_logged_in_user_skips_login_page(self, user_client: TestClient) -> None:
        resp = user_client.get("/login")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"

    def test_form_login_success(self, client: TestClient) -> None:
        resp = client.post("/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert resp.headers["cache-control"] == "no-store"
        assert resp.headers["set-cookie"].startswith("session=")

    def test_form_login_bad_credentials(self, client: TestClient) -> None:
        resp = client.post("/login", data={"email": ADMIN_EMAIL, "password": "wrong-pass"})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login?error=bad_credentials"
        assert "set-cookie" not in resp.headers

    def test_form_login_missing_fields(self, client: TestClient) -> None:
        resp = client.post("/login", data={"email": ADMIN_EMAIL})
        assert resp.headers["location"] == "/login?error=missing_fields"

    def test_logout_clears_cookie(self, admin_client: TestClient) -> None:
        resp = admin_client.post("/logout")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        assert "Max-Age=0" in resp.headers["set-cookie"]


class TestHomePage:
    def test_admin_welcome(self, admin_client: TestClient) -> None:
        resp = admin_client.get("/")
        assert resp.status_code == 200
        assert "Welcome, Admin User" in resp.text
        assert "Administrator" in resp.text
        assert "Manage Users" in resp.text

    def test_user_welcome_falls_back_to_email(self, user_client: TestClient) -> None:
        resp = user_client.get("/")
        assert resp.status_code == 200
        assert f"Welcome, {USER_EMAIL}" in resp.text
        assert "Manage Users" not in resp.text


class TestUserManagement:
    def test_table_lists_users(self, admin_client: TestClient) -> None:
        resp = admin_client.get("/dashboard/users")
        assert resp.status_code == 200
        assert "User Management" in resp.text
        assert ADMIN_EMAIL in resp.text
        assert USER_EMAIL in resp.text
        assert "$2b$" not in resp.text

    def test_create_user(self, admin_client: TestClient, accounts) -> None:
        resp = admin_client.post(
            "/dashboard/users",
            data={"email": "new@example.com", "password": "secret1", "name": "New", "role": "ADMIN"},
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard/users"
        created = accounts.store.get_by_email("new@example.com")
        assert created.name == "New"
        assert created.role.value == "ADMIN"

    def test_create_short_password_shows_error(self, admin_client: TestClient, accounts) -> None:
        resp = admin_client.post("/dashboard/users", data={"email": "new@example.com", "password": "123"})
        assert resp.status_code == 400
        assert "Password must be at least 6 characters" in resp.text
        assert accounts.store.get_by_email("new@example.com") is None

    def test_create_duplicate_shows_error(self, admin_client: TestClient) -> None:
        resp = admin_client.post("/dashboard/users", data={"email": USER_EMAIL, "password": "secret1"})
        assert resp.status_code == 400
        assert "User with this email already exists" in resp.text

    def test_edit_form(self, admin_client: TestClient, accounts) -> None:
        resp = admin_client.get(f"/dashboard/users/{accounts.user.id}/edit")
        assert resp.status_code == 200
        assert USER_EMAIL in resp.text

    def test_edit_unknown_user(self, admin_client: TestClient) -> None:
        resp = admin_client.get("/dashboard/users/999/edit")
        assert resp.status_code == 404
        assert "User not found" in resp.text

    def test_edit_submit(self, admin_client: TestClient, accounts) -> None:
        resp = admin_client.post(
            f"/dashboard/users/{accounts.user.id}/edit",
            data={"name": "Renamed", "password": "", "role": "ADMIN"},
        )
        assert resp.status_code == 303
        updated = accounts.store.get_by_id(accounts.user.id)
        assert updated.name == "Renamed"
        assert updated.role.value == "ADMIN"
        # Blank password field keeps the old password.
        assert updated.password_hash == accounts.user.password_hash

    def test_edit_short_password_rerenders_form(self, admin_client: TestClient, accounts) -> None:
        resp = admin_client.post(
            f"/dashboard/users/{accounts.user.id}/edit",
            data={"name": "", "password": "123", "role": "USER"},
        )
        assert resp.status_code == 400
        assert "Password must be at least 6 characters" in resp.text
        assert verify_password("user1234", accounts.store.get_by_id(accounts.user.id).password_hash)

    def test_delete(self, admin_client: TestClient, accounts) -> None:
        resp = admin_client.post(f"/dashboard/users/{accounts.user.id}/delete")
        assert resp.status_code == 303
        assert accounts.store.get_by_id(accounts.user.id) is None

    def test_delete_unknown(self, admin_client: TestClient) -> None:
        resp = admin_client.post("/dashboard/users/999/delete")
        assert resp.status_code == 404
        assert "User not found" in resp.text


class TestStoreFailures:
    """A failing store re-renders the management page; it never leaks a JSON 500."""

    @staticmethod
    def _break(monkeypatch, store, method: str) -> None:
        def boom(*args, **kwargs):
            raise SQLAlchemyError("db down")

        monkeypatch.setattr(store, method, boom)

    def test_list_failure(self, admin_client: TestClient, accounts, monkeypatch) -> None:
        self._break(monkeypatch, accounts.store, "list_users")
        resp = admin_client.get("/dashboard/users")
        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("text/html")
        assert "An error occurred while fetching users" in resp.text

    def test_create_failure(self, admin_client: TestClient, accounts, monkeypatch) -> None:
        self._break(monkeypatch, accounts.store, "create_user")
        resp = admin_client.post("/dashboard/users", data={"email": "new@example.com", "password": "secret1"})
        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("text/html")
        assert "An error occurred while creating user" in resp.text

    def test_update_failure(self, admin_client: TestClient, accounts, monkeypatch) -> None:
        self._break(monkeypatch, accounts.store, "update_user")
        resp = admin_client.post(
            f"/dashboard/users/{accounts.user.id}/edit",
            data={"name": "Renamed", "password": "", "role": "USER"},
        )
        assert resp.status_code == 500
        assert "An error occurred while updating user" in resp.text

    def test_delete_failure(self, admin_client: TestClient, accounts, monkeypatch) -> None:
        self._break(monkeypatch, accounts.store, "delete_user")
        resp = admin_client.post(f"/dashboard/users/{accounts.user.id}/delete")
        assert resp.status_code == 500
        assert "An error occurred while deleting user" in resp.text
        assert USER_EMAIL in resp.text
