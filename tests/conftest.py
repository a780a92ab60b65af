"""
tests/conftest.py -- Shared test fixtures for the admin panel tests.

This module provides:
  - _make_test_store(): creates an isolated in-memory user DB
  - _patch_lifespan(): wires the test store into app.state, bypassing real startup
  - user_store / accounts: a fresh store seeded with one ADMIN and one USER
  - client: TestClient with follow_redirects=False over the full ASGI app
  - login_as(): puts a signed session cookie for a user on the client

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process. Each
store gets a unique name, so tests never see each other's rows.

APP_ENV must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY instead of refusing to start.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import NamedTuple

# CRITICAL: Set APP_ENV before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in test mode instead of raising ValueError.
os.environ.setdefault("APP_ENV", "test")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.cookies import SESSION_COOKIE
from auth.models import Role, User
from auth.passwords import hash_password
from auth.sessions import issue_session_token
from auth.store import UserStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"
USER_EMAIL = "user@example.com"
USER_PASSWORD = "user1234"


class Accounts(NamedTuple):
    store: UserStore
    admin: User
    user: User


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so tests don't share
                   state.
    """
    return UserStore(db_url=f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    The real lifespan opens the database named by DATABASE_URL; this one
    hands the routes the pre-built test store instead.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        yield

    return test_lifespan


def add_user(store: UserStore, email: str, password: str, name: str | None = None, role: Role = Role.USER) -> User:
    uid = store.create_user(User(email=email, password_hash=hash_password(password), name=name, role=role))
    return store.get_by_id(uid)


def login_as(client: TestClient, user: User) -> TestClient:
    """Attach a freshly issued session cookie for user to the client."""
    client.cookies.set(SESSION_COOKIE, issue_session_token(user.id))
    return client


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_store() -> Generator[UserStore, None, None]:
    store = _make_test_store(uuid.uuid4().hex[:12])
    yield store
    store.close()


@pytest.fixture()
def accounts(user_store: UserStore) -> Accounts:
    """The store plus one ADMIN ("Admin User") and one USER (no name)."""
    admin = add_user(user_store, ADMIN_EMAIL, ADMIN_PASSWORD, name="Admin User", role=Role.ADMIN)
    user = add_user(user_store, USER_EMAIL, USER_PASSWORD)
    return Accounts(user_store, admin, user)


@pytest.fixture()
def client(accounts: Accounts) -> Generator[TestClient, None, None]:
    """Yield an anonymous TestClient over the full app (API + web routes).

    follow_redirects=False is essential: tests assert on redirect *locations*,
    which are invisible once the client follows the redirect.
    """
    app.router.lifespan_context = _patch_lifespan(accounts.store)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture()
def admin_client(client: TestClient, accounts: Accounts) -> TestClient:
    return login_as(client, accounts.admin)


@pytest.fixture()
def user_client(client: TestClient, accounts: Accounts) -> TestClient:
    return login_as(client, accounts.user)
