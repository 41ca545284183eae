"""
tests/conftest.py -- Shared test fixtures for Gatehouse tests.

This module provides:
  - make_store(): creates an isolated in-memory UserStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient plus an admin token for API integration tests
  - register_and_login: factory that creates a regular user and returns its token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment must be set before any app import:
  DEBUG=true              -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4         -- minimum bcrypt cost keeps the suite fast
  RATE_LIMIT_ENABLED=false -- many logins per module would trip 10/minute
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set these before any auth/core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_account_service
from auth.models import User
from auth.service import AccountService
from auth.store import UserStore
from auth.tokens import hash_password

ADMIN_EMAIL = "testadmin@example.com"
ADMIN_PASSWORD = "testpass123"

# TrustedHostMiddleware only accepts localhost-style hosts.
BASE_URL = "http://localhost"


def make_store(db_suffix: str | None = None) -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state. Random when omitted.
    """
    name = db_suffix or uuid.uuid4().hex
    return UserStore(f"sqlite:///file:test_auth_{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(accounts: AccountService):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-built account service into app.state so TestClient routes see
    an isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = accounts.store
        app.state.accounts = accounts
        app.state.signer = accounts.signer
        yield

    return test_lifespan


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def accounts(store: UserStore) -> AccountService:
    return build_account_service(store)


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory store.
    The admin user is created before the client starts.
    """
    user_store = make_store(request.module.__name__.replace(".", "_"))
    accounts = build_account_service(user_store)

    admin_id = user_store.create_user(
        User(name="Test Admin", email=ADMIN_EMAIL, password_hash=hash_password(ADMIN_PASSWORD), role="admin")
    )
    token = accounts.signer.issue(accounts.signer.claims_for(admin_id, ADMIN_EMAIL, "admin"))

    app.router.lifespan_context = _patch_lifespan(accounts)

    with TestClient(app, base_url=BASE_URL, raise_server_exceptions=True) as client:
        yield client, token, admin_id

    user_store.close()


@pytest.fixture
def register_and_login(api_client) -> Callable[..., tuple[str, str]]:
    """Return a factory: register a fresh user over HTTP, log in, return (user_id, token)."""
    client, _token, _uid = api_client

    def _factory(name: str = "User", email: str | None = None, password: str = "pw123") -> tuple[str, str]:
        email = email or f"{uuid.uuid4().hex[:10]}@example.com"
        reg = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert reg.status_code == 201, reg.text
        login = client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return reg.json()["userId"], login.json()["token"]

    return _factory
