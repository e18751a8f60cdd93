"""
tests/conftest.py -- Shared test fixtures for UserDesk tests.

This module provides:
  - make_store(): creates an isolated in-memory user DB
  - _patch_lifespan(): wires test objects into app.state, bypassing real startup
  - store / hasher / codec / service: unit-level building blocks
  - client: TestClient over the real app with a fresh store per test
  - admin_account / user_account: seeded accounts with their tokens

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment must be set before any core/auth import so get_settings() sees
it: DEBUG allows a missing SECRET_KEY, and BCRYPT_ROUNDS=10 keeps hashing fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set env before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "10")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import PublicUser, Role
from auth.passwords import PasswordHasher
from auth.service import AuthService, claims_for, to_public
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.config import get_settings

TEST_SECRET = get_settings().secret_key
TEST_ROUNDS = 10

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store() -> UserStore:
    """Create a UserStore on a uniquely named shared-memory SQLite database."""
    return UserStore(db_url=f"sqlite:///file:test_users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: UserStore, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and service into app.state so TestClient routes see
    an isolated DB rather than the configured DATABASE_URL, and no default
    admin is seeded.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.auth_service = service
        yield

    return test_lifespan


@dataclass
class Account:
    """A seeded account plus a valid token for it."""

    user: PublicUser
    password: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def seed_account(service: AuthService, username: str, password: str, role: Role) -> Account:
    """Insert an account straight into the store and issue it a token."""
    user = service.store.create_user(username, f"{username}@example.com", service.hasher.hash(password), role)
    return Account(user=to_public(user), password=password, token=service.codec.issue(claims_for(user)))


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(secret_key=TEST_SECRET)


@pytest.fixture
def service(store: UserStore, hasher: PasswordHasher, codec: TokenCodec) -> AuthService:
    return AuthService(store, hasher, codec)


# ---------------------------------------------------------------------------
# HTTP fixtures -- a fresh DB per test keeps route tests independent
# ---------------------------------------------------------------------------


@pytest.fixture
def client(store: UserStore, service: AuthService) -> Generator[TestClient, None, None]:
    """TestClient over the real app with the test store and service in app.state."""
    original = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(store, service)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
    app.router.lifespan_context = original


@pytest.fixture
def admin_account(service: AuthService) -> Account:
    return seed_account(service, "root", "rootpass1", Role.ADMIN)


@pytest.fixture
def user_account(service: AuthService) -> Account:
    return seed_account(service, "bob", "bobpass1", Role.USER)
