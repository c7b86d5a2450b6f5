"""
tests/conftest.py -- Shared test fixtures for AuthGate tests.

This module provides:
  - _make_test_stores(): isolated in-memory user + revocation stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient over the real app with patched lifespan
  - user_factory: builds fully-specified users and returns (user, password)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment overrides must be set before any auth/core import: DEBUG lets
get_settings() auto-generate SECRET_KEY, BCRYPT_ROUNDS keeps hashing fast,
and LOGIN_RATE_LIMIT is raised so a module's worth of logins from the single
test client address is not throttled.
"""

from __future__ import annotations

import asyncio
import itertools
import os
import secrets
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import RevocationStore, UserStore
from auth.tokens import hash_password

_email_seq = itertools.count(1)

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, RevocationStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Both stores point at the same database, as they do in production.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), RevocationStore(db_url=url)


def _patch_lifespan(user_store: UserStore, revocations: RevocationStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.revocations = revocations
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


def make_user(
    store: UserStore,
    email: str | None = None,
    password: str | None = None,
    name: str | None = "Test User",
    is_active: bool = True,
) -> tuple[User, str]:
    """Insert a user and return (stored User, plaintext password).

    Email and password default to fresh unique values, so every call yields a
    distinct identity.
    """
    email = email or f"user{next(_email_seq)}-{secrets.token_hex(4)}@example.com"
    password = password or secrets.token_urlsafe(12)
    user_id = store.create_user(
        User(email=email, hashed_password=hash_password(password), name=name, is_active=is_active)
    )
    return store.get_by_id(user_id), password


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def test_stores(request) -> Generator[tuple[UserStore, RevocationStore], None, None]:
    user_store, revocations = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    yield user_store, revocations
    user_store.close()
    revocations.close()


@pytest.fixture(scope="module")
def api_client(test_stores) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app wired to isolated in-memory stores.

    follow_redirects=False so guest logout's 302 is visible to assertions.
    """
    user_store, revocations = test_stores
    app.router.lifespan_context = _patch_lifespan(user_store, revocations)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def client(api_client: TestClient) -> TestClient:
    """The module client with an empty cookie jar.

    Login sets an access_token cookie; clearing it keeps one test's session
    from leaking into the next.
    """
    api_client.cookies.clear()
    return api_client


@pytest.fixture
def user_factory(test_stores) -> Callable[..., tuple[User, str]]:
    user_store, _ = test_stores

    def _factory(**kwargs) -> tuple[User, str]:
        return make_user(user_store, **kwargs)

    return _factory


@pytest.fixture
def user_store(test_stores) -> UserStore:
    return test_stores[0]


@pytest.fixture
def revocations(test_stores) -> RevocationStore:
    return test_stores[1]
