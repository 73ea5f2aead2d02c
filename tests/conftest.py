"""
tests/conftest.py -- Shared test fixtures for NoteVault integration tests.

This module provides:
  - make_engine(): an isolated named shared-memory SQLite engine
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus an admin and a regular user, with tokens
  - fresh_client: TestClient over an empty database (first-user-is-admin tests)
  - session_headers(): Authorization header + matching "token" cookie

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because route handlers run store calls on worker-pool threads. Plain :memory:
DBs are per-connection and would present a blank schema to each thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment must be set before any project import: get_settings() is
cached on first call and several modules read it at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from unittest.mock import MagicMock

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")  # minimum cost keeps the suite fast
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.store import UserStore
from auth.tokens import COOKIE_NAME, create_access_token, hash_password
from core.database import create_db_engine
from core.worker_pool import WorkerPool
from notes.store import NoteStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_engine(db_suffix: str) -> Engine:
    """Create an isolated named shared-memory SQLite engine with the schema.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return create_db_engine(f"sqlite:///file:test_notevault_{db_suffix}?mode=memory&cache=shared&uri=true")


def session_headers(token: str) -> dict[str, str]:
    """Headers for a protected route: Bearer token plus the matching cookie.

    An explicit Cookie header takes precedence over the client's cookie jar,
    so a cookie left behind by an earlier login cannot leak into the request.
    """
    return {"Authorization": f"Bearer {token}", "Cookie": f"{COOKIE_NAME}={token}"}


def _patch_lifespan(engine: Engine, moonpay: MagicMock):
    """Return an async context manager that replaces the real lifespan.

    Wires test stores into app.state so routes see the isolated test DB, and
    a MagicMock MoonPay client so no request leaves the process. Two workers
    are plenty for a sequential test client.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.pool = WorkerPool(size=2)
        app.state.user_store = UserStore(engine)
        app.state.note_store = NoteStore(engine)
        app.state.moonpay = moonpay
        yield
        app.state.pool.shutdown()

    return test_lifespan


@dataclass
class Account:
    id: int
    email: str
    password: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return session_headers(self.token)


@dataclass
class ApiContext:
    client: TestClient
    admin: Account
    user: Account
    user_store: UserStore
    note_store: NoteStore
    moonpay: MagicMock


def _seed_account(store: UserStore, username: str, email: str, password: str) -> Account:
    user = store.register_user(username, email, hash_password(password))
    token = create_access_token(user.email, user.id, user.role, expire_seconds=3600)
    return Account(id=user.id, email=email, password=password, token=token)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    One database per test module. The first seeded account becomes admin
    through the normal registration rule; the second is a regular user.
    """
    engine = make_engine(f"{request.module.__name__}_{uuid.uuid4().hex[:8]}")
    user_store = UserStore(engine)
    note_store = NoteStore(engine)
    admin = _seed_account(user_store, "root", "admin@example.com", "adminpass123")
    user = _seed_account(user_store, "alice", "alice@example.com", "alicepass123")
    moonpay = MagicMock()

    app.router.lifespan_context = _patch_lifespan(engine, moonpay)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            admin=admin,
            user=user,
            user_store=user_store,
            note_store=note_store,
            moonpay=moonpay,
        )

    engine.dispose()


@pytest.fixture
def fresh_client() -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, user_store) over a brand-new empty database."""
    engine = make_engine(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(engine, MagicMock())

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, UserStore(engine)

    engine.dispose()


@pytest.fixture
def headers_for():
    """session_headers() as a fixture, for tests that mint their own tokens."""
    return session_headers


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Bare engine for store-level unit tests."""
    eng = make_engine(uuid.uuid4().hex)
    yield eng
    eng.dispose()
