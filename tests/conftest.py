"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of factionhub.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402

from factionhub.config import HubConfig  # noqa: E402
from factionhub.database.models import Base  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so Discord snowflakes fit SQLite's rowid.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Faction Hub tables.

    Uses StaticPool so all threads share the same in-memory database
    (TestClient runs sync routes on a worker thread).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def seeded_engine(db_engine: Engine) -> Engine:
    """``db_engine`` plus the default global regulations row."""
    from factionhub.database.seed import seed_default_regulations

    seed_default_regulations(db_engine)
    return db_engine


@pytest.fixture
def hub_config() -> HubConfig:
    return HubConfig(
        community_name="Test Faction",
        guild_id=1,
        server_timezone="Europe/London",
        default_cooldown_hours=24.0,
        site_url="https://hub.test",
    )


def make_token(
    sub: str = "99999", username: str = "FixtureAdmin", role: str = "ADMIN"
) -> str:
    """Create a signed hub JWT.  Usable from any test module."""
    import jwt

    from factionhub.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": username, "role": role},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_token() -> str:
    return make_token("1001", "Leader", "LEADER")


@pytest.fixture
def member_token() -> str:
    return make_token("2002", "Grunt", "MEMBER")


@pytest.fixture
def guest_token() -> str:
    return make_token("3003", "Visitor", "GUEST")


@pytest.fixture
def client(seeded_engine: Engine, hub_config: HubConfig):
    """FastAPI TestClient wired to the in-memory database."""
    from fastapi.testclient import TestClient

    from factionhub.api.main import app
    # Override the callables the routes captured at import; a reload of
    # factionhub.api.deps elsewhere must not break the override keys.
    from factionhub.api.routes.wars import get_config, get_engine

    app.dependency_overrides[get_engine] = lambda: seeded_engine
    app.dependency_overrides[get_config] = lambda: hub_config
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
