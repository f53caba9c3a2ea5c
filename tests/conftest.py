"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (StaticPool keeps the
   single connection alive, so every session sees the same database).
2. Tables are created from the ORM metadata before the test runs.
3. The app's get_db is overridden to hand out sessions bound to that
   engine, one per request, just like production.

The JWT settings must exist before todoapi.config is imported (the app
refuses to start without them), so they are set at the top of this file.
"""

import os

os.environ.setdefault("TODOAPI_JWT_SECRET", "test-signing-secret-0123456789-abcdefghijklmnop")
os.environ.setdefault("TODOAPI_JWT_ISSUER", "TestIssuer")
os.environ.setdefault("TODOAPI_JWT_AUDIENCE", "TestAudience")
os.environ.setdefault("TODOAPI_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TODOAPI_CREATE_TABLES_ON_STARTUP", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from todoapi.auth import password as password_module
from todoapi.auth.dependencies import get_token_service
from todoapi.db.engine import get_db, init_models
from todoapi.main import app

TEST_DB_URL = "sqlite+aiosqlite://"
DEFAULT_PASSWORD = "Password1"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cheap bcrypt work factor — hashing cost is not what these tests check."""
    monkeypatch.setattr(password_module, "BCRYPT_ROUNDS", 4)


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with get_db pointed at the test database.

    Learn: Auth is NOT overridden. Every protected request in the tests
    goes through the real bearer-token pipeline, since that pipeline is
    what keeps users apart.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def token_service():
    return get_token_service()


async def register(client: AsyncClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Register through the API and return the token."""
    r = await client.post(
        "/api/auth/register", json={"email": email, "password": password}
    )
    assert r.status_code == 200, r.text
    return r.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def alice(client):
    """(token, headers) for a registered user alice@x.com."""
    token = await register(client, "alice@x.com")
    return token, bearer(token)


@pytest_asyncio.fixture()
async def bob(client):
    token = await register(client, "bob@x.com")
    return token, bearer(token)
