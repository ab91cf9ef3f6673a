"""
TimeBank Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file (aiosqlite) with the
       schema created from the ORM metadata, and its own storage directory.
       Endpoint tests talk to the real FastAPI app through httpx's
       ASGITransport, with the database dependency pointed at the test
       database.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / session_factory: per-test SQLite database
    ├── db_session: AsyncSession for service-level tests
    ├── mock_db_session: AsyncMock session for failure injection
    ├── temp_storage / store: isolated AssetStore
    ├── test_client: HTTPX AsyncClient against the app
    └── sample_image_bytes / sample_pdf_bytes: upload payloads
"""

import os
import tempfile
from typing import AsyncGenerator, Dict, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must happen before anything from timebank is imported: settings are read
# once at import time.
_TEST_ROOT = tempfile.mkdtemp(prefix="timebank_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_ROOT, 'app.db')}"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "10000"

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import timebank.models  # noqa: E402,F401
from timebank.database import Base, get_db_session  # noqa: E402
from timebank.services.asset_store import AssetStore  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    An AsyncSession on the per-test database.

    Usage:
        async def test_register(db_session):
            user = await identity_service.register(db_session, ...)
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session for injecting failures.

    Usage:
        mock_db_session.commit.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Storage Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage directory for each test."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def store(temp_storage):
    """An AssetStore rooted in the test's storage directory."""
    return AssetStore(storage_root=temp_storage)


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_pdf_bytes():
    return b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app, backed by the per-test database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from timebank.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_db_session, None)


async def register_and_login(
    client: AsyncClient,
    name: str = "Alice",
    email: str = "a@x.com",
    password: str = "secret1",
) -> Tuple[int, Dict[str, str]]:
    """Create an account through the API; returns (user id, auth headers)."""
    response = await client.post(
        "/register", json={"name": name, "email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    response = await client.post("/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    body = response.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['access_token']}"}


@pytest_asyncio.fixture
async def alice(test_client) -> Tuple[int, Dict[str, str]]:
    return await register_and_login(test_client, "Alice", "a@x.com", "secret1")


@pytest_asyncio.fixture
async def bob(test_client) -> Tuple[int, Dict[str, str]]:
    return await register_and_login(test_client, "Bob", "b@x.com", "secret2")
