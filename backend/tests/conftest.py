"""
CodeVault Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Settings are pointed at throwaway resources BEFORE codevault is
       imported; service tests run on an in-memory SQLite schema built from
       Base.metadata; API tests drive the ASGI app through httpx.

Fixture Hierarchy:
    Function-scoped (fresh for each test):
    ├── engine / db_session: in-memory schema and a session on it
    ├── session_factory: sessions for the app's get_db_session override
    ├── temp_storage: temporary storage root
    ├── user / other_user: CurrentUser identities
    ├── app / client: the FastAPI app with dependency overrides
    └── reset_state (autouse): clears the query cache and learning mirror
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Optional

# Override settings BEFORE any codevault import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["YOUTUBE_API_KEY"] = "test-youtube-key"
os.environ["SUPABASE_URL"] = "https://identity.test"
os.environ["SUPABASE_SERVICE_KEY"] = "service-key"
os.environ["REALTIME_WEBHOOK_SECRET"] = "webhook-secret"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="codevault_test_")
os.environ["FRONTEND_DIST"] = tempfile.mkdtemp(prefix="codevault_dist_")
os.environ["CORS_ORIGINS"] = "http://localhost:5173"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import codevault.models  # noqa: F401
from codevault.database import Base, get_db_session
from codevault.dependencies import get_optional_user
from codevault.schemas.auth import CurrentUser
from codevault.services.learning_service import learning_service
from codevault.services.query_cache import query_cache


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite with foreign keys on (snippet_tags cascades rely on it)."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


# ══════════════════════════════════════════════════════════════════════════
# Identities
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def user() -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), email="ada@example.com", username="ada")


@pytest.fixture
def other_user() -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), email="linus@example.com", username="linus")


@pytest.fixture(autouse=True)
def reset_state():
    query_cache.clear()
    learning_service.clear()
    yield
    query_cache.clear()
    learning_service.clear()


# ══════════════════════════════════════════════════════════════════════════
# Application
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory, user):
    """
    The FastAPI app with the store swapped for the in-memory schema.

    Requests are authenticated as `user` unless a test sets
    `app.state.test_user` to None (anonymous) or another CurrentUser.
    """
    from codevault.main import app as fastapi_app

    async def override_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_user() -> Optional[CurrentUser]:
        return getattr(fastapi_app.state, "test_user", user)

    fastapi_app.state.test_user = user
    fastapi_app.dependency_overrides[get_db_session] = override_db
    fastapi_app.dependency_overrides[get_optional_user] = override_user
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.test_user = user


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
