"""
Wiki API — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file under tmp_path, so tests
       never share documents and never need a running PostgreSQL.

Fixtures (function-scoped):
    ├── test_settings: Settings pointing at a fresh SQLite file
    ├── test_app:      Application built from test_settings, schema created
    ├── db_session:    AsyncSession on the test database
    ├── store:         ArticleStore bound to db_session
    ├── mock_db_session: AsyncMock session for failure injection
    └── test_client:   HTTPX AsyncClient talking to test_app
"""

import os
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./wiki_api_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["STATIC_DIR"] = "./__no_static_dir__"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wiki_api.config import Settings
from wiki_api.main import create_app
from wiki_api.services.article_store import ArticleStore


@pytest.fixture
def test_settings(tmp_path):
    """Settings for one test: private SQLite file, no static directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'wiki.db'}",
        log_level="WARNING",
        static_dir=str(tmp_path / "public"),
    )


@pytest_asyncio.fixture
async def test_app(test_settings):
    """
    Application with its schema created.

    ASGITransport does not run the lifespan, so the schema is created here.
    """
    app = create_app(test_settings)
    await app.state.database.create_schema()
    yield app
    await app.state.database.dispose()


@pytest_asyncio.fixture
async def db_session(test_app):
    """A session on the test database, for driving ArticleStore directly."""
    async with test_app.state.database.session_factory() as session:
        yield session


@pytest.fixture
def store(db_session):
    return ArticleStore(db_session)


@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        await ArticleStore(mock_db_session).find_all()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    Async HTTP client routed straight to the app.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/articles")
            assert response.json() == []
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
