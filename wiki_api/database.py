"""
Wiki API — Database Engine & Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI session dependency.
How:   A Database object owns one engine and one session factory. create_app()
       builds it from Settings and stores it on app.state; request handlers
       receive a session through the get_db_session dependency.
Who:   Used by route dependencies, the health check, and the app lifespan.
When:  Engine is created with the app; sessions are created per request.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from Settings and are only
    applied to server databases. SQLite URLs keep SQLAlchemy's default pool.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wiki_api.config import Settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Models register with Base.metadata, which Database.create_schema() uses
    to create missing tables on startup.
    """
    pass


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Attributes:
        engine:          AsyncEngine bound to settings.database_url
        session_factory: async_sessionmaker producing AsyncSession objects
    """

    def __init__(self, settings: Settings):
        engine_kwargs: Dict[str, Any] = {
            # Echo SQL only in DEBUG mode
            "echo": settings.log_level == "DEBUG",
        }
        if not settings.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,  # Recycle after 1 hour
            )

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)

        # expire_on_commit=False: documents stay readable after the store commits
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_schema(self) -> None:
        """
        Create missing tables for every registered model.

        Existing tables are left untouched (CREATE TABLE IF NOT EXISTS semantics).
        """
        # Models must be imported so their tables are registered on Base.metadata
        from wiki_api.models import article  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def ping(self) -> None:
        """Execute SELECT 1; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """
        What:  Gracefully closes all connections in the pool.
        When:  Called during application shutdown (lifespan handler).
        """
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the application's session factory
        2. Yields it to the route handler
        3. On error: rolls back the transaction and re-raises
        4. Always: closes the session (returns connection to pool)

    Commits are issued by the store itself, one per write operation, so the
    response is only built after the write is durable.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise  # The app's exception handlers build the response
        finally:
            await session.close()
