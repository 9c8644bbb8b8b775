"""
Accounting Notes Backend — Database Session Management
========================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   A `Database` object owns the engine and the session factory. The
       application lifespan constructs it, opens it on startup, stores it on
       `app.state.db`, and disposes it on shutdown. Nothing connects at
       import time.
Who:   The app factory (lifecycle), route handlers via `get_db_session`,
       and the health check.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and only
    apply to server databases. SQLite URLs (tests, local runs) use the
    driver's default pool.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, `create_all` at startup
    and Alembic autogenerate.
    """
    pass


class Database:
    """
    Explicit owner of the engine and session factory.

    Lifecycle:
        db = Database(settings)
        await db.connect()         # engine + session factory, optional create_all
        async with db.session() as session: ...
        await db.dispose()         # close pooled connections
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def _engine_options(self) -> dict:
        options = {"echo": self.settings.log_level == "DEBUG"}
        if not self.settings.is_sqlite:
            options.update(
                pool_size=self.settings.db_pool_size,
                max_overflow=self.settings.db_max_overflow,
                pool_pre_ping=self.settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return options

    async def connect(self) -> None:
        """Create the engine and, when enabled, any missing tables."""
        self.engine = create_async_engine(self.settings.database_url, **self._engine_options())
        # expire_on_commit=False keeps attributes readable after commit
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        if self.settings.db_create_tables:
            # Model modules must be imported so their tables are registered on Base
            from app.models import note  # noqa: F401

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ensured")

        logger.info("Database engine ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def session(self) -> AsyncSession:
        if self._session_factory is None:
            raise RuntimeError("Database.connect() must be awaited before opening sessions")
        return self._session_factory()

    async def ping(self) -> bool:
        """Lightweight connectivity check used by /health."""
        if self.engine is None:
            return False
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        """Close all connections in the pool."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self._session_factory = None


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the application's Database
        2. Yields it to the route handler
        3. On success: commits anything the handler left pending
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)
    """
    db: Database = request.app.state.db
    async with db.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
