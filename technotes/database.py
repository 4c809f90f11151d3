"""
TechNotes Backend — Database Lifecycle and Session Management
===============================================================

What:  Async SQLAlchemy engine ownership, session factory, and FastAPI dependency.
How:   A `Database` object is created when the application starts, attached to
       `app.state.database`, handed a session per request, and disposed on
       shutdown. Nothing in this module opens a connection at import time.
Who:   The app lifespan creates it; routes receive sessions via `get_db_session`;
       tests construct their own `Database` against in-memory SQLite.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and are only
    passed for server databases. SQLite uses SQLAlchemy's default pool (or a
    caller-supplied one such as StaticPool for in-memory test databases).
"""

import logging
from typing import Any, AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from technotes.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    `Database.create_tables()` uses for local/test schemas.
    """
    pass


class Database:
    """
    Owns one async engine and the session factory bound to it.

    Lifecycle:
        db = Database.from_settings(settings)   # opened at service start
        async with db.session() as session: ...
        await db.dispose()                       # closed at shutdown
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False keeps attributes readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Builds a Database with pool options appropriate for the configured URL."""
        kwargs: dict = {"echo": settings.log_level == "DEBUG"}
        if not settings.is_sqlite:
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return cls(settings.database_url, **kwargs)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_tables(self) -> None:
        """Creates every table registered on Base.metadata that does not exist yet."""
        # Models must be imported so their tables are registered
        from technotes.models import note, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def ping(self) -> bool:
        """Runs SELECT 1; returns False instead of raising when unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False
        return True

    async def dispose(self) -> None:
        """Closes all pooled connections."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """FastAPI dependency returning the Database attached at startup."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialised; the application lifespan has not run")
    return database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the application's Database
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handlers
        5. Always: closes the session (returns the connection to the pool)
    """
    database = get_database(request)
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
