"""
Database connection management and session handling.
"""

import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, TimeoutError as SQLTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)

from .config import get_settings
from .models.base import Base
from .cache import init_cache, close_cache
from .utils.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# Global engine and session factory
engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None

# Errors that mean the store could not be reached, as opposed to a rejected statement
STORE_CONNECTIVITY_ERRORS = (OperationalError, InterfaceError, SQLTimeoutError)


def _enable_immediate_transactions(async_engine: AsyncEngine) -> None:
    """Make SQLite take the write lock at BEGIN so concurrent writers queue up."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_database_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create and configure the database engine with connection pooling."""
    settings = get_settings()
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            url,
            echo=settings.debug,
            connect_args={"timeout": 30}
        )
        _enable_immediate_transactions(sqlite_engine)
        return sqlite_engine

    return create_async_engine(
        url,
        # Connection pool configuration for concurrent access
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.debug,
        connect_args={
            "server_settings": {
                "application_name": "club_events_platform",
            }
        }
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for database sessions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables known to the model metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_database() -> None:
    """Initialize database connection and create tables."""
    global engine, async_session_factory

    logger.info("Initializing database connection...")

    engine = create_database_engine()
    async_session_factory = create_session_factory(engine)

    await create_tables(engine)

    # Redis is optional; listings are served uncached without it
    await init_cache()

    logger.info("Database and cache initialized")


async def close_database() -> None:
    """Close database connections."""
    global engine

    if engine:
        logger.info("Closing database connections...")
        await engine.dispose()
        logger.info("Database connections closed")

    await close_cache()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session with automatic cleanup.

    Usage:
        async with get_db_session() as session:
            result = await session.execute(query)
    """
    if async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


class DatabaseManager:
    """Database manager for handling connections and sessions outside the web app."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self) -> None:
        """Initialize the database manager."""
        self.engine = create_database_engine(self.database_url)
        self.session_factory = create_session_factory(self.engine)
        logger.info("Database manager initialized")

    async def close(self) -> None:
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database manager closed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if self.session_factory is None:
            raise RuntimeError("Database manager not initialized")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for getting database sessions.

    Usage in FastAPI endpoints:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_db_session() as session:
        yield session


def store_operation(func):
    """
    Decorator for store accessor methods.

    Connectivity failures surface as ``StoreUnavailableError``; statement-level
    errors such as integrity violations propagate unchanged.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except STORE_CONNECTIVITY_ERRORS as exc:
            logger.error(f"Store unavailable during {func.__qualname__}: {exc}")
            raise StoreUnavailableError() from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                logger.error(f"Store connection lost during {func.__qualname__}: {exc}")
                raise StoreUnavailableError() from exc
            raise

    return wrapper
