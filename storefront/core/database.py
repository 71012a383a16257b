"""
Database configuration and session management
Uses SQLAlchemy with async support
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from fastapi import Request
import logging

from .config import Settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory for one process.

    Constructed explicitly from settings, opened at startup and disposed at
    shutdown. Request handlers receive sessions through ``get_db``.
    """

    def __init__(self, settings: Settings):
        self.url = settings.database_url_async
        self.echo = settings.DATABASE_ECHO
        self.pool_size = settings.DATABASE_POOL_SIZE
        self.max_overflow = settings.DATABASE_MAX_OVERFLOW
        self.pool_timeout = settings.DATABASE_POOL_TIMEOUT
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def connect(self) -> None:
        """Create the engine and session factory"""
        if self.engine is not None:
            return

        if self.is_sqlite:
            # SQLite doesn't support connection pooling parameters
            self.engine = create_async_engine(
                self.url,
                echo=self.echo,
                poolclass=NullPool,
            )
            # SQLite only enforces foreign keys (and ON DELETE actions) per connection
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_pre_ping=True,
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Database engine created")

    async def disconnect(self) -> None:
        """Close database connections"""
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database connections closed")

    async def create_all(self) -> None:
        """Initialize database tables"""
        from storefront.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions
        Useful for scripts, background work and tests
        """
        if self.session_factory is None:
            raise RuntimeError("Database is not connected")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def get_database(request: Request) -> Database:
    """Return the Database attached to the running application"""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Create and yield database session
    Ensures proper cleanup after use
    """
    database = get_database(request)
    async with database.session() as session:
        yield session
