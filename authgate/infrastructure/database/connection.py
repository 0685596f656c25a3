"""Database connection management."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from authgate.config import Settings
from authgate.core.exceptions import DomainException

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Base(DeclarativeBase):
    """Base class for all database models."""

    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )


class DatabaseManager:
    """
    Database connection and session management.

    Created once at process start and closed at shutdown. Each unit of work
    gets its own session, committed when it completes. Domain errors are
    expected outcomes whose side effects (failed attempt counters, lock audit
    rows, rate limit counts) must persist, so they commit too; any other
    exception rolls back.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize database manager.

        Args:
            settings: Application settings containing database configuration
        """
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self) -> None:
        """Initialize database engine and session factory."""
        engine_options = {"echo": self.settings.debug, "pool_pre_ping": True}
        if self.settings.database_is_sqlite:
            # concurrent writers wait on the file lock instead of failing at once
            engine_options["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        else:
            engine_options["pool_recycle"] = 3600

        self._engine = create_async_engine(self.settings.database_url, **engine_options)

        if self.settings.database_is_sqlite:
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create every table known to the model metadata."""
        from authgate.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections and cleanup resources."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get database session with automatic cleanup.

        Yields:
            Async database session

        Raises:
            RuntimeError: If database manager not initialized
        """
        if not self._session_factory:
            raise RuntimeError("Database manager not initialized")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except DomainException as e:
            if e.status_code < 500:
                await session.commit()
            else:
                await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @property
    def engine(self) -> AsyncEngine:
        """
        Get database engine.

        Returns:
            Async database engine

        Raises:
            RuntimeError: If database manager not initialized
        """
        if not self._engine:
            raise RuntimeError("Database manager not initialized")
        return self._engine
