"""Common fixtures for unit and integration tests."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from authgate.core.auth.token_codec import TokenCodec
from authgate.infrastructure.database import models  # noqa: F401
from authgate.infrastructure.database.connection import Base
from authgate.utils.clock import utcnow

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"


class FakeClock:
    """Controllable naive UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock starting at the real current time, so issued tokens verify."""
    return FakeClock(utcnow())


@pytest.fixture
def token_codec():
    """Token codec with test secrets."""
    return TokenCodec(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory on a fresh SQLite file with every table created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Session on the test database, rolled back after the test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def stored_user(db_session):
    """Credentials user persisted in the test database."""
    from authgate.core.auth.entities import User
    from authgate.infrastructure.database.repositories.user_repository import SqlUserRepository

    return await SqlUserRepository(db_session).create_user(
        User(
            id=0,
            username="ann",
            email="a@x.com",
            hashed_password="$2b$12$hashed_password",
            provider="credentials",
        )
    )
