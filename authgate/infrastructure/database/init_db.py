"""Database initialization and administration utilities."""

import logging
from pathlib import Path
from typing import Dict, Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select, text

from authgate.config import Settings, get_settings
from authgate.core.auth.token_codec import TokenCodec
from authgate.core.exceptions import UserNotFoundException
from authgate.infrastructure.container import build_auth_service, build_lockout_guard, build_sweeper
from authgate.infrastructure.database.connection import Base, DatabaseManager
from authgate.infrastructure.database.repositories.user_repository import SqlUserRepository

logger = logging.getLogger("authgate.database")

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def get_alembic_config() -> Config:
    """Get Alembic configuration."""
    return Config(str(PROJECT_ROOT / "alembic.ini"))


def run_alembic_migrations() -> None:
    """Run all pending Alembic migrations."""
    command.upgrade(get_alembic_config(), "head")


async def init_database(settings: Optional[Settings] = None) -> None:
    """Create every table that does not exist yet."""
    db_manager = DatabaseManager(settings or get_settings())
    await db_manager.initialize()
    try:
        await db_manager.create_tables()
        logger.info("Database tables created")
    finally:
        await db_manager.close()


async def get_database_info(settings: Optional[Settings] = None) -> Dict[str, int]:
    """
    Count rows per table.

    Returns:
        Mapping of table name to row count
    """
    db_manager = DatabaseManager(settings or get_settings())
    await db_manager.initialize()
    try:
        async with db_manager.get_session() as session:
            await session.execute(text("SELECT 1"))
            counts = {}
            for table in Base.metadata.sorted_tables:
                result = await session.execute(select(func.count()).select_from(table))
                counts[table.name] = result.scalar_one()
            return counts
    finally:
        await db_manager.close()


async def sweep_expired_state(settings: Optional[Settings] = None) -> Dict[str, int]:
    """
    Delete expired refresh tokens, blacklist entries and rate limit windows.

    Returns:
        Number of rows removed per store
    """
    settings = settings or get_settings()
    db_manager = DatabaseManager(settings)
    await db_manager.initialize()
    try:
        async with db_manager.get_session() as session:
            sweeper = build_sweeper(session, settings, TokenCodec.from_settings(settings))
            return await sweeper.sweep()
    finally:
        await db_manager.close()


async def revoke_user_sessions(user_id: int, settings: Optional[Settings] = None) -> int:
    """
    Revoke every active refresh token of a user.

    Returns:
        Number of tokens revoked
    """
    settings = settings or get_settings()
    db_manager = DatabaseManager(settings)
    await db_manager.initialize()
    try:
        async with db_manager.get_session() as session:
            auth_service = build_auth_service(session, settings, TokenCodec.from_settings(settings))
            revoked = await auth_service.revoke_all_sessions(user_id)
            logger.info(f"Revoked {revoked} refresh token(s) of user {user_id}")
            return revoked
    finally:
        await db_manager.close()


async def unlock_user(user_id: int, settings: Optional[Settings] = None) -> None:
    """
    Clear the lock and failed attempt counter of a user.

    Raises:
        UserNotFoundException: If the user does not exist
    """
    settings = settings or get_settings()
    db_manager = DatabaseManager(settings)
    await db_manager.initialize()
    try:
        async with db_manager.get_session() as session:
            if await SqlUserRepository(session).get_user_by_id(user_id) is None:
                raise UserNotFoundException(str(user_id))
            await build_lockout_guard(session, settings).reset(user_id)
            logger.info(f"User {user_id} unlocked")
    finally:
        await db_manager.close()
