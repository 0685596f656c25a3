"""Access token blacklist repository implementation."""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.auth.entities import BlacklistedToken
from authgate.core.auth.interfaces import TokenBlacklistRepositoryInterface
from authgate.infrastructure.database.models import TokenBlacklistModel

UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class SqlTokenBlacklistRepository(TokenBlacklistRepositoryInterface):
    """SQLAlchemy implementation of the access token blacklist."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def upsert(self, token: str, expires_at: datetime) -> None:
        """
        Insert a blacklist entry or refresh its expiry in one statement.

        Concurrent logouts presenting the same token both succeed.
        """
        insert = UPSERT_INSERTS[self._session.get_bind().dialect.name]
        statement = insert(TokenBlacklistModel).values(token=token, expires_at=expires_at)
        statement = statement.on_conflict_do_update(
            index_elements=[TokenBlacklistModel.token],
            set_={"expires_at": statement.excluded.expires_at},
        )
        await self._session.execute(statement)

    async def get(self, token: str) -> Optional[BlacklistedToken]:
        result = await self._session.execute(
            select(TokenBlacklistModel)
            .where(TokenBlacklistModel.token == token)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()

        if model:
            return BlacklistedToken(token=model.token, expires_at=model.expires_at)
        return None

    async def delete(self, token: str) -> None:
        await self._session.execute(
            delete(TokenBlacklistModel)
            .where(TokenBlacklistModel.token == token)
            .execution_options(synchronize_session=False)
        )

    async def delete_expired(self, now: datetime) -> int:
        """
        Remove blacklist entries past their expiry.

        Returns:
            Number of entries removed
        """
        result = await self._session.execute(
            delete(TokenBlacklistModel)
            .where(TokenBlacklistModel.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
