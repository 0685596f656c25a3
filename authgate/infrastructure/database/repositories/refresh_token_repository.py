"""Refresh token repository implementation."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.auth.entities import RefreshToken
from authgate.core.auth.interfaces import RefreshTokenRepositoryInterface
from authgate.infrastructure.database.models import RefreshTokenModel


class SqlRefreshTokenRepository(RefreshTokenRepositoryInterface):
    """SQLAlchemy implementation of refresh token repository."""

    def __init__(self, session: AsyncSession):
        """
        Initialize refresh token repository.

        Args:
            session: Database session
        """
        self._session = session

    async def get_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """
        Get refresh token by token string.

        Args:
            token: Refresh token string

        Returns:
            RefreshToken entity if found, None otherwise
        """
        result = await self._session.execute(
            select(RefreshTokenModel)
            .where(RefreshTokenModel.token == token)
            .execution_options(populate_existing=True)
        )
        token_model = result.scalar_one_or_none()

        if token_model:
            return self._model_to_entity(token_model)
        return None

    async def save_refresh_token(self, refresh_token: RefreshToken) -> RefreshToken:
        """
        Save new refresh token.

        Args:
            refresh_token: RefreshToken entity to save

        Returns:
            Created RefreshToken entity
        """
        token_model = RefreshTokenModel(
            token=refresh_token.token,
            user_id=refresh_token.user_id,
            expires_at=refresh_token.expires_at,
            revoked_at=refresh_token.revoked_at,
        )

        self._session.add(token_model)
        await self._session.flush()
        return self._model_to_entity(token_model)

    async def revoke_if_active(self, token: str, now: datetime) -> bool:
        """
        Revoke a token only if it is unrevoked and unexpired.

        Returns:
            True if exactly this call revoked the token
        """
        revoked = await self._revoke(
            and_(
                RefreshTokenModel.token == token,
                RefreshTokenModel.revoked_at.is_(None),
                RefreshTokenModel.expires_at >= now,
            ),
            now,
        )
        return revoked == 1

    async def revoke_token(self, token: str, now: datetime) -> bool:
        """
        Revoke refresh token.

        Args:
            token: Refresh token string
            now: Revocation timestamp

        Returns:
            True if token was revoked, False if not found or already revoked
        """
        revoked = await self._revoke(
            and_(RefreshTokenModel.token == token, RefreshTokenModel.revoked_at.is_(None)),
            now,
        )
        return revoked > 0

    async def revoke_user_tokens(self, user_id: int, now: datetime) -> int:
        """
        Revoke all refresh tokens for a user.

        Args:
            user_id: User ID
            now: Revocation timestamp

        Returns:
            Number of tokens revoked
        """
        return await self._revoke(
            and_(RefreshTokenModel.user_id == user_id, RefreshTokenModel.revoked_at.is_(None)),
            now,
        )

    async def delete_expired(self, now: datetime) -> int:
        """
        Remove expired refresh tokens from database.

        Returns:
            Number of tokens removed
        """
        result = await self._session.execute(
            delete(RefreshTokenModel)
            .where(RefreshTokenModel.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def _revoke(self, condition, now: datetime) -> int:
        result = await self._session.execute(
            update(RefreshTokenModel)
            .where(condition)
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def _model_to_entity(self, model: RefreshTokenModel) -> RefreshToken:
        """
        Convert database model to domain entity.

        Args:
            model: RefreshToken database model

        Returns:
            RefreshToken domain entity
        """
        return RefreshToken(
            token=model.token,
            user_id=model.user_id,
            expires_at=model.expires_at,
            revoked_at=model.revoked_at,
            created_at=model.created_at,
        )
