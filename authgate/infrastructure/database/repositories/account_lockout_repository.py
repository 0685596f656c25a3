"""Account lockout audit repository implementation."""

from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.auth.entities import AccountLockout
from authgate.core.auth.interfaces import AccountLockoutRepositoryInterface
from authgate.infrastructure.database.models import AccountLockoutModel


class SqlAccountLockoutRepository(AccountLockoutRepositoryInterface):
    """SQLAlchemy implementation of the insert-only lock audit log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def record(self, user_id: int, locked_until: datetime, reason: str) -> AccountLockout:
        model = AccountLockoutModel(user_id=user_id, locked_until=locked_until, reason=reason)
        self._session.add(model)
        await self._session.flush()
        return self._model_to_entity(model)

    async def list_for_user(self, user_id: int) -> List[AccountLockout]:
        result = await self._session.execute(
            select(AccountLockoutModel)
            .where(AccountLockoutModel.user_id == user_id)
            .order_by(AccountLockoutModel.id)
        )
        return [self._model_to_entity(model) for model in result.scalars().all()]

    def _model_to_entity(self, model: AccountLockoutModel) -> AccountLockout:
        return AccountLockout(
            id=model.id,
            user_id=model.user_id,
            locked_until=model.locked_until,
            reason=model.reason,
            created_at=model.created_at,
        )
