"""Rate limit window repository implementation."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.auth.entities import RateLimitWindow
from authgate.core.auth.interfaces import RateLimitRepositoryInterface
from authgate.infrastructure.database.models import RateLimitModel


class SqlRateLimitRepository(RateLimitRepositoryInterface):
    """SQLAlchemy implementation of fixed-window counters."""

    def __init__(self, session: AsyncSession):
        """
        Initialize rate limit repository.

        Args:
            session: Database session
        """
        self._session = session

    async def delete_windows_before(self, cutoff: datetime) -> int:
        result = await self._session.execute(
            delete(RateLimitModel)
            .where(RateLimitModel.window_start < cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def find_window(
        self, identifier: str, endpoint: str, since: datetime
    ) -> Optional[RateLimitWindow]:
        result = await self._session.execute(
            select(RateLimitModel)
            .where(
                and_(
                    RateLimitModel.identifier == identifier,
                    RateLimitModel.endpoint == endpoint,
                    RateLimitModel.window_start >= since,
                )
            )
            .order_by(RateLimitModel.window_start.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()

        if model:
            return self._model_to_entity(model)
        return None

    async def increment(self, window_id: int) -> Optional[int]:
        """
        Atomically add one to a window counter.

        Returns:
            New count, None if the window was deleted meanwhile
        """
        result = await self._session.execute(
            update(RateLimitModel)
            .where(RateLimitModel.id == window_id)
            .values(count=RateLimitModel.count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None

        return await self._session.scalar(
            select(RateLimitModel.count).where(RateLimitModel.id == window_id)
        )

    async def create_window(
        self, identifier: str, endpoint: str, window_start: datetime
    ) -> RateLimitWindow:
        model = RateLimitModel(
            identifier=identifier,
            endpoint=endpoint,
            count=1,
            window_start=window_start,
        )
        self._session.add(model)
        await self._session.flush()
        return self._model_to_entity(model)

    def _model_to_entity(self, model: RateLimitModel) -> RateLimitWindow:
        return RateLimitWindow(
            id=model.id,
            identifier=model.identifier,
            endpoint=model.endpoint,
            count=model.count,
            window_start=model.window_start,
        )
