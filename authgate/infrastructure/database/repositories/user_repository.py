"""User repository implementation."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.auth.entities import User
from authgate.core.auth.interfaces import UserRepositoryInterface
from authgate.core.exceptions import UserAlreadyExistsException
from authgate.infrastructure.database.models import UserModel


class SqlUserRepository(UserRepositoryInterface):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: AsyncSession):
        """
        Initialize user repository.

        Args:
            session: Database session
        """
        self._session = session

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User entity if found, None otherwise
        """
        return await self._first(UserModel.id == user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email.

        Args:
            email: Email address

        Returns:
            User entity if found, None otherwise
        """
        return await self._first(UserModel.email == email)

    async def find_by_email_or_username(self, email: str, username: str) -> Optional[User]:
        return await self._first(or_(UserModel.email == email, UserModel.username == username))

    async def find_by_email_or_provider(
        self, email: str, provider: str, provider_id: str
    ) -> Optional[User]:
        return await self._first(
            or_(
                UserModel.email == email,
                and_(UserModel.provider == provider, UserModel.provider_id == provider_id),
            )
        )

    async def create_user(self, user: User) -> User:
        """
        Create new user.

        Args:
            user: User entity to create

        Returns:
            Created user entity with ID

        Raises:
            UserAlreadyExistsException: If username or email already exists
        """
        user_model = UserModel(
            username=user.username,
            email=user.email,
            hashed_password=user.hashed_password,
            provider=user.provider,
            provider_id=user.provider_id,
            email_verified=user.email_verified,
            image=user.image,
            failed_login_attempts=0,
        )

        try:
            self._session.add(user_model)
            await self._session.flush()
            return self._model_to_entity(user_model)
        except IntegrityError:
            await self._session.rollback()
            raise UserAlreadyExistsException()

    async def update_user(self, user_id: int, **fields) -> Optional[User]:
        """
        Update selected columns of a user.

        Args:
            user_id: User ID
            **fields: Column values to set

        Returns:
            Updated user entity, None if not found
        """
        await self._execute_update(UserModel.id == user_id, **fields)
        return await self.get_user_by_id(user_id)

    async def increment_failed_attempts(self, user_id: int) -> Optional[int]:
        """
        Atomically add one to the failed login counter.

        Returns:
            New counter value, None if the user does not exist
        """
        changed = await self._execute_update(
            UserModel.id == user_id,
            failed_login_attempts=UserModel.failed_login_attempts + 1,
        )
        if changed == 0:
            return None

        return await self._session.scalar(
            select(UserModel.failed_login_attempts).where(UserModel.id == user_id)
        )

    async def set_lock(self, user_id: int, locked_until: datetime) -> None:
        await self._execute_update(UserModel.id == user_id, locked_until=locked_until)

    async def clear_lock(self, user_id: int) -> None:
        await self._execute_update(
            UserModel.id == user_id,
            failed_login_attempts=0,
            locked_until=None,
        )

    async def clear_expired_lock(self, user_id: int, now: datetime) -> bool:
        changed = await self._execute_update(
            and_(
                UserModel.id == user_id,
                UserModel.locked_until.is_not(None),
                UserModel.locked_until <= now,
            ),
            failed_login_attempts=0,
            locked_until=None,
        )
        return changed > 0

    async def _first(self, condition) -> Optional[User]:
        result = await self._session.execute(
            select(UserModel)
            .where(condition)
            .order_by(UserModel.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        user_model = result.scalar_one_or_none()

        if user_model:
            return self._model_to_entity(user_model)
        return None

    async def _execute_update(self, condition, **values) -> int:
        result = await self._session.execute(
            update(UserModel)
            .where(condition)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def _model_to_entity(self, model: UserModel) -> User:
        """
        Convert database model to domain entity.

        Args:
            model: User database model

        Returns:
            User domain entity
        """
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            hashed_password=model.hashed_password,
            provider=model.provider,
            provider_id=model.provider_id,
            email_verified=model.email_verified,
            image=model.image,
            failed_login_attempts=model.failed_login_attempts,
            locked_until=model.locked_until,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
