"""
Repository for users
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from togo.errors import AlreadyExistsError, NotFoundError
from togo.storage.database import is_unique_violation, storage_operation
from togo.storage.models import User


class UserRepository:
    """Repository for users"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_operation
    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_id(self, user_id: int) -> User:
        """
        Raises:
            NotFoundError: no such user
        """
        user = await self.find_by_id(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")
        return user

    @storage_operation
    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).filter(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User:
        """
        Raises:
            NotFoundError: no user with this email
        """
        user = await self.find_by_email(email)
        if user is None:
            raise NotFoundError(f"user with email {email} not found")
        return user

    @storage_operation
    async def create(self, email: str, role: str) -> User:
        """
        Insert a user

        Raises:
            AlreadyExistsError: email is taken
        """
        user = User(email=email, role=role)
        try:
            async with self.session.begin_nested():
                self.session.add(user)
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            raise AlreadyExistsError(f"email {email} has been used") from e
        return user

    @storage_operation
    async def list(self, limit: int = 100) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.id).limit(limit))
        return list(result.scalars().all())

    async def is_admin(self, user_id: int) -> bool:
        """
        Raises:
            NotFoundError: no such user
        """
        user = await self.get_by_id(user_id)
        return user.is_admin
