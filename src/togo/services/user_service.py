"""
Service for managing togo users
"""

from typing import List

from togo.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from togo.logger import get_logger
from togo.storage.database import Database
from togo.storage.models import Role, User
from togo.storage.user_repository import UserRepository

logger = get_logger(__name__)


def _normalize_email(email: str) -> str:
    if not isinstance(email, str) or not email.strip():
        raise InvalidArgumentError("email is required")
    email = email.strip().lower()
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain:
        raise InvalidArgumentError(f"invalid email: {email}")
    return email


class UserService:
    """Service for creating users and answering role queries"""

    def __init__(self, database: Database):
        self.database = database

    async def sign_up(self, email: str, role: str = Role.USER) -> User:
        """
        Register a user

        Raises:
            InvalidArgumentError: malformed email or unknown role
            AlreadyExistsError: email is taken
        """
        email = _normalize_email(email)
        if role not in Role.ALL:
            raise InvalidArgumentError(f"invalid role: {role}")
        async with self.database.transaction() as session:
            user = await UserRepository(session).create(email, role)
        logger.info(f"Created {role} user {user.id} ({email})")
        return user

    async def ensure_admin(self, email: str) -> User:
        """Create the bootstrap admin if missing; an existing account is returned as is"""
        email = _normalize_email(email)
        async with self.database.transaction() as session:
            existing = await UserRepository(session).find_by_email(email)
        if existing is not None:
            if not existing.is_admin:
                logger.warning(f"Bootstrap admin {email} exists without admin role")
            return existing
        try:
            return await self.sign_up(email, Role.ADMIN)
        except AlreadyExistsError:
            # Another process bootstrapped it first
            async with self.database.transaction() as session:
                return await UserRepository(session).get_by_email(email)

    async def get_user(self, user_id: int) -> User:
        async with self.database.transaction() as session:
            return await UserRepository(session).get_by_id(user_id)

    async def get_user_by_email(self, email: str) -> User:
        async with self.database.transaction() as session:
            return await UserRepository(session).get_by_email(_normalize_email(email))

    async def list_users(self, limit: int = 100) -> List[User]:
        async with self.database.transaction() as session:
            return await UserRepository(session).list(limit)

    async def is_admin(self, user_id: int) -> bool:
        """Authorization query; unknown users are not admins"""
        try:
            async with self.database.transaction() as session:
                return await UserRepository(session).is_admin(user_id)
        except NotFoundError:
            return False
