"""
Ownership and role checks

authorize_task_access distinguishes "no such task" from "not your task" in
the error kind and in the logs, but both errors render the same public
message so callers cannot probe for other users' task ids.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from togo.errors import (
    NotFoundError,
    PermissionDeniedError,
    TaskNotFoundError,
    TaskPermissionDeniedError,
)
from togo.logger import get_logger
from togo.storage.models import Task
from togo.storage.quota_repository import QuotaRepository
from togo.storage.task_repository import TaskRepository
from togo.storage.user_repository import UserRepository

logger = get_logger(__name__)


class AuthorizationGuard:
    """Checks run inside the caller's transaction"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tasks = TaskRepository(session)
        self.quotas = QuotaRepository(session)
        self.users = UserRepository(session)

    async def authorize_task_access(self, user_id: int, task_id: int) -> Task:
        """
        Load a task and require that it belongs to user_id

        Raises:
            TaskNotFoundError: task does not exist
            TaskPermissionDeniedError: task belongs to another user
        """
        task = await self.tasks.find_by_id(task_id)
        if task is None:
            logger.warning(f"User {user_id} requested missing task {task_id}")
            raise TaskNotFoundError(task_id)

        try:
            owner = await self.quotas.get_by_id(task.quota_record_id)
        except NotFoundError:
            logger.error(f"Task {task_id} references missing quota record {task.quota_record_id}")
            raise TaskNotFoundError(task_id)

        if owner.user_id != user_id:
            logger.warning(
                f"User {user_id} denied access to task {task_id} owned by user {owner.user_id}"
            )
            raise TaskPermissionDeniedError(task_id)
        return task

    async def authorize_quota_change(
        self,
        caller_user_id: int,
        target_user_id: int,
        task_limit_per_day: int,
    ) -> None:
        """
        Require admin role for changing any user's daily limit, including one's own

        Raises:
            PermissionDeniedError: caller is not an admin or is unknown
        """
        try:
            is_admin = await self.users.is_admin(caller_user_id)
        except NotFoundError:
            is_admin = False
        if not is_admin:
            logger.warning(
                f"User {caller_user_id} denied changing task limit of user {target_user_id} "
                f"to {task_limit_per_day}"
            )
            raise PermissionDeniedError("only admin can update task limit")
