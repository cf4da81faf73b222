"""
Task operations exposed to the delivery layer

Task creation is the quota-enforcing path. Within one transaction it:

1. locks and writes the user's quota record row (the per-user
   serialization point),
2. inserts the new task,
3. counts the user's tasks created today, the new one included,
4. rolls everything back with ResourceExhaustedError if the count is over
   the limit, otherwise commits.

Counting after the insert, under the row lock, means two concurrent
requests cannot both pass a pre-check and together overshoot the limit:
the second one waits for the lock and then counts the first one's row.
Creations for different users lock different rows and do not wait on each
other.

The limit is exact on SQLite and on READ COMMITTED engines. With REPEATABLE
READ or SERIALIZABLE configured for the creation transaction, a waiter's
snapshot predates the other creation's task, so counting would miss it.
Because every creation writes the quota row, PostgreSQL aborts that waiter
with a serialization failure instead; those attempts are retried and, once
retries run out, reported as InternalError with no task persisted.
"""

from datetime import tzinfo
from typing import Any, Dict, List, Optional, Union

from togo.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    ResourceExhaustedError,
    TaskNotFoundError,
)
from togo.logger import get_logger
from togo.services.authorization import AuthorizationGuard
from togo.services.quota_initializer import QuotaInitializer
from togo.storage.database import Database, is_serialization_failure
from togo.storage.models import QuotaRecord, Task, TaskStatus
from togo.storage.quota_repository import QuotaRepository
from togo.storage.task_repository import TaskRepository
from togo.storage.user_repository import UserRepository
from togo.utils.clock import Clock, day_window, to_utc, utc_now

logger = get_logger(__name__)

MAX_TASK_NAME_LENGTH = 255


def _validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgumentError("task name is required")
    name = name.strip()
    if len(name) > MAX_TASK_NAME_LENGTH:
        raise InvalidArgumentError(f"task name exceeds {MAX_TASK_NAME_LENGTH} characters")
    return name


def _validate_status(status: Union[TaskStatus, int, str, None]) -> TaskStatus:
    if status is None:
        raise InvalidArgumentError("task status is required")
    try:
        return TaskStatus.parse(status)
    except ValueError as e:
        raise InvalidArgumentError(str(e)) from e


def _validate_limit(task_limit_per_day: Any) -> int:
    if isinstance(task_limit_per_day, bool) or not isinstance(task_limit_per_day, int):
        raise InvalidArgumentError("task limit per day must be an integer")
    if task_limit_per_day < 0:
        raise InvalidArgumentError("task limit per day must be >= 0")
    return task_limit_per_day


class TaskService:
    """Task CRUD with ownership checks and the daily creation quota"""

    def __init__(
        self,
        database: Database,
        quota_initializer: QuotaInitializer,
        tz: tzinfo,
        clock: Optional[Clock] = None,
        max_retries: int = 3,
    ):
        """
        Args:
            database: Database holding users, quota records and tasks
            quota_initializer: Get-or-create for quota records
            tz: Timezone whose calendar days bucket the daily count
            clock: Returns the current aware datetime; defaults to UTC now
            max_retries: Retries of a creation aborted by a serialization failure
        """
        self.database = database
        self.quota_initializer = quota_initializer
        self.tz = tz
        self.clock = clock or utc_now
        self.max_retries = max_retries

    async def fetch_tasks(self, user_id: int) -> List[Task]:
        """All tasks of a user, oldest first"""
        record = await self.quota_initializer.ensure_exists(user_id)
        async with self.database.transaction() as session:
            return await TaskRepository(session).list_by_quota_record(record.id)

    async def get_task(self, user_id: int, task_id: int) -> Task:
        """
        Raises:
            TaskNotFoundError: task does not exist
            TaskPermissionDeniedError: task belongs to another user
        """
        async with self.database.transaction() as session:
            return await AuthorizationGuard(session).authorize_task_access(user_id, task_id)

    async def create_task(
        self,
        user_id: int,
        name: str,
        status: Union[TaskStatus, int, str] = TaskStatus.TODO,
    ) -> Task:
        """
        Create a task if the user is still under today's limit

        Raises:
            InvalidArgumentError: empty name or unknown status
            ResourceExhaustedError: the user already created their limit of tasks today
            InternalError: storage failure; no task was persisted
        """
        name = _validate_name(name)
        status = _validate_status(status)

        await self.quota_initializer.ensure_exists(user_id)

        attempt = 0
        while True:
            try:
                return await self._insert_within_limit(user_id, name, status)
            except InternalError as e:
                if attempt >= self.max_retries or not is_serialization_failure(e.__cause__):
                    raise
                attempt += 1
                logger.info(
                    f"Task creation for user {user_id} hit a serialization failure, "
                    f"retrying ({attempt}/{self.max_retries})"
                )

    async def _insert_within_limit(self, user_id: int, name: str, status: TaskStatus) -> Task:
        async with self.database.transaction(for_creation=True) as session:
            quotas = QuotaRepository(session)
            now = to_utc(self.clock())
            try:
                record = await quotas.lock_for_creation(user_id, now)
            except NotFoundError as e:
                raise InternalError(f"quota record for user {user_id} missing") from e

            task = await TaskRepository(session).insert(record.id, name, status, now)
            created_today = await quotas.count_tasks_created_today(record.id, now, self.tz)

            if created_today > record.task_limit_per_day:
                logger.warning(
                    f"User {user_id} exceeded task limit "
                    f"({created_today - 1} created today, limit {record.task_limit_per_day})"
                )
                # Leaving the block with an exception rolls the insert back
                raise ResourceExhaustedError("task limit exceeded")

        logger.info(f"Created task {task.id} for user {user_id} ({created_today}/{record.task_limit_per_day} today)")
        return task

    async def update_task(
        self,
        user_id: int,
        task_id: int,
        name: str,
        status: Union[TaskStatus, int, str],
    ) -> Task:
        """
        Raises:
            InvalidArgumentError: empty name or unknown status
            TaskNotFoundError: task does not exist
            TaskPermissionDeniedError: task belongs to another user
        """
        name = _validate_name(name)
        status = _validate_status(status)
        async with self.database.transaction() as session:
            task = await AuthorizationGuard(session).authorize_task_access(user_id, task_id)
            task = await TaskRepository(session).update(task, name, status)
        logger.info(f"Updated task {task_id} for user {user_id}")
        return task

    async def delete_task(self, user_id: int, task_id: int) -> None:
        """
        Delete a task permanently; deleting a task that does not exist succeeds

        Raises:
            TaskPermissionDeniedError: task belongs to another user
        """
        async with self.database.transaction() as session:
            try:
                await AuthorizationGuard(session).authorize_task_access(user_id, task_id)
            except TaskNotFoundError:
                return
            await TaskRepository(session).delete_by_id(task_id)
        logger.info(f"Deleted task {task_id} for user {user_id}")

    async def set_user_task_limit(
        self,
        caller_user_id: int,
        target_user_id: int,
        task_limit_per_day: int,
    ) -> QuotaRecord:
        """
        Change a user's daily limit (admin only)

        The new limit applies to creations committed after this call; tasks
        already created today are kept even if they now exceed it.

        Raises:
            InvalidArgumentError: negative or non-integer limit
            PermissionDeniedError: caller is not an admin
            NotFoundError: target user does not exist
        """
        task_limit_per_day = _validate_limit(task_limit_per_day)

        async with self.database.transaction() as session:
            await AuthorizationGuard(session).authorize_quota_change(
                caller_user_id, target_user_id, task_limit_per_day
            )
            await UserRepository(session).get_by_id(target_user_id)

        await self.quota_initializer.ensure_exists(target_user_id)

        async with self.database.transaction() as session:
            quotas = QuotaRepository(session)
            record = await quotas.lock_by_user_id(target_user_id)
            previous = record.task_limit_per_day
            record = await quotas.set_limit(record, task_limit_per_day)

        logger.info(
            f"User {caller_user_id} changed task limit of user {target_user_id} "
            f"from {previous} to {task_limit_per_day}"
        )
        return record

    async def get_quota_status(self, user_id: int) -> Dict[str, Any]:
        """
        Get user's quota status for today

        Returns:
            Dictionary with the limit, today's usage and the next reset time
        """
        record = await self.quota_initializer.ensure_exists(user_id)
        now = self.clock()
        start, end = day_window(now, self.tz)
        async with self.database.transaction() as session:
            used = await QuotaRepository(session).count_tasks_created_between(record.id, start, end)
        limit = record.task_limit_per_day
        return {
            "user_id": user_id,
            "quota_record_id": record.id,
            "task_limit_per_day": limit,
            "used_today": used,
            "remaining": max(0, limit - used),
            "quota_exceeded": used >= limit,
            "reset_time": end.isoformat(),
        }
