"""
Repository for per-user quota records

Uses SQLAlchemy to store one quota record per user. The caller owns the
transaction; nothing here commits.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional, Union

from sqlalchemy import and_, func as sql_func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from togo.errors import NotFoundError
from togo.logger import get_logger
from togo.storage.database import is_unique_violation, storage_operation
from togo.storage.models import QuotaRecord, Task
from togo.utils.clock import day_window

logger = get_logger(__name__)


@dataclass(frozen=True)
class QuotaCreated:
    """create() inserted a new record"""

    record: QuotaRecord


@dataclass(frozen=True)
class QuotaConflict:
    """create() lost to an existing record for the same user"""

    user_id: int


CreateOutcome = Union[QuotaCreated, QuotaConflict]


class QuotaRepository:
    """Repository for quota records and the daily task counts measured against them"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_operation
    async def find_by_user_id(self, user_id: int) -> Optional[QuotaRecord]:
        stmt = select(QuotaRecord).filter(QuotaRecord.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: int) -> QuotaRecord:
        """
        Get the quota record of a user

        Raises:
            NotFoundError: user has no quota record yet
        """
        record = await self.find_by_user_id(user_id)
        if record is None:
            raise NotFoundError(f"quota record for user {user_id} not found")
        return record

    @storage_operation
    async def get_by_id(self, quota_record_id: int) -> QuotaRecord:
        """
        Get a quota record by its id

        Raises:
            NotFoundError: no such record
        """
        record = await self.session.get(QuotaRecord, quota_record_id)
        if record is None:
            raise NotFoundError(f"quota record {quota_record_id} not found")
        return record

    @storage_operation
    async def lock_by_user_id(self, user_id: int) -> QuotaRecord:
        """
        Re-read a user's quota record holding a row lock until the transaction ends

        Concurrent lockers of the same record wait here; records of other
        users are unaffected. The read bypasses the identity map so the
        limit reflects the latest committed value.

        Raises:
            NotFoundError: user has no quota record
        """
        stmt = (
            select(QuotaRecord)
            .filter(QuotaRecord.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"quota record for user {user_id} not found")
        return record

    @storage_operation
    async def create(self, user_id: int, task_limit_per_day: int) -> CreateOutcome:
        """
        Insert a quota record for a user

        Uniqueness is left to the database: the insert runs in a savepoint and
        a UNIQUE violation on user_id comes back as QuotaConflict instead of
        an exception, leaving the surrounding transaction usable. Any other
        integrity error propagates.
        """
        record = QuotaRecord(user_id=user_id, task_limit_per_day=task_limit_per_day)
        try:
            async with self.session.begin_nested():
                self.session.add(record)
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            logger.debug(f"Quota record for user {user_id} already exists")
            return QuotaConflict(user_id=user_id)
        return QuotaCreated(record=record)

    @storage_operation
    async def lock_for_creation(self, user_id: int, now: datetime) -> QuotaRecord:
        """
        Lock a user's quota record and write it before a task insert

        Writing the row, not only locking it, is what makes PostgreSQL abort
        a concurrent REPEATABLE READ or SERIALIZABLE creation for the same
        user with a serialization failure. A row that was only locked is
        handed to the waiter with its stale snapshot intact.

        Raises:
            NotFoundError: user has no quota record
        """
        record = await self.lock_by_user_id(user_id)
        record.updated_at = now
        await self.session.flush()
        return record

    @storage_operation
    async def set_limit(self, record: QuotaRecord, task_limit_per_day: int) -> QuotaRecord:
        record.task_limit_per_day = task_limit_per_day
        await self.session.flush()
        return record

    @storage_operation
    async def count_tasks_created_between(
        self,
        quota_record_id: int,
        start: datetime,
        end: datetime,
    ) -> int:
        """Count tasks of a record with start <= created_at < end"""
        stmt = select(sql_func.count(Task.id)).filter(
            and_(
                Task.quota_record_id == quota_record_id,
                Task.created_at >= start,
                Task.created_at < end,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_tasks_created_today(
        self,
        quota_record_id: int,
        now: datetime,
        tz: tzinfo,
    ) -> int:
        """Count tasks of a record created on the calendar day of now in tz"""
        start, end = day_window(now, tz)
        return await self.count_tasks_created_between(quota_record_id, start, end)
