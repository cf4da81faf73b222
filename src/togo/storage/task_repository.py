"""
Repository for tasks

Plain row access; ownership and quota rules live in the services.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from togo.errors import TaskNotFoundError
from togo.storage.database import storage_operation
from togo.storage.models import Task, TaskStatus


class TaskRepository:
    """Repository for tasks"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_operation
    async def find_by_id(self, task_id: int) -> Optional[Task]:
        return await self.session.get(Task, task_id)

    async def get_by_id(self, task_id: int) -> Task:
        """
        Get a task by id

        Raises:
            TaskNotFoundError: no such task
        """
        task = await self.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    @storage_operation
    async def list_by_quota_record(self, quota_record_id: int) -> List[Task]:
        stmt = select(Task).filter(Task.quota_record_id == quota_record_id).order_by(Task.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @storage_operation
    async def insert(
        self,
        quota_record_id: int,
        name: str,
        status: TaskStatus,
        created_at: datetime,
    ) -> Task:
        """Insert a task and flush so it has an id and counts toward queries in this transaction"""
        task = Task(
            name=name,
            status=status,
            quota_record_id=quota_record_id,
            created_at=created_at,
            updated_at=created_at,
        )
        self.session.add(task)
        await self.session.flush()
        return task

    @storage_operation
    async def update(self, task: Task, name: str, status: TaskStatus) -> Task:
        task.name = name
        task.status = status
        await self.session.flush()
        await self.session.refresh(task)
        return task

    @storage_operation
    async def delete_by_id(self, task_id: int) -> bool:
        """Delete permanently; returns False if there was nothing to delete"""
        result = await self.session.execute(delete(Task).where(Task.id == task_id))
        return result.rowcount > 0
