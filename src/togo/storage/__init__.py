"""
Storage module for users, quota records and tasks

Uses SQLAlchemy's async ORM (SQLite via aiosqlite by default, PostgreSQL via asyncpg).
"""

from togo.storage.database import Database
from togo.storage.models import Base, QuotaRecord, Role, Task, TaskStatus, User
from togo.storage.quota_repository import (
    CreateOutcome,
    QuotaConflict,
    QuotaCreated,
    QuotaRepository,
)
from togo.storage.task_repository import TaskRepository
from togo.storage.user_repository import UserRepository

__all__ = [
    "Base",
    "Database",
    "QuotaRecord",
    "Role",
    "Task",
    "TaskStatus",
    "User",
    "CreateOutcome",
    "QuotaConflict",
    "QuotaCreated",
    "QuotaRepository",
    "TaskRepository",
    "UserRepository",
]
