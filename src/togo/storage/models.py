"""
SQLAlchemy models for users, quota records and tasks

The one-record-per-user rule for quota records is a UNIQUE constraint on
quota_records.user_id so that it holds even when application checks race.
"""

from enum import IntEnum
from typing import Any, Optional, Union

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from togo.utils.clock import utc_now

Base = declarative_base()


class Role:
    """Account roles"""

    USER = "user"
    ADMIN = "admin"

    ALL = (USER, ADMIN)


class TaskStatus(IntEnum):
    """Task status, stored and exchanged as its integer value"""

    TODO = 1
    PROCESSING = 2
    DONE = 3

    @classmethod
    def parse(cls, value: Union["TaskStatus", int, str]) -> "TaskStatus":
        """
        Accept a TaskStatus, its integer value, or its name

        Names are matched case-insensitively and ignore "_", "-" and spaces,
        so "ToDo", "todo" and "TO_DO" all resolve to TODO.

        Raises:
            ValueError: value does not name a status
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"invalid task status: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            key = text.upper().replace("_", "").replace("-", "").replace(" ", "")
            for member in cls:
                if member.name.replace("_", "") == key:
                    return member
        raise ValueError(f"invalid task status: {value!r}")


class TaskStatusType(TypeDecorator):
    """Persist TaskStatus as INTEGER"""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[int]:
        if value is None:
            return None
        return int(TaskStatus.parse(value))

    def process_result_value(self, value: Any, dialect: Any) -> Optional[TaskStatus]:
        if value is None:
            return None
        return TaskStatus(value)


class User(Base):
    """
    Account identity

    Credentials are handled outside togo; a user here is an email and a role.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(16), nullable=False, default=Role.USER, server_default=Role.USER)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())

    quota_record = relationship("QuotaRecord", back_populates="user", uselist=False)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class QuotaRecord(Base):
    """
    Per-user daily task creation quota

    Created lazily on the user's first task operation and never deleted in
    normal operation. The row doubles as the lock that serializes concurrent
    task creations for its user.
    """

    __tablename__ = "quota_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    task_limit_per_day = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="quota_record")
    tasks = relationship(
        "Task",
        back_populates="quota_record",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Task.id",
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_quota_records_user_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_limit_per_day": self.task_limit_per_day,
        }


class Task(Base):
    """A named unit of work owned by exactly one quota record"""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    status = Column(TaskStatusType(), nullable=False, default=TaskStatus.TODO)
    quota_record_id = Column(
        Integer,
        ForeignKey("quota_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    quota_record = relationship("QuotaRecord", back_populates="tasks")

    __table_args__ = (
        Index("idx_tasks_quota_record_created", "quota_record_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": int(self.status) if self.status is not None else None,
            "status_name": self.status.name if self.status is not None else None,
            "quota_record_id": self.quota_record_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
