"""
Database engine and session management

One Database per process wraps the async engine and two session factories:
the general one, and the one used by the task creation transaction, which
may run at a stricter isolation level.

SQLite notes: the driver's implicit BEGIN is disabled and every transaction
starts with BEGIN IMMEDIATE instead, so writers take the database lock up
front and concurrent transactions queue on the busy timeout rather than
deadlocking on lock upgrade. Use a file database; ":memory:" shares one
connection between all sessions and cannot run transactions concurrently.
"""

import functools
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from togo.config.settings import TogoSettings
from togo.errors import InternalError
from togo.logger import get_logger
from togo.storage.models import Base

logger = get_logger(__name__)

T = TypeVar("T")

SQLITE_BUSY_TIMEOUT_SECONDS = 30.0

# SQLSTATE for serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}
_UNIQUE_VIOLATION_SQLSTATE = "23505"
_MYSQL_DUPLICATE_ENTRY = 1062


def _enable_sqlite_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        # Read-only transactions take the write lock too and queue behind
        # creations. SQLite allows a single writer regardless, and a deferred
        # BEGIN that later upgrades to a writer fails with SQLITE_BUSY
        # instead of waiting on the busy timeout.
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_serialization_failure(exc: Optional[BaseException]) -> bool:
    """True when the database aborted a transaction to keep it serializable"""
    if not isinstance(exc, DBAPIError):
        return False
    return _sqlstate(exc) in _RETRYABLE_SQLSTATES


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a UNIQUE constraint conflict apart from other integrity errors"""
    if _sqlstate(exc) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    args = getattr(exc.orig, "args", ())
    if args and args[0] == _MYSQL_DUPLICATE_ENTRY:
        return True
    text = str(exc.orig)
    return "UNIQUE constraint failed" in text or "duplicate key value" in text


def storage_operation(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Turn SQLAlchemy failures escaping a repository method into InternalError"""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Storage error in {func.__qualname__}: {e}", exc_info=True)
            raise InternalError(f"{func.__name__} failed") from e

    return wrapper


class Database:
    """Async engine plus session factories"""

    def __init__(
        self,
        url: str,
        echo: bool = False,
        creation_isolation_level: Optional[str] = None,
    ):
        self.url = make_url(url)
        self.is_sqlite = self.url.get_backend_name() == "sqlite"

        engine_kwargs: dict = {"echo": echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_async_engine(url, **engine_kwargs)
        if self.is_sqlite:
            _enable_sqlite_transactions(self.engine)

        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

        creation_engine = self.engine
        if creation_isolation_level:
            if self.is_sqlite:
                # BEGIN IMMEDIATE already serializes every SQLite transaction
                logger.info(
                    f"Ignoring task creation isolation level {creation_isolation_level} on SQLite"
                )
            else:
                creation_engine = self.engine.execution_options(
                    isolation_level=creation_isolation_level
                )
        self.creation_isolation_level = creation_isolation_level
        self.creation_session_factory = async_sessionmaker(
            creation_engine, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: TogoSettings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.sql_echo,
            creation_isolation_level=settings.task_creation_isolation_level,
        )

    def session(self) -> AsyncSession:
        """New session for general reads and writes"""
        return self.session_factory()

    def creation_session(self) -> AsyncSession:
        """New session for the task creation transaction"""
        return self.creation_session_factory()

    @asynccontextmanager
    async def transaction(self, for_creation: bool = False) -> AsyncIterator[AsyncSession]:
        """
        Session inside one transaction: committed on normal exit, rolled back
        on any exception

        SQLAlchemy errors, including ones raised by the final COMMIT, leave
        as InternalError with the original chained.
        """
        factory = self.creation_session_factory if for_creation else self.session_factory
        async with factory() as session:
            try:
                async with session.begin():
                    yield session
            except SQLAlchemyError as e:
                logger.error(f"Transaction failed: {e}", exc_info=True)
                raise InternalError("transaction failed") from e

    async def create_all(self) -> None:
        """Create tables if they don't exist"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Checked/Created togo tables on {self.url.render_as_string(hide_password=True)}")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.debug("Database connection pool closed")
