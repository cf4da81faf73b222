"""
Application wiring

create_app() builds every component from one TogoSettings instance. The
delivery layer (HTTP handlers, CLI) holds a TogoApp and calls its services.
"""

from dataclasses import dataclass
from typing import Optional

from togo.config.settings import TogoSettings, get_settings
from togo.logger import get_logger
from togo.services.quota_initializer import QuotaInitializer
from togo.services.task_service import TaskService
from togo.services.user_service import UserService
from togo.storage.database import Database
from togo.utils.clock import Clock
from togo.utils.jwt_utils import TokenService

logger = get_logger(__name__)


@dataclass
class TogoApp:
    settings: TogoSettings
    database: Database
    quota_initializer: QuotaInitializer
    tasks: TaskService
    users: UserService
    tokens: TokenService

    async def init_database(self) -> None:
        """Create tables and the bootstrap admin, if one is configured"""
        await self.database.create_all()
        if self.settings.admin_email:
            admin = await self.users.ensure_admin(self.settings.admin_email)
            logger.info(f"Bootstrap admin is user {admin.id} ({admin.email})")

    async def authenticate(self, token: str) -> int:
        return self.tokens.authenticate(token)

    async def is_admin(self, user_id: int) -> bool:
        return await self.users.is_admin(user_id)

    async def close(self) -> None:
        await self.database.dispose()


def create_app(settings: Optional[TogoSettings] = None, clock: Optional[Clock] = None) -> TogoApp:
    """
    Create the togo application

    Args:
        settings: Settings to use; the process-wide instance by default
        clock: Source of the current time for quota day bucketing

    Returns:
        TogoApp with all services wired to one Database
    """
    settings = settings or get_settings()
    database = Database.from_settings(settings)
    quota_initializer = QuotaInitializer(database, settings.default_task_limit_per_day)
    return TogoApp(
        settings=settings,
        database=database,
        quota_initializer=quota_initializer,
        tasks=TaskService(
            database,
            quota_initializer,
            tz=settings.tzinfo,
            clock=clock,
            max_retries=settings.task_creation_retries,
        ),
        users=UserService(database),
        tokens=TokenService.from_settings(settings),
    )
