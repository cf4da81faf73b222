"""
Pytest configuration and shared fixtures

Every test gets its own SQLite file under tmp_path. A file database is
required: ":memory:" gives all sessions one shared connection, which cannot
run the concurrent transactions the quota tests exercise.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from togo.app import create_app
from togo.config.settings import TogoSettings
from togo.storage.models import Role


class FakeClock:
    """Settable clock passed to create_app in place of the wall clock"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'togo.db'}"


@pytest.fixture
def settings(database_url):
    return TogoSettings(
        _env_file=None,
        database_url=database_url,
        default_task_limit_per_day=5,
        timezone="UTC",
        jwt_secret_key="test-secret",
        admin_email=None,
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def togo_app(settings, clock):
    """Application with tables created, disposed after the test"""
    app = create_app(settings, clock=clock)
    await app.database.create_all()
    yield app
    await app.close()


@pytest_asyncio.fixture
async def user(togo_app):
    return await togo_app.users.sign_up("alice@example.com")


@pytest_asyncio.fixture
async def other_user(togo_app):
    return await togo_app.users.sign_up("bob@example.com")


@pytest_asyncio.fixture
async def admin(togo_app):
    return await togo_app.users.sign_up("root@example.com", Role.ADMIN)
