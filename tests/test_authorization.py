"""
Tests for ownership and admin checks
"""

import pytest

from togo.errors import InvalidArgumentError, NotFoundError, PermissionDeniedError
from togo.services.authorization import AuthorizationGuard


@pytest.mark.asyncio
async def test_non_admin_cannot_change_limit(togo_app, user, other_user):
    before = await togo_app.tasks.get_quota_status(other_user.id)

    with pytest.raises(PermissionDeniedError) as exc_info:
        await togo_app.tasks.set_user_task_limit(user.id, other_user.id, 100)

    assert exc_info.value.message == "only admin can update task limit"
    after = await togo_app.tasks.get_quota_status(other_user.id)
    assert after["task_limit_per_day"] == before["task_limit_per_day"] == 5


@pytest.mark.asyncio
async def test_non_admin_cannot_change_own_limit(togo_app, user):
    with pytest.raises(PermissionDeniedError):
        await togo_app.tasks.set_user_task_limit(user.id, user.id, 100)


@pytest.mark.asyncio
async def test_unknown_caller_is_not_admin(togo_app, user):
    with pytest.raises(PermissionDeniedError):
        await togo_app.tasks.set_user_task_limit(9999, user.id, 10)


@pytest.mark.asyncio
async def test_admin_change_for_unknown_user(togo_app, admin):
    with pytest.raises(NotFoundError):
        await togo_app.tasks.set_user_task_limit(admin.id, 9999, 10)


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [-1, "10", 2.5, True])
async def test_admin_change_rejects_invalid_limit(togo_app, user, admin, limit):
    with pytest.raises(InvalidArgumentError):
        await togo_app.tasks.set_user_task_limit(admin.id, user.id, limit)


@pytest.mark.asyncio
async def test_admin_can_set_zero(togo_app, user, admin):
    record = await togo_app.tasks.set_user_task_limit(admin.id, user.id, 0)

    assert record.task_limit_per_day == 0
    status = await togo_app.tasks.get_quota_status(user.id)
    assert status["quota_exceeded"] is True
    assert status["remaining"] == 0


@pytest.mark.asyncio
async def test_guard_reports_owner_mismatch(togo_app, user, other_user):
    task = await togo_app.tasks.create_task(user.id, "mine")

    async with togo_app.database.transaction() as session:
        guard = AuthorizationGuard(session)
        owned = await guard.authorize_task_access(user.id, task.id)
        assert owned.id == task.id
        with pytest.raises(PermissionDeniedError):
            await guard.authorize_task_access(other_user.id, task.id)


@pytest.mark.asyncio
async def test_is_admin(togo_app, user, admin):
    assert await togo_app.is_admin(admin.id) is True
    assert await togo_app.is_admin(user.id) is False
    assert await togo_app.is_admin(9999) is False
