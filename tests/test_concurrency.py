"""
Concurrent task creation against the daily limit

These run real overlapping transactions against a SQLite file, so the limit
has to hold through the storage layer and not only through sequencing.
"""

import asyncio

import pytest

from togo.errors import ResourceExhaustedError


async def _create_many(togo_app, user_id, count, prefix="task"):
    return await asyncio.gather(
        *[togo_app.tasks.create_task(user_id, f"{prefix} {i}") for i in range(count)],
        return_exceptions=True,
    )


@pytest.mark.asyncio
async def test_concurrent_creations_never_exceed_limit(togo_app, user):
    results = await _create_many(togo_app, user.id, 10)

    created = [r for r in results if not isinstance(r, BaseException)]
    rejected = [r for r in results if isinstance(r, ResourceExhaustedError)]

    assert len(created) == 5
    assert len(rejected) == 5
    assert len(created) + len(rejected) == len(results)
    assert len(await togo_app.tasks.fetch_tasks(user.id)) == 5


@pytest.mark.asyncio
async def test_first_ever_creations_race_on_quota_record(togo_app, user):
    """No quota record exists yet when the burst starts"""
    results = await _create_many(togo_app, user.id, 8)

    assert sum(1 for r in results if not isinstance(r, BaseException)) == 5
    assert all(
        isinstance(r, ResourceExhaustedError) for r in results if isinstance(r, BaseException)
    )


@pytest.mark.asyncio
async def test_users_have_independent_limits_under_concurrency(togo_app, user, other_user):
    mine, theirs = await asyncio.gather(
        _create_many(togo_app, user.id, 7, "mine"),
        _create_many(togo_app, other_user.id, 7, "theirs"),
    )

    assert sum(1 for r in mine if not isinstance(r, BaseException)) == 5
    assert sum(1 for r in theirs if not isinstance(r, BaseException)) == 5
    assert len(await togo_app.tasks.fetch_tasks(user.id)) == 5
    assert len(await togo_app.tasks.fetch_tasks(other_user.id)) == 5


@pytest.mark.asyncio
async def test_limit_change_during_burst_is_respected(togo_app, user, admin):
    await togo_app.tasks.set_user_task_limit(admin.id, user.id, 3)

    results = await asyncio.gather(
        *[togo_app.tasks.create_task(user.id, f"task {i}") for i in range(6)],
        togo_app.tasks.set_user_task_limit(admin.id, user.id, 3),
        return_exceptions=True,
    )

    tasks = [r for r in results[:6] if not isinstance(r, BaseException)]
    assert len(tasks) == 3
    assert not isinstance(results[6], BaseException)
