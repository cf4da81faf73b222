"""
Tests for user registration and the bootstrap admin
"""

import pytest

from togo.app import create_app
from togo.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from togo.storage.models import Role


@pytest.mark.asyncio
async def test_sign_up_normalizes_email(togo_app):
    user = await togo_app.users.sign_up("  Alice@Example.COM ")

    assert user.email == "alice@example.com"
    assert user.role == Role.USER
    assert user.is_admin is False


@pytest.mark.asyncio
async def test_duplicate_email_rejected(togo_app, user):
    with pytest.raises(AlreadyExistsError) as exc_info:
        await togo_app.users.sign_up("ALICE@example.com")

    assert exc_info.value.message == "email alice@example.com has been used"


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["", "alice", "@example.com", "alice@"])
async def test_invalid_email_rejected(togo_app, email):
    with pytest.raises(InvalidArgumentError):
        await togo_app.users.sign_up(email)


@pytest.mark.asyncio
async def test_invalid_role_rejected(togo_app):
    with pytest.raises(InvalidArgumentError):
        await togo_app.users.sign_up("carol@example.com", "superuser")


@pytest.mark.asyncio
async def test_ensure_admin_is_idempotent(togo_app):
    first = await togo_app.users.ensure_admin("root@example.com")
    second = await togo_app.users.ensure_admin("root@example.com")

    assert first.id == second.id
    assert second.is_admin is True
    assert len(await togo_app.users.list_users()) == 1


@pytest.mark.asyncio
async def test_ensure_admin_keeps_existing_account(togo_app, user):
    existing = await togo_app.users.ensure_admin(user.email)

    assert existing.id == user.id
    assert existing.is_admin is False


@pytest.mark.asyncio
async def test_init_database_creates_configured_admin(settings, clock):
    app = create_app(settings.model_copy(update={"admin_email": "root@example.com"}), clock=clock)
    try:
        await app.init_database()
        await app.init_database()
        admin = await app.users.get_user_by_email("root@example.com")
        assert admin.is_admin is True
    finally:
        await app.close()


@pytest.mark.asyncio
async def test_lookups(togo_app, user, other_user):
    assert (await togo_app.users.get_user(user.id)).email == user.email
    assert (await togo_app.users.get_user_by_email("BOB@example.com")).id == other_user.id
    assert [u.id for u in await togo_app.users.list_users(limit=1)] == [user.id]

    with pytest.raises(NotFoundError):
        await togo_app.users.get_user(9999)
    with pytest.raises(NotFoundError):
        await togo_app.users.get_user_by_email("nobody@example.com")
