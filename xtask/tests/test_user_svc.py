"""Test user service."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from xtask.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from xtask.models import Task, User
from xtask.services import user_svc

from .conftest import PASSWORD, as_actor, make_user


@pytest.mark.asyncio
async def test_create_user_normalizes_email_and_hashes_password(db: AsyncSession):
    user = await user_svc.create_user(
        db,
        email="  New.Person@Example.COM ",
        password="s3cret!",
        name=" New Person ",
        seniority_level=3,
        categories=["Projects", "Projects", "Admin"],
    )
    assert user.email == "new.person@example.com"
    assert user.name == "New Person"
    assert user.password_hash != "s3cret!"
    assert user.category_names == ["Admin", "Projects"]

    found = await user_svc.authenticate(db, "NEW.PERSON@example.com", "s3cret!")
    assert found.id == user.id


@pytest.mark.asyncio
async def test_create_user_duplicate_email_conflicts(db: AsyncSession, staff: User):
    with pytest.raises(ConflictError):
        await user_svc.create_user(
            db, email=staff.email.upper(), password="x", name="Dup", seniority_level=3
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("level", [0, 6, -1, "2", None, True])
async def test_create_user_rejects_bad_seniority(db: AsyncSession, level):
    with pytest.raises(BadRequestError):
        await user_svc.create_user(
            db, email="a@example.com", password="x", name="A", seniority_level=level
        )


@pytest.mark.asyncio
async def test_create_user_rejects_invalid_categories(db: AsyncSession):
    with pytest.raises(BadRequestError) as exc_info:
        await user_svc.create_user(
            db,
            email="a@example.com",
            password="x",
            name="A",
            seniority_level=2,
            categories=["Projects", "Sales"],
        )
    assert "Sales" in exc_info.value.message


@pytest.mark.asyncio
async def test_authenticate_wrong_password(db: AsyncSession, staff: User):
    with pytest.raises(UnauthorizedError):
        await user_svc.authenticate(db, staff.email, "not-" + PASSWORD)
    with pytest.raises(UnauthorizedError):
        await user_svc.authenticate(db, "nobody@example.com", PASSWORD)


@pytest.mark.asyncio
async def test_listing_orders_by_seniority_then_name(
    db: AsyncSession, admin: User, manager: User, staff: User
):
    carol = await make_user(db, "Carol Johnson", 2, ["Admin"])

    users = await user_svc.list_users(db)
    assert [u.name for u in users] == ["Alice Chen", "Bob Martinez", "Carol Johnson", "David Kim"]

    juniors = await user_svc.list_juniors(db, as_actor(manager))
    assert [u.name for u in juniors] == ["David Kim"]

    assignable = await user_svc.list_assignable(db, as_actor(carol))
    assert [u.name for u in assignable] == ["Bob Martinez", "Carol Johnson", "David Kim"]


@pytest.mark.asyncio
async def test_update_seniority(db: AsyncSession, admin: User, staff: User):
    user = await user_svc.update_seniority(db, as_actor(admin), staff.id, 2)
    assert user.seniority_level == 2


@pytest.mark.asyncio
async def test_update_seniority_requires_admin(db: AsyncSession, manager: User, staff: User):
    with pytest.raises(ForbiddenError):
        await user_svc.update_seniority(db, as_actor(manager), staff.id, 4)


@pytest.mark.asyncio
async def test_update_seniority_unknown_user(db: AsyncSession, admin: User):
    with pytest.raises(NotFoundError):
        await user_svc.update_seniority(db, as_actor(admin), uuid.uuid4(), 2)


@pytest.mark.asyncio
async def test_only_admin_cannot_demote_self(db: AsyncSession, admin: User):
    with pytest.raises(BadRequestError):
        await user_svc.update_seniority(db, as_actor(admin), admin.id, 2)

    second = await make_user(db, "Second Admin", 1)
    user = await user_svc.update_seniority(db, as_actor(admin), admin.id, 2)
    assert user.seniority_level == 2
    assert second.seniority_level == 1


@pytest.mark.asyncio
async def test_set_categories_replaces_set(db: AsyncSession, admin: User, manager: User):
    categories = await user_svc.set_categories(
        db, as_actor(admin), manager.id, ["Projects", "Miscellaneous"]
    )
    assert categories == ["Miscellaneous", "Projects"]
    assert await user_svc.get_categories(db, manager.id) == ["Miscellaneous", "Projects"]

    assert await user_svc.set_categories(db, as_actor(admin), manager.id, []) == []
    assert await user_svc.get_categories(db, manager.id) == []


@pytest.mark.asyncio
async def test_set_categories_validation(db: AsyncSession, admin: User, manager: User):
    with pytest.raises(BadRequestError):
        await user_svc.set_categories(db, as_actor(admin), manager.id, "Projects")
    with pytest.raises(BadRequestError):
        await user_svc.set_categories(db, as_actor(admin), manager.id, ["Marketing"])
    with pytest.raises(ForbiddenError):
        await user_svc.set_categories(db, as_actor(manager), manager.id, ["Projects"])


@pytest.mark.asyncio
async def test_delete_user(db: AsyncSession, admin: User, staff: User):
    await user_svc.delete_user(db, as_actor(admin), staff.id)
    assert await user_svc.get_user(db, staff.id) is None
    assert await user_svc.get_categories(db, staff.id) == []


@pytest.mark.asyncio
async def test_delete_self_rejected(db: AsyncSession, admin: User):
    with pytest.raises(BadRequestError):
        await user_svc.delete_user(db, as_actor(admin), admin.id)


@pytest.mark.asyncio
async def test_delete_user_with_tasks_conflicts(db: AsyncSession, admin: User, staff: User):
    db.add(Task(title="Owned", created_by=admin.id, assigned_to=staff.id, category="Projects"))
    await db.commit()

    with pytest.raises(ConflictError) as exc_info:
        await user_svc.delete_user(db, as_actor(admin), staff.id)
    assert "1 task(s)" in exc_info.value.message
