"""User accounts, credentials and category memberships."""

from __future__ import annotations

import logging
import uuid
from typing import Iterable

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..constants import ADMIN_SENIORITY, CATEGORIES
from ..errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from ..models import Task, User, UserCategory
from ..security.auth import AuthUser, hash_password_async, verify_password_async
from . import policy

logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_seniority(value: object) -> int:
    max_level = settings.max_seniority_level
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= max_level:
        raise BadRequestError(f"Seniority level must be between 1 and {max_level}")
    return value


def validate_categories(categories: object) -> list[str]:
    if not isinstance(categories, (list, tuple)):
        raise BadRequestError("Categories must be an array")
    invalid = [str(c) for c in categories if c not in CATEGORIES]
    if invalid:
        raise BadRequestError(f"Invalid categories: {', '.join(invalid)}")
    # Dedupe, keep caller order.
    return list(dict.fromkeys(categories))


def _ordered(stmt):
    return stmt.order_by(User.seniority_level.asc(), User.name.asc())


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def fetch_user(db: AsyncSession, user_id: uuid.UUID, what: str = "User") -> User:
    user = await get_user(db, user_id)
    if not user:
        raise NotFoundError(f"{what} not found")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == _normalize_email(email)))
    return result.scalar_one_or_none()


async def get_categories(db: AsyncSession, user_id: uuid.UUID) -> list[str]:
    result = await db.execute(
        select(UserCategory.category)
        .where(UserCategory.user_id == user_id)
        .order_by(UserCategory.category)
    )
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    *,
    email: str | None,
    password: str | None,
    name: str | None,
    seniority_level: object,
    categories: Iterable[str] = (),
) -> User:
    email_norm = _normalize_email(email)
    name_clean = (name or "").strip()
    if not email_norm or not password or not name_clean or seniority_level is None:
        raise BadRequestError("All fields are required")
    level = validate_seniority(seniority_level)
    category_list = validate_categories(list(categories))

    if await get_user_by_email(db, email_norm):
        raise ConflictError("Email already registered")

    user = User(
        email=email_norm,
        name=name_clean,
        password_hash=await hash_password_async(password),
        seniority_level=level,
        categories=[UserCategory(category=c) for c in category_list],
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("Email already registered") from exc
    await db.refresh(user)
    logger.info("Created user %s (level %s)", email_norm, level)
    return user


async def authenticate(db: AsyncSession, email: str | None, password: str | None) -> User:
    """Return the user matching the credentials or raise UnauthorizedError."""
    user = await get_user_by_email(db, email or "")
    if not user or not await verify_password_async(password or "", user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(_ordered(select(User)))
    return list(result.scalars().all())


async def list_juniors(db: AsyncSession, actor: AuthUser) -> list[User]:
    stmt = select(User).where(User.seniority_level > actor.seniority_level)
    result = await db.execute(_ordered(stmt))
    return list(result.scalars().all())


async def list_assignable(db: AsyncSession, actor: AuthUser) -> list[User]:
    stmt = select(User).where(User.seniority_level >= actor.seniority_level)
    result = await db.execute(_ordered(stmt))
    return list(result.scalars().all())


async def update_seniority(
    db: AsyncSession,
    actor: AuthUser,
    user_id: uuid.UUID,
    seniority_level: object,
) -> User:
    policy.enforce("user.manage", actor)
    level = validate_seniority(seniority_level)
    user = await fetch_user(db, user_id)

    if user.id == actor.id and level != ADMIN_SENIORITY:
        other_admins = (
            await db.execute(
                select(func.count(User.id)).where(
                    User.seniority_level == ADMIN_SENIORITY,
                    User.id != user.id,
                )
            )
        ).scalar_one()
        if not other_admins:
            raise BadRequestError("Cannot demote yourself - you are the only senior executive")

    user.seniority_level = level
    await db.commit()
    await db.refresh(user)
    logger.info("%s set seniority of %s to %s", actor.email, user.email, level)
    return user


async def set_categories(
    db: AsyncSession,
    actor: AuthUser,
    user_id: uuid.UUID,
    categories: object,
) -> list[str]:
    """Replace the user's category set."""
    policy.enforce("user.manage_categories", actor)
    category_list = validate_categories(categories)
    user = await fetch_user(db, user_id)

    # Delete first and flush so re-granted categories don't hit the unique constraint.
    await db.execute(delete(UserCategory).where(UserCategory.user_id == user.id))
    await db.flush()
    for category in category_list:
        db.add(UserCategory(user_id=user.id, category=category))
    await db.commit()
    await db.refresh(user, attribute_names=["categories"])
    logger.info("%s set categories of %s to %s", actor.email, user.email, category_list)
    return user.category_names


async def delete_user(db: AsyncSession, actor: AuthUser, user_id: uuid.UUID) -> None:
    policy.enforce("user.delete", actor)
    if user_id == actor.id:
        raise BadRequestError("Cannot delete your own account")
    user = await fetch_user(db, user_id)

    task_count = (
        await db.execute(
            select(func.count(Task.id)).where(
                or_(Task.assigned_to == user.id, Task.created_by == user.id)
            )
        )
    ).scalar_one()
    if task_count:
        raise ConflictError(
            f"Cannot delete user - they have {task_count} task(s) assigned or created. "
            "Reassign tasks first."
        )

    await db.delete(user)
    await db.commit()
    logger.info("%s deleted user %s", actor.email, user.email)
