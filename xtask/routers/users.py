"""User directory and administration routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_user
from ..schemas.user import CategoriesUpdate, SeniorityUpdate, UserResponse, UserWithCategories
from ..security.auth import AuthUser
from ..services import user_svc

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserWithCategories])
async def list_users(
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    users = await user_svc.list_users(db)
    return [UserWithCategories.model_validate(u) for u in users]


@router.get("/juniors", response_model=list[UserResponse])
async def list_juniors(
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_svc.list_juniors(db, actor)


@router.get("/assignable", response_model=list[UserResponse])
async def list_assignable(
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_svc.list_assignable(db, actor)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_svc.fetch_user(db, user_id)


@router.put("/{user_id}", response_model=UserWithCategories)
async def update_seniority(
    user_id: uuid.UUID,
    data: SeniorityUpdate,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_svc.update_seniority(db, actor, user_id, data.seniority_level)
    return UserWithCategories.model_validate(user)


@router.put("/{user_id}/categories")
async def update_categories(
    user_id: uuid.UUID,
    data: CategoriesUpdate,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    categories = await user_svc.set_categories(db, actor, user_id, data.categories)
    return {"user_id": str(user_id), "categories": categories}


@router.delete("/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_svc.delete_user(db, actor, user_id)
    return {"message": "User deleted successfully"}
