"""Task routes (JSON)."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_user
from ..schemas.task import (
    StatusUpdate,
    TaskCreate,
    TaskUpdate,
    serialize_forest,
    serialize_task,
)
from ..security.auth import AuthUser
from ..services import task_svc

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    status: str | None = None,
    priority: str | None = None,
    assignee: uuid.UUID | None = None,
    search: str | None = None,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    forest = await task_svc.list_tasks(
        db, actor, status=status, priority=priority, assignee=assignee, search=search
    )
    return serialize_forest(forest)


@router.get("/my")
async def my_tasks(
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return serialize_forest(await task_svc.list_my_tasks(db, actor))


@router.get("/team")
async def team_tasks(
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return serialize_forest(await task_svc.list_team_tasks(db, actor))


@router.get("/{task_id}")
async def task_detail(
    task_id: uuid.UUID,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    detail = await task_svc.get_task_detail(db, actor, task_id)
    return {
        **serialize_task(detail.task),
        "breadcrumb": detail.breadcrumb,
        "subtasks": [serialize_task(t) for t in detail.subtasks],
    }


@router.post("", status_code=201)
async def create_task(
    data: TaskCreate,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.create_task(db, actor, data.model_dump())
    return serialize_task(task)


@router.put("/{task_id}")
async def update_task(
    task_id: uuid.UUID,
    data: TaskUpdate,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.update_task(db, actor, task_id, data.model_dump(exclude_unset=True))
    return serialize_task(task)


@router.patch("/{task_id}/status")
async def update_status(
    task_id: uuid.UUID,
    data: StatusUpdate,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.set_status(db, actor, task_id, data.status)
    return serialize_task(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: uuid.UUID,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await task_svc.delete_task(db, actor, task_id)
    return {"message": "Task deleted successfully"}
