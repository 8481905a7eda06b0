"""Login, registration and current-user routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import client_key, get_current_user
from ..schemas.user import LoginRequest, RegisterRequest, UserResponse
from ..security.auth import AuthUser
from ..services import auth_svc

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(
    data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return await auth_svc.login(db, data.email, data.password, client_key=client_key(request))


@router.post("/register", status_code=201, response_model=UserResponse)
async def register(
    data: RegisterRequest,
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await auth_svc.register(
        db,
        actor,
        email=data.email,
        password=data.password,
        name=data.name,
        seniority_level=data.seniority_level,
    )


@router.get("/me")
async def me(
    actor: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await auth_svc.me(db, actor)
