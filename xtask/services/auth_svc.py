"""Login, token verification and gated registration."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import BadRequestError, NotFoundError, RateLimitedError, UnauthorizedError
from ..models import User
from ..security.auth import AuthUser, decode_session_token, issue_session_token
from ..security.rate_limit import login_limiter
from . import policy, user_svc

logger = logging.getLogger(__name__)


def auth_user_for(user: User) -> AuthUser:
    return AuthUser(
        id=user.id,
        email=user.email,
        name=user.name,
        seniority_level=user.seniority_level,
    )


def user_profile(user: User) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "seniority_level": user.seniority_level,
        "created_at": user.created_at,
        "categories": user.category_names,
    }


async def login(
    db: AsyncSession,
    email: str | None,
    password: str | None,
    client_key: str = "",
) -> dict:
    """Check credentials and return ``{"user": profile, "token": token}``."""
    if not email or not password:
        raise BadRequestError("Email and password are required")

    limiter_key = f"{(email or '').strip().lower()}:{client_key}"
    retry_after = await login_limiter.retry_after(limiter_key)
    if retry_after:
        raise RateLimitedError("Too many login attempts. Try again later.", retry_after=retry_after)

    try:
        user = await user_svc.authenticate(db, email, password)
    except UnauthorizedError:
        blocked = await login_limiter.add_failure(limiter_key)
        logger.warning("Failed login for %s%s", email.strip().lower(), " (now blocked)" if blocked else "")
        raise

    await login_limiter.clear(limiter_key)
    token = issue_session_token(settings, auth_user_for(user))
    return {"user": user_profile(user), "token": token}


def verify(token: str | None) -> AuthUser:
    """Decode a bearer token into identity claims."""
    if not token:
        raise UnauthorizedError("Access token required")
    user = decode_session_token(settings, token)
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


async def register(
    db: AsyncSession,
    actor: AuthUser,
    *,
    email: str | None,
    password: str | None,
    name: str | None,
    seniority_level: object,
) -> User:
    policy.enforce("user.register", actor)
    return await user_svc.create_user(
        db,
        email=email,
        password=password,
        name=name,
        seniority_level=seniority_level,
    )


async def me(db: AsyncSession, actor: AuthUser) -> dict:
    user = await user_svc.get_user(db, actor.id)
    if not user:
        raise NotFoundError("User not found")
    return user_profile(user)
