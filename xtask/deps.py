"""FastAPI dependencies for request identity."""

from __future__ import annotations

from fastapi import Request

from .config import settings
from .security.auth import AuthUser, extract_bearer_token
from .services import auth_svc


async def get_current_user(request: Request) -> AuthUser:
    """Resolve the bearer token to identity claims. Raises 401 otherwise."""
    user = auth_svc.verify(extract_bearer_token(request))
    request.state.auth_user = user
    return user


def client_key(request: Request) -> str:
    """Identify the caller for login rate limiting.

    X-Forwarded-For is client-controlled, so it is only honored when
    ``trust_forwarded_for`` says a proxy rewrites it.
    """
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "").split(",", 1)[0].strip()
        if forwarded:
            return forwarded[:64]
    if request.client and request.client.host:
        return str(request.client.host)[:64]
    return "unknown"
