"""FastAPI application factory for xtask."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from .config import settings
from .errors import RateLimitedError, XTaskError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables for SQLite (local dev); PostgreSQL uses `xtask init-db`
    if settings.is_sqlite:
        from .database import engine
        from .models import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    if settings.is_production and not settings.auth_secret.strip():
        raise RuntimeError("XTASK_AUTH_SECRET must be set in production")
    yield


app = FastAPI(title=settings.app_title, lifespan=lifespan)


@app.exception_handler(XTaskError)
async def xtask_error_handler(request: Request, exc: XTaskError):
    headers = None
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{location}: {message}" if location else message
    return JSONResponse({"detail": detail}, status_code=400)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error: %s", exc.orig)
    return JSONResponse({"detail": "Resource conflicts with existing data"}, status_code=409)


# Import and register routers
from .routers import auth, health, tasks, users  # noqa: E402

app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(users.router)
app.include_router(health.router)
