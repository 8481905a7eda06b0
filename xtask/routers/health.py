"""Health check routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return "error"
    return "ok"


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    database = await _database_status(db)
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "services": {"database": database},
    }


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    database = await _database_status(db)
    if database == "ok":
        return {"status": "ready", "services": {"database": database}}
    return JSONResponse(
        {"status": "not_ready", "services": {"database": database}},
        status_code=503,
    )
