"""
MET API — Health Check Route
==============================

What:  GET /health for monitoring and load balancer probes.
How:   Reports the storage type of every domain and, when any domain uses
       the database, probes it with SELECT 1.

Status levels:
    healthy:    storage reachable (HTTP 200)
    unhealthy:  the database is configured but unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from met_api import __version__
from met_api.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", summary="Service health check")
async def health_check() -> JSONResponse:
    storage = {
        "vice_bank": settings.vice_bank_storage.value,
        "notes": settings.notes_storage.value,
        "blog": settings.blog_storage.value,
        "files": settings.files_storage.value,
        "budget": settings.budget_storage.value,
    }
    database = "unused"
    overall = "healthy"

    if settings.uses_database():
        from met_api.database import engine

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "connected"
        except Exception as e:
            database = "disconnected"
            overall = "unhealthy"
            logger.warning("Health check: database unreachable: %s", e)

    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content={
            "status": overall,
            "version": __version__,
            "storage": storage,
            "database": database,
            "uptime_seconds": round(time.time() - _start_time, 2),
        },
    )
