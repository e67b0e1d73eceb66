"""Health Routes — liveness, and readiness of the database and media storage.

Invariants:
    - GET /health/ answers 200 whenever the process can serve requests
    - GET /health/ready answers 503 unless the database replies within
      store_timeout_seconds and the blob store can accept writes
    - Readiness reports every check by name, so a 503 says which one failed
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from shemarket.api.dependencies import get_blob_store
from shemarket.config import Settings, get_settings
from shemarket.core.repository_protocols import BlobStore
from shemarket.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


async def _database_ready(timeout_seconds: float) -> bool:
    manager = database.db_manager
    if manager is None:
        return False
    try:
        return await asyncio.wait_for(manager.health_check(), timeout_seconds)
    except TimeoutError:
        logger.error(f"DB health check exceeded {timeout_seconds}s")
        return False


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "shemarket-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness(
    blobs: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    checks = {
        "database": await _database_ready(settings.store_timeout_seconds),
        "media": await blobs.ready(),
    }
    report = {name: "healthy" if ok else "unavailable" for name, ok in checks.items()}
    if all(checks.values()):
        return {"status": "ready", "checks": report}

    failing = sorted(name for name, ok in checks.items() if not ok)
    logger.warning(f"Not ready: {', '.join(failing)} unavailable")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "checks": report},
    )
