"""
Health check endpoints for monitoring.

Endpoints:
- /health: Basic check with database status
- /health/ready: Readiness check (database, Redis)
- /health/live: Simple alive check
"""

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import check_db_connection, get_db, utcnow
from ..schemas.common import HealthResponse
from ..services.cache import get_cache


logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])

SLOW_DB_MS = 100


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns the health status of the API and its database.",
)
async def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    db_status = "connected"
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        elapsed_ms = int((time.time() - start) * 1000)
        if elapsed_ms > SLOW_DB_MS:
            logger.warning(f"Slow database response: {elapsed_ms}ms")
    except Exception as e:
        db_status = "disconnected"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="healthy" if db_status == "connected" else "unhealthy",
        version=settings.app_version,
        timestamp=utcnow(),
        database=db_status,
        environment=settings.environment,
    )


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Readiness check for the database and Redis cache.",
)
async def readiness_check() -> Dict[str, Any]:
    """
    Readiness check.

    The database must answer; Redis is reported but optional, since every
    cached value can be recomputed.
    """
    components: Dict[str, Any] = {}
    ready = check_db_connection()
    components["database"] = {"status": "healthy" if ready else "unhealthy", "connected": ready}

    components["redis"] = get_cache().health_check()

    return {
        "status": "ready" if ready else "not_ready",
        "version": settings.app_version,
        "timestamp": utcnow().isoformat(),
        "environment": settings.environment,
        "components": components,
    }


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check to verify the API is running.",
)
async def liveness_check() -> dict:
    return {
        "status": "alive",
        "timestamp": utcnow().isoformat(),
    }
