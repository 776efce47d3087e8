"""Health check endpoints for monitoring and readiness probes.

Provides endpoints to verify the API is running and MongoDB is accessible.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException

from water_tracker.services import database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Basic liveness check.

    Returns:
        Dictionary with status and timestamp.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().astimezone().isoformat(),
    }


@router.get("/health/ready")
def readiness_check() -> dict:
    """Readiness check verifying the database is reachable.

    Returns:
        Dictionary with status and individual check results.

    Raises:
        HTTPException: If the database check fails.
    """
    checks = {}

    try:
        database.get_database().command("ping")
        checks["database"] = "ok"
    except Exception as e:
        logger.error("Database readiness check failed: %s", e)
        checks["database"] = f"error: {str(e)}"

    if any(check != "ok" for check in checks.values()):
        raise HTTPException(
            status_code=503,
            detail={"status": "not ready", "checks": checks},
        )

    return {
        "status": "ready",
        "checks": checks,
    }
