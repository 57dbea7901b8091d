"""
Health Check Endpoints

- /health/live  - Basic liveness (app is running)
- /health/ready - Readiness check (database reachable and tables present)
"""

from fastapi import APIRouter, HTTPException, status
from typing import Dict, Any
import time

from sqlalchemy import text

from research_portal.core.config import settings
from research_portal.core.database import get_session_local
from research_portal.core.logging_config import logger
from research_portal.core.types import utcnow


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the schema is in place"""
    start = time.time()
    try:
        async with get_session_local()() as session:
            await session.execute(text("SELECT 1"))
            try:
                await session.execute(text("SELECT COUNT(*) FROM field_pools"))
                tables_ok = True
            except Exception:
                tables_ok = False

            return {
                "status": "healthy",
                "latency_ms": round((time.time() - start) * 1000, 2),
                "tables_ready": tables_ok,
            }
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "tables_ready": False,
            "error": str(e),
        }


@router.get("/live")
async def liveness_check():
    """Liveness check: 200 while the process is up"""
    return {
        "status": "alive",
        "timestamp": utcnow().isoformat(),
        "app": settings.APP_NAME,
        "version": settings.API_VERSION,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness check: 503 unless the database answers and the tables exist"""
    db_check = await check_database()
    is_ready = db_check["status"] == "healthy" and db_check["tables_ready"]

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": utcnow().isoformat(),
        "checks": {"database": db_check},
    }

    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response)

    return response
