# Health check endpoints for system monitoring

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
import time
from typing import Dict, Any, Optional
import logging

from core.database import get_db

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)

SERVICE_NAME = "delivery-admin-api"


class HealthStatus:
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth:
    def __init__(self, name: str, status: str, response_time: float = 0,
                 details: Optional[Dict[str, Any]] = None, error: Optional[str] = None):
        self.name = name
        self.status = status
        self.response_time = response_time
        self.details = details or {}
        self.error = error

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "response_time": self.response_time,
            "details": self.details,
            "error": self.error,
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/live")
async def liveness_check():
    """
    Basic liveness check - returns 200 if the service is running
    Used by load balancers and orchestrators
    """
    return {
        "status": "alive",
        "timestamp": _now(),
        "service": SERVICE_NAME
    }


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness check - returns 200 if the database answers, 503 otherwise
    """
    db_health = await check_database_health(db)
    overall_status = (
        HealthStatus.HEALTHY if db_health.status != HealthStatus.UNHEALTHY
        else HealthStatus.UNHEALTHY
    )

    response_data = {
        "status": overall_status,
        "timestamp": _now(),
        "service": SERVICE_NAME,
        "checks": [db_health.as_dict()]
    }

    status_code = 200 if overall_status == HealthStatus.HEALTHY else 503
    return JSONResponse(content=response_data, status_code=status_code)


async def check_database_health(db: AsyncSession) -> ComponentHealth:
    """Check database connectivity and latency"""
    start_time = time.time()

    try:
        await db.execute(text("SELECT 1"))
        count_result = await db.execute(text("SELECT COUNT(*) FROM delivery_methods"))
        delivery_method_count = count_result.scalar()
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            response_time=(time.time() - start_time) * 1000,
            error=str(e)
        )

    response_time = (time.time() - start_time) * 1000
    status = HealthStatus.DEGRADED if response_time > 1000 else HealthStatus.HEALTHY

    return ComponentHealth(
        name="database",
        status=status,
        response_time=response_time,
        details={"delivery_method_count": delivery_method_count}
    )
