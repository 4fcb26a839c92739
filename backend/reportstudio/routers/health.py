"""Health check endpoints for load balancers and monitoring."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from reportstudio.config import settings
from reportstudio.database import engine

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Lightweight liveness check (no DB access)."""
    return {
        "status": "ok",
        "service": "ReportStudio",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness check: 200 only if the database answers."""
    checks = {"service": "ok", "database": "unknown"}
    healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "ReportStudio",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
