"""Health check routes."""

import structlog
from fastapi import APIRouter
from sqlalchemy import text

from student_insights.core.database import get_engine
from student_insights.schemas.v1.health import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check."""
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=ReadyResponse)
async def readiness_check():
    """Readiness check with database status."""
    database_ok = False
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        database_ok = True
    except Exception as exc:
        logger.exception("Health readiness DB check failed", error=str(exc))

    return ReadyResponse(
        status="ready" if database_ok else "degraded",
        dependencies={"database": database_ok},
    )
