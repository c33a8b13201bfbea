"""
Health Check Endpoints

Liveness, readiness and store connectivity for orchestration systems.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from reporting.config.settings import Settings
from reporting.database.connection import Database, get_database
from reporting.serving.api.dependencies import get_app_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    database: Database = Depends(get_database),
) -> HealthResponse:
    """Application status and database connectivity."""
    db_health = await database.check_health()
    status = "healthy" if db_health.get("status") == "healthy" else "degraded"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(),
        checks={"database": db_health},
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 while the process is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(
    response: Response,
    database: Database = Depends(get_database),
) -> Dict[str, str]:
    """Returns 503 until the database answers."""
    db_health = await database.check_health()
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}


@router.get("/info")
async def api_info(settings: Settings = Depends(get_app_settings)) -> Dict[str, str]:
    """API name, version and environment."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "environment": settings.app_env,
        "documentation": "/docs",
    }
