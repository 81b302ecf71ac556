"""
Health check endpoints for the REST API.
Basic liveness plus a detailed view of the database and the live order stream.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from rest_api.routers._common import get_broadcaster
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal
from shared.infrastructure.events import EventBroadcaster
from shared.utils.health import (
    HealthStatus,
    aggregate_health_checks,
    health_check_with_timeout,
)


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """Service status without checking dependencies."""
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


@health_check_with_timeout(timeout=3.0, component="database")
async def check_database_health() -> dict:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))
        dialect = db.get_bind().dialect.name
    return {"dialect": dialect}


@router.get("/health/detailed")
async def detailed_health_check(broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    """
    Database connectivity and stream subscriber count.
    Returns 503 Service Unavailable if the database is down.
    """
    health_results = await aggregate_health_checks([check_database_health()])

    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "status": health_results["status"],
        "dependencies": health_results["components"],
        "stream": {"subscribers": broadcaster.subscriber_count},
    }

    if health_results["status"] != HealthStatus.HEALTHY.value:
        return JSONResponse(content=checks, status_code=503)
    return checks
