"""Health check API endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from ..core.schemas.common import HealthCheckResponse
from ..core.services import HealthService
from ..database import get_db_session

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", response_model=HealthCheckResponse)
async def health_check(response: Response, session: AsyncSession = Depends(get_db_session)):
    """Overall status: unhealthy without the database, degraded without Redis.

    Answers 503 only when unhealthy, so load balancers keep routing to a
    node that lost Redis.
    """
    report = await HealthService(session).get_health_status()
    if report.status == "unhealthy":
        response.status_code = 503
    return report


@router.get("/components/{component}", response_model=Dict[str, Any])
async def component_health(component: str, session: AsyncSession = Depends(get_db_session)):
    """Single component check (``database`` or ``redis``)."""
    health_service = HealthService(session)
    checks = {
        "database": health_service.check_database_health,
        "redis": health_service.check_redis_health,
    }
    if component not in checks:
        raise NotFoundError("Unknown health component", details={"component": component})
    return await checks[component]()
