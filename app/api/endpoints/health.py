import time

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import check_database_connection, get_db
from app.schemas.health_schema import ApiInfo, DatabaseStatus, HealthCheck

router = APIRouter()


@router.get("/health", response_model=HealthCheck)
async def health_check(
    request: Request, session: AsyncSession = Depends(get_db)
) -> HealthCheck:
    """
    Health check endpoint that also verifies database connectivity.
    """
    connected = await check_database_connection(session)
    started_at = getattr(request.app.state, "started_at", None) or time.monotonic()
    return HealthCheck(
        status="healthy" if connected else "degraded",
        uptime=round(time.monotonic() - started_at, 3),
        database=DatabaseStatus(connected=connected),
        environment=settings.ENVIRONMENT,
    )


async def api_info() -> ApiInfo:
    """Service name, version and environment. Mounted at the bare API prefix."""
    return ApiInfo(
        name=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
    )
