"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter, Request

from accounts.core.database import check_db_connected
from accounts.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
async def get_health(request: Request) -> HealthResponse:
    """
    Return service health status and account store connectivity.
    Used by load balancers and monitoring.
    """
    connected = await check_db_connected(request.app.state.session_factory)
    return HealthResponse(
        status="ok",
        environment=request.app.state.settings.APP_ENV,
        database="connected" if connected else "disconnected",
    )
