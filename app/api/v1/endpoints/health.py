"""Health check endpoints."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from app.config import settings
from app.database import check_store_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    checks: dict[str, str] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    """Report that the process is up, without touching Firestore."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthResponse}},
    summary="Readiness check including Firestore",
)
async def detailed_health_check(response: Response) -> HealthResponse:
    """
    Check that Firestore answers a one-document query on the users collection.

    Returns 503 while Firestore is unreachable, so load balancers stop routing
    migration requests to an instance that cannot read appointments.
    """
    store_healthy = await check_store_connection(settings.users_collection)
    if not store_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if store_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        checks={"firestore": "healthy" if store_healthy else "unhealthy"},
    )


@router.get("/ping", summary="Simple ping")
async def ping() -> dict[str, str]:
    """Simple ping endpoint."""
    return {"message": "pong"}
