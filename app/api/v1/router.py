"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import health, migrations, notifications

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(migrations.router, tags=["Admin"])
api_router.include_router(notifications.router, tags=["Notifications"])
