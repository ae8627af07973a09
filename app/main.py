"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from app.api.v1.router import api_router
from app.config import settings
from app.core.firebase import initialize_firebase, reset_firestore_client
from app.database import check_store_connection
from app.middleware.error_handler import EXCEPTION_HANDLERS
from app.middleware.logging import LoggingMiddleware, configure_logging
from app.schemas.migrations import MigrationPolicy

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to Firebase on startup and drop the Firestore client on shutdown.

    A missing or broken Firebase setup is logged but does not stop the API from
    starting; health checks report it and store-backed endpoints answer 503.
    """
    logger.info(
        "application_startup",
        environment=settings.environment,
        users_collection=settings.users_collection,
        appointments_collection=settings.appointments_collection,
    )

    try:
        initialize_firebase(
            settings.firebase_credentials_path,
            settings.firebase_config_json,
            settings.firebase_project_id,
        )
    except Exception as e:
        logger.warning(
            "firebase_initialization_failed",
            error=str(e),
            note="Set FIREBASE_CONFIG_JSON or FIREBASE_CREDENTIALS_PATH",
        )
    else:
        if await check_store_connection(settings.users_collection):
            logger.info("firestore_connected")
        else:
            logger.error("firestore_connection_failed")

    yield

    logger.info("application_shutdown")
    reset_firestore_client()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Admin backend for the Dermaglare clinic dashboard",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(LoggingMiddleware)

for exception_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exception_class, handler)  # type: ignore[arg-type]

app.include_router(api_router, prefix=settings.api_v1_prefix)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, object]:
    """Service name, version and the available migration policies."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "migration_policies": [policy.value for policy in MigrationPolicy],
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
