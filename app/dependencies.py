"""FastAPI dependencies."""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.core.firebase import verify_firebase_token
from app.database import DocumentStore, get_document_store
from app.services.migration_service import MigrationService
from app.services.notification_service import NotificationService

# Security
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict[str, Any]:
    """
    Verify the Firebase ID token and return its claims.

    Args:
        credentials: Bearer token credentials

    Returns:
        Decoded token claims (uid, email, custom claims such as role)

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await verify_firebase_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def is_admin(claims: dict[str, Any]) -> bool:
    """Whether token claims grant dashboard admin access."""
    return claims.get("role") == settings.admin_role or claims.get("admin") is True


async def require_admin(
    current_user: Annotated[dict[str, Any], Depends(get_current_user)],
) -> dict[str, Any]:
    """
    Dependency to ensure current user has admin role.

    Args:
        current_user: Authenticated user claims

    Returns:
        Claims if admin

    Raises:
        HTTPException: If user is not admin
    """
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_migration_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> MigrationService:
    """Migration service wired to the document store and settings."""
    return MigrationService.from_settings(store, settings)


def get_notification_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> NotificationService:
    """Notification service wired to the document store and settings."""
    return NotificationService(
        store,
        notifications_collection=settings.notifications_collection,
        chats_collection=settings.chats_collection,
    )


# Type aliases for dependency injection
CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
AdminUser = Annotated[dict[str, Any], Depends(require_admin)]
MigrationServiceDep = Annotated[MigrationService, Depends(get_migration_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
