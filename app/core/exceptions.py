"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional context."""
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, details=details)


class StoreReadError(AppException):
    """A whole collection could not be read from the document store."""

    def __init__(self, collection: str, reason: str):
        """Initialize with 503 status code."""
        self.collection = collection
        self.reason = reason
        super().__init__(
            f"Failed to read '{collection}': {reason}",
            status_code=503,
            details={"collection": collection},
        )


class StoreWriteError(AppException):
    """The document store refused a single-document write."""

    def __init__(self, collection: str, document_id: str, reason: str):
        """Initialize with 502 status code."""
        self.collection = collection
        self.document_id = document_id
        self.reason = reason
        super().__init__(
            reason,
            status_code=502,
            details={"collection": collection, "document_id": document_id},
        )


class MigrationInProgressError(ConflictException):
    """A reconciliation run for the same policy is already executing."""

    def __init__(self, policy: str):
        self.policy = policy
        super().__init__(
            f"A '{policy}' migration run is already in progress",
            details={"policy": policy},
        )
