"""Document store access (Firestore) used by services and jobs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

import structlog
from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore import AsyncClient, GeoPoint
from google.cloud.firestore_v1.base_document import BaseDocumentReference

from app.core.exceptions import StoreReadError, StoreWriteError
from app.core.firebase import get_firestore_client

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    """A document as read from the store: id, field data and an opaque version."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)
    version: Any = None


class DocumentStore(Protocol):
    """Operations the application needs from the document database."""

    async def fetch_all(self, collection: str) -> list[StoredDocument]: ...

    async def get(self, collection: str, document_id: str) -> StoredDocument | None: ...

    async def update_fields(
        self,
        collection: str,
        document_id: str,
        patch: dict[str, Any],
        expected_version: Any = None,
    ) -> None: ...

    async def add(self, collection: str, data: dict[str, Any]) -> str: ...


def normalize_value(value: Any) -> Any:
    """Convert Firestore-specific values into plain JSON-friendly values."""
    if isinstance(value, BaseDocumentReference):
        return value.path
    if isinstance(value, GeoPoint):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, dict):
        return {key: normalize_value(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [normalize_value(item) for item in value]
    if isinstance(value, datetime | str | int | float | bool) or value is None:
        return value
    return str(value)


class FirestoreDocumentStore:
    """DocumentStore backed by the async Firestore client."""

    def __init__(self, client: AsyncClient):
        """Initialize store with a Firestore client."""
        self.client = client

    async def fetch_all(self, collection: str) -> list[StoredDocument]:
        """
        Read every document of a collection.

        Args:
            collection: Collection name

        Returns:
            Documents in the order Firestore returned them

        Raises:
            StoreReadError: If the collection could not be read
        """
        try:
            documents = [
                StoredDocument(
                    id=snapshot.id,
                    data=normalize_value(snapshot.to_dict() or {}),
                    version=snapshot.update_time,
                )
                async for snapshot in self.client.collection(collection).stream()
            ]
        except GoogleAPIError as e:
            logger.error("collection_fetch_failed", collection=collection, error=str(e))
            raise StoreReadError(collection, str(e)) from e

        logger.info("collection_fetched", collection=collection, count=len(documents))
        return documents

    async def get(self, collection: str, document_id: str) -> StoredDocument | None:
        """Read one document, or None when it does not exist."""
        try:
            snapshot = await self.client.collection(collection).document(document_id).get()
        except GoogleAPIError as e:
            logger.error(
                "document_fetch_failed",
                collection=collection,
                document_id=document_id,
                error=str(e),
            )
            raise StoreReadError(collection, str(e)) from e

        if not snapshot.exists:
            return None

        return StoredDocument(
            id=snapshot.id,
            data=normalize_value(snapshot.to_dict() or {}),
            version=snapshot.update_time,
        )

    async def update_fields(
        self,
        collection: str,
        document_id: str,
        patch: dict[str, Any],
        expected_version: Any = None,
    ) -> None:
        """
        Update only the named fields of a document.

        Args:
            collection: Collection name
            document_id: Document ID
            patch: Fields to set; all other fields are preserved
            expected_version: When given, the write only succeeds if the document's
                update time still equals this value

        Raises:
            StoreWriteError: If Firestore rejects the write
        """
        option = None
        if expected_version is not None:
            option = self.client.write_option(last_update_time=expected_version)

        try:
            await self.client.collection(collection).document(document_id).update(
                patch, option=option
            )
        except GoogleAPIError as e:
            raise StoreWriteError(collection, document_id, str(e)) from e

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a generated ID and return that ID."""
        try:
            _, reference = await self.client.collection(collection).add(data)
        except GoogleAPIError as e:
            raise StoreWriteError(collection, "", str(e)) from e

        return reference.id


def get_document_store() -> DocumentStore:
    """Dependency for getting the Firestore-backed document store."""
    return FirestoreDocumentStore(get_firestore_client())


async def check_store_connection(collection: str = "users") -> bool:
    """Check if the document store is reachable."""
    try:
        client = get_firestore_client()
        await client.collection(collection).limit(1).get()
        return True
    except Exception:
        return False
