from collections.abc import AsyncGenerator
from copy import deepcopy
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.exceptions import StoreReadError, StoreWriteError
from app.database import StoredDocument, get_document_store
from app.dependencies import get_current_user
from app.main import app


class InMemoryDocumentStore:
    """DocumentStore fake keeping collections in dicts, in insertion order."""

    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None):
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.versions: dict[tuple[str, str], int] = {}
        self.writes: list[tuple[str, str, dict[str, Any]]] = []
        self.failing_writes: dict[str, str] = {}
        self.failing_reads: set[str] = set()
        self._next_id = 0

        for collection, documents in (collections or {}).items():
            for document_id, data in documents.items():
                self.put(collection, document_id, data)

    def put(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[document_id] = deepcopy(data)
        key = (collection, document_id)
        self.versions[key] = self.versions.get(key, 0) + 1

    def data(self, collection: str, document_id: str) -> dict[str, Any]:
        return self.collections[collection][document_id]

    async def fetch_all(self, collection: str) -> list[StoredDocument]:
        if collection in self.failing_reads:
            raise StoreReadError(collection, "Service unavailable")
        return [
            StoredDocument(
                id=document_id,
                data=deepcopy(data),
                version=self.versions[(collection, document_id)],
            )
            for document_id, data in self.collections.get(collection, {}).items()
        ]

    async def get(self, collection: str, document_id: str) -> StoredDocument | None:
        if collection in self.failing_reads:
            raise StoreReadError(collection, "Service unavailable")
        data = self.collections.get(collection, {}).get(document_id)
        if data is None:
            return None
        return StoredDocument(
            id=document_id,
            data=deepcopy(data),
            version=self.versions[(collection, document_id)],
        )

    async def update_fields(
        self,
        collection: str,
        document_id: str,
        patch: dict[str, Any],
        expected_version: Any = None,
    ) -> None:
        if document_id in self.failing_writes:
            raise StoreWriteError(collection, document_id, self.failing_writes[document_id])
        if document_id not in self.collections.get(collection, {}):
            raise StoreWriteError(collection, document_id, "No document to update")
        current = self.versions[(collection, document_id)]
        if expected_version is not None and expected_version != current:
            raise StoreWriteError(
                collection, document_id, "Document was modified since it was read"
            )

        self.collections[collection][document_id].update(deepcopy(patch))
        self.versions[(collection, document_id)] = current + 1
        self.writes.append((collection, document_id, deepcopy(patch)))

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        if collection in self.failing_reads:
            raise StoreWriteError(collection, "", "Service unavailable")
        self._next_id += 1
        document_id = f"generated-{self._next_id}"
        self.put(collection, document_id, data)
        return document_id


ADMIN_CLAIMS = {"uid": "admin-uid", "email": "admin@dermaglare.co.za", "role": "admin"}
PATIENT_CLAIMS = {"uid": "patient-uid", "email": "jane@example.com", "role": "patient"}


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def users() -> dict[str, dict[str, Any]]:
    """Sample user documents keyed by id."""
    return {
        "u1": {
            "email": "j@x.com",
            "displayName": "Jane",
            "phoneNumber": "555-1",
            "role": "patient",
        },
        "u9": {"email": "u9@x.com", "role": "patient"},
        "u3": {
            "email": "Thabo@Example.com",
            "firstName": "Thabo",
            "phone": "082 555 0199",
            "role": "patient",
        },
    }


async def _client_as(
    store: InMemoryDocumentStore,
    claims: dict[str, Any] | None,
) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_document_store] = lambda: store
    if claims is not None:
        app.dependency_overrides[get_current_user] = lambda: claims

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(store: InMemoryDocumentStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client authenticated as a dashboard admin."""
    async for test_client in _client_as(store, ADMIN_CLAIMS):
        yield test_client


@pytest_asyncio.fixture
async def patient_client(store: InMemoryDocumentStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client authenticated as a patient."""
    async for test_client in _client_as(store, PATIENT_CLAIMS):
        yield test_client


@pytest_asyncio.fixture
async def anonymous_client(store: InMemoryDocumentStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client without credentials."""
    async for test_client in _client_as(store, None):
        yield test_client
