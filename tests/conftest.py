"""
Medication API - Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_collection: AsyncMock standing in for a motor collection
    ├── in_memory_database: Dict-backed collection with the motor call shapes
    ├── medication_payload: The canonical Aspirin create body
    └── test_client: HTTPX AsyncClient bound to an app using in_memory_database
"""

import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any application imports
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB_NAME"] = "medications_test"
os.environ["MONGODB_COLLECTION"] = "medications"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Collection
# ══════════════════════════════════════════════════════════════════════════


class InMemoryCursor:
    """Minimal async cursor: only to_list() is used by the service."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        documents = [dict(document) for document in self._documents]
        return documents if length is None else documents[:length]


class InMemoryCollection:
    """
    Dict-backed collection keyed by `_id`.

    Supports exactly the calls MedicationService makes, with the same
    return shapes as motor: inserted_id, matched_count, deleted_count.
    """

    def __init__(self):
        self.documents: Dict[ObjectId, Dict[str, Any]] = {}

    def find(self, query: Optional[Dict[str, Any]] = None) -> InMemoryCursor:
        return InMemoryCursor(list(self.documents.values()))

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        document = self.documents.get(query["_id"])
        return dict(document) if document is not None else None

    async def insert_one(self, document: Dict[str, Any]) -> SimpleNamespace:
        oid = ObjectId()
        document["_id"] = oid
        self.documents[oid] = dict(document)
        return SimpleNamespace(inserted_id=oid)

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]) -> SimpleNamespace:
        document = self.documents.get(query["_id"])
        if document is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        document.update(update["$set"])
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query: Dict[str, Any]) -> SimpleNamespace:
        removed = self.documents.pop(query["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)


class InMemoryDatabase:
    """Stands in for MongoDatabase when injected through create_app()."""

    def __init__(self):
        self.collection = InMemoryCollection()
        self.close_calls = 0

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.close_calls += 1


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def mock_collection():
    """
    Provides a mock motor collection.

    Usage:
        async def test_get(mock_collection):
            mock_collection.find_one.return_value = {...}
            result = await service.get_medication(mock_collection, oid_str)

    find() is synchronous in motor; it returns a cursor whose to_list()
    is awaited.
    """
    collection = MagicMock()
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    collection.find = MagicMock(return_value=cursor)
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def in_memory_database():
    return InMemoryDatabase()


@pytest.fixture
def medication_payload():
    return {
        "name": "Aspirin",
        "description": "Pain relief",
        "price": 4.5,
        "imageUrl": "http://x/a.png",
    }


@pytest_asyncio.fixture
async def test_client(in_memory_database):
    """
    Provides an async HTTP test client for endpoint testing.

    The app is built with the in-memory database attached, so no MongoDB
    server is needed. ASGITransport does not run the lifespan.
    """
    from medication_api.main import create_app

    app = create_app(database=in_memory_database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
