"""Fixtures for DocumentStore contract tests."""

from collections.abc import Iterable

import pytest

from stormrocks.adapters.document_store import (
    MemoryDocumentStore,
    SqlAlchemyDocumentStore,
)
from stormrocks.interfaces.document_store import DocumentStore


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request: pytest.FixtureRequest) -> Iterable[DocumentStore]:
    """Return a fresh, empty DocumentStore for the requested backend.

    Supported params:
      - `"memory"` → MemoryDocumentStore
      - `"sqlalchemy"` → SqlAlchemyDocumentStore over in-memory SQLite
    """
    match request.param:
        case "memory":
            yield MemoryDocumentStore()
        case "sqlalchemy":
            yield SqlAlchemyDocumentStore(
                request.getfixturevalue("sqlite_engine_memory")
            )
        case _:
            raise ValueError(f"unknown document store type: {request.param}")


@pytest.fixture
def people(store: DocumentStore) -> DocumentStore:
    """Store pre-loaded with four documents in the ``People`` collection."""
    for doc in (
        {"Id": "p1", "Name": "Ada", "Age": 36, "Team": "red", "Tags": ["a"]},
        {"Id": "p2", "Name": "Grace", "Age": 85, "Team": "blue", "Tags": []},
        {"Id": "p3", "Name": "Alan", "Age": 41, "Team": "red", "Tags": ["b"]},
        {"Id": "p4", "Name": "Edsger", "Age": 72, "Team": None, "Tags": []},
    ):
        store.save("People", doc)
    return store
