"""In memory document store implementation.

All documents are kept in memory and lost when the instance is discarded.
Use for unit tests, prototyping, or scenarios where durability is not required.

Documents are round-tripped through JSON on the way in and out, so callers never
share mutable state with the store and non-serializable values are rejected
exactly like the SQL adapter rejects them.
"""

import json
import threading
from collections.abc import Mapping
from typing import Any

from stormrocks.interfaces.document_store import (
    ID_FIELD,
    Criteria,
    DocumentStore,
    InvalidDocumentError,
)


class MemoryDocumentStore(DocumentStore):
    """In-memory DocumentStore for testing and non-durable use cases.

    - Non-durable: all data is lost when the instance is discarded.
    - Thread-safe: one lock guards every collection.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            raw = self._collections.get(collection, {}).get(doc_id)
        return None if raw is None else json.loads(raw)

    def find(
        self, collection: str, criteria: Criteria | None = None
    ) -> list[dict[str, Any]]:
        criteria = criteria or Criteria()
        return criteria.apply(self._snapshot(collection))

    def count(self, collection: str, criteria: Criteria | None = None) -> int:
        criteria = criteria or Criteria()
        return sum(1 for doc in self._snapshot(collection) if criteria.matches(doc))

    def save(self, collection: str, document: Mapping[str, Any]) -> None:
        doc_id = document.get(ID_FIELD)
        if not doc_id:
            raise InvalidDocumentError(f"document in {collection!r} has no id")
        try:
            raw = json.dumps(dict(document))
        except (TypeError, ValueError) as e:
            raise InvalidDocumentError(str(e)) from e
        with self._lock:
            self._collections.setdefault(collection, {})[str(doc_id)] = raw

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._collections.get(collection, {}).pop(doc_id, None) is not None

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _snapshot(self, collection: str) -> list[dict[str, Any]]:
        """Decode every document of ``collection`` in insertion order."""
        with self._lock:
            raws = list(self._collections.get(collection, {}).values())
        return [json.loads(raw) for raw in raws]
