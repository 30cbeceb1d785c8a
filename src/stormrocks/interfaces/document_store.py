"""Document store interface for StormRocks.

This module defines:
- The `Criteria` DTO describing a filtered, sorted, paged query.
- The `DocumentStore` port (framework-free ABC) that persists entity documents
  grouped into named collections.
- A small, adapter-agnostic exception hierarchy.

Layering & dependency rules:
- Lives under `stormrocks.interfaces`. Do NOT import from adapters, bootstrap,
  or entrypoints.

Contract overview
-----------------
- Documents are JSON-compatible mappings keyed by PascalCase field names and
  identified by their ``"Id"`` value, unique within a collection.
- `save` inserts or fully replaces the document with the same id.
- `delete` removes by id and reports whether a row existed.
- `find` / `count` evaluate a `Criteria`; filtering semantics are defined by
  `Criteria.matches` so every adapter agrees on them.
- Errors:
  * `InvalidDocumentError`: the document has no id or is not serializable.
  * `StoreUnavailableError`: operational/driver failures.
"""

from __future__ import annotations

import abc
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

ID_FIELD = "Id"  # pragma: no mutate
DESCENDING_PREFIX = "-"  # pragma: no mutate

# --- Exceptions to standardize adapter behavior ---


class DocumentStoreError(Exception):
    """Base class for StormRocks document store errors."""


class InvalidDocumentError(DocumentStoreError):
    """The document cannot be stored as given."""


class StoreUnavailableError(DocumentStoreError):
    """Operational/timeout/connection errors."""


# --- Query DTOs ---


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive bounds on one field; a ``None`` bound is open."""

    field: str
    minimum: Any = None
    maximum: Any = None

    def contains(self, value: Any) -> bool:
        """True when ``value`` lies within the bounds."""
        if value is None:
            return False
        try:
            if self.minimum is not None and value < self.minimum:
                return False
            if self.maximum is not None and value > self.maximum:
                return False
        except TypeError:
            return False
        return True


@dataclass(frozen=True, slots=True)
class Criteria:
    """A filtered, sorted and paged query over one collection.

    Attributes:
        equals: Field must equal the value.
        any_of: Field must equal one of the values (an "in" filter).
        exclude: Field must not equal the value (or any value of a list).
        ranges: Inclusive range conditions.
        sort: Field names to order by; prefix with ``-`` for descending.
        limit: Maximum number of documents returned (``None`` for all).
        skip: Number of leading documents dropped after sorting.
    """

    equals: Mapping[str, Any] = field(default_factory=dict)
    any_of: Mapping[str, Collection[Any]] = field(default_factory=dict)
    exclude: Mapping[str, Any] = field(default_factory=dict)
    ranges: tuple[Range, ...] = ()
    sort: tuple[str, ...] = ()
    limit: int | None = None
    skip: int = 0

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be >= 0")
        if self.skip < 0:
            raise ValueError("skip must be >= 0")

    def matches(self, document: Mapping[str, Any]) -> bool:
        """True when ``document`` satisfies every filter condition."""
        for name, expected in self.equals.items():
            if document.get(name) != expected:
                return False
        for name, allowed in self.any_of.items():
            if document.get(name) not in allowed:
                return False
        for name, rejected in self.exclude.items():
            value = document.get(name)
            if isinstance(rejected, (list, tuple, set, frozenset)):
                if value in rejected:
                    return False
            elif value == rejected:
                return False
        return all(rng.contains(document.get(rng.field)) for rng in self.ranges)

    def apply(self, documents: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Filter, sort and page ``documents``."""
        selected = [dict(doc) for doc in documents if self.matches(doc)]
        for key in reversed(self.sort):
            name = key.removeprefix(DESCENDING_PREFIX)
            selected.sort(
                key=lambda doc, n=name: _sort_key(doc.get(n)),
                reverse=key.startswith(DESCENDING_PREFIX),
            )
        end = None if self.limit is None else self.skip + self.limit
        return selected[self.skip : end]


def _sort_key(value: Any) -> tuple[int, Any]:
    # None sorts first; mixed types fall back to their string form.
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value))


# --- Document Store Interface ---


class DocumentStore(abc.ABC):
    """An abstract base class for a collection-oriented document store."""

    @abc.abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return the document with ``doc_id`` or ``None`` when absent.

        Raises:
            StoreUnavailableError: For operational failures.
        """

    @abc.abstractmethod
    def find(
        self, collection: str, criteria: Criteria | None = None
    ) -> list[dict[str, Any]]:
        """Return the documents matching ``criteria`` (all when ``None``).

        Raises:
            StoreUnavailableError: For operational failures.
        """

    @abc.abstractmethod
    def count(self, collection: str, criteria: Criteria | None = None) -> int:
        """Count the documents matching ``criteria``, ignoring sort and paging.

        Raises:
            StoreUnavailableError: For operational failures.
        """

    @abc.abstractmethod
    def save(self, collection: str, document: Mapping[str, Any]) -> None:
        """Insert or replace ``document`` keyed by its ``"Id"``.

        Raises:
            InvalidDocumentError: If the document has no id or cannot be stored.
            StoreUnavailableError: For operational failures.
        """

    @abc.abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete the document with ``doc_id``.

        Returns:
            True if a document was removed.

        Raises:
            StoreUnavailableError: For operational failures.
        """
