"""SQLAlchemy-backed DocumentStore adapter for StormRocks.

All collections share the ``documents`` table (see
`stormrocks.adapters.document_store.schema`). Each operation runs in its own
short transaction taken from the engine, so one store instance can be shared by
request handlers and background seeding threads.

String equality filters are pushed down to SQL; every other condition, plus
sorting and paging, is evaluated by `Criteria.apply` so results match the
in-memory adapter exactly.

Exceptions:
    Maps SQLAlchemy errors to StormRocks document store exceptions.
"""

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError

from stormrocks.interfaces.document_store import (
    ID_FIELD,
    Criteria,
    DocumentStore,
    InvalidDocumentError,
    StoreUnavailableError,
)

from .schema import documents


class SqlAlchemyDocumentStore(DocumentStore):
    """SQLAlchemy-backed DocumentStore.

    - Uses the canonical `documents` table.
    - Saves are upserts: update first, insert when no row matched.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        stmt = select(documents.c.payload).where(
            documents.c.collection == collection, documents.c.id == doc_id
        )
        try:
            with self.engine.connect() as conn:
                payload = conn.execute(stmt).scalar_one_or_none()
        except DBAPIError as e:
            raise StoreUnavailableError(str(e)) from e
        return None if payload is None else dict(payload)

    def find(
        self, collection: str, criteria: Criteria | None = None
    ) -> list[dict[str, Any]]:
        criteria = criteria or Criteria()
        return criteria.apply(self._candidates(collection, criteria))

    def count(self, collection: str, criteria: Criteria | None = None) -> int:
        criteria = criteria or Criteria()
        return sum(
            1 for doc in self._candidates(collection, criteria) if criteria.matches(doc)
        )

    def save(self, collection: str, document: Mapping[str, Any]) -> None:
        doc_id = document.get(ID_FIELD)
        if not doc_id:
            raise InvalidDocumentError(f"document in {collection!r} has no id")
        try:
            payload = json.loads(json.dumps(dict(document)))
        except (TypeError, ValueError) as e:
            raise InvalidDocumentError(str(e)) from e

        try:
            with self.engine.begin() as conn:
                self._upsert(conn, collection, str(doc_id), payload)
        except IntegrityError:
            # a concurrent writer inserted the same id first; replace it
            try:
                with self.engine.begin() as conn:
                    self._upsert(conn, collection, str(doc_id), payload)
            except IntegrityError as e:
                raise InvalidDocumentError(str(e.orig or e)) from e
        except DataError as e:  # value too long, bad JSON, etc.
            raise InvalidDocumentError(str(e)) from e
        except DBAPIError as e:  # OperationalError, InterfaceError, etc.
            raise StoreUnavailableError(str(e)) from e

    def delete(self, collection: str, doc_id: str) -> bool:
        stmt = delete(documents).where(
            documents.c.collection == collection, documents.c.id == doc_id
        )
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount > 0
        except DBAPIError as e:
            raise StoreUnavailableError(str(e)) from e

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    @staticmethod
    def _filtered(stmt: Select, collection: str, criteria: Criteria) -> Select:
        """Restrict ``stmt`` to ``collection`` and its string equality filters."""
        stmt = stmt.where(documents.c.collection == collection)
        for name, expected in criteria.equals.items():
            if isinstance(expected, str):
                stmt = stmt.where(documents.c.payload[name].as_string() == expected)
        return stmt

    def _candidates(self, collection: str, criteria: Criteria) -> list[dict[str, Any]]:
        """Load the documents that may match, oldest write first."""
        stmt = self._filtered(
            select(documents.c.payload), collection, criteria
        ).order_by(documents.c.created_at.asc(), documents.c.id.asc())
        try:
            with self.engine.connect() as conn:
                return [dict(p) for p in conn.execute(stmt).scalars().all()]
        except DBAPIError as e:
            raise StoreUnavailableError(str(e)) from e

    @staticmethod
    def _upsert(
        conn: Connection, collection: str, doc_id: str, payload: dict[str, Any]
    ) -> None:
        now = datetime.now(timezone.utc)
        result = conn.execute(
            update(documents)
            .where(documents.c.collection == collection, documents.c.id == doc_id)
            .values(payload=payload, updated_at=now)
        )
        if result.rowcount == 0:
            conn.execute(
                insert(documents).values(
                    collection=collection,
                    id=doc_id,
                    payload=payload,
                    created_at=now,
                    updated_at=now,
                )
            )
