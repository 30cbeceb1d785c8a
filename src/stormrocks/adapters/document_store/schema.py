"""Document table schema.

Every entity collection shares one ``documents`` table: a row per document,
keyed by ``(collection, id)``, holding the full JSON document plus UTC
bookkeeping timestamps maintained by the store.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, PrimaryKeyConstraint, String, Table, text

from stormrocks.adapters.db.metadata import metadata
from stormrocks.adapters.db.sa_types import PORTABLE_JSON, UTCDateTime

__all__ = ["documents"]

documents = Table(
    "documents",
    metadata,
    Column(
        "collection",
        String(100),
        nullable=False,
        comment="Collection name (e.g. 'Users').",
    ),
    Column(
        "id",
        String(64),
        nullable=False,
        comment="Document id, unique within its collection.",
    ),
    Column(
        "payload",
        PORTABLE_JSON,
        nullable=False,
        comment="Entity document (JSON object keyed by PascalCase field names).",
    ),
    Column(
        "created_at",
        UTCDateTime(),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the row was first written (UTC).",
    ),
    Column(
        "updated_at",
        UTCDateTime(),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the row was last written (UTC).",
    ),
    PrimaryKeyConstraint("collection", "id"),
    Index(None, "collection", "updated_at"),
    comment="Entity documents for every collection.",
)
