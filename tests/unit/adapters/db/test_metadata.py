"""Tests for SQLAlchemy naming conventions applied via `metadata`.

These tests verify that the configured naming_convention in
`stormrocks.adapters.db.metadata` generates predictable, stable names for the
documents table, which the Alembic migration relies on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

# pylint: disable=magic-value-comparison


def test_documents_primary_key_is_named_by_convention(
    sqlite_engine_memory: Engine,
):
    """The composite primary key is named ``pk_documents``."""
    pk = inspect(sqlite_engine_memory).get_pk_constraint("documents")
    assert pk["constrained_columns"] == ["collection", "id"]
    assert pk["name"] == "pk_documents"


def test_documents_index_is_named_by_convention(sqlite_engine_memory: Engine):
    """The unnamed (collection, updated_at) index gets a convention name."""
    names = {ix["name"] for ix in inspect(sqlite_engine_memory).get_indexes("documents")}
    assert "ix_documents_collection_updated_at" in names
