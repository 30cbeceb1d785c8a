"""Document store adapters (in-memory and SQLAlchemy-backed)."""

from .memory import MemoryDocumentStore
from .sqlalchemy_store import SqlAlchemyDocumentStore

__all__ = ["MemoryDocumentStore", "SqlAlchemyDocumentStore"]
