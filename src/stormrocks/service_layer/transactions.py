"""Transaction queue: grouped writes that can be rolled back later.

A transaction records, for every entity it writes, the document as it was
before the first write and the document as last written. Writes go to the
store immediately; `TransactionQueue.rollback` undoes them by deleting rows
the transaction inserted and writing the original documents back for rows it
updated or deleted.

Transactions stay in the queue after commit so a user can still undo them.
Entries older than ``max_age`` (48 hours by default) are purged by
`purge_stale`, which the sweeper thread runs every ``sweep_interval``
(12 hours by default).
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from stormrocks.domain.utils import utcnow
from stormrocks.service_layer.errors import TransactionNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from stormrocks.domain.model import Entity
    from stormrocks.interfaces.id_generator import IdGenerator
    from stormrocks.service_layer.registry import EntityRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=48)
DEFAULT_SWEEP_INTERVAL = timedelta(hours=12)


class ChangeType(enum.Enum):
    """How a transaction changed an entity."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(slots=True)
class EntityChange:
    """One entity touched by a transaction."""

    change_type: ChangeType
    collection: str
    entity_id: str
    original: dict[str, Any] | None = None
    current: dict[str, Any] | None = None


@dataclass(slots=True)
class PendingTransaction:
    """Book-keeping for one transaction."""

    transaction_id: str
    description: str
    started_at: datetime
    changes: dict[tuple[str, str], EntityChange] = field(default_factory=dict)
    committed: bool = False


class TransactionQueue:
    """Tracks transactions until they are rolled back or go stale."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        registry: EntityRegistry,
        id_generator: IdGenerator,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        sweep_interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.registry = registry
        self.id_generator = id_generator
        self.max_age = max_age
        self.sweep_interval = sweep_interval
        self.clock = clock
        self._queue: dict[str, PendingTransaction] = {}
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def __contains__(self, transaction_id: object) -> bool:
        with self._lock:
            return transaction_id in self._queue

    # --------------------------------------------------------------------- #
    # Transactions
    # --------------------------------------------------------------------- #

    def begin(self, description: str = "") -> str:
        """Open a transaction and return its id."""
        transaction_id = self.id_generator.new_id()
        with self._lock:
            self._queue[transaction_id] = PendingTransaction(
                transaction_id=transaction_id,
                description=description,
                started_at=self.clock(),
            )
        return transaction_id

    def get(self, transaction_id: str) -> PendingTransaction:
        """Return the transaction with ``transaction_id``.

        Raises:
            TransactionNotFoundError: If it is unknown or was purged.
        """
        with self._lock:
            try:
                return self._queue[transaction_id]
            except KeyError:
                raise TransactionNotFoundError(transaction_id) from None

    def save(self, transaction_id: str, entity: Entity) -> Entity:
        """Save ``entity`` as part of a transaction.

        Raises:
            TransactionNotFoundError: If the transaction is unknown.
            UnknownCollectionError: If the entity's collection is unregistered.
        """
        with self._lock:
            transaction = self.get(transaction_id)
            collection = self.registry.resolve_collection(entity.COLLECTION)
            original = (
                collection.store.get(collection.name, entity.id) if entity.id else None
            )
            collection.save(entity)
            change = self._track(
                transaction,
                collection.name,
                entity.id,
                ChangeType.INSERT if original is None else ChangeType.UPDATE,
                original,
            )
            change.current = entity.to_document()
        return entity

    def delete(self, transaction_id: str, entity: Entity) -> bool:
        """Delete ``entity`` as part of a transaction.

        Raises:
            TransactionNotFoundError: If the transaction is unknown.
            UnknownCollectionError: If the entity's collection is unregistered.
        """
        with self._lock:
            transaction = self.get(transaction_id)
            collection = self.registry.resolve_collection(entity.COLLECTION)
            original = collection.store.get(collection.name, entity.id)
            removed = collection.delete(entity)
            change = self._track(
                transaction, collection.name, entity.id, ChangeType.DELETE, original
            )
            change.current = None
        return removed

    def commit(self, transaction_id: str) -> PendingTransaction:
        """Mark the transaction committed; it stays available for rollback.

        Raises:
            TransactionNotFoundError: If the transaction is unknown.
        """
        with self._lock:
            transaction = self.get(transaction_id)
            transaction.committed = True
        logger.debug(
            "Committed transaction %s (%d changes)",
            transaction_id,
            len(transaction.changes),
        )
        return transaction

    def rollback(self, transaction_id: str) -> None:
        """Undo every change of the transaction and forget it.

        Raises:
            TransactionNotFoundError: If the transaction is unknown.
        """
        with self._lock:
            transaction = self.get(transaction_id)
            for change in reversed(list(transaction.changes.values())):
                collection = self.registry.resolve_collection(change.collection)
                if change.original is None:
                    collection.delete(change.entity_id)
                else:
                    collection.restore(change.original)
            del self._queue[transaction_id]
        logger.info(
            "Rolled back transaction %s (%s)",
            transaction_id,
            transaction.description or "no description",
        )

    # --------------------------------------------------------------------- #
    # Stale sweep
    # --------------------------------------------------------------------- #

    def purge_stale(self, now: datetime | None = None) -> int:
        """Drop transactions older than ``max_age``; returns how many."""
        now = now or self.clock()
        with self._lock:
            stale = [
                tid
                for tid, transaction in self._queue.items()
                if now - transaction.started_at > self.max_age
            ]
            for tid in stale:
                del self._queue[tid]
        if stale:
            logger.info("Purged %d stale transaction(s)", len(stale))
        return len(stale)

    def start_sweeper(self) -> threading.Thread:
        """Run `purge_stale` every ``sweep_interval`` on a daemon thread."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return self._sweeper
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep, name="transaction-sweeper", daemon=True
        )
        self._sweeper.start()
        return self._sweeper

    def stop_sweeper(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None

    def _sweep(self) -> None:
        interval = self.sweep_interval.total_seconds()
        while True:
            self.purge_stale()
            if self._stop.wait(interval):
                return

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    @staticmethod
    def _track(
        transaction: PendingTransaction,
        collection: str,
        entity_id: str,
        change_type: ChangeType,
        original: dict[str, Any] | None,
    ) -> EntityChange:
        """Record a change, keeping the snapshot from the first write."""
        key = (collection, entity_id)
        if (change := transaction.changes.get(key)) is None:
            change = EntityChange(change_type, collection, entity_id, original)
            transaction.changes[key] = change
        elif change_type is ChangeType.DELETE and change.original is not None:
            change.change_type = ChangeType.DELETE
        return change
