"""Entity collections: typed access to one collection of a document store.

An `EntityCollection` wraps a `DocumentStore` for one entity type and adds:

- a `ReadyGate` that blocks readers until the collection has been seeded;
- a read-through `CollectionCache` for lookups by id, invalidated on every
  save and delete;
- a chainable `Query` builder (filters, ranges, sorting, paging, field
  projection, joins and views);
- id assignment and timestamp stamping on save.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from stormrocks.domain.model import Entity
from stormrocks.domain.utils import encode_value, utcnow
from stormrocks.interfaces.document_store import ID_FIELD, Criteria, Range
from stormrocks.service_layer.errors import CollectionNotReadyError, EntityNotFoundError

if TYPE_CHECKING:
    from stormrocks.interfaces.document_store import DocumentStore
    from stormrocks.interfaces.id_generator import IdGenerator
    from stormrocks.service_layer.joins import JoinResolver, QueryContext

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

DEFAULT_WARN_INTERVAL = 10.0
DEFAULT_JOIN_RECURSION_LIMIT = 5


class ReadyGate:
    """One-shot "collection is ready" signal.

    Set exactly once; waiters block until it is set and log a warning every
    ``warn_interval`` seconds while they wait.
    """

    def __init__(self, name: str, warn_interval: float = DEFAULT_WARN_INTERVAL):
        self.name = name
        self.warn_interval = warn_interval
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> None:
        """Block until the gate is set.

        Args:
            timeout: Give up after this many seconds (wait forever if None).

        Raises:
            CollectionNotReadyError: If the timeout elapsed first.
        """
        if self._event.is_set():
            return
        started = time.monotonic()
        while True:
            slice_ = self.warn_interval
            if timeout is not None:
                remaining = timeout - (time.monotonic() - started)
                if remaining <= 0:
                    raise CollectionNotReadyError(self.name, timeout)
                slice_ = min(slice_, remaining)
            if self._event.wait(slice_):
                return
            if timeout is None or time.monotonic() - started < timeout:
                logger.warning(
                    "%s has not finished seeding after %.0fs; still waiting",
                    self.name,
                    time.monotonic() - started,
                )


class CollectionCache:
    """Thread-safe read-through cache of documents keyed by (collection, id)."""

    def __init__(self) -> None:
        self._documents: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            document = self._documents.get((collection, doc_id))
        return None if document is None else dict(document)

    def put(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> None:
        with self._lock:
            self._documents[(collection, doc_id)] = dict(document)

    def remove(self, collection: str, doc_id: str) -> None:
        """Invalidate one entry."""
        with self._lock:
            self._documents.pop((collection, doc_id), None)

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)


class EntityCollection(Generic[E]):  # pylint: disable=too-many-instance-attributes
    """Typed access to the documents of one entity type.

    Args:
        entity_cls: Entity class stored in the collection.
        store: Backing document store.
        id_generator: Source of ids for entities saved without one.
        resolver: Join resolver used when queries request joins.
        cache: Read-through cache shared by all collections.
        ready: Start with the ready gate already set.
        ready_timeout: Default time readers wait for seeding (None: forever).
        join_recursion_limit: Default recursion budget for query joins.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        entity_cls: type[E],
        store: DocumentStore,
        *,
        id_generator: IdGenerator,
        resolver: JoinResolver | None = None,
        cache: CollectionCache | None = None,
        ready: bool = False,
        ready_timeout: float | None = None,
        join_recursion_limit: int = DEFAULT_JOIN_RECURSION_LIMIT,
    ):
        self.entity_cls = entity_cls
        self.store = store
        self.id_generator = id_generator
        self.resolver = resolver
        self.cache = cache or CollectionCache()
        self.gate = ReadyGate(entity_cls.COLLECTION)
        self.ready_timeout = ready_timeout
        self.join_recursion_limit = join_recursion_limit
        if ready:
            self.gate.set()

    @property
    def name(self) -> str:
        """Collection name (``"Users"``)."""
        return self.entity_cls.COLLECTION

    def __repr__(self) -> str:
        return f"EntityCollection({self.name})"

    # --------------------------------------------------------------------- #
    # Readiness
    # --------------------------------------------------------------------- #

    def mark_ready(self) -> None:
        """Open the ready gate; it never closes again."""
        self.gate.set()

    def is_ready(self) -> bool:
        return self.gate.is_set()

    def wait_ready(self, timeout: float | None = None) -> None:
        """Block until the collection is seeded.

        Raises:
            CollectionNotReadyError: If ``timeout`` (or the default) elapsed.
        """
        self.gate.wait(self.ready_timeout if timeout is None else timeout)

    # --------------------------------------------------------------------- #
    # Queries
    # --------------------------------------------------------------------- #

    def new(self, **values: Any) -> E:
        """Create an unsaved entity of this collection's type."""
        return self.entity_cls(**values)

    def query(self, *, wait: bool = True) -> Query[E]:
        """Start a query; ``wait=False`` skips the ready gate (seeding only)."""
        return Query(self, wait=wait)

    def context(self, **options: Any) -> QueryContext:
        """Create a join `QueryContext` from this collection's resolver.

        Raises:
            RuntimeError: If the collection was built without a resolver.
        """
        if self.resolver is None:
            raise RuntimeError(f"{self.name} has no join resolver configured")
        return self.resolver.context(**options)

    def find(
        self,
        field: str,
        value: Any,
        *,
        limit: int | None = None,
        skip: int = 0,
        sort: Iterable[str] = (),
    ) -> list[E]:
        """All entities whose ``field`` equals ``value``."""
        query = self.query().where(field, value).order_by(*sort)
        return query.limit(limit).skip(skip).all()

    def all(
        self, *, limit: int | None = None, skip: int = 0, sort: Iterable[str] = ()
    ) -> list[E]:
        """Every entity of the collection."""
        return self.query().order_by(*sort).limit(limit).skip(skip).all()

    def range(  # pylint: disable=too-many-arguments
        self,
        field: str,
        minimum: Any,
        maximum: Any,
        *,
        limit: int | None = None,
        skip: int = 0,
        sort: Iterable[str] = (),
    ) -> list[E]:
        """Entities whose ``field`` lies within ``[minimum, maximum]``."""
        return (
            self.query()
            .between(field, minimum, maximum)
            .order_by(*sort)
            .limit(limit)
            .skip(skip)
            .all()
        )

    def one(self, field: str, value: Any) -> E | None:
        """The first entity whose ``field`` equals ``value``."""
        return self.query().where(field, value).first()

    def count(self, *, wait: bool = True) -> int:
        """Number of entities in the collection."""
        return self.query(wait=wait).count()

    def get(self, entity_id: str, *, wait: bool = True) -> E | None:
        """Fetch by id through the read-through cache (``None`` if absent)."""
        if wait:
            self.wait_ready()
        if not entity_id:
            return None
        document = self.cache.get(self.name, entity_id)
        if document is None:
            document = self.store.get(self.name, entity_id)
            if document is None:
                return None
            self.cache.put(self.name, entity_id, document)
        return self.entity_cls.from_document(document)

    def by_id(
        self,
        entity_id: str,
        joins: Iterable[str] = (),
        context: QueryContext | None = None,
    ) -> E:
        """Fetch by id and hydrate ``joins``.

        Raises:
            EntityNotFoundError: If no entity has that id.
            JoinError: If a join could not be resolved.
        """
        query = self.query()
        for path in joins:
            query = query.join(path)
        if context is not None:
            query = query.using(context)
        return query.by_id(entity_id)

    def by_filter(
        self,
        filter_: Mapping[str, Any] | None = None,
        in_filter: Mapping[str, Iterable[Any]] | None = None,
        exclude_filter: Mapping[str, Any] | None = None,
        joins: Iterable[str] = (),
        context: QueryContext | None = None,
    ) -> list[E]:
        """Query by equality, "in" and exclusion filters, then hydrate ``joins``.

        Raises:
            JoinError: If a join could not be resolved.
        """
        query = self.query().filter(filter_ or {})
        for field, values in (in_filter or {}).items():
            query = query.where_in(field, values)
        for field, value in (exclude_filter or {}).items():
            query = query.exclude(field, value)
        for path in joins:
            query = query.join(path)
        if context is not None:
            query = query.using(context)
        return query.all()

    # --------------------------------------------------------------------- #
    # Writes
    # --------------------------------------------------------------------- #

    def save(self, entity: E) -> E:
        """Insert or replace ``entity``.

        Assigns an id when the entity has none, sets ``CreateDate`` when
        unset and stamps ``UpdateDate``.
        """
        if not entity.id:
            entity.id = self.id_generator.new_id()
        now = utcnow()
        if entity.create_date is None:
            entity.create_date = now
        entity.update_date = max(now, entity.create_date)
        self.cache.remove(self.name, entity.id)
        self.store.save(self.name, entity.to_document())
        return entity

    def restore(self, document: Mapping[str, Any]) -> None:
        """Write a previously saved document back verbatim, without stamping."""
        self.cache.remove(self.name, str(document.get(ID_FIELD, "")))
        self.store.save(self.name, document)

    def delete(self, entity: E | str) -> bool:
        """Delete an entity (or id); returns whether a row was removed."""
        entity_id = entity if isinstance(entity, str) else entity.id
        self.cache.remove(self.name, entity_id)
        return self.store.delete(self.name, entity_id)


class Query(Generic[E]):  # pylint: disable=too-many-instance-attributes
    """Chainable query over one collection.

    Builder methods mutate and return the query, so calls chain::

        collection.query().where("AccountId", aid).order_by("-UpdateDate").limit(10).all()
    """

    def __init__(self, collection: EntityCollection[E], *, wait: bool = True):
        self.collection = collection
        self.wait = wait
        self._equals: dict[str, Any] = {}
        self._any_of: dict[str, tuple[Any, ...]] = {}
        self._exclude: dict[str, Any] = {}
        self._ranges: list[Range] = []
        self._sort: list[str] = []
        self._limit: int | None = None
        self._skip = 0
        self._select: set[str] = set()
        self._omit: set[str] = set()
        self._joins: list[str] = []
        self._views = False
        self._depth: int | None = None
        self._context: QueryContext | None = None

    # --- filters ---

    def where(self, field: str, value: Any) -> Query[E]:
        self._equals[field] = encode_value(value)
        return self

    def filter(self, conditions: Mapping[str, Any]) -> Query[E]:
        self._equals.update({k: encode_value(v) for k, v in conditions.items()})
        return self

    def where_in(self, field: str, values: Iterable[Any]) -> Query[E]:
        self._any_of[field] = tuple(values)
        return self

    def exclude(self, field: str, value: Any) -> Query[E]:
        self._exclude[field] = list(value) if isinstance(value, (set, frozenset, tuple)) else value  # fmt: skip # pylint: disable=line-too-long
        return self

    def between(self, field: str, minimum: Any, maximum: Any) -> Query[E]:
        self._ranges.append(
            Range(field, encode_value(minimum), encode_value(maximum))
        )
        return self

    def at_least(self, field: str, minimum: Any) -> Query[E]:
        self._ranges.append(Range(field, minimum=encode_value(minimum)))
        return self

    def at_most(self, field: str, maximum: Any) -> Query[E]:
        self._ranges.append(Range(field, maximum=encode_value(maximum)))
        return self

    # --- ordering & paging ---

    def order_by(self, *fields: str) -> Query[E]:
        """Sort by ``fields``; prefix a field with ``-`` for descending."""
        self._sort.extend(fields)
        return self

    def limit(self, limit: int | None) -> Query[E]:
        self._limit = limit
        return self

    def skip(self, skip: int) -> Query[E]:
        self._skip = skip
        return self

    # --- projection ---

    def select(self, *fields: str) -> Query[E]:
        """Load only ``fields`` (plus the id)."""
        self._select.update(fields)
        return self

    def omit(self, *fields: str) -> Query[E]:
        """Leave ``fields`` at their defaults (the id is always loaded)."""
        self._omit.update(fields)
        return self

    # --- joins & views ---

    def join(self, path: str) -> Query[E]:
        """Hydrate relation ``path`` on every result."""
        if path:
            self._joins.append(path)
        return self

    def views(self, enabled: bool = True) -> Query[E]:
        """Render views on results and joined entities."""
        self._views = enabled
        return self

    def depth(self, recursion_budget: int) -> Query[E]:
        """Override the collection's default join recursion budget."""
        self._depth = recursion_budget
        return self

    def using(self, context: QueryContext) -> Query[E]:
        """Resolve joins with an existing context."""
        self._context = context
        return self

    # --- execution ---

    @property
    def criteria(self) -> Criteria:
        return Criteria(
            equals=dict(self._equals),
            any_of=dict(self._any_of),
            exclude=dict(self._exclude),
            ranges=tuple(self._ranges),
            sort=tuple(self._sort),
            limit=self._limit,
            skip=self._skip,
        )

    def all(self) -> list[E]:
        """Run the query.

        Raises:
            CollectionNotReadyError: If seeding did not finish in time.
            JoinError: If a requested join could not be resolved.
        """
        self._wait()
        documents = self.collection.store.find(self.collection.name, self.criteria)
        entities = [self._load(doc) for doc in documents]
        self._finish(entities)
        return entities

    def first(self) -> E | None:
        """Run the query and return the first result, if any."""
        self._limit = 1 if self._limit is None else min(self._limit, 1)
        results = self.all()
        return results[0] if results else None

    def count(self) -> int:
        """Count matches, ignoring sorting and paging."""
        self._wait()
        return self.collection.store.count(self.collection.name, self.criteria)

    def by_id(self, entity_id: str) -> E:
        """Fetch by id (through the cache) and finish like `all`.

        Raises:
            EntityNotFoundError: If no entity has that id.
        """
        self._wait()
        entity = self.collection.get(entity_id, wait=False)
        if entity is None:
            raise EntityNotFoundError(self.collection.name, entity_id)
        if self._select or self._omit:
            entity = self._load(entity.to_document())
        self._finish([entity])
        return entity

    # --- internals ---

    def _wait(self) -> None:
        if self.wait:
            self.collection.wait_ready()

    def _load(self, document: Mapping[str, Any]) -> E:
        if self._select:
            document = {
                k: v for k, v in document.items() if k in self._select or k == ID_FIELD
            }
        if self._omit:
            document = {
                k: v for k, v in document.items() if k not in self._omit or k == ID_FIELD
            }
        return self.collection.entity_cls.from_document(document)

    def _finish(self, entities: list[E]) -> None:
        if self._joins:
            context = self._context or self.collection.context(render_views=self._views)
            budget = (
                self.collection.join_recursion_limit
                if self._depth is None
                else self._depth
            )
            for entity in entities:
                for path in self._joins:
                    entity.join_fields(path, context, budget)
        if self._views:
            now = self._context.now if self._context else None
            for entity in entities:
                entity.render_views(now)
