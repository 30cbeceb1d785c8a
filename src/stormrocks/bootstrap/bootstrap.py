"""Wire the entity registry, seeding and join resolution to concrete adapters."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stormrocks.adapters.document_store import (
    MemoryDocumentStore,
    SqlAlchemyDocumentStore,
)
from stormrocks.adapters.db.engine import make_engine
from stormrocks.adapters.dump_importer import CommandDumpImporter, NullDumpImporter
from stormrocks.adapters.id_generators import ObjectIdGenerator, ULIDGenerator
from stormrocks.adapters.seed_cache import JsonFileSeedCache
from stormrocks.config import AppSettings
from stormrocks.domain.entities import ALL_ENTITIES
from stormrocks.service_layer.collections import CollectionCache, EntityCollection
from stormrocks.service_layer.joins import JoinResolver
from stormrocks.service_layer.registry import EntityRegistry
from stormrocks.service_layer.seeding import Seeder, SeedReport
from stormrocks.service_layer.transactions import TransactionQueue

if TYPE_CHECKING:
    from stormrocks.domain.model import Entity
    from stormrocks.interfaces.document_store import DocumentStore
    from stormrocks.interfaces.dump_importer import DumpImporter
    from stormrocks.interfaces.id_generator import IdGenerator
    from stormrocks.interfaces.seed_cache import SeedCache

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:  # pylint: disable=too-many-instance-attributes
    """Everything an entrypoint needs, wired together."""

    settings: AppSettings
    store: DocumentStore
    registry: EntityRegistry
    resolver: JoinResolver
    seeder: Seeder
    transactions: TransactionQueue
    seeding: dict[str, Future[SeedReport]] = field(default_factory=dict)
    executor: ThreadPoolExecutor | None = None

    def collection(self, name: str) -> EntityCollection:
        """Shortcut for ``registry.resolve_collection``."""
        return self.registry.resolve_collection(name)

    def start_seeding(self) -> dict[str, Future[SeedReport]]:
        """Launch one background bootstrap task per collection."""
        if self.executor is None:
            self.executor = ThreadPoolExecutor(
                max_workers=max(1, len(self.registry)), thread_name_prefix="bootstrap"
            )
        for collection in self.registry.collections():
            if collection.name in self.seeding:
                continue
            future = self.executor.submit(self.seeder.bootstrap, collection)
            future.add_done_callback(_log_unexpected_failure(collection))
            self.seeding[collection.name] = future
        return self.seeding

    def seed_now(self, names: Iterable[str] = ()) -> list[SeedReport]:
        """Seed the named collections (all when empty) on the calling thread."""
        names = list(names)
        collections = (
            [self.registry.resolve_collection(name) for name in names]
            if names
            else list(self.registry.collections())
        )
        return [self.seeder.bootstrap(collection) for collection in collections]

    def shutdown(self, wait: bool = True) -> None:
        """Stop background work."""
        self.transactions.stop_sweeper(timeout=1.0 if wait else 0)
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
            self.executor = None


def build_store(url: str | None) -> DocumentStore:
    """Build a SQL-backed store for ``url`` (in-memory when None)."""
    if url is None:
        return MemoryDocumentStore()
    return SqlAlchemyDocumentStore(make_engine(url))


def build_dump_importer(settings: AppSettings) -> DumpImporter:
    if settings.dump_import_command:
        return CommandDumpImporter(settings.dump_import_command)
    return NullDumpImporter()


def build_registry(  # pylint: disable=too-many-arguments
    store: DocumentStore,
    id_generator: IdGenerator,
    settings: AppSettings,
    *,
    entities: Iterable[type[Entity]] = ALL_ENTITIES,
    ready: bool = False,
    ready_timeout: float | None = None,
) -> tuple[EntityRegistry, JoinResolver]:
    """Register one collection per entity type and freeze the registry."""
    registry = EntityRegistry()
    resolver = JoinResolver(registry, log_joins=settings.log_join_queries)
    cache = CollectionCache()
    for entity_cls in entities:
        registry.register(
            EntityCollection(
                entity_cls,
                store,
                id_generator=id_generator,
                resolver=resolver,
                cache=cache,
                ready=ready,
                ready_timeout=ready_timeout,
                join_recursion_limit=settings.join_recursion_limit,
            )
        )
    registry.freeze()
    return registry, resolver


def build_container(  # pylint: disable=too-many-arguments
    settings: AppSettings,
    store: DocumentStore,
    *,
    seed_cache: SeedCache | None = None,
    dump_importer: DumpImporter | None = None,
    id_generator: IdGenerator | None = None,
    entities: Iterable[type[Entity]] = ALL_ENTITIES,
    ready_timeout: float | None = None,
) -> AppContainer:
    """Assemble an `AppContainer` from explicit parts (tests inject fakes here)."""
    id_generator = id_generator or ObjectIdGenerator()
    registry, resolver = build_registry(
        store,
        id_generator,
        settings,
        entities=entities,
        ready_timeout=ready_timeout,
    )
    seeder = Seeder(
        settings,
        seed_cache or JsonFileSeedCache(settings.cache_dir),
        dump_importer or build_dump_importer(settings),
    )
    return AppContainer(
        settings=settings,
        store=store,
        registry=registry,
        resolver=resolver,
        seeder=seeder,
        transactions=TransactionQueue(registry, ULIDGenerator()),
    )


def bootstrap(
    settings: AppSettings | None = None,
    db_url: str | None = None,
    *,
    start_seeding: bool = True,
) -> AppContainer:
    """Build the application from the environment and start seeding.

    Args:
        settings: Settings to use (read from the environment when None).
        db_url: Database URL (an in-memory store when None).
        start_seeding: Launch background seeding and the transaction sweeper.
    """
    settings = settings or AppSettings.from_env()
    container = build_container(settings, build_store(db_url))
    if start_seeding:
        container.start_seeding()
        container.transactions.start_sweeper()
    return container


def _log_unexpected_failure(collection: EntityCollection):
    def _callback(future: Future[SeedReport]) -> None:
        if future.cancelled():
            collection.mark_ready()
            return
        if (error := future.exception()) is not None:
            logger.error(
                "Bootstrap of %s crashed: %s",
                collection.name,
                error,
                exc_info=error,
            )
            collection.mark_ready()

    return _callback
