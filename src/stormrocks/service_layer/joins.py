"""Join resolution: hydrating declared relations into an entity's joins sidecar.

`JoinResolver.join_fields` walks a dot-separated relation path one level at a
time. Every level that assigns a value consumes one unit of the recursion
budget, so a budget of ``N`` never hydrates more than ``N`` levels deep.

For each relation selected by the path:

- the lookup id is the (stringified) value of the relation's local key;
- single-valued relations fetch by primary id, or the first row whose foreign
  key equals the id;
- many-valued relations fetch every row whose foreign key equals the id, or
  only their count when the path ends in ``Count``;
- a slot that already holds a value is not fetched again; a loaded
  many-valued container is walked into instead;
- a missing related row is not an error; nothing is assigned.

Failures are typed `JoinError` s. A failing relation is left unassigned, the
remaining relations are still resolved, and the first error is raised once
they are done.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from stormrocks.domain.errors import UnknownFieldError
from stormrocks.domain.model import Entity, JoinItems
from stormrocks.domain.relations import JoinDescriptor, get_joins
from stormrocks.interfaces.document_store import ID_FIELD, DocumentStoreError
from stormrocks.service_layer.errors import (
    JoinError,
    JoinFetchError,
    JoinTypeError,
    UnknownCollectionError,
    UnknownEntityTypeError,
)

if TYPE_CHECKING:
    from stormrocks.service_layer.collections import EntityCollection
    from stormrocks.service_layer.registry import EntityRegistry

logger = logging.getLogger(__name__)

JOIN_ITEMS = "JoinItems"  # pragma: no mutate


@dataclass(slots=True)
class QueryContext:
    """Options shared by every step of one join resolution.

    Attributes:
        resolver: Resolver performing the walk.
        render_views: Render views on every fetched entity.
        whitelist: Fields to load, keyed by related type name.
        blacklist: Fields to leave out, keyed by related type name.
        log_joins: Log every descriptor and fetch at DEBUG.
        now: Reference time for rendered views (defaults to the current time).
    """

    resolver: JoinResolver
    render_views: bool = False
    whitelist: Mapping[str, Collection[str]] = field(default_factory=dict)
    blacklist: Mapping[str, Collection[str]] = field(default_factory=dict)
    log_joins: bool = False
    now: datetime | None = None


class JoinResolver:
    """Resolve relation paths against the collections of a registry."""

    def __init__(self, registry: EntityRegistry, *, log_joins: bool = False):
        self.registry = registry
        self.log_joins = log_joins

    def context(self, **options: Any) -> QueryContext:
        """Create a `QueryContext` bound to this resolver."""
        options.setdefault("log_joins", self.log_joins)
        return QueryContext(resolver=self, **options)

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #

    def join_fields(
        self,
        entity: Entity,
        path: str,
        context: QueryContext,
        recursion_budget: int,
    ) -> None:
        """Hydrate the relations selected by ``path`` on ``entity``.

        An empty path or a budget of zero or less is a no-op.

        Raises:
            JoinError: The first failure, after every selected relation ran.
        """
        if recursion_budget <= 0 or not path:
            return

        descriptors = get_joins(entity, path, context.whitelist, context.blacklist)
        first_error: JoinError | None = None
        for descriptor in descriptors:
            try:
                self.join_field(entity, descriptor, context, recursion_budget)
            except JoinError as e:
                logger.debug("Join %s on %s failed: %s", descriptor.name, entity.TYPE_NAME, e)  # fmt: skip # pylint: disable=line-too-long
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def join_field(
        self,
        entity: Entity,
        descriptor: JoinDescriptor,
        context: QueryContext,
        recursion_budget: int,
    ) -> None:
        """Resolve one relation of ``entity`` and assign it to the joins sidecar.

        Raises:
            UnknownCollectionError: The relation names an unregistered collection.
            UnknownEntityTypeError: The relation names an unregistered type.
            JoinTypeError: The joins slot already holds the wrong kind of value.
            JoinFetchError: The related rows could not be read.
        """
        spec = descriptor.relation
        ref_id = self._lookup_id(entity, descriptor)
        collection = self._collection_for(descriptor, ref_id)

        if context.log_joins:
            logger.debug(
                "Joining %s.%s -> %s (id=%r, remaining=%r, budget=%d)",
                entity.TYPE_NAME,
                spec.name,
                spec.collection,
                ref_id,
                descriptor.remaining_path,
                recursion_budget,
            )

        remaining_budget = recursion_budget - 1
        descend = not descriptor.terminal and remaining_budget > 0
        existing = entity.joins.get(spec.name)

        if existing is not None:
            if spec.many:
                if not isinstance(existing, JoinItems):
                    raise JoinTypeError(spec.name, ref_id, JOIN_ITEMS, type(existing).__name__)  # fmt: skip # pylint: disable=line-too-long
                if existing.items is not None and not descriptor.count_only:
                    if descend:
                        self._descend(existing, descriptor, context, remaining_budget)
                    return
            else:
                if not isinstance(existing, Entity):
                    raise JoinTypeError(spec.name, ref_id, spec.type_name, type(existing).__name__)  # fmt: skip # pylint: disable=line-too-long
                if descend:
                    self._descend(existing, descriptor, context, remaining_budget)
                return

        if not ref_id:
            return

        value = self._fetch(collection, descriptor, ref_id)
        if value is None:
            if context.log_joins:
                logger.debug("No %s found for %s id %r", spec.type_name, spec.name, ref_id)  # fmt: skip # pylint: disable=line-too-long
            return

        if isinstance(existing, JoinItems) and descriptor.count_only:
            # a count refreshes the container in place; loaded items are kept
            existing.count = value.count
            return

        if descend:
            self._descend(value, descriptor, context, remaining_budget)

        entity.joins[spec.name] = value
        if context.render_views:
            for target in _targets(value):
                target.render_views(context.now)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    @staticmethod
    def _lookup_id(entity: Entity, descriptor: JoinDescriptor) -> str:
        spec = descriptor.relation
        try:
            value = entity.get_field(spec.local_key)
        except UnknownFieldError as e:
            raise JoinFetchError(spec.name, spec.type_name, "", str(e)) from e
        return "" if value is None else str(value)

    def _collection_for(
        self, descriptor: JoinDescriptor, ref_id: str
    ) -> EntityCollection:
        spec = descriptor.relation
        try:
            collection = self.registry.resolve_collection(spec.collection)
        except UnknownCollectionError as e:
            raise UnknownCollectionError(spec.collection, spec.name, ref_id) from e
        if self.registry.resolve_entity(spec.type_name) is None:
            raise UnknownEntityTypeError(spec.type_name, spec.name, ref_id)
        return collection

    @staticmethod
    def _fetch(
        collection: EntityCollection, descriptor: JoinDescriptor, ref_id: str
    ) -> Entity | JoinItems | None:
        spec = descriptor.relation
        query = (
            collection.query()
            .select(*descriptor.whitelist)
            .omit(*descriptor.blacklist)
        )
        try:
            if spec.many:
                query = query.where(spec.foreign_key or ID_FIELD, ref_id)
                if descriptor.count_only:
                    return JoinItems(count=query.count())
                items = query.all()
                return JoinItems(count=len(items), items=items)
            if not spec.foreign_key:
                return query.where(ID_FIELD, ref_id).first()
            return query.where(spec.foreign_key, ref_id).first()
        except DocumentStoreError as e:
            raise JoinFetchError(spec.name, spec.type_name, ref_id, str(e)) from e

    def _descend(
        self,
        value: Entity | JoinItems,
        descriptor: JoinDescriptor,
        context: QueryContext,
        recursion_budget: int,
    ) -> None:
        first_error: JoinError | None = None
        for target in _targets(value):
            try:
                self.join_fields(
                    target, descriptor.remaining_path, context, recursion_budget
                )
            except JoinError as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error


def _targets(value: Entity | JoinItems) -> list[Entity]:
    if isinstance(value, JoinItems):
        return list(value.items or ())
    return [value]
