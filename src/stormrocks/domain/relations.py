"""Relation declarations and join-path parsing.

Entities declare relations as five-part tags::

    "Collection,Type,LocalKey,true|false,ForeignKey"

- ``Collection`` / ``Type``: where the related rows live and what they are.
- ``LocalKey``: field on the source entity whose value is the lookup id.
- ``true|false``: whether the relation is many-valued.
- ``ForeignKey``: empty for a lookup by primary id, otherwise the field on
  the related rows that must equal the lookup id.

A join path is a dot-separated list of relation names walked one level at a
time (``"Account.LastUpdateUser"``). ``"All"`` selects every declared
relation one level deep. A trailing ``"Count"`` segment asks a many-valued
relation for its row count only.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from functools import cache
from typing import TYPE_CHECKING

from stormrocks.domain.errors import RelationTagError

if TYPE_CHECKING:
    from stormrocks.domain.model import Entity

logger = logging.getLogger(__name__)

JOIN_ALL = "All"  # pragma: no mutate
COUNT = "Count"  # pragma: no mutate
PATH_SEPARATOR = "."  # pragma: no mutate
TAG_PARTS = 5


@dataclass(frozen=True, slots=True)
class RelationSpec:
    """A parsed relation declaration."""

    name: str
    collection: str
    type_name: str
    local_key: str
    many: bool
    foreign_key: str = ""

    @classmethod
    def parse(cls, name: str, tag: str) -> RelationSpec:
        """Parse a five-part relation tag.

        Raises:
            RelationTagError: If the tag does not have five parts, names no
                collection, type or local key, or has a non-boolean
                cardinality.
        """
        parts = [part.strip() for part in tag.split(",")]
        if (
            len(parts) != TAG_PARTS
            or not all(parts[:3])
            or parts[3].lower() not in {"true", "false"}
        ):
            raise RelationTagError(name, tag)
        collection, type_name, local_key, many, foreign_key = parts
        return cls(
            name=name,
            collection=collection,
            type_name=type_name,
            local_key=local_key,
            many=many.lower() == "true",
            foreign_key=foreign_key,
        )


def parse_relations(tags: Mapping[str, str]) -> dict[str, RelationSpec]:
    """Parse a ``name -> tag`` mapping, preserving declaration order."""
    return {name: RelationSpec.parse(name, tag) for name, tag in tags.items()}


@cache
def relation_specs(entity_cls: type[Entity]) -> dict[str, RelationSpec]:
    """Parsed relations of an entity class (parsed once per class)."""
    return parse_relations(entity_cls.RELATIONS)


@dataclass(frozen=True, slots=True)
class JoinDescriptor:
    """One relation to resolve next, plus the path still to walk after it."""

    relation: RelationSpec
    remaining_path: str
    terminal: bool
    whitelist: frozenset[str] = frozenset()
    blacklist: frozenset[str] = frozenset()

    @property
    def name(self) -> str:
        """Relation name (also the key in the joins sidecar)."""
        return self.relation.name

    @property
    def count_only(self) -> bool:
        """True when only the row count of a many-valued relation is wanted."""
        return self.relation.many and self.remaining_path == COUNT


def get_joins(
    entity: Entity | type[Entity],
    path: str,
    whitelist: Mapping[str, Collection[str]] | None = None,
    blacklist: Mapping[str, Collection[str]] | None = None,
) -> list[JoinDescriptor]:
    """Produce the join descriptors to resolve next for ``path``.

    Args:
        entity: Source entity (or entity class) declaring the relations.
        path: Remaining join path.
        whitelist: Optional field whitelists keyed by related type name.
        blacklist: Optional field blacklists keyed by related type name.

    Returns:
        One descriptor per relation to resolve. Empty for an empty path or
        when the first path segment names no declared relation.
    """
    if not path:
        return []

    whitelist = whitelist or {}
    blacklist = blacklist or {}
    relations = relation_specs(entity if isinstance(entity, type) else type(entity))

    def _descriptor(spec: RelationSpec, remaining: str, terminal: bool) -> JoinDescriptor:  # fmt: skip # pylint: disable=line-too-long
        return JoinDescriptor(
            relation=spec,
            remaining_path=remaining,
            terminal=terminal,
            whitelist=frozenset(whitelist.get(spec.type_name, ())),
            blacklist=frozenset(blacklist.get(spec.type_name, ())),
        )

    if path == JOIN_ALL:
        return [_descriptor(spec, JOIN_ALL, True) for spec in relations.values()]

    head, _, remaining = path.partition(PATH_SEPARATOR)
    if (spec := relations.get(head)) is None:
        logger.debug("Ignoring unknown relation %r in join path %r", head, path)
        return []
    if remaining.startswith(COUNT):
        remaining = COUNT
    return [_descriptor(spec, remaining, not remaining or remaining == COUNT)]
