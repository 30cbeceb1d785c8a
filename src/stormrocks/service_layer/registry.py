"""Entity registry: the table from names to entity types and collections.

The registry is populated once at start-up by the composition root and then
frozen. Join resolution and the CLI look types up by their type name
(``"User"``) and collections by their collection name (``"Users"``).
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from stormrocks.service_layer.errors import (
    DuplicateRegistrationError,
    RegistryFrozenError,
    UnknownCollectionError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from stormrocks.domain.model import Entity
    from stormrocks.service_layer.collections import EntityCollection


class EntityRegistry:
    """Registration table for entity types and their collections."""

    def __init__(self) -> None:
        self._types: dict[str, type[Entity]] = {}
        self._collections: dict[str, EntityCollection] = {}
        self._frozen = False
        self._lock = threading.Lock()

    def register(self, collection: EntityCollection) -> None:
        """Register ``collection`` under its collection and entity type names.

        Raises:
            RegistryFrozenError: If the registry was already frozen.
            DuplicateRegistrationError: If either name is already taken.
        """
        entity_cls = collection.entity_cls
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(collection.name)
            if entity_cls.TYPE_NAME in self._types:
                raise DuplicateRegistrationError("Entity type", entity_cls.TYPE_NAME)
            if collection.name in self._collections:
                raise DuplicateRegistrationError("Collection", collection.name)
            self._types[entity_cls.TYPE_NAME] = entity_cls
            self._collections[collection.name] = collection

    def freeze(self) -> None:
        """Make the registry read-only."""
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve_entity(self, type_name: str) -> Entity | None:
        """Return a fresh, empty entity of ``type_name`` (``None`` if unknown)."""
        entity_cls = self._types.get(type_name)
        return None if entity_cls is None else entity_cls()

    def resolve_collection(self, name: str) -> EntityCollection:
        """Return the collection registered as ``name``.

        Raises:
            UnknownCollectionError: If no collection has that name.
        """
        try:
            return self._collections[name]
        except KeyError:
            raise UnknownCollectionError(name) from None

    def collections(self) -> Iterator[EntityCollection]:
        """Iterate over registered collections in registration order."""
        return iter(list(self._collections.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._collections or name in self._types

    def __len__(self) -> int:
        return len(self._collections)
