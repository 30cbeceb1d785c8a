"""Unit tests for the entity registry."""

import pytest

from stormrocks.adapters.document_store import MemoryDocumentStore
from stormrocks.adapters.id_generators import SimpleIdGenerator
from stormrocks.domain.entities import Account, User
from stormrocks.service_layer.collections import EntityCollection
from stormrocks.service_layer.errors import (
    DuplicateRegistrationError,
    RegistryFrozenError,
    UnknownCollectionError,
)
from stormrocks.service_layer.registry import EntityRegistry

# pylint: disable=magic-value-comparison


def _collection(entity_cls) -> EntityCollection:
    return EntityCollection(
        entity_cls, MemoryDocumentStore(), id_generator=SimpleIdGenerator()
    )


def test_resolve_entity_returns_fresh_instances() -> None:
    """Each lookup by type name returns a new, empty entity."""
    registry = EntityRegistry()
    registry.register(_collection(User))

    first = registry.resolve_entity("User")
    second = registry.resolve_entity("User")

    assert isinstance(first, User)
    assert first is not second
    assert first.id == ""


def test_resolve_entity_unknown_is_none() -> None:
    """Unknown type names resolve to None rather than raising."""
    assert EntityRegistry().resolve_entity("Ghost") is None


def test_resolve_collection() -> None:
    """Collections are looked up by collection name, not type name."""
    registry = EntityRegistry()
    users = _collection(User)
    registry.register(users)

    assert registry.resolve_collection("Users") is users
    with pytest.raises(UnknownCollectionError) as excinfo:
        registry.resolve_collection("User")
    assert excinfo.value.collection == "User"
    assert str(excinfo.value) == "Collection 'User' is not registered."


def test_duplicate_registration_raises() -> None:
    """A name can only be registered once."""
    registry = EntityRegistry()
    registry.register(_collection(User))

    with pytest.raises(DuplicateRegistrationError) as excinfo:
        registry.register(_collection(User))
    assert excinfo.value.kind == "Entity type"


def test_frozen_registry_rejects_registration() -> None:
    """After `freeze` the table is read-only."""
    registry = EntityRegistry()
    registry.register(_collection(User))
    registry.freeze()

    assert registry.frozen
    with pytest.raises(RegistryFrozenError):
        registry.register(_collection(Account))
    assert len(registry) == 1


def test_iteration_and_membership() -> None:
    """Collections iterate in registration order; both names are members."""
    registry = EntityRegistry()
    registry.register(_collection(User))
    registry.register(_collection(Account))

    assert [c.name for c in registry.collections()] == ["Users", "Accounts"]
    assert "Users" in registry
    assert "Account" in registry
    assert "Ghosts" not in registry
