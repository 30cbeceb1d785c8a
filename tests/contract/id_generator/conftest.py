"""Fixtures for id_generator contract tests."""

from collections.abc import Iterable

import pytest

from stormrocks.adapters.id_generators import (
    ObjectIdGenerator,
    SimpleIdGenerator,
    ULIDGenerator,
)
from stormrocks.interfaces.id_generator import IdGenerator


@pytest.fixture(params=["objectid", "ulid", "simple"])
def id_generator(
    request: pytest.FixtureRequest,
) -> Iterable[IdGenerator]:
    """Return a fresh IdGenerator instance for the requested backend.

    Supported params:
      - `"objectid"` → ObjectIdGenerator (the default for entities)
      - `"ulid"` → ULIDGenerator
      - `"simple"` → SimpleIdGenerator
    """

    match request.param:
        case "objectid":
            yield ObjectIdGenerator()
        case "ulid":
            yield ULIDGenerator()
        case "simple":
            yield SimpleIdGenerator()
        case _:
            raise ValueError(f"unknown id generator type: {request.param}")


@pytest.fixture(params=["ulid", "simple"])
def monotonic_id_generator(request: pytest.FixtureRequest) -> Iterable[IdGenerator]:
    """Yield IdGenerators that promise lexicographically increasing ids."""
    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "simple":
            yield SimpleIdGenerator()
        case _:
            raise ValueError(f"unknown monotonic id generator type: {request.param}")
