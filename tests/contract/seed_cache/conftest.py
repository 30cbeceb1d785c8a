"""Fixtures for SeedCache contract tests."""

from collections.abc import Iterable
from pathlib import Path

import pytest

from stormrocks.adapters.seed_cache import InMemorySeedCache, JsonFileSeedCache
from stormrocks.interfaces.seed_cache import SeedCache


@pytest.fixture(params=["memory", "json"])
def seed_cache(request: pytest.FixtureRequest, tmp_path: Path) -> Iterable[SeedCache]:
    """Return a fresh, empty SeedCache for the requested backend.

    Supported params:
      - `"memory"` → InMemorySeedCache
      - `"json"` → JsonFileSeedCache under the test's temp dir
    """
    match request.param:
        case "memory":
            yield InMemorySeedCache()
        case "json":
            yield JsonFileSeedCache(tmp_path / "cache")
        case _:
            raise ValueError(f"unknown seed cache type: {request.param}")
