"""Contract tests for SeedCache implementations."""

from __future__ import annotations

import concurrent.futures as cf
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stormrocks.interfaces.seed_cache import SeedCache


def test_unknown_key_has_no_hashes(seed_cache: SeedCache) -> None:
    """A key never recorded reads as an empty set."""
    assert seed_cache.applied_hashes("AcmeUsers") == set()


def test_record_hashes_accumulates(seed_cache: SeedCache) -> None:
    """Recorded hashes are added to, not replacing, earlier ones."""
    seed_cache.record_hashes("AcmeUsers", ["a", "b"])
    seed_cache.record_hashes("AcmeUsers", ["b", "c"])
    assert seed_cache.applied_hashes("AcmeUsers") == {"a", "b", "c"}


def test_hash_keys_are_independent(seed_cache: SeedCache) -> None:
    """Each manifest key has its own set."""
    seed_cache.record_hashes("AcmeUsers", ["a"])
    seed_cache.record_hashes("AcmeRoles", ["z"])
    assert seed_cache.applied_hashes("AcmeUsers") == {"a"}
    assert seed_cache.applied_hashes("AcmeRoles") == {"z"}


def test_applied_hashes_returns_a_copy(seed_cache: SeedCache) -> None:
    """Mutating the returned set does not change the manifest."""
    seed_cache.record_hashes("AcmeUsers", ["a"])
    seed_cache.applied_hashes("AcmeUsers").add("sneaky")
    assert seed_cache.applied_hashes("AcmeUsers") == {"a"}


def test_file_sizes_replace_per_directory(seed_cache: SeedCache) -> None:
    """record_file_sizes() replaces the whole size manifest of a directory."""
    assert seed_cache.file_sizes("users") == {}
    seed_cache.record_file_sizes("users", {"a.json": 10, "b/c.json": 20})
    seed_cache.record_file_sizes("users", {"a.json": 11})
    assert seed_cache.file_sizes("users") == {"a.json": 11}
    assert seed_cache.file_sizes("roles") == {}


def test_file_sizes_returns_a_copy(seed_cache: SeedCache) -> None:
    """Mutating the returned mapping does not change the manifest."""
    seed_cache.record_file_sizes("users", {"a.json": 10})
    seed_cache.file_sizes("users")["a.json"] = 99
    assert seed_cache.file_sizes("users") == {"a.json": 10}


def test_concurrent_hash_recording_loses_nothing(seed_cache: SeedCache) -> None:
    """Concurrent record_hashes() calls on one key all land."""

    def _record(i: int) -> None:
        seed_cache.record_hashes("AcmeUsers", [f"h{i}"])

    with cf.ThreadPoolExecutor(max_workers=8) as ex:
        list(ex.map(_record, range(200)))

    assert seed_cache.applied_hashes("AcmeUsers") == {f"h{i}" for i in range(200)}
