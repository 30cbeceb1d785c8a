"""Seed cache adapters.

`JsonFileSeedCache` persists both manifests as small JSON files under a cache
directory (by default the platform user cache dir, see `stormrocks.config`):

    <cache_dir>/hashes/<key>.json    -> sorted list of applied content hashes
    <cache_dir>/sizes/<directory>.json -> {relative file name: byte size}

Writes are atomic (temp file + ``os.replace``) so a crash mid-write never
leaves a truncated manifest behind. `InMemorySeedCache` keeps the same
behavior without touching disk.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path

from stormrocks.interfaces.seed_cache import SeedCache, SeedCacheError

HASHES_DIR = "hashes"  # pragma: no mutate
SIZES_DIR = "sizes"  # pragma: no mutate
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class InMemorySeedCache(SeedCache):
    """Non-durable seed cache; manifests live as long as the instance."""

    def __init__(self) -> None:
        self._hashes: dict[str, set[str]] = {}
        self._sizes: dict[str, dict[str, int]] = {}
        self._hash_lock = threading.Lock()
        self._size_lock = threading.Lock()

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def applied_hashes(self, key: str) -> set[str]:
        with self._hash_lock:
            return set(self._load_hashes(key))

    def record_hashes(self, key: str, hashes: Iterable[str]) -> None:
        with self._hash_lock:
            applied = self._load_hashes(key)
            applied.update(hashes)
            self._store_hashes(key, applied)

    def file_sizes(self, directory: str) -> dict[str, int]:
        with self._size_lock:
            return dict(self._load_sizes(directory))

    def record_file_sizes(self, directory: str, sizes: Mapping[str, int]) -> None:
        with self._size_lock:
            self._sizes[directory] = dict(sizes)
            self._store_sizes(directory, self._sizes[directory])

    # --------------------------------------------------------------------- #
    # Persistence hooks (no-ops in memory)
    # --------------------------------------------------------------------- #

    def _load_hashes(self, key: str) -> set[str]:
        return self._hashes.setdefault(key, set())

    def _store_hashes(self, key: str, hashes: set[str]) -> None:
        """Persist the hashes for ``key``; the caller holds the hash lock."""

    def _load_sizes(self, directory: str) -> dict[str, int]:
        return self._sizes.setdefault(directory, {})

    def _store_sizes(self, directory: str, sizes: dict[str, int]) -> None:
        """Persist the sizes for ``directory``; the caller holds the size lock."""


class JsonFileSeedCache(InMemorySeedCache):
    """Seed cache persisted as JSON files under ``cache_dir``.

    Manifests are read lazily on first use and then served from memory.
    """

    def __init__(self, cache_dir: Path | str) -> None:
        super().__init__()
        self.cache_dir = Path(cache_dir)

    def _load_hashes(self, key: str) -> set[str]:
        if key not in self._hashes:
            data = self._read_json(self._path(HASHES_DIR, key), default=[])
            if not isinstance(data, list):
                raise SeedCacheError(f"hash manifest for {key!r} is not a list")
            self._hashes[key] = {str(h) for h in data}
        return self._hashes[key]

    def _store_hashes(self, key: str, hashes: set[str]) -> None:
        self._write_json(self._path(HASHES_DIR, key), sorted(hashes))

    def _load_sizes(self, directory: str) -> dict[str, int]:
        if directory not in self._sizes:
            data = self._read_json(self._path(SIZES_DIR, directory), default={})
            if not isinstance(data, dict):
                raise SeedCacheError(f"size manifest for {directory!r} is not a map")
            self._sizes[directory] = {str(k): int(v) for k, v in data.items()}
        return self._sizes[directory]

    def _store_sizes(self, directory: str, sizes: dict[str, int]) -> None:
        self._write_json(self._path(SIZES_DIR, directory), sizes)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _path(self, kind: str, name: str) -> Path:
        return self.cache_dir / kind / f"{_UNSAFE_CHARS.sub('_', name)}.json"

    @staticmethod
    def _read_json(path: Path, default: object) -> object:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SeedCacheError(f"cannot read seed manifest {path}: {e}") from e

    @staticmethod
    def _write_json(path: Path, data: object) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2, sort_keys=True)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SeedCacheError(f"cannot write seed manifest {path}: {e}") from e
