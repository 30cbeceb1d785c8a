"""Seed cache interface for StormRocks.

The seed cache is what makes seeding idempotent across restarts. It keeps two
manifests, each guarded by its own lock in every adapter:

- **Applied hashes**: cache key (``<ProductName><Collection>``) -> set of
  content hashes of seed payloads already ingested.
- **File sizes**: seed directory name -> (relative file name -> byte size),
  used to decide whether a seed file has to be read again.

Adapters keep both manifests in memory for the life of the process and write
them through to durable storage on every ``record_*`` call.
"""

import abc
from collections.abc import Iterable, Mapping


class SeedCacheError(Exception):
    """Raised when a manifest cannot be loaded or persisted."""


class SeedCache(abc.ABC):
    """Contract for the seeding manifests."""

    @abc.abstractmethod
    def applied_hashes(self, key: str) -> set[str]:
        """Return a copy of the hashes recorded under ``key``.

        Raises:
            SeedCacheError: If the persisted manifest cannot be read.
        """

    @abc.abstractmethod
    def record_hashes(self, key: str, hashes: Iterable[str]) -> None:
        """Add ``hashes`` to the set recorded under ``key`` and persist it.

        Raises:
            SeedCacheError: If the manifest cannot be written.
        """

    @abc.abstractmethod
    def file_sizes(self, directory: str) -> dict[str, int]:
        """Return a copy of the byte-size manifest for ``directory``.

        Raises:
            SeedCacheError: If the persisted manifest cannot be read.
        """

    @abc.abstractmethod
    def record_file_sizes(self, directory: str, sizes: Mapping[str, int]) -> None:
        """Replace the byte-size manifest for ``directory`` and persist it.

        Raises:
            SeedCacheError: If the manifest cannot be written.
        """
