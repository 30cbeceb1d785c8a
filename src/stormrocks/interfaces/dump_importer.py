"""Interface for bulk dump importers.

A dump importer loads an exported collection dump (a JSON file produced by an
external database tool) straight into the backing database. Seeding falls
back to it when a collection has no on-disk seed directory. Imports are
best-effort: callers log failures and carry on.
"""

import abc
from pathlib import Path

# pylint: disable=too-few-public-methods


class DumpImportError(Exception):
    """Raised when a dump file could not be imported."""


class DumpImporter(abc.ABC):
    """Contract for importing a collection dump file."""

    @abc.abstractmethod
    def import_dump(self, collection: str, dump_file: Path) -> None:
        """Import ``dump_file`` into ``collection``.

        Raises:
            DumpImportError: If the import fails.
        """
