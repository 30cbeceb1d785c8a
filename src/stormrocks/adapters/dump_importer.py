"""Dump importer adapters.

`CommandDumpImporter` shells out to an external import tool configured as a
command template (``STORMROCKS_DUMP_IMPORT_COMMAND``), for example::

    mongoimport --db stormrocks --collection {collection} --file {file} --jsonArray

The template is split with `shlex` and the placeholders are substituted per
argument, so collection names and paths are never interpreted by a shell.
"""

import logging
import re
import shlex
import subprocess
from pathlib import Path

from stormrocks.interfaces.dump_importer import DumpImporter, DumpImportError

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{(?:collection|file)\}")

# pylint: disable=too-few-public-methods


class CommandDumpImporter(DumpImporter):
    """Import dumps by running an external command."""

    def __init__(self, template: str, *, timeout: float | None = 600.0) -> None:
        if not template.strip():
            raise ValueError("dump import command template must not be empty")
        self.template = template
        self.timeout = timeout

    def command_for(self, collection: str, dump_file: Path) -> list[str]:
        """Render the argument vector for one import.

        Only the `{collection}` and `{file}` placeholders are substituted; any
        other braces (shell snippets, JSON arguments) pass through verbatim.
        """
        values = {"{collection}": collection, "{file}": str(dump_file)}
        return [
            PLACEHOLDER.sub(lambda m: values[m.group(0)], arg)
            for arg in shlex.split(self.template)
        ]

    def import_dump(self, collection: str, dump_file: Path) -> None:
        argv = self.command_for(collection, dump_file)
        logger.debug("Running dump import: %s", shlex.join(argv))
        try:
            completed = subprocess.run(
                argv,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise DumpImportError(
                f"import of {dump_file} into {collection} failed: {e}"
            ) from e
        if completed.stderr:
            logger.debug("Dump import output: %s", completed.stderr.strip())


class NullDumpImporter(DumpImporter):
    """Importer used when no import command is configured; always fails."""

    def import_dump(self, collection: str, dump_file: Path) -> None:
        raise DumpImportError(
            f"no dump import command configured; cannot import {dump_file} "
            f"into {collection}"
        )
