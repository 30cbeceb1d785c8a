"""Bootstrap pipeline: seeding collections from embedded and on-disk payloads.

Each collection is seeded once per process start by `Seeder.bootstrap`:

1. Skip entirely (but still open the ready gate) when seeding is disabled.
2. Count the rows already present; a counting error counts as one row so a
   transient failure never triggers a destructive re-seed.
3. Load the applied-hash manifest; failure aborts seeding for the collection.
4. Gather payloads from ``<seed_root>/<directory>/dist/**/*.json`` (read
   concurrently, one task per file) and from the embedded base64 payload
   shipped in `stormrocks.seeds`.
5. Skip payloads whose md5 is already recorded, unless the collection was
   empty (their ``AlwaysUpdate`` records are still applied); decode the rest
   and record their hashes.
6. Persist the applied-hash manifest.
7. Apply each record: new rows and ``AlwaysUpdate`` rows are deleted
   (``DeleteRow``) or checked against the deployment gates and saved.
8. Without per-record failures, fall back to a dump import when the
   collection has no seed directory.
9. Open the ready gate whatever happened; errors are logged, never raised.
"""

from __future__ import annotations

import base64
import binascii
import enum
import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from typing import TYPE_CHECKING

from stormrocks.config import AppSettings
from stormrocks.domain.utils import parse_bool
from stormrocks.interfaces.document_store import DocumentStoreError
from stormrocks.interfaces.dump_importer import DumpImportError
from stormrocks.interfaces.seed_cache import SeedCacheError

if TYPE_CHECKING:
    from stormrocks.domain.model import BootstrapMeta, Entity
    from stormrocks.interfaces.dump_importer import DumpImporter
    from stormrocks.interfaces.seed_cache import SeedCache
    from stormrocks.service_layer.collections import EntityCollection

logger = logging.getLogger(__name__)

SEEDS_PACKAGE = "stormrocks.seeds"  # pragma: no mutate
EMBEDDED_SUFFIX = ".b64"  # pragma: no mutate
DIST_DIR = "dist"  # pragma: no mutate
DUMP_DIR = "mongoDump"  # pragma: no mutate
DUMP_SUFFIX = "Dump.json"  # pragma: no mutate
JSON_SUFFIX = ".json"  # pragma: no mutate

VERSION_MISMATCH = "Version Mismatch"
DOMAIN_MISMATCH = "FQDN Mismatch With Domain"
DOMAINS_MISMATCH = "FQDN Mismatch With Domains"
PRODUCT_NAME_MISMATCH = "ProductName does not Match"
PRODUCT_NAMES_MISMATCH = "ProductNames does not Match Product"
RELEASE_MODE_MISMATCH = "ReleaseMode does not match"


class SeedState(enum.Enum):
    """Seeding progress of one collection."""

    NOT_STARTED = "not started"
    RUNNING = "running"
    READY = "ready"


@dataclass(slots=True)
class SeedReport:  # pylint: disable=too-many-instance-attributes
    """Outcome of one bootstrap run.

    Attributes:
        collection: Collection name.
        existing_count: Rows present before seeding (1 when counting failed).
        directory_found: Whether the on-disk seed directory exists.
        payloads: Payloads gathered from both sources.
        skipped_payloads: Payloads skipped as already applied.
        hashes: Content hashes recorded during this run.
        candidates: Records decoded from the payloads.
        applied: Records saved, or already present without override.
        skipped: Record id -> gate reasons for records left out.
        failures: Record ids whose save or delete failed.
        deleted: Record ids deleted on request.
        aborted: Why seeding stopped early, if it did.
        dump_imported: Whether a dump import ran successfully.
    """

    collection: str
    existing_count: int = 0
    directory_found: bool = False
    payloads: int = 0
    skipped_payloads: int = 0
    hashes: list[str] = field(default_factory=list)
    candidates: int = 0
    applied: int = 0
    skipped: dict[str, list[str]] = field(default_factory=dict)
    failures: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    aborted: str | None = None
    dump_imported: bool = False

    @property
    def ok(self) -> bool:
        """True when the run completed without failures."""
        return self.aborted is None and not self.failures


def content_hash(payload: bytes) -> str:
    """md5 hex digest identifying a seed payload."""
    return hashlib.md5(payload, usedforsecurity=False).hexdigest()


def embedded_payload(directory: str) -> bytes | None:
    """Decode the embedded seed payload for ``directory``, if one ships.

    Raises:
        ValueError: If the packaged payload is not valid base64.
    """
    resource = files(SEEDS_PACKAGE).joinpath(f"{directory}{EMBEDDED_SUFFIX}")
    if not resource.is_file():
        return None
    encoded = resource.read_text(encoding="ascii").strip()
    if not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"embedded seed payload {directory!r} is not base64") from e


def _always_update(record: dict) -> bool:
    meta = record.get("BootstrapMeta")
    if not isinstance(meta, dict):
        return False
    try:
        return parse_bool(meta.get("AlwaysUpdate", False))
    except ValueError:
        return False


def gate_reasons(meta: BootstrapMeta | None, settings: AppSettings) -> list[str]:
    """Deployment-scope gates a record fails, in evaluation order."""
    if meta is None:
        return []
    reasons = []
    if 0 < meta.version <= settings.version_numeric:
        reasons.append(VERSION_MISMATCH)
    if meta.domain and meta.domain != settings.server_fqdn:
        reasons.append(DOMAIN_MISMATCH)
    if meta.domains and settings.server_fqdn not in meta.domains:
        reasons.append(DOMAINS_MISMATCH)
    if meta.product_name and meta.product_name != settings.product_name:
        reasons.append(PRODUCT_NAME_MISMATCH)
    if meta.product_names and settings.product_name not in meta.product_names:
        reasons.append(PRODUCT_NAMES_MISMATCH)
    if meta.release_mode and meta.release_mode != settings.release_mode:
        reasons.append(RELEASE_MODE_MISMATCH)
    return reasons


class Seeder:
    """Runs the bootstrap pipeline for entity collections.

    Args:
        settings: Seeding switch, seed root and deployment scope.
        seed_cache: Applied-hash and byte-size manifests.
        dump_importer: Fallback importer for collections without seed files.
        payload_loader: Returns the embedded payload for a seed directory.
        max_workers: Thread count for concurrent seed-file reads.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        settings: AppSettings,
        seed_cache: SeedCache,
        dump_importer: DumpImporter,
        *,
        payload_loader: Callable[[str], bytes | None] = embedded_payload,
        max_workers: int | None = None,
    ):
        self.settings = settings
        self.seed_cache = seed_cache
        self.dump_importer = dump_importer
        self.payload_loader = payload_loader
        self.max_workers = max_workers
        self._states: dict[str, SeedState] = {}
        self._lock = threading.Lock()

    def state(self, collection: str) -> SeedState:
        with self._lock:
            return self._states.get(collection, SeedState.NOT_STARTED)

    # --------------------------------------------------------------------- #
    # Pipeline
    # --------------------------------------------------------------------- #

    def bootstrap(self, collection: EntityCollection) -> SeedReport:
        """Seed ``collection`` and open its ready gate.

        Never raises for seeding problems; they are logged and reported.
        """
        report = SeedReport(collection=collection.name)
        with self._lock:
            if self._states.get(collection.name) is SeedState.RUNNING:
                report.aborted = "already running"
                return report
            self._states[collection.name] = SeedState.RUNNING

        started = time.perf_counter()
        try:
            if self.settings.bootstrap_data:
                self._run(collection, report)
            else:
                report.aborted = "seeding disabled"
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.exception("Failed to bootstrap data for %s", collection.name)
            report.aborted = f"unexpected error: {e}"
        finally:
            collection.mark_ready()
            with self._lock:
                self._states[collection.name] = SeedState.READY
            logger.debug(
                "Bootstrapping of %s took %.3fs",
                collection.name,
                time.perf_counter() - started,
            )
        return report

    def _run(self, collection: EntityCollection, report: SeedReport) -> None:
        name = collection.name
        directory = collection.entity_cls.SEED_DIRECTORY
        cache_key = f"{self.settings.product_name}{name}"

        try:
            report.existing_count = collection.count(wait=False)
        except DocumentStoreError as e:
            logger.warning("Could not count %s, assuming it is not empty: %s", name, e)
            report.existing_count = 1

        try:
            applied_hashes = self.seed_cache.applied_hashes(cache_key)
        except SeedCacheError as e:
            logger.error("Failed to bootstrap data for %s due to caching issue: %s", name, e)  # fmt: skip # pylint: disable=line-too-long
            report.aborted = f"hash manifest: {e}"
            return

        try:
            payloads, report.directory_found = self.read_seed_directory(
                directory, report.existing_count
            )
            if (embedded := self.payload_loader(directory)) is not None:
                payloads.append(embedded)
        except (OSError, SeedCacheError, ValueError) as e:
            logger.error("Failed to bootstrap data for %s: %s", name, e)
            report.aborted = f"seed payloads: {e}"
            return
        report.payloads = len(payloads)

        records = self._decode_payloads(name, payloads, applied_hashes, report)

        try:
            self.seed_cache.record_hashes(cache_key, report.hashes)
        except SeedCacheError as e:
            logger.error("Failed to persist the hash manifest for %s: %s", name, e)

        report.candidates = len(records)
        logger.info("Total count of records attempting %s: %d", name, len(records))
        for record in records:
            self._apply(collection, record, report)

        if report.failures:
            logger.error("FAILED to bootstrap %s", name)
            return

        dump_ok = True
        if not report.directory_found:
            dump_ok = self._import_dump(collection, report)
        if dump_ok:
            logger.info("Successfully bootstrapped %s", name)
            if report.applied != report.candidates:
                logger.warning(
                    "%s counts differ between the seed data and what was applied, "
                    "please inspect the data (applied=%d, candidates=%d)",
                    name,
                    report.applied,
                    report.candidates,
                )

    # --------------------------------------------------------------------- #
    # Payload gathering
    # --------------------------------------------------------------------- #

    def read_seed_directory(
        self, directory: str, collection_count: int
    ) -> tuple[list[bytes], bool]:
        """Read the seed files of ``directory`` that need (re)reading.

        A ``.json`` file under ``<seed_root>/<directory>/dist`` is read when the
        collection is empty, when the byte-size manifest does not list it, or
        when its size changed. The manifest is updated for every file and
        persisted after the walk.

        Returns:
            The file contents (ordered by path) and whether the directory exists.

        Raises:
            OSError: If the directory cannot be walked.
            SeedCacheError: If the byte-size manifest cannot be loaded or saved.
        """
        root = self.settings.seed_root / directory / DIST_DIR
        if not root.is_dir():
            return [], False

        sizes = self.seed_cache.file_sizes(directory)
        to_read: list[Path] = []
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            size = path.stat().st_size
            cached = sizes.get(relative)
            read = cached is None or collection_count == 0
            if cached is not None and cached != size:
                logger.info(
                    "%s is being read because its size changed (cached: %d, new: %d)",
                    relative,
                    cached,
                    size,
                )
                read = True
            sizes[relative] = size
            if read and path.suffix == JSON_SUFFIX:
                to_read.append(path)

        contents = self._read_concurrently(to_read)
        self.seed_cache.record_file_sizes(directory, sizes)
        return [contents[path] for path in to_read if path in contents], True

    def _read_concurrently(self, paths: Iterable[Path]) -> dict[Path, bytes]:
        """Read every path on its own worker into a lock-guarded accumulator."""
        paths = list(paths)
        contents: dict[Path, bytes] = {}
        lock = threading.Lock()

        def _read(path: Path) -> None:
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning("Could not read seed file %s: %s", path, e)
                return
            with lock:
                contents[path] = data

        if paths:
            workers = self.max_workers or len(paths)
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="seed-read"
            ) as pool:
                list(pool.map(_read, paths))
        return contents

    def _decode_payloads(
        self,
        name: str,
        payloads: list[bytes],
        applied_hashes: set[str],
        report: SeedReport,
    ) -> list[dict]:
        records: list[dict] = []
        for payload in payloads:
            digest = content_hash(payload)
            known = digest in applied_hashes and report.existing_count != 0
            try:
                decoded = json.loads(payload)
                if not isinstance(decoded, list) or not all(
                    isinstance(item, dict) for item in decoded
                ):
                    raise ValueError("expected a JSON array of objects")
            except ValueError as e:
                if not known:
                    logger.error("Failed to bootstrap data for %s: %s", name, e)
                else:
                    report.skipped_payloads += 1
                continue
            if known:
                # only AlwaysUpdate rows are reapplied from an applied payload
                report.skipped_payloads += 1
                records.extend(r for r in decoded if _always_update(r))
                continue
            applied_hashes.add(digest)
            report.hashes.append(digest)
            records.extend(decoded)
        return records

    # --------------------------------------------------------------------- #
    # Record application
    # --------------------------------------------------------------------- #

    def _apply(
        self, collection: EntityCollection, record: dict, report: SeedReport
    ) -> None:
        try:
            entity: Entity = collection.entity_cls.from_document(record)
        except (TypeError, ValueError) as e:
            logger.error("Failed to decode a %s seed record: %s", collection.name, e)
            report.failures.append(str(record.get("Id", "")))
            return
        if not entity.id:
            entity.id = collection.id_generator.new_id()
        meta = entity.bootstrap_meta

        try:
            existing = collection.get(entity.id, wait=False)
        except DocumentStoreError:
            existing = None

        if existing is not None and not (meta is not None and meta.always_update):
            report.applied += 1
            return

        if meta is not None and meta.delete_row:
            try:
                collection.delete(entity.id)
                report.deleted.append(entity.id)
            except DocumentStoreError as e:
                logger.error("Failed to delete data for %s: %s %s", collection.name, entity.id, e)  # fmt: skip # pylint: disable=line-too-long
                report.failures.append(entity.id)
            return

        if reasons := gate_reasons(meta, self.settings):
            report.skipped[entity.id] = reasons
            if self.settings.is_development:
                logger.info(
                    "%s skipped a row on %s because of %s",
                    collection.name,
                    entity.id,
                    ", ".join(reasons),
                )
            return

        report.applied += 1
        try:
            collection.save(entity)
        except DocumentStoreError as e:
            logger.error("Failed to bootstrap data for %s: %s %s", collection.name, entity.id, e)  # fmt: skip # pylint: disable=line-too-long
            report.failures.append(entity.id)

    def _import_dump(
        self, collection: EntityCollection, report: SeedReport
    ) -> bool:
        """Best-effort dump import; returns False only when an import failed."""
        directory = collection.entity_cls.SEED_DIRECTORY
        dump_file = (
            self.settings.seed_root / directory / DUMP_DIR / f"{directory}{DUMP_SUFFIX}"
        )
        if not dump_file.is_file():
            return True
        try:
            self.dump_importer.import_dump(collection.name, dump_file)
        except DumpImportError as e:
            logger.warning("Dump import for %s failed: %s", collection.name, e)
            return False
        report.dump_imported = True
        logger.info("Imported %s from %s", collection.name, dump_file)
        return True
