from __future__ import annotations

import gzip
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from assetstamp.core.errors import AssetIOError, AssetStampError, UnknownResourceError
from assetstamp.core.files import (
    copy_permissions,
    get_mtime_ns,
    remove_if_exists,
    set_mtime_ns,
    write_bytes_atomic,
)
from assetstamp.core.hashing import DEFAULT_HASH_ALGORITHM, compute_bytes_digest
from assetstamp.domain.capabilities import Minimizer
from assetstamp.domain.models.resource import RecordKey, ResourceRecord
from assetstamp.infrastructure.store.layout import StoreLayout

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[AssetStampError], None]

GZIP_LEVEL = 9


def _raise(exc: AssetStampError) -> None:
    raise exc


@dataclass(slots=True)
class FinalizeResult:
    written: int = 0
    gzipped: int = 0
    removed: int = 0


class ResourceStore:
    """Content-addressable store for optimized resources of one run.

    Every ingested resource gets the file name ``{digest}.{ordinal}{extension}``
    where the ordinal counts earlier records with the same digest, so hashed
    paths are unique within a run even for byte identical resources.
    """

    def __init__(
        self,
        layout: StoreLayout,
        minimizer: Minimizer,
        *,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
        alias_without_extension: bool = False,
    ) -> None:
        self.layout = layout
        self.minimizer = minimizer
        self.hash_algorithm = hash_algorithm
        self.alias_without_extension = alias_without_extension
        self.records: list[ResourceRecord] = []
        self._ordinals: dict[str, int] = {}

    def ingest(
        self,
        raw_content: bytes,
        source_path: Path | None = None,
        mtime_sources: Path | Sequence[Path] | None = None,
        key: RecordKey | None = None,
    ) -> ResourceRecord:
        if source_path is not None:
            logger.info("Minimizing '%s'.", source_path)

        optimized = self.minimizer.minimize(raw_content, source_path)
        digest = compute_bytes_digest(optimized, self.hash_algorithm)
        ordinal = self._ordinals.get(digest, 0)

        hashed_path = self.layout.hashed_path_for(digest, ordinal)
        hashed_reference = self.layout.reference_for(hashed_path)

        source_reference: str | None = None
        alternative_reference: str | None = None
        if source_path is not None:
            source_reference = self.layout.reference_for(source_path)
            alternative_reference = self._alternative_reference(source_reference)

        if mtime_sources is None:
            mtime_sources = source_path
        if mtime_sources is None:
            raise ValueError("A combined resource needs the paths of its parts to derive its mtime.")
        mod_time_ns = self._max_mtime(mtime_sources, key)

        self._ordinals[digest] = ordinal + 1
        record = ResourceRecord(
            raw_content=raw_content,
            optimized_content=optimized,
            digest=digest,
            ordinal=ordinal,
            hashed_path=hashed_path,
            hashed_reference=hashed_reference,
            mod_time_ns=mod_time_ns,
            source_path=source_path,
            source_reference=source_reference,
            alternative_reference=alternative_reference,
        )
        self.records.append(record)
        logger.debug("Stored %s as %s", source_reference or "<combined>", hashed_reference)
        return record

    def ingest_file(self, path: Path) -> ResourceRecord:
        full_path = path.resolve()
        try:
            raw = full_path.read_bytes()
        except OSError as exc:
            raise AssetIOError(f"Unable to read file '{full_path}': {exc}", full_path) from exc
        return self.ingest(raw, full_path, full_path)

    def ingest_combined(
        self,
        raw_content: bytes,
        parts: Sequence[Path],
        key: RecordKey = RecordKey.SOURCE_PATH,
    ) -> ResourceRecord:
        return self.ingest(raw_content, None, list(parts), key)

    def get_by_source_path(self, path: Path) -> ResourceRecord:
        wanted = Path(path)
        for record in self.records:
            if record.source_path == wanted:
                return record
        raise UnknownResourceError(f"Unknown resource file '{wanted}'.", wanted)

    def get_by_hashed_path(self, path: Path) -> ResourceRecord:
        wanted = Path(path)
        for record in self.records:
            if record.hashed_path == wanted:
                return record
        raise UnknownResourceError(f"Unknown resource file '{wanted}'.", wanted)

    def referenced_in(self, text: str) -> list[ResourceRecord]:
        return [
            record
            for record in self.records
            if record.source_reference is not None and record.source_reference in text
        ]

    def hashed_referenced_in(self, text: str) -> list[ResourceRecord]:
        return [record for record in self.records if record.hashed_reference in text]

    def resolve_reference(self, base_url: str, name: str) -> str:
        """Return the hashed reference for ``base_url/name`` or ``name`` unchanged."""
        wanted = f"{base_url}/{name}{self.layout.extension}"
        for record in self.records:
            if record.source_reference == wanted:
                return record.hashed_reference
        return name

    def finalize(
        self,
        *,
        preserve_mtime: bool = False,
        gzip: bool = False,
        on_error: ErrorHandler | None = None,
    ) -> FinalizeResult:
        handle = on_error or _raise
        result = FinalizeResult()

        logger.info("Saving minimized files.")
        written: list[ResourceRecord] = []
        for record in self.records:
            try:
                self.write_record(record, preserve_mtime=preserve_mtime)
            except AssetStampError as exc:
                handle(exc)
                continue
            written.append(record)
            result.written += 1

        if gzip:
            logger.info("Gzip compressing files.")
            for record in written:
                try:
                    if self.gzip_record(record, preserve_mtime=preserve_mtime):
                        result.gzipped += 1
                except AssetStampError as exc:
                    handle(exc)

        logger.info("Removing resource files.")
        for record in written:
            if record.source_path is None:
                continue
            try:
                if self.remove_original(record):
                    result.removed += 1
            except AssetStampError as exc:
                handle(exc)

        return result

    def write_record(self, record: ResourceRecord, *, preserve_mtime: bool = False) -> None:
        # Raises PathScopeError before anything is written.
        self.layout.reference_for(record.hashed_path)

        try:
            write_bytes_atomic(record.hashed_path, record.optimized_content)
        except OSError as exc:
            raise AssetIOError(f"Unable to write to file '{record.hashed_path}': {exc}", record.hashed_path) from exc

        if preserve_mtime:
            try:
                set_mtime_ns(record.hashed_path, record.mod_time_ns)
            except OSError as exc:
                raise AssetIOError(
                    f"Unable to set mtime of file '{record.hashed_path}': {exc}", record.hashed_path
                ) from exc

    def gzip_record(self, record: ResourceRecord, *, preserve_mtime: bool = False) -> bool:
        gz_path = record.gzip_path
        logger.debug("Gzip compressing file '%s' to '%s'.", record.hashed_path, gz_path)

        compressed = gzip.compress(record.optimized_content, compresslevel=GZIP_LEVEL, mtime=0)
        try:
            if len(compressed) >= len(record.optimized_content):
                logger.debug("Skipping '%s': compression does not reduce size.", gz_path)
                remove_if_exists(gz_path)
                return False

            write_bytes_atomic(gz_path, compressed)
            set_mtime_ns(gz_path, get_mtime_ns(record.hashed_path))
            if preserve_mtime:
                copy_permissions(gz_path, record.hashed_path)
        except OSError as exc:
            raise AssetIOError(f"Unable to write to file '{gz_path}': {exc}", gz_path) from exc
        return True

    def remove_original(self, record: ResourceRecord) -> bool:
        if record.source_path is None:
            return False
        if record.source_path == record.hashed_path:
            # A hashed file fed back in as input is its own output.
            return False
        logger.info("Removing '%s'.", record.source_path)
        try:
            return remove_if_exists(record.source_path)
        except OSError as exc:
            raise AssetIOError(f"Unable to remove file '{record.source_path}': {exc}", record.source_path) from exc

    def _alternative_reference(self, source_reference: str) -> str | None:
        ext = self.layout.extension
        if not self.alias_without_extension or not ext or not source_reference.endswith(ext):
            return None
        return source_reference[: -len(ext)]

    def _max_mtime(self, sources: Path | Sequence[Path], key: RecordKey | None) -> int:
        if isinstance(sources, (str, Path)):
            path = Path(sources)
            try:
                return get_mtime_ns(path)
            except OSError as exc:
                raise AssetIOError(f"Unable to get mtime of file '{path}': {exc}", path) from exc

        if key is None:
            raise ValueError("A record key is required to look up the mtime of stored parts.")

        times: list[int] = []
        for part in sources:
            if key is RecordKey.HASHED_PATH:
                record = self.get_by_hashed_path(part)
            elif key is RecordKey.SOURCE_PATH:
                record = self.get_by_source_path(part)
            else:
                raise ValueError(f"Unsupported record key: {key!r}")
            times.append(record.mod_time_ns)

        if not times:
            raise ValueError("A combined resource needs at least one part.")
        return max(times)
