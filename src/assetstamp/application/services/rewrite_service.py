from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

from assetstamp.application.services.replacement_table import ReplacementTable
from assetstamp.core.errors import AssetIOError, AssetStampError
from assetstamp.core.files import get_mtime_ns, read_text_lossless, set_mtime_ns, write_text_lossless
from assetstamp.domain.capabilities import PassThroughSourceRewriter, SourceRewriter
from assetstamp.domain.models.source import SourceFile
from assetstamp.infrastructure.parsers.php_declarations import PHP_MARKER, scan_declarations
from assetstamp.infrastructure.store.resource_store import ResourceStore

logger = logging.getLogger(__name__)


def _raise(exc: AssetStampError) -> None:
    raise exc


@dataclass(slots=True)
class RewriteResult:
    scanned: int = 0
    updated: int = 0


class ReferenceRewriter:
    """Replaces references to original resources in source files with hashed references."""

    def __init__(
        self,
        store: ResourceStore,
        table: ReplacementTable,
        *,
        preserve_mtime: bool = False,
        language_rewriters: Mapping[str, SourceRewriter] | None = None,
    ) -> None:
        self.store = store
        self.table = table
        self.preserve_mtime = preserve_mtime
        if language_rewriters is None:
            language_rewriters = {PHP_MARKER: PassThroughSourceRewriter()}
        self.language_rewriters = dict(language_rewriters)

    def rewrite_all(
        self,
        sources: Sequence[SourceFile],
        on_error: Callable[[AssetStampError], None] | None = None,
    ) -> RewriteResult:
        handle = on_error or _raise
        result = RewriteResult()

        logger.debug("Replace references to resource files with references to optimized resource files.")
        for source in sorted(sources):
            result.scanned += 1
            try:
                if self.rewrite_file(source.io_path):
                    result.updated += 1
            except AssetStampError as exc:
                handle(exc)

        return result

    def rewrite_file(self, path: Path) -> bool:
        logger.debug("Processing %s.", path)

        try:
            content = read_text_lossless(path)
        except OSError as exc:
            raise AssetIOError(f"Unable to read file '{path}': {exc}", path) from exc

        new_content = self.rewrite_text(path, content)
        if new_content == content:
            return False

        mtime_ns: int | None = None
        if self.preserve_mtime:
            mtime_ns = self.max_modification_time(path, new_content)

        try:
            write_text_lossless(path, new_content)
        except OSError as exc:
            raise AssetIOError(f"Updating file '{path}' failed: {exc}", path) from exc
        logger.info("Updated file '%s'.", path)

        if mtime_ns is not None:
            try:
                set_mtime_ns(path, mtime_ns)
            except OSError as exc:
                raise AssetIOError(f"Unable to set mtime for file '{path}': {exc}", path) from exc

        return True

    def rewrite_text(self, path: Path, content: str) -> str:
        for marker, rewriter in self.language_rewriters.items():
            if content.startswith(marker):
                declarations = scan_declarations(content, path) if marker == PHP_MARKER else {}
                content = rewriter.rewrite(path, content, declarations)
                break
        return self.table.apply(content)

    def max_modification_time(self, path: Path, content: str) -> int:
        """Latest mtime of ``path`` and of every hashed resource ``content`` refers to."""
        try:
            times = [get_mtime_ns(path)]
        except OSError as exc:
            raise AssetIOError(f"Unable to get mtime of file '{path}': {exc}", path) from exc

        for record in self.store.hashed_referenced_in(content):
            times.append(record.mod_time_ns)

        return max(times)
