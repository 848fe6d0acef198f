from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping

from assetstamp.application.services.replacement_table import ReplacementTable
from assetstamp.application.services.rewrite_service import ReferenceRewriter, RewriteResult
from assetstamp.core.config import PipelineOptions
from assetstamp.core.errors import AssetIOError, AssetStampError
from assetstamp.domain.capabilities import Minimizer, PassThroughSourceRewriter, SourceRewriter
from assetstamp.domain.models.source import SourceFile
from assetstamp.infrastructure.fileset import FileSet
from assetstamp.infrastructure.minifiers.registry import create_minimizer
from assetstamp.infrastructure.store.layout import StoreLayout
from assetstamp.infrastructure.store.resource_store import FinalizeResult, ResourceStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[dict[str, object]], None]


@dataclass(slots=True)
class PipelineContext:
    """State of one pipeline run, shared by the store and the rewriter."""

    options: PipelineOptions
    layout: StoreLayout
    store: ResourceStore
    sources: list[SourceFile] = field(default_factory=list)
    table: ReplacementTable = field(default_factory=ReplacementTable)
    errors: list[AssetStampError] = field(default_factory=list)


@dataclass(slots=True)
class PipelineReport:
    resources: int
    sources_scanned: int
    sources_updated: int
    written: int
    gzipped: int
    removed: int
    errors: list[str]

    @property
    def ok(self) -> bool:
        return not self.errors


class OptimizePipelineService:
    def __init__(
        self,
        options: PipelineOptions,
        minimizer: Minimizer | None = None,
        language_rewriters: Mapping[str, SourceRewriter] | None = None,
    ) -> None:
        self.options = options
        self.minimizer = minimizer or create_minimizer(options.resource_type)
        if language_rewriters is None:
            language_rewriters = {marker: PassThroughSourceRewriter() for marker in options.source_markers}
        self.language_rewriters = dict(language_rewriters)

    def create_context(self) -> PipelineContext:
        layout = StoreLayout.resolve(
            base_dir=FileSet(self.options.resources).base_dir,
            parent_resource_dir=self.options.parent_resource_dir,
            resource_dir=self.options.resource_dir,
            extension=self.options.extension,
            url_prefix=self.options.url_prefix,
        )
        store = ResourceStore(
            layout,
            self.minimizer,
            hash_algorithm=self.options.hash_algorithm,
            alias_without_extension=self.options.alias_without_extension,
        )
        return PipelineContext(options=self.options, layout=layout, store=store)

    def run(self, progress_callback: ProgressCallback | None = None) -> PipelineReport:
        ctx = self.create_context()

        self._emit(progress_callback, {"event": "stage", "stage": "discover_sources"})
        self.discover_sources(ctx)

        self._emit(progress_callback, {"event": "stage", "stage": "discover_resources"})
        self.discover_resources(ctx, progress_callback)

        self._emit(progress_callback, {"event": "stage", "stage": "build_replacement_table"})
        self.build_replacement_table(ctx)

        self._emit(progress_callback, {"event": "stage", "stage": "rewrite_sources"})
        rewrite = self.rewrite_sources(ctx, progress_callback)

        self._emit(progress_callback, {"event": "stage", "stage": "finalize_resources"})
        final = self.finalize_resources(ctx, progress_callback)

        return PipelineReport(
            resources=len(ctx.store.records),
            sources_scanned=rewrite.scanned,
            sources_updated=rewrite.updated,
            written=final.written,
            gzipped=final.gzipped,
            removed=final.removed,
            errors=[str(exc) for exc in ctx.errors],
        )

    def discover_sources(self, ctx: PipelineContext) -> None:
        logger.debug("Get source file names.")
        by_canonical: dict[str, SourceFile] = {}
        for path in FileSet(self.options.sources).full_paths():
            canonical = path.resolve()
            by_canonical[str(canonical)] = SourceFile(canonical_path=canonical, io_path=path)
        ctx.sources = [by_canonical[key] for key in sorted(by_canonical)]

    def discover_resources(self, ctx: PipelineContext, progress_callback: ProgressCallback | None = None) -> None:
        logger.debug("Get resource files info.")
        paths = sorted(FileSet(self.options.resources).full_paths(), key=lambda p: str(p.resolve()))
        for path in paths:
            try:
                record = ctx.store.ingest_file(path)
            except AssetStampError as exc:
                self._handle_error(ctx, exc, progress_callback)
                continue
            self._emit(
                progress_callback,
                {"event": "resource_stored", "path": str(path), "reference": record.hashed_reference},
            )

    def build_replacement_table(self, ctx: PipelineContext) -> None:
        logger.debug("Prepare place holders.")
        ctx.table = ReplacementTable.from_records(ctx.store.records)

    def rewrite_sources(
        self, ctx: PipelineContext, progress_callback: ProgressCallback | None = None
    ) -> RewriteResult:
        rewriter = ReferenceRewriter(
            ctx.store,
            ctx.table,
            preserve_mtime=self.options.preserve_mtime,
            language_rewriters=self.language_rewriters,
        )
        return rewriter.rewrite_all(
            ctx.sources,
            on_error=lambda exc: self._handle_error(ctx, exc, progress_callback),
        )

    def finalize_resources(
        self, ctx: PipelineContext, progress_callback: ProgressCallback | None = None
    ) -> FinalizeResult:
        return ctx.store.finalize(
            preserve_mtime=self.options.preserve_mtime,
            gzip=self.options.gzip,
            on_error=lambda exc: self._handle_error(ctx, exc, progress_callback),
        )

    def _handle_error(
        self,
        ctx: PipelineContext,
        exc: AssetStampError,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        # Only I/O failures may be skipped; scope, lookup and parse errors always abort.
        if self.options.halt_on_error or not isinstance(exc, AssetIOError):
            raise exc
        logger.error("%s", exc)
        ctx.errors.append(exc)
        self._emit(progress_callback, {"event": "error", "path": str(exc.path or ""), "error": str(exc)})

    @staticmethod
    def _emit(callback: ProgressCallback | None, payload: dict[str, object]) -> None:
        if callback is not None:
            callback(payload)
