from __future__ import annotations

import argparse
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from assetstamp.application.services.pipeline_service import OptimizePipelineService
from assetstamp.cli.context import CLIContext
from assetstamp.core.config import DEFAULT_EXTENSIONS, RESOURCE_TYPES, FileSetSpec, load_options


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "optimize",
        help="Minimize resources, store them under hashed names and rewrite references in sources",
    )
    parser.add_argument("--type", dest="resource_type", choices=RESOURCE_TYPES, required=True)
    parser.add_argument("--resources", required=True, help="Base dir of the resource files")
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Glob for resource files, relative to --resources (repeatable; default: **/*<extension>)",
    )
    parser.add_argument("--exclude", action="append", default=[], help="Glob for resource files to skip")
    parser.add_argument("--sources", required=True, help="Base dir of the source files to rewrite")
    parser.add_argument(
        "--source-include",
        action="append",
        default=None,
        help="Glob for source files, relative to --sources (repeatable; default: **/*)",
    )
    parser.add_argument("--source-exclude", action="append", default=[], help="Glob for source files to skip")
    parser.add_argument(
        "--parent-resource-dir",
        required=True,
        help="Dir that references are relative to, relative to --resources",
    )
    parser.add_argument(
        "--resource-dir",
        required=True,
        help="Dir for the hashed files, relative to --parent-resource-dir",
    )
    parser.add_argument("--extension", default=None, help="Suffix of hashed file names (default per --type)")
    parser.add_argument("--gzip", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--preserve-mtime", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--halt-on-error", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--hash-algorithm", default=None, help="hashlib algorithm name (default: md5)")
    parser.add_argument("--url-prefix", default="/", help="Prefix of references in sources (default: /)")
    parser.add_argument(
        "--alias-without-extension",
        action="store_true",
        help="Also rewrite references written without the extension",
    )
    parser.set_defaults(handler=run)


def _default_extension(args: argparse.Namespace) -> str:
    if args.extension is not None:
        return args.extension
    return DEFAULT_EXTENSIONS[args.resource_type]


def _resolve(ctx: CLIContext, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else ctx.project_root / path


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    options = load_options(
        resource_type=args.resource_type,
        resources=FileSetSpec(
            base_dir=_resolve(ctx, args.resources),
            includes=tuple(args.include or [f"**/*{_default_extension(args)}"]),
            excludes=tuple(args.exclude),
        ),
        sources=FileSetSpec(
            base_dir=_resolve(ctx, args.sources),
            includes=tuple(args.source_include or ["**/*"]),
            excludes=tuple(args.source_exclude),
        ),
        parent_resource_dir=args.parent_resource_dir,
        resource_dir=args.resource_dir,
        extension=args.extension,
        preserve_mtime=args.preserve_mtime,
        gzip=args.gzip,
        halt_on_error=args.halt_on_error,
        hash_algorithm=args.hash_algorithm,
        url_prefix=args.url_prefix,
        alias_without_extension=args.alias_without_extension,
    )

    service = OptimizePipelineService(options)

    def _on_progress(event: dict[str, object]) -> None:
        kind = event.get("event")
        if kind == "resource_stored":
            ctx.console.print(
                f"[dim]stored[/dim] {escape(str(event.get('path', '')))} -> {escape(str(event.get('reference', '')))}"
            )
        elif kind == "error":
            ctx.console.print(f"[red]error[/red] {escape(str(event.get('error', '')))}")

    with ctx.console.status("Optimizing resources..."):
        report = service.run(progress_callback=_on_progress)

    summary = Table(title="Optimize Summary")
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Resources stored", str(report.resources))
    summary.add_row("Hashed files written", str(report.written))
    summary.add_row("Gzip files written", str(report.gzipped))
    summary.add_row("Originals removed", str(report.removed))
    summary.add_row("Sources scanned", str(report.sources_scanned))
    summary.add_row("Sources updated", str(report.sources_updated))
    summary.add_row("Errors", str(len(report.errors)))
    ctx.console.print(summary)

    if report.errors:
        ctx.console.print(Panel.fit("\n".join(escape(err) for err in report.errors), title="Errors"))

    return 0 if report.ok else 1
