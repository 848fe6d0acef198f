from __future__ import annotations

import argparse
from pathlib import Path

from rich.table import Table

from assetstamp.cli.context import CLIContext
from assetstamp.core.errors import AssetIOError
from assetstamp.core.files import read_text_lossless
from assetstamp.infrastructure.parsers.php_declarations import scan_declarations


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("declarations", help="List namespace and class declarations of PHP files")
    parser.add_argument("paths", nargs="+", help="PHP source files")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    table = Table(title="Declarations")
    table.add_column("File", overflow="fold")
    table.add_column("Line", justify="right")
    table.add_column("Namespace", overflow="fold")
    table.add_column("Class")

    for raw in args.paths:
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = ctx.project_root / path
        try:
            text = read_text_lossless(path)
        except OSError as exc:
            raise AssetIOError(f"Unable to read file '{path}': {exc}", path) from exc

        for line, declaration in sorted(scan_declarations(text, path).items()):
            table.add_row(str(raw), str(line), declaration.namespace or "-", declaration.class_name)

    ctx.console.print(table)
    return 0
