from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from assetstamp.cli.commands import declarations_cmd, optimize_cmd
from assetstamp.cli.context import CLIContext
from assetstamp.core.errors import AssetStampError
from assetstamp.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetstamp",
        description="Minimize resources, rename them by content hash and rewrite references to them",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Directory relative paths are resolved against (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    optimize_cmd.register(subparsers)
    declarations_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    configure_logging(args.verbose)

    ctx = CLIContext(project_root=args.project_root.expanduser().resolve(), console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except AssetStampError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
