from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def configure_logging(verbosity: int = 0, console: Console | None = None) -> None:
    """Route the ``assetstamp`` log tree through a rich handler.

    ``verbosity`` follows the ``-v`` count of the CLI: 0 shows warnings and
    errors, 1 adds info messages, 2 or more adds the verbose (debug) level.
    """

    level = _LEVELS.get(verbosity, logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbosity >= 2,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root_logger.addHandler(handler)
