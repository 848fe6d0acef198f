from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rich.console import Console


@dataclass(slots=True)
class CLIContext:
    project_root: Path
    console: Console
