from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True, order=True)
class SourceFile:
    canonical_path: Path
    io_path: Path


@dataclass(frozen=True, slots=True)
class Declaration:
    namespace: str
    class_name: str
    line: int
