from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class RecordKey(str, Enum):
    """Which path of an already stored record a lookup is keyed on."""

    HASHED_PATH = "hashed_path"
    SOURCE_PATH = "source_path"


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    raw_content: bytes
    optimized_content: bytes
    digest: str
    ordinal: int
    hashed_path: Path
    hashed_reference: str
    mod_time_ns: int
    source_path: Path | None = None
    source_reference: str | None = None
    alternative_reference: str | None = None

    @property
    def gzip_path(self) -> Path:
        return self.hashed_path.with_name(self.hashed_path.name + ".gz")

    @property
    def is_synthetic(self) -> bool:
        return self.source_path is None
