from __future__ import annotations

import fnmatch
from pathlib import Path

from assetstamp.core.config import FileSetSpec
from assetstamp.core.errors import ConfigurationError


class FileSet:
    """A base directory plus include and exclude glob patterns."""

    def __init__(self, spec: FileSetSpec) -> None:
        self.spec = spec

    @property
    def base_dir(self) -> Path:
        return self.spec.base_dir.expanduser().resolve()

    def included_files(self) -> list[str]:
        base = self.base_dir
        if not base.is_dir():
            raise ConfigurationError(f"File group base dir does not exist: {base}", base)

        matched: set[str] = set()
        for pattern in self.spec.includes:
            for path in base.glob(pattern):
                if not path.is_file():
                    continue
                rel = path.relative_to(base).as_posix()
                if self._is_excluded(rel):
                    continue
                matched.add(rel)

        return sorted(matched)

    def full_paths(self) -> list[Path]:
        base = self.base_dir
        return [base / rel for rel in self.included_files()]

    def _is_excluded(self, rel: str) -> bool:
        name = rel.rsplit("/", 1)[-1]
        for pattern in self.spec.excludes:
            if fnmatch.fnmatchcase(rel, pattern) or fnmatch.fnmatchcase(name, pattern):
                return True
        return False
