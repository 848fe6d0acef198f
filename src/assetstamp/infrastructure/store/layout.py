from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from assetstamp.core.errors import PathScopeError


@dataclass(frozen=True, slots=True)
class StoreLayout:
    """Where hashed resources live and how they are referenced from sources.

    ``parent_dir`` is the directory references are relative to (usually the web
    root). ``resource_dir`` is where hashed files are written and must sit
    inside ``parent_dir``.
    """

    parent_dir: Path
    resource_dir: Path
    extension: str
    url_prefix: str = "/"

    @classmethod
    def resolve(
        cls,
        base_dir: Path,
        parent_resource_dir: Path,
        resource_dir: Path,
        extension: str,
        url_prefix: str = "/",
    ) -> StoreLayout:
        parent_full = (base_dir / parent_resource_dir).resolve()
        resource_full = (parent_full / resource_dir).resolve()
        if not resource_full.is_relative_to(parent_full):
            raise PathScopeError(
                f"Resource dir '{resource_full}' is not under parent resource dir '{parent_full}'.",
                resource_full,
            )
        return cls(
            parent_dir=parent_full,
            resource_dir=resource_full,
            extension=extension,
            url_prefix=url_prefix,
        )

    def hashed_path_for(self, digest: str, ordinal: int) -> Path:
        return self.resource_dir / f"{digest}.{ordinal}{self.extension}"

    def reference_for(self, path: Path) -> str:
        path = Path(os.path.normpath(path))
        if not path.is_relative_to(self.parent_dir):
            raise PathScopeError(
                f"Resource file '{path}' is not under resource dir '{self.parent_dir}'.",
                path,
            )
        return self.url_prefix + path.relative_to(self.parent_dir).as_posix()
