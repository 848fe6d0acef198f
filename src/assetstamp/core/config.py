from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from assetstamp.core.errors import ConfigurationError
from assetstamp.core.hashing import DEFAULT_HASH_ALGORITHM, is_supported_algorithm

RESOURCE_TYPES = ("css", "js", "raw")
DEFAULT_EXTENSIONS = {"css": ".css", "js": ".js", "raw": ""}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class FileSetSpec:
    base_dir: Path
    includes: tuple[str, ...] = ("**/*",)
    excludes: tuple[str, ...] = ()


@dataclass(frozen=True)
class PipelineOptions:
    resource_type: str
    extension: str
    resources: FileSetSpec
    sources: FileSetSpec
    parent_resource_dir: Path
    resource_dir: Path
    preserve_mtime: bool = False
    gzip: bool = False
    halt_on_error: bool = True
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    url_prefix: str = "/"
    alias_without_extension: bool = False
    source_markers: tuple[str, ...] = field(default=("<?php",))


def env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Environment variable {name} has invalid boolean value '{raw}'.")


def load_options(
    *,
    resource_type: str,
    resources: FileSetSpec,
    sources: FileSetSpec,
    parent_resource_dir: Path | str,
    resource_dir: Path | str,
    extension: str | None = None,
    preserve_mtime: bool | None = None,
    gzip: bool | None = None,
    halt_on_error: bool | None = None,
    hash_algorithm: str | None = None,
    url_prefix: str = "/",
    alias_without_extension: bool = False,
) -> PipelineOptions:
    if resource_type not in RESOURCE_TYPES:
        raise ConfigurationError(
            f"Unknown resource type '{resource_type}'. Expected one of: {', '.join(RESOURCE_TYPES)}"
        )

    if extension is None:
        extension = DEFAULT_EXTENSIONS[resource_type]

    options = PipelineOptions(
        resource_type=resource_type,
        extension=extension,
        resources=resources,
        sources=sources,
        parent_resource_dir=Path(parent_resource_dir),
        resource_dir=Path(resource_dir),
        preserve_mtime=(
            preserve_mtime if preserve_mtime is not None else env_flag("ASSETSTAMP_PRESERVE_MTIME", False)
        ),
        gzip=gzip if gzip is not None else env_flag("ASSETSTAMP_GZIP", False),
        halt_on_error=halt_on_error if halt_on_error is not None else env_flag("ASSETSTAMP_HALT_ON_ERROR", True),
        hash_algorithm=(hash_algorithm or os.getenv("ASSETSTAMP_HASH_ALGORITHM") or DEFAULT_HASH_ALGORITHM).lower(),
        url_prefix=url_prefix,
        alias_without_extension=alias_without_extension,
    )
    validate_options(options)
    return options


def validate_options(options: PipelineOptions) -> None:
    ext = options.extension
    if ext and (not ext.startswith(".") or "/" in ext or "\\" in ext):
        raise ConfigurationError(f"Extension '{ext}' must start with '.' and must not contain a path separator.")
    if options.resource_type != "raw" and not ext:
        raise ConfigurationError(f"Resource type '{options.resource_type}' requires an extension.")

    if not is_supported_algorithm(options.hash_algorithm):
        raise ConfigurationError(f"Unsupported hash algorithm '{options.hash_algorithm}'.")

    if options.resource_dir.is_absolute():
        raise ConfigurationError(
            f"Resource dir '{options.resource_dir}' must be relative to the parent resource dir."
        )

    if options.url_prefix and not options.url_prefix.endswith("/"):
        raise ConfigurationError(f"URL prefix '{options.url_prefix}' must be empty or end with '/'.")

    for group_name, group in (("resources", options.resources), ("sources", options.sources)):
        if not group.includes:
            raise ConfigurationError(f"File group '{group_name}' has no include patterns.")
