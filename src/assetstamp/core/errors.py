from __future__ import annotations

from pathlib import Path


class AssetStampError(Exception):
    """Base error for all user-facing assetstamp exceptions."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigurationError(AssetStampError):
    """Raised when options are malformed or the replacement table has colliding paths."""


class AssetIOError(AssetStampError):
    """Raised when reading, writing or touching a file fails."""


class PathScopeError(AssetStampError):
    """Raised when a path escapes the parent resource directory."""


class UnknownResourceError(AssetStampError):
    """Raised when no resource record matches a lookup key."""


class StructuralParseError(AssetStampError):
    """Raised when the declaration pre-pass meets unsupported syntax."""

    def __init__(self, message: str, path: Path | str | None = None, line: int | None = None) -> None:
        super().__init__(message, path)
        self.line = line
