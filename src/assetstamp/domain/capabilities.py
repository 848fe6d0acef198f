"""Capabilities the pipeline core depends on but does not implement."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable

from assetstamp.domain.models.source import Declaration


@runtime_checkable
class Minimizer(Protocol):
    """Turns resource content into its optimized form.

    Implementations must be deterministic for a fixed input.
    """

    def minimize(self, content: bytes, origin: Path | None) -> bytes:
        ...


@runtime_checkable
class SourceRewriter(Protocol):
    """Rewrites a structured source file before literal substitution runs.

    Only invoked for files that start with the marker the rewriter is
    registered under. ``declarations`` maps declaration line numbers to the
    namespace and class declared there.
    """

    def rewrite(self, path: Path, text: str, declarations: Mapping[int, Declaration]) -> str:
        ...


class PassThroughSourceRewriter:
    def rewrite(self, path: Path, text: str, declarations: Mapping[int, Declaration]) -> str:
        return text
