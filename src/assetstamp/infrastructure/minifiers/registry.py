from __future__ import annotations

from pathlib import Path

from assetstamp.core.errors import ConfigurationError
from assetstamp.domain.capabilities import Minimizer
from assetstamp.infrastructure.minifiers.css import CssMinimizer
from assetstamp.infrastructure.minifiers.js import JsMinimizer


class IdentityMinimizer:
    """Stores resources as they are; only the hashing and renaming apply."""

    def minimize(self, content: bytes, origin: Path | None) -> bytes:
        return content


def create_minimizer(resource_type: str) -> Minimizer:
    if resource_type == "css":
        return CssMinimizer()
    if resource_type == "js":
        return JsMinimizer()
    if resource_type == "raw":
        return IdentityMinimizer()
    raise ConfigurationError(f"No minimizer available for resource type '{resource_type}'.")
