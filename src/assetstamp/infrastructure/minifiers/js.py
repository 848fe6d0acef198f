from __future__ import annotations

import logging
from pathlib import Path

import rjsmin

logger = logging.getLogger(__name__)


class JsMinimizer:
    def __init__(self, keep_bang_comments: bool = False) -> None:
        self.keep_bang_comments = keep_bang_comments

    def minimize(self, content: bytes, origin: Path | None) -> bytes:
        logger.debug("Minimizing JS %s (%d bytes)", origin or "<combined>", len(content))
        text = content.decode("utf-8", errors="surrogateescape")
        minified = rjsmin.jsmin(text, keep_bang_comments=self.keep_bang_comments)
        return minified.encode("utf-8", errors="surrogateescape")
