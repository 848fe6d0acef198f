from __future__ import annotations

from enum import Enum
from pathlib import Path

from assetstamp.core.errors import StructuralParseError
from assetstamp.domain.models.source import Declaration
from assetstamp.infrastructure.parsers.php_tokens import TokenKind, tokenize

PHP_MARKER = "<?php"


class ScanState(Enum):
    IDLE = "idle"
    SCANNING_NAMESPACE = "scanning-namespace"
    SCANNING_CLASS = "scanning-class"


def scan_declarations(source: str, path: Path | None = None) -> dict[int, Declaration]:
    """Map line numbers of class declarations to their namespace and class name.

    Only the semicolon form ``namespace Foo\\Bar;`` is supported. Bracketed
    namespaces or anything else between ``namespace`` and ``;`` raise
    :class:`StructuralParseError`.
    """

    state = ScanState.IDLE
    namespace = ""
    declarations: dict[int, Declaration] = {}

    for token in tokenize(source):
        if token.kind is TokenKind.NAMESPACE:
            state = ScanState.SCANNING_NAMESPACE
            namespace = ""
            continue

        if token.kind is TokenKind.CLASS:
            state = ScanState.SCANNING_CLASS
            continue

        if state is ScanState.SCANNING_NAMESPACE:
            if token.kind in (TokenKind.IDENTIFIER, TokenKind.NS_SEPARATOR):
                namespace += token.text
            elif token.kind is TokenKind.WHITESPACE:
                pass
            elif token.text == ";":
                state = ScanState.IDLE
            elif token.text == "{":
                raise StructuralParseError(
                    "Bracketed syntax for namespace not supported.", path, token.line
                )
            else:
                raise StructuralParseError(
                    f"Unexpected token {token.text!r} in namespace declaration at line {token.line}.",
                    path,
                    token.line,
                )

        elif state is ScanState.SCANNING_CLASS:
            if token.kind is TokenKind.IDENTIFIER:
                declarations[token.line] = Declaration(
                    namespace=namespace,
                    class_name=token.text,
                    line=token.line,
                )
                state = ScanState.IDLE
            elif token.kind is TokenKind.KEYWORD or token.text in ("(", "{"):
                # Anonymous class: ``new class(...) { ... }`` or ``new class extends Base {}``.
                state = ScanState.IDLE

    return declarations
