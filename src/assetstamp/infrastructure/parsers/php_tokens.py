from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    INLINE_HTML = "inline_html"
    OPEN_TAG = "open_tag"
    CLOSE_TAG = "close_tag"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    DOC_COMMENT = "doc_comment"
    STRING = "string"
    HEREDOC = "heredoc"
    VARIABLE = "variable"
    NUMBER = "number"
    IDENTIFIER = "identifier"
    NS_SEPARATOR = "ns_separator"
    NAMESPACE = "namespace"
    CLASS = "class"
    KEYWORD = "keyword"
    DOUBLE_COLON = "double_colon"
    OBJECT_OPERATOR = "object_operator"
    PUNCT = "punct"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    line: int


_OPEN_TAG_RE = re.compile(r"<\?php(?:[ \t]*\r?\n|[ \t]|$)|<\?=", re.IGNORECASE)

_PHP_TOKEN_RE = re.compile(
    r"""
    (?P<close_tag>\?>(?:\r?\n)?)
    |(?P<doc_comment>/\*\*(?s:.*?)\*/)
    |(?P<comment>/\*(?s:.*?)\*/|(?://|\#(?!\[))(?:[^\n?]|\?(?!>))*)
    |(?P<whitespace>\s+)
    |(?P<heredoc><<<[ \t]*(?P<hq>["']?)(?P<hid>[A-Za-z_]\w*)(?P=hq)\r?\n(?:(?s:.*?)\n)?[ \t]*(?P=hid)\b)
    |(?P<string>'(?:[^'\\]|\\[\s\S])*'|"(?:[^"\\]|\\[\s\S])*"|`(?:[^`\\]|\\[\s\S])*`)
    |(?P<variable>\$+[^\W\d]\w*)
    |(?P<number>0[xX][0-9a-fA-F_]+|0[bB][01_]+|\d[\d_]*(?:\.[\d_]*)?(?:[eE][+-]?\d+)?|\.\d[\d_]*(?:[eE][+-]?\d+)?)
    |(?P<identifier>[^\W\d]\w*)
    |(?P<ns_separator>\\)
    |(?P<double_colon>::)
    |(?P<object_operator>\?->|->)
    |(?P<punct>[\s\S])
    """,
    re.VERBOSE,
)

_KEYWORDS = {
    "namespace": TokenKind.NAMESPACE,
    "class": TokenKind.CLASS,
    "extends": TokenKind.KEYWORD,
    "implements": TokenKind.KEYWORD,
}
_MEMBER_ACCESS = {TokenKind.DOUBLE_COLON, TokenKind.OBJECT_OPERATOR}
_INSIGNIFICANT = {TokenKind.WHITESPACE, TokenKind.COMMENT, TokenKind.DOC_COMMENT}


def tokenize(source: str) -> list[Token]:
    """Split PHP source into tokens.

    Only the distinctions needed to find namespace and class declarations are
    made: multi-character operators other than ``::`` and ``->`` come out as
    single-character punctuation tokens, and casts or interpolation inside
    double-quoted strings are not looked into.
    """

    tokens: list[Token] = []
    pos = 0
    line = 1
    in_php = False
    last_significant: TokenKind | None = None

    def emit(kind: TokenKind, text: str) -> None:
        nonlocal line, last_significant
        tokens.append(Token(kind=kind, text=text, line=line))
        line += text.count("\n")
        if kind not in _INSIGNIFICANT:
            last_significant = kind

    while pos < len(source):
        if not in_php:
            match = _OPEN_TAG_RE.search(source, pos)
            if match is None:
                emit(TokenKind.INLINE_HTML, source[pos:])
                break
            if match.start() > pos:
                emit(TokenKind.INLINE_HTML, source[pos : match.start()])
            emit(TokenKind.OPEN_TAG, match.group())
            in_php = True
            pos = match.end()
            continue

        match = _PHP_TOKEN_RE.match(source, pos)
        # The final alternative matches any character, so a match always exists.
        assert match is not None
        kind = TokenKind(match.lastgroup)
        text = match.group()
        pos = match.end()

        if kind is TokenKind.IDENTIFIER:
            keyword = _KEYWORDS.get(text.lower())
            if keyword is not None and last_significant not in _MEMBER_ACCESS:
                # ``namespace\foo()`` is a relative name, not a declaration.
                if not (keyword is TokenKind.NAMESPACE and source.startswith("\\", pos)):
                    kind = keyword

        emit(kind, text)
        if kind is TokenKind.CLOSE_TAG:
            in_php = False

    return tokens
