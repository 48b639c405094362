# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for PlantUML class-diagram text.

Converts decoded source text into a lazy stream of tokens.  Scanning is
line-buffered: every physical line that carries content ends with an EOL
token, a blank line is a lone EOL with empty text, and the stream always ends
with a single EOF token.  Included files are spliced in place without their
``@startuml``/``@enduml`` wrapper.  The scanner never
fails; characters it cannot classify are folded into degraded IDENTIFIER
tokens and left for the parser to judge.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Generator, Iterator
from dataclasses import dataclass
from typing import Protocol

from pumlparse.config import DEFAULT_MAX_INCLUDE_DEPTH
from pumlparse.model.diagnostics import Diagnostic, DiagnosticKind
from pumlparse.parser.arrows import ARROW_SPELLINGS

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

class TokenType(enum.Enum):
    """All token types produced by the lexer."""

    KEYWORD = "KEYWORD"
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    ARROW = "ARROW"

    # Symbols and punctuation
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    COLON = ":"
    COMMA = ","
    STEREO_OPEN = "<<"
    STEREO_CLOSE = ">>"
    LANGLE = "<"
    RANGLE = ">"
    SYMBOL = "SYMBOL"

    # Line and input boundaries
    EOL = "EOL"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        type: The kind of token.
        value: The raw text of the token (unquoted content for STRING tokens).
            For EOL tokens, the full physical line with comments blanked out.
        line: 1-based line number where the token starts.
        column: 1-based column number where the token starts.
        source: The include path the token was read from, None for the root text.
        degraded: True if the scanner could not fully classify the text.
    """

    type: TokenType
    value: str
    line: int
    column: int
    source: str | None = None
    degraded: bool = False

    def is_keyword(self, *words: str) -> bool:
        """Return True if this is a KEYWORD token spelling one of *words*."""
        return self.type == TokenType.KEYWORD and self.value.lower() in words


class IncludeResolver(Protocol):
    """Supplies the text referenced by an ``!include`` directive."""

    def resolve(self, path: str) -> str | None:
        """Return the decoded text for *path*, or None if it is unavailable."""
        ...


KEYWORDS: frozenset[str] = frozenset(
    {
        "@startuml",
        "@enduml",
        "class",
        "interface",
        "enum",
        "abstract",
        "package",
        "namespace",
        "note",
        "end",
        "of",
        "as",
        "on",
        "link",
        "extends",
        "implements",
        "left",
        "right",
        "top",
        "bottom",
        "over",
    }
)


class Lexer:
    """Restartable, lazy token stream over one diagram text.

    Each call to :meth:`__iter__` starts a fresh scan and resets
    :attr:`diagnostics`, which collects include-related problems.
    """

    def __init__(
        self,
        source: str,
        resolver: IncludeResolver | None = None,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
        case_insensitive_keywords: bool = True,
    ) -> None:
        self._source = source
        self._resolver = resolver
        self._max_include_depth = max_include_depth
        self._case_insensitive = case_insensitive_keywords
        self._included: set[str] = set()
        self.diagnostics: list[Diagnostic] = []

    def __iter__(self) -> Iterator[Token]:
        self.diagnostics = []
        self._included = set()
        last_line = yield from self._scan_buffer(self._source, depth=0, source=None)
        yield Token(TokenType.EOF, "", last_line, 1)

    def _scan_buffer(self, text: str, depth: int, source: str | None) -> Generator[Token, None, int]:
        """Yield tokens for *text*, splicing includes; return the last line number."""
        lines = text.replace("\r", "").split("\n")
        in_block = False
        for number, raw in enumerate(lines, start=1):
            if not in_block and not raw.strip():
                # A trailing newline leaves an empty final segment, which is not a line.
                if raw or number < len(lines):
                    yield Token(TokenType.EOL, "", number, 1, source)
                continue
            visible, in_block = _strip_comments(raw, in_block)
            stripped = visible.strip()
            if not stripped:
                continue
            if depth > 0 and stripped.split()[0].lower() in ("@startuml", "@enduml"):
                continue
            include = _INCLUDE_RE.match(stripped)
            if include is not None:
                yield from self._splice_include(include, number, depth, source)
                continue
            yield from _LineScanner(visible, number, source, self._case_insensitive).scan()
            content = visible.rstrip()
            yield Token(TokenType.EOL, content, number, len(content) + 1, source)
        return len(lines)

    def _splice_include(self, match: re.Match[str], line: int, depth: int, source: str | None) -> Iterator[Token]:
        """Resolve an include directive and yield the included text's tokens."""
        directive = match.group(0).split()[0].lower()
        target = _include_target(match.group(1))
        if depth + 1 > self._max_include_depth:
            self.diagnostics.append(
                Diagnostic.of(
                    DiagnosticKind.INCLUDE_DEPTH_EXCEEDED,
                    line,
                    f"Include depth limit ({self._max_include_depth}) exceeded; skipping '{target}'",
                    source,
                )
            )
            return
        if directive == "!include_once" and target in self._included:
            logger.debug("Skipping already included '%s'", target)
            return
        text = self._resolver.resolve(target) if self._resolver is not None else None
        if text is None:
            self.diagnostics.append(
                Diagnostic.of(DiagnosticKind.UNRESOLVED_INCLUDE, line, f"Cannot resolve include '{target}'", source)
            )
            return
        logger.debug("Splicing include '%s' at depth %d", target, depth + 1)
        self._included.add(target)
        yield from self._scan_buffer(text, depth + 1, target)


def tokenize(
    source: str,
    resolver: IncludeResolver | None = None,
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    case_insensitive_keywords: bool = True,
) -> list[Token]:
    """Tokenize diagram text into a list of tokens ending with EOF.

    Args:
        source: The decoded diagram text.
        resolver: Optional collaborator used to fetch ``!include`` targets.
        max_include_depth: Maximum nesting of spliced includes.
        case_insensitive_keywords: Whether keywords match regardless of case.

    Returns:
        A list of Token objects ending with a single EOF token.
    """
    return list(Lexer(source, resolver, max_include_depth, case_insensitive_keywords))


# ################
# Implementation
# ################

_INCLUDE_RE = re.compile(r"^!include(?:_once|_many|url|sub)?\s+(.+)$", re.IGNORECASE)

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

_SYMBOL_CHARS = frozenset("+-#~*=.|")

# Characters that end a degraded run.
_STRUCTURAL_CHARS = frozenset('{}():,"<>')


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _strip_comments(line: str, in_block: bool) -> tuple[str, bool]:
    """Blank out block-comment text on *line*, keeping columns stable.

    Returns the visible text and whether a block comment is still open.  A
    line comment hides the whole line, including any ``/'`` inside it.
    """
    if not in_block and line.lstrip().startswith("'"):
        return "", False
    chars = list(line)
    in_string = False
    i = 0
    while i < len(chars):
        ch = line[i]
        if in_block:
            if ch == "'" and line[i + 1 : i + 2] == "/":
                chars[i] = chars[i + 1] = " "
                in_block = False
                i += 2
                continue
            chars[i] = " "
        elif ch == '"':
            in_string = not in_string
        elif not in_string and ch == "/" and line[i + 1 : i + 2] == "'":
            chars[i] = chars[i + 1] = " "
            in_block = True
            i += 2
            continue
        i += 1
    return "".join(chars), in_block


def _include_target(raw: str) -> str:
    target = raw.strip().strip('"').strip()
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()
    return target


class _LineScanner:
    """Scans one comment-free physical line into tokens."""

    def __init__(self, text: str, line: int, source: str | None, case_insensitive: bool) -> None:
        self._text = text
        self._line = line
        self._source = source
        self._case_insensitive = case_insensitive
        self._pos = 0
        self._tokens: list[Token] = []

    def scan(self) -> list[Token]:
        while self._pos < len(self._text):
            ch = self._text[self._pos]
            if ch in " \t":
                self._pos += 1
            else:
                self._scan_token(ch)
        return self._tokens

    def _emit(self, token_type: TokenType, value: str, start: int, degraded: bool = False) -> None:
        self._tokens.append(Token(token_type, value, self._line, start + 1, self._source, degraded))

    def _scan_token(self, ch: str) -> None:
        """Dispatch to the appropriate handler based on the current character."""
        start = self._pos
        arrow = self._match_arrow()
        if arrow is not None:
            self._pos += len(arrow)
            self._emit(TokenType.ARROW, arrow, start)
        elif self._text.startswith("<<", start):
            self._pos += 2
            self._emit(TokenType.STEREO_OPEN, "<<", start)
        elif self._text.startswith(">>", start):
            self._pos += 2
            self._emit(TokenType.STEREO_CLOSE, ">>", start)
        elif ch in _SINGLE_CHAR_TOKENS:
            self._pos += 1
            self._emit(_SINGLE_CHAR_TOKENS[ch], ch, start)
        elif ch == "<":
            self._pos += 1
            self._emit(TokenType.LANGLE, ch, start)
        elif ch == ">":
            self._pos += 1
            self._emit(TokenType.RANGLE, ch, start)
        elif ch == '"':
            self._scan_string(start)
        elif _is_ident_char(ch) or (ch in "@!" and _is_ident_char(self._peek(1))):
            self._scan_identifier_or_keyword(start)
        elif ch in _SYMBOL_CHARS:
            self._pos += 1
            self._emit(TokenType.SYMBOL, ch, start)
        else:
            self._scan_degraded(start)

    def _peek(self, offset: int) -> str:
        index = self._pos + offset
        return self._text[index] if index < len(self._text) else ""

    def _match_arrow(self) -> str | None:
        """Return the longest arrow spelling at the current position, if any."""
        for spelling in ARROW_SPELLINGS:
            if not self._text.startswith(spelling, self._pos):
                continue
            after = self._text[self._pos + len(spelling) : self._pos + len(spelling) + 1]
            if spelling.endswith("o") and _is_ident_char(after):
                continue
            return spelling
        return None

    def _scan_string(self, start: int) -> None:
        """Scan a double-quoted literal; an unterminated one ends at end of line."""
        end = self._text.find('"', start + 1)
        if end == -1:
            self._pos = len(self._text)
            self._emit(TokenType.STRING, self._text[start + 1 :], start, degraded=True)
            return
        self._pos = end + 1
        self._emit(TokenType.STRING, self._text[start + 1 : end], start)

    def _scan_identifier_or_keyword(self, start: int) -> None:
        """Scan an identifier (dots allowed between name parts) and map keywords."""
        self._pos += 1
        while self._pos < len(self._text):
            ch = self._text[self._pos]
            if _is_ident_char(ch):
                self._pos += 1
            elif ch == "." and _is_ident_char(self._peek(1)):
                self._pos += 1
            else:
                break
        value = self._text[start : self._pos]
        probe = value.lower() if self._case_insensitive else value
        token_type = TokenType.KEYWORD if probe in KEYWORDS else TokenType.IDENTIFIER
        self._emit(token_type, value, start)

    def _scan_degraded(self, start: int) -> None:
        while self._pos < len(self._text):
            ch = self._text[self._pos]
            if ch in " \t" or ch in _STRUCTURAL_CHARS:
                break
            self._pos += 1
        self._emit(TokenType.IDENTIFIER, self._text[start : self._pos], start, degraded=True)


