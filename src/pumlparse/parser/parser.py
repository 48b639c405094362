# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structural parser for PlantUML class diagrams.

Consumes the lexer's token stream one physical line at a time and drives a
state machine over an explicit stack of scope frames (top level, package,
entity body, plus transient frames for note bodies, foreign diagram blocks,
and ignored directive blocks).  Malformed lines never abort the parse: each
one is skipped and recorded as a single Diagnostic.
"""

from __future__ import annotations

import enum
import logging
import re
import textwrap
from collections.abc import Iterator
from dataclasses import dataclass, field

from pumlparse.config import ParserConfig, RedefinitionPolicy
from pumlparse.model.diagnostics import Diagnostic, DiagnosticKind
from pumlparse.model.diagram import (
    Diagram,
    Direction,
    Entity,
    EntityKind,
    Member,
    Note,
    NotePosition,
    OpaqueBlock,
    Package,
    Relationship,
    RelationshipKind,
)
from pumlparse.parser.arrows import classify_arrow
from pumlparse.parser.lexer import IncludeResolver, Lexer, Token, TokenType
from pumlparse.parser.members import parse_member, split_top_level

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def parse(
    text: str,
    include_resolver: IncludeResolver | None = None,
    config: ParserConfig | None = None,
) -> tuple[Diagram, list[Diagnostic]]:
    """Parse PlantUML class-diagram text into a Diagram.

    Never raises for malformed input; problems are reported as diagnostics.

    Args:
        text: The decoded diagram text.
        include_resolver: Collaborator that supplies ``!include`` targets.
            Without one every include is reported as unresolved.
        config: Parsing policy; defaults to :class:`ParserConfig`.

    Returns:
        The diagram and its diagnostics ordered by line number.  The same
        diagnostics are also available as ``diagram.diagnostics``.
    """
    config = config or ParserConfig()
    lexer = Lexer(
        text,
        include_resolver,
        max_include_depth=config.max_include_depth,
        case_insensitive_keywords=config.case_insensitive_keywords,
    )
    diagram = _Parser(lexer, config).parse()
    return diagram, list(diagram.diagnostics)


# ################
# Implementation
# ################

_ENTITY_KINDS: dict[str, EntityKind] = {
    "class": EntityKind.CLASS,
    "interface": EntityKind.INTERFACE,
    "enum": EntityKind.ENUM,
    "abstract": EntityKind.ABSTRACT,
}

_NOTE_POSITIONS: dict[str, NotePosition] = {
    "left": NotePosition.LEFT,
    "right": NotePosition.RIGHT,
    "top": NotePosition.TOP,
    "bottom": NotePosition.BOTTOM,
    "over": NotePosition.OVER,
}

_SEPARATOR_RE = re.compile(r"^(-{2,}|\.{2,}|={2,}|_{2,})(\s.*)?$")
_SPOT_RE = re.compile(r"^\(.*?\)\s*")
_END_NOTE_RE = re.compile(r"end\s*note", re.IGNORECASE)
_NAME_TYPES = (TokenType.IDENTIFIER, TokenType.KEYWORD)


class _FrameKind(enum.Enum):
    TOP_LEVEL = "top-level"
    PACKAGE = "package"
    ENTITY = "entity"
    NOTE = "note"
    OPAQUE = "opaque"
    IGNORED = "ignored"


@dataclass
class _PackageBuilder:
    name: str
    qualified_name: str
    parent: _PackageBuilder | None = None
    stereotypes: list[str] = field(default_factory=list)
    entity_indices: list[int] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    notes: list[_NoteBuilder] = field(default_factory=list)
    children: list[_PackageBuilder] = field(default_factory=list)
    line: int = 0

    def qualify(self, name: str) -> str:
        return f"{self.qualified_name}.{name}" if self.qualified_name else name


@dataclass
class _EntityBuilder:
    name: str
    qualified_name: str
    kind: EntityKind
    package: str | None
    line: int
    is_placeholder: bool = False
    stereotypes: list[str] = field(default_factory=list)
    generics: tuple[str, ...] | None = None
    members: list[Member] = field(default_factory=list)
    label: str | None = None


@dataclass
class _NoteBuilder:
    line: int
    attached_to: str | None = None
    position: NotePosition | None = None
    alias: str | None = None
    lines: list[str] = field(default_factory=list)


@dataclass
class _Frame:
    kind: _FrameKind
    line: int
    package: _PackageBuilder
    entity: _EntityBuilder | None = None
    note: _NoteBuilder | None = None
    label: str = ""
    lines: list[str] = field(default_factory=list)
    depth: int = 0
    source: str | None = None


@dataclass
class _Line:
    """The tokens of one physical line plus its comment-free text."""

    tokens: list[Token]
    text: str
    number: int
    source: str | None

    @property
    def degraded(self) -> bool:
        return any(tok.degraded for tok in self.tokens)

    def text_after(self, tok: Token) -> str:
        """Return the raw text that follows punctuation *tok* on this line, stripped."""
        return self.text[tok.column - 1 + len(tok.value) :].strip()

    def text_from(self, tok: Token) -> str:
        return self.text[tok.column - 1 :].strip()


class _Cursor:
    """Token access helpers over a single line."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def current(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def peek(self, offset: int = 1) -> Token | None:
        index = self._pos + offset
        return self._tokens[index] if index < len(self._tokens) else None

    def at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def check(self, *types: TokenType) -> bool:
        tok = self.current()
        return tok is not None and tok.type in types

    def check_keyword(self, *words: str) -> bool:
        tok = self.current()
        return tok is not None and tok.is_keyword(*words)

    def advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def accept(self, *types: TokenType) -> Token | None:
        return self.advance() if self.check(*types) else None

    def accept_keyword(self, *words: str) -> Token | None:
        return self.advance() if self.check_keyword(*words) else None

    def accept_name(self) -> Token | None:
        """Consume an identifier, or a keyword used in a name position."""
        return self.accept(*_NAME_TYPES)


class _Parser:
    """Scope-stack state machine over the lexer's token stream."""

    def __init__(self, lexer: Lexer, config: ParserConfig) -> None:
        self._lexer = lexer
        self._config = config
        self._diagnostics: list[Diagnostic] = []
        # Arena of all entities plus a qualified-name index into it.
        self._entities: list[_EntityBuilder] = []
        self._index: dict[str, int] = {}
        self._packages: dict[str, _PackageBuilder] = {}
        self._root = _PackageBuilder(name="", qualified_name="")
        self._stack: list[_Frame] = [_Frame(_FrameKind.TOP_LEVEL, 0, self._root)]
        self._note_aliases: dict[str, _NoteBuilder] = {}
        self._opaque_blocks: list[OpaqueBlock] = []
        self._last_entity: str | None = None
        self._last_line = 0

    def parse(self) -> Diagram:
        """Consume the whole token stream and return the finished Diagram."""
        for line in self._lines():
            self._dispatch(line)
        self._close_frames(self._last_line, "end of input")
        diagnostics = sorted(self._lexer.diagnostics + self._diagnostics, key=lambda d: d.line)
        logger.debug(
            "Parsed %d entities with %d diagnostics",
            len(self._entities),
            len(diagnostics),
        )
        return Diagram(
            entities=self._build_entities(self._root),
            relationships=tuple(self._root.relationships),
            notes=tuple(self._build_note(n) for n in self._root.notes),
            packages=tuple(self._build_package(p) for p in self._root.children),
            diagnostics=tuple(diagnostics),
            opaque_blocks=tuple(self._opaque_blocks),
        )

    # ------------------------------------------------------------------
    # Line assembly and dispatch
    # ------------------------------------------------------------------

    def _lines(self) -> Iterator[_Line]:
        """Group the token stream into physical lines."""
        pending: list[Token] = []
        for tok in self._lexer:
            if tok.type == TokenType.EOF:
                self._last_line = tok.line
                return
            if tok.type == TokenType.EOL:
                yield _Line(pending, tok.value, tok.line, tok.source)
                pending = []
            else:
                pending.append(tok)

    def _dispatch(self, line: _Line) -> None:
        frame = self._stack[-1]
        if not line.tokens:
            # Blank lines only matter inside verbatim text.
            if frame.kind == _FrameKind.NOTE:
                self._note_line(line, frame)
            elif frame.kind == _FrameKind.OPAQUE:
                self._opaque_line(line, frame)
        elif frame.kind == _FrameKind.OPAQUE:
            self._opaque_line(line, frame)
        elif frame.kind == _FrameKind.IGNORED:
            self._ignored_line(line, frame)
        elif line.tokens[0].is_keyword("@enduml"):
            self._close_frames(line.number, "@enduml")
        elif frame.kind == _FrameKind.NOTE:
            self._note_line(line, frame)
        elif frame.kind == _FrameKind.ENTITY:
            self._entity_line(line, frame)
        else:
            self._scope_line(line, frame)

    def _report(self, kind: DiagnosticKind, line: _Line, message: str) -> None:
        self._diagnostics.append(Diagnostic.of(kind, line.number, message, line.source))

    def _report_unrecognized(self, line: _Line, what: str = "Unrecognized statement") -> None:
        self._report(DiagnosticKind.STRUCTURAL_ODDITY, line, f"{what}: {line.text.strip()!r}")

    def _report_if_degraded(self, line: _Line) -> None:
        if line.degraded:
            bad = ", ".join(repr(tok.value) for tok in line.tokens if tok.degraded)
            self._report(DiagnosticKind.LEXICAL_ODDITY, line, f"Unrecognized characters {bad}")

    # ------------------------------------------------------------------
    # Top-level and package scopes
    # ------------------------------------------------------------------

    def _scope_line(self, line: _Line, frame: _Frame) -> None:
        """Handle one line in the top-level or a package scope."""
        first = line.tokens[0]
        second = line.tokens[1] if len(line.tokens) > 1 else None
        keyword_statement = second is None or second.type != TokenType.ARROW

        if first.is_keyword("@startuml"):
            return
        directive = first.value.lower()
        if first.type == TokenType.IDENTIFIER and directive.startswith("@start") and directive != "@startuml":
            opaque = _Frame(_FrameKind.OPAQUE, line.number, frame.package, label=directive[6:], source=line.source)
            self._stack.append(opaque)
            return
        if first.type == TokenType.RBRACE:
            self._close_brace(line, frame)
        elif first.is_keyword("end") and keyword_statement:
            self._end_statement(line, frame)
        elif first.is_keyword(*_ENTITY_KINDS) and keyword_statement:
            self._entity_declaration(line, frame)
        elif first.is_keyword("package", "namespace") and keyword_statement:
            self._package_declaration(line, frame)
        elif first.is_keyword("note") and keyword_statement:
            self._note_declaration(line, frame)
        elif any(tok.type == TokenType.ARROW for tok in line.tokens) and self._relationship(line, frame):
            self._report_if_degraded(line)
        elif line.tokens[-1].type == TokenType.LBRACE:
            self._report_unrecognized(line, "Unsupported block ignored")
            self._stack.append(_Frame(_FrameKind.IGNORED, line.number, frame.package, depth=1, source=line.source))
        else:
            self._report_unrecognized(line)

    def _close_brace(self, line: _Line, frame: _Frame) -> None:
        if frame.kind != _FrameKind.PACKAGE:
            self._report(DiagnosticKind.UNBALANCED_SCOPE, line, "Unmatched '}' ignored")
            return
        self._stack.pop()
        if len(line.tokens) > 1:
            self._report_unrecognized(line, "Ignored text after '}'")

    def _end_statement(self, line: _Line, frame: _Frame) -> None:
        """Handle ``end package`` / ``end namespace``."""
        cursor = _Cursor(line.tokens)
        cursor.advance()
        closer = cursor.accept_keyword("package", "namespace")
        if closer is not None and cursor.at_end() and frame.kind == _FrameKind.PACKAGE:
            self._stack.pop()
        else:
            self._report_unrecognized(line, "Unexpected 'end' statement")

    def _close_frames(self, line_number: int, reason: str) -> None:
        """Pop every frame above the top level, reporting each as unbalanced."""
        while len(self._stack) > 1:
            frame = self._stack.pop()
            if frame.kind == _FrameKind.ENTITY:
                assert frame.entity is not None
                message = f"Class body of '{frame.entity.name}' not closed before {reason}"
            elif frame.kind == _FrameKind.PACKAGE:
                message = f"Package '{frame.package.name}' not closed before {reason}"
            elif frame.kind == _FrameKind.NOTE:
                assert frame.note is not None
                self._finish_note(frame)
                message = f"Note not closed with 'end note' before {reason}"
            elif frame.kind == _FrameKind.OPAQUE:
                self._finish_opaque(frame)
                message = f"Block '@start{frame.label}' not closed before {reason}"
            else:
                message = f"Ignored block not closed before {reason}"
            self._diagnostics.append(Diagnostic.of(DiagnosticKind.UNBALANCED_SCOPE, frame.line, message, frame.source))
        logger.debug("Closed open scopes at line %d (%s)", line_number, reason)

    # ------------------------------------------------------------------
    # Entity declarations
    # ------------------------------------------------------------------

    def _entity_declaration(self, line: _Line, frame: _Frame) -> None:
        """Parse: kind Name ["label" as Alias] [<T>] [<<st>>]* [extends X] [implements Y] [{]"""
        cursor = _Cursor(line.tokens)
        kind = _ENTITY_KINDS[cursor.advance().value.lower()]
        if kind == EntityKind.ABSTRACT:
            cursor.accept_keyword("class")

        name, label = self._entity_name(cursor)
        if name is None:
            self._report_unrecognized(line, "Missing name in declaration")
            return

        generics = self._generics(cursor, line)
        stereotypes = self._stereotypes(cursor, line)
        entity = self._declare_entity(frame.package, name, kind, line.number)
        entity.label = label or entity.label
        if generics is not None:
            entity.generics = generics
        for stereotype in stereotypes:
            if stereotype not in entity.stereotypes:
                entity.stereotypes.append(stereotype)

        malformed = False
        while not cursor.at_end() and not cursor.check(TokenType.LBRACE):
            if cursor.check_keyword("extends", "implements"):
                self._supertypes(cursor, line, frame.package, entity)
            elif cursor.check(TokenType.SYMBOL) and cursor.current().value == "#":
                # Colour decoration such as #pink or #line:red.
                cursor.advance()
                while cursor.check(TokenType.IDENTIFIER, TokenType.COLON, TokenType.SYMBOL):
                    cursor.advance()
            elif cursor.check(TokenType.STEREO_OPEN):
                for stereotype in self._stereotypes(cursor, line):
                    if stereotype not in entity.stereotypes:
                        entity.stereotypes.append(stereotype)
            else:
                cursor.advance()
                malformed = True

        brace = cursor.accept(TokenType.LBRACE)
        if brace is not None:
            if self._config.redefinition == RedefinitionPolicy.REPLACE:
                entity.members.clear()
            self._open_entity_body(line, frame, entity, brace)

        if malformed:
            self._report_unrecognized(line, "Ignored unexpected text in declaration")
        else:
            self._report_if_degraded(line)

    def _entity_name(self, cursor: _Cursor) -> tuple[str | None, str | None]:
        """Return ``(name, display label)`` from ``Name``, ``"Label" as Name`` or ``Name as "Label"``."""
        quoted = cursor.accept(TokenType.STRING)
        if quoted is not None:
            if cursor.accept_keyword("as"):
                alias = cursor.accept_name()
                if alias is not None:
                    return alias.value, quoted.value
            return (quoted.value or None), None
        name_tok = cursor.accept_name()
        if name_tok is None:
            return None, None
        if cursor.check_keyword("as"):
            cursor.advance()
            label_tok = cursor.accept(TokenType.STRING) or cursor.accept_name()
            if label_tok is not None:
                return name_tok.value, label_tok.value
        return name_tok.value, None

    def _generics(self, cursor: _Cursor, line: _Line) -> tuple[str, ...] | None:
        """Parse a ``<T, U extends X>`` parameter list following the name."""
        opener = cursor.accept(TokenType.LANGLE)
        if opener is None:
            return None
        depth = 1
        while not cursor.at_end():
            tok = cursor.advance()
            if tok.type == TokenType.LANGLE:
                depth += 1
            elif tok.type == TokenType.STEREO_OPEN:
                depth += 2
            elif tok.type == TokenType.RANGLE:
                depth -= 1
            elif tok.type == TokenType.STEREO_CLOSE:
                depth -= 2
            if depth <= 0:
                # A '>>' closing both an inner and the outer list ends one char later.
                end = tok.column - 1 + (1 if depth == 0 and tok.type == TokenType.STEREO_CLOSE else 0)
                return tuple(split_top_level(line.text[opener.column : end]))
        return tuple(split_top_level(line.text[opener.column :]))

    def _stereotypes(self, cursor: _Cursor, line: _Line) -> list[str]:
        """Parse consecutive ``<<a, b>>`` groups, dropping ``(S,#color)`` spots."""
        result: list[str] = []
        while cursor.check(TokenType.STEREO_OPEN):
            opener = cursor.advance()
            closer: Token | None = None
            while not cursor.at_end():
                tok = cursor.advance()
                if tok.type == TokenType.STEREO_CLOSE:
                    closer = tok
                    break
            end = closer.column - 1 if closer is not None else len(line.text)
            inner = _SPOT_RE.sub("", line.text[opener.column + 1 : end].strip())
            result.extend(split_top_level(inner))
        return result

    def _supertypes(self, cursor: _Cursor, line: _Line, scope: _PackageBuilder, entity: _EntityBuilder) -> None:
        """Parse ``extends A, B`` or ``implements C`` into relationships."""
        keyword = cursor.advance().value.lower()
        if keyword == "extends":
            kind, arrow = RelationshipKind.INHERITANCE, "--|>"
        else:
            kind, arrow = RelationshipKind.REALIZATION, "..|>"
        while True:
            name_tok = cursor.accept_name() or cursor.accept(TokenType.STRING)
            if name_tok is None:
                break
            self._generics(cursor, line)
            target = self._resolve_reference(name_tok.value, scope, line.number)
            scope.relationships.append(
                Relationship(
                    source=entity.qualified_name,
                    target=target,
                    kind=kind,
                    direction=Direction.LEFT_TO_RIGHT,
                    arrow=arrow,
                    line=line.number,
                )
            )
            if cursor.accept(TokenType.COMMA) is None:
                break

    def _open_entity_body(self, line: _Line, frame: _Frame, entity: _EntityBuilder, brace: Token) -> None:
        """Push an entity frame; handle members and '}' written on the same line."""
        inline = line.text[brace.column :]
        closes = line.tokens[-1].type == TokenType.RBRACE
        if closes:
            inline = inline[: inline.rfind("}")]
        inline = inline.strip()
        if inline:
            pieces = split_top_level(inline) if entity.kind == EntityKind.ENUM else [inline]
            for piece in pieces:
                member = parse_member(piece, in_enum=entity.kind == EntityKind.ENUM)
                if member is not None:
                    entity.members.append(member)
        if not closes:
            self._stack.append(
                _Frame(_FrameKind.ENTITY, line.number, frame.package, entity=entity, source=line.source)
            )

    def _declare_entity(self, scope: _PackageBuilder, name: str, kind: EntityKind, line_number: int) -> _EntityBuilder:
        """Create an entity in *scope* or merge with the existing one of that name."""
        qualified = scope.qualify(name)
        self._last_entity = qualified
        existing = self._index.get(qualified)
        if existing is not None:
            entity = self._entities[existing]
            if entity.is_placeholder:
                entity.is_placeholder = False
                entity.kind = kind
                entity.line = line_number
            return entity
        entity = _EntityBuilder(
            name=name,
            qualified_name=qualified,
            kind=kind,
            package=scope.qualified_name or None,
            line=line_number,
        )
        self._add_entity(scope, entity)
        return entity

    def _add_entity(self, scope: _PackageBuilder, entity: _EntityBuilder) -> None:
        self._index[entity.qualified_name] = len(self._entities)
        scope.entity_indices.append(len(self._entities))
        self._entities.append(entity)

    def _resolve_reference(self, name: str, scope: _PackageBuilder, line_number: int) -> str:
        """Resolve *name* from *scope* outward; create a placeholder if unknown."""
        package: _PackageBuilder | None = scope
        while package is not None:
            candidate = package.qualify(name)
            if candidate in self._index:
                return candidate
            package = package.parent
        placeholder = _EntityBuilder(
            name=name,
            qualified_name=scope.qualify(name),
            kind=EntityKind.CLASS,
            package=scope.qualified_name or None,
            line=line_number,
            is_placeholder=True,
        )
        self._add_entity(scope, placeholder)
        return placeholder.qualified_name

    # ------------------------------------------------------------------
    # Entity bodies
    # ------------------------------------------------------------------

    def _entity_line(self, line: _Line, frame: _Frame) -> None:
        """Handle one line inside a class body: a member, a separator, or '}'."""
        entity = frame.entity
        assert entity is not None
        first, last = line.tokens[0], line.tokens[-1]
        if first.type == TokenType.RBRACE:
            self._stack.pop()
            if len(line.tokens) > 1:
                self._report_unrecognized(line, "Ignored text after '}'")
            return

        text = line.text_from(first)
        closes = last.type == TokenType.RBRACE and text.endswith("}") and text.count("{") < text.count("}")
        if closes:
            text = text[: text.rfind("}")].strip()
        if not _SEPARATOR_RE.match(text):
            member = parse_member(text, in_enum=entity.kind == EntityKind.ENUM)
            if member is None:
                self._report_unrecognized(line, f"Unrecognized member of '{entity.name}'")
            else:
                entity.members.append(member)
                self._report_if_degraded(line)
        if closes:
            self._stack.pop()

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------

    def _package_declaration(self, line: _Line, frame: _Frame) -> None:
        """Parse: package|namespace Name [<<st>>] [#color] [{]"""
        cursor = _Cursor(line.tokens)
        cursor.advance()
        name_tok = cursor.accept(TokenType.STRING) or cursor.accept_name()
        if name_tok is None:
            self._report_unrecognized(line, "Missing package name")
            return
        if cursor.accept_keyword("as"):
            cursor.accept_name()
        stereotypes = self._stereotypes(cursor, line)
        if cursor.check(TokenType.SYMBOL) and cursor.current().value == "#":
            cursor.advance()
            cursor.accept(TokenType.IDENTIFIER)
        cursor.accept(TokenType.LBRACE)

        parent = frame.package
        qualified = parent.qualify(name_tok.value)
        package = self._packages.get(qualified)
        if package is None:
            package = _PackageBuilder(name=name_tok.value, qualified_name=qualified, parent=parent, line=line.number)
            self._packages[qualified] = package
            parent.children.append(package)
        for stereotype in stereotypes:
            if stereotype not in package.stereotypes:
                package.stereotypes.append(stereotype)
        self._stack.append(_Frame(_FrameKind.PACKAGE, line.number, package, source=line.source))

        if cursor.check(TokenType.RBRACE):
            cursor.advance()
            self._stack.pop()
        if not cursor.at_end():
            self._report_unrecognized(line, "Ignored unexpected text in package declaration")
        else:
            self._report_if_degraded(line)

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def _relationship(self, line: _Line, frame: _Frame) -> bool:
        """Parse: Name ["m"] Arrow ["m"] Name [: label].  Return False if not one."""
        cursor = _Cursor(line.tokens)
        left = self._endpoint_name(cursor, before_arrow=True)
        if left is None:
            return False
        left_multiplicity = cursor.accept(TokenType.STRING)
        arrow = cursor.accept(TokenType.ARROW)
        if arrow is None:
            return False
        right_multiplicity: Token | None = None
        if cursor.check(TokenType.STRING) and cursor.peek() is not None and cursor.peek().type != TokenType.COLON:
            right_multiplicity = cursor.advance()
        right = self._endpoint_name(cursor, before_arrow=False)
        if right is None:
            return False
        label: str | None = None
        colon = cursor.accept(TokenType.COLON)
        if colon is not None:
            label = line.text_after(colon) or None
        elif not cursor.at_end():
            return False

        arrow_spec = classify_arrow(arrow.value)
        if arrow_spec is None:
            return False

        if self._attach_note_link(left.value, right.value, frame.package, line.number):
            return True

        scope = frame.package
        left_name = self._resolve_reference(left.value, scope, line.number)
        right_name = self._resolve_reference(right.value, scope, line.number)
        left_m = left_multiplicity.value if left_multiplicity is not None else None
        right_m = right_multiplicity.value if right_multiplicity is not None else None
        if arrow_spec.direction == Direction.RIGHT_TO_LEFT:
            source, target, source_m, target_m = right_name, left_name, right_m, left_m
        else:
            source, target, source_m, target_m = left_name, right_name, left_m, right_m
        scope.relationships.append(
            Relationship(
                source=source,
                target=target,
                kind=arrow_spec.kind,
                direction=arrow_spec.direction,
                label=label,
                source_multiplicity=source_m,
                target_multiplicity=target_m,
                arrow=arrow.value,
                line=line.number,
            )
        )
        return True

    def _endpoint_name(self, cursor: _Cursor, before_arrow: bool) -> Token | None:
        """Accept an entity name, quoted or bare."""
        tok = cursor.current()
        if tok is None:
            return None
        if tok.type in _NAME_TYPES:
            return cursor.advance()
        if tok.type != TokenType.STRING:
            return None
        following = cursor.peek()
        if before_arrow:
            # "A" --> B and "A" "1" --> B both name the entity first.
            if following is not None and following.type in (TokenType.ARROW, TokenType.STRING):
                return cursor.advance()
            return None
        return cursor.advance()

    def _attach_note_link(self, left: str, right: str, scope: _PackageBuilder, line_number: int) -> bool:
        """Treat ``N1 .. Entity`` as attaching the aliased note N1 to Entity."""
        note = self._note_aliases.get(left)
        other = right
        if note is None:
            note = self._note_aliases.get(right)
            other = left
        if note is None:
            return False
        if other not in self._note_aliases and note.attached_to is None:
            note.attached_to = self._resolve_reference(other, scope, line_number)
        return True

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def _note_declaration(self, line: _Line, frame: _Frame) -> None:
        """Parse the note forms; multi-line notes push a NOTE frame."""
        cursor = _Cursor(line.tokens)
        cursor.advance()
        note = _NoteBuilder(line=line.number)
        text: str | None = None
        quoted = cursor.accept(TokenType.STRING)
        if quoted is not None:
            # note "text" as N1
            text = quoted.value
            if cursor.accept_keyword("as"):
                alias = cursor.accept_name()
                note.alias = alias.value if alias is not None else None
        elif cursor.accept_keyword("as"):
            alias = cursor.accept_name()
            if alias is None:
                self._report_unrecognized(line, "Missing note alias")
                return
            note.alias = alias.value
        elif cursor.accept_keyword("on"):
            cursor.accept_keyword("link")
        else:
            position = None if cursor.check_keyword("of") else cursor.accept_name()
            if position is not None:
                note.position = _NOTE_POSITIONS.get(position.value.lower())
            if cursor.accept_keyword("of") or (note.position == NotePosition.OVER and cursor.check(*_NAME_TYPES)):
                target_tok = cursor.accept_name() or cursor.accept(TokenType.STRING)
                if target_tok is None:
                    self._report_unrecognized(line, "Missing note target")
                    return
                note.attached_to = self._resolve_reference(target_tok.value, frame.package, line.number)
            else:
                note.attached_to = self._last_entity

        colon = cursor.accept(TokenType.COLON)
        if colon is not None:
            text = line.text_after(colon)
        elif not cursor.at_end():
            self._report_unrecognized(line, "Ignored unexpected text in note")

        if note.alias is not None:
            self._note_aliases[note.alias] = note
        frame.package.notes.append(note)

        if text is not None:
            note.lines.append(text)
        else:
            self._stack.append(_Frame(_FrameKind.NOTE, line.number, frame.package, note=note, source=line.source))

    def _note_line(self, line: _Line, frame: _Frame) -> None:
        stripped = line.text.strip()
        if _END_NOTE_RE.fullmatch(stripped):
            self._stack.pop()
            self._finish_note(frame)
            return
        assert frame.note is not None
        frame.note.lines.append(line.text)

    def _finish_note(self, frame: _Frame) -> None:
        assert frame.note is not None
        frame.note.lines = [textwrap.dedent("\n".join(frame.note.lines)).strip("\n")]

    # ------------------------------------------------------------------
    # Foreign diagram blocks and ignored directive blocks
    # ------------------------------------------------------------------

    def _opaque_line(self, line: _Line, frame: _Frame) -> None:
        if line.tokens and line.tokens[0].value.lower() == f"@end{frame.label}":
            self._stack.pop()
            self._finish_opaque(frame)
            return
        frame.lines.append(line.text)

    def _finish_opaque(self, frame: _Frame) -> None:
        text = "\n".join(frame.lines).strip("\n")
        self._opaque_blocks.append(OpaqueBlock(kind=frame.label, text=text, line=frame.line))

    def _ignored_line(self, line: _Line, frame: _Frame) -> None:
        for tok in line.tokens:
            if tok.type == TokenType.LBRACE:
                frame.depth += 1
            elif tok.type == TokenType.RBRACE:
                frame.depth -= 1
        if frame.depth <= 0:
            self._stack.pop()

    # ------------------------------------------------------------------
    # Model construction
    # ------------------------------------------------------------------

    def _build_entities(self, package: _PackageBuilder) -> tuple[Entity, ...]:
        return tuple(self._build_entity(self._entities[i]) for i in package.entity_indices)

    def _build_entity(self, entity: _EntityBuilder) -> Entity:
        return Entity(
            name=entity.name,
            qualified_name=entity.qualified_name,
            kind=entity.kind,
            stereotypes=tuple(entity.stereotypes),
            generics=entity.generics,
            members=tuple(entity.members),
            package=entity.package,
            is_placeholder=entity.is_placeholder,
            label=entity.label,
            line=entity.line,
        )

    def _build_note(self, note: _NoteBuilder) -> Note:
        return Note(
            text="\n".join(note.lines),
            attached_to=note.attached_to,
            position=note.position,
            alias=note.alias,
            line=note.line,
        )

    def _build_package(self, package: _PackageBuilder) -> Package:
        return Package(
            name=package.name,
            qualified_name=package.qualified_name,
            stereotypes=tuple(package.stereotypes),
            entities=self._build_entities(package),
            relationships=tuple(package.relationships),
            notes=tuple(self._build_note(n) for n in package.notes),
            packages=tuple(self._build_package(p) for p in package.children),
            line=package.line,
        )
