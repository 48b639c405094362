# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Normalized PlantUML text for a parsed Diagram.

The output is canonical rather than faithful: comments, styling directives and
``extends``/``implements`` clauses are not reproduced, but parsing the result
again yields a structurally equal diagram.  Within each scope, declarations
are emitted in their original line order so that placeholder entities are
recreated in the same position.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from pumlparse.model.diagram import (
    Diagram,
    Direction,
    Entity,
    EntityKind,
    Member,
    Note,
    OpaqueBlock,
    Package,
    Relationship,
)

# ###############
# Public Interface
# ###############

INDENT = "    "


def render(diagram: Diagram) -> str:
    """Render *diagram* as normalized PlantUML text ending with a newline."""
    writer = _Writer()
    writer.writeln("@startuml")
    _render_scope(writer, "", diagram.entities, diagram.relationships, diagram.notes, diagram.packages)
    for block in diagram.opaque_blocks:
        _render_opaque(writer, block)
    writer.writeln("@enduml")
    return writer.text()


# ################
# Implementation
# ################

_PLAIN_NAME_RE = re.compile(r"^[A-Za-z0-9_$]+(\.[A-Za-z0-9_$]+)*$")

_KIND_KEYWORDS: dict[EntityKind, str] = {
    EntityKind.CLASS: "class",
    EntityKind.INTERFACE: "interface",
    EntityKind.ENUM: "enum",
    EntityKind.ABSTRACT: "abstract class",
}


class _Writer:
    """Indented line buffer."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._depth = 0

    def writeln(self, line: str) -> None:
        self._lines.append(INDENT * self._depth + line if line else line)

    def indent(self) -> None:
        self._depth += 1

    def dedent(self) -> None:
        self._depth -= 1

    def text(self) -> str:
        return "\n".join(self._lines) + "\n"


def _name(name: str) -> str:
    return name if _PLAIN_NAME_RE.match(name) else f'"{name}"'


def _reference(qualified_name: str, scope: str) -> str:
    """Spell *qualified_name* as seen from inside package *scope*."""
    if scope and qualified_name.startswith(scope + "."):
        return _name(qualified_name[len(scope) + 1 :])
    return _name(qualified_name)


def _render_scope(
    writer: _Writer,
    scope: str,
    entities: tuple[Entity, ...],
    relationships: tuple[Relationship, ...],
    notes: tuple[Note, ...],
    packages: tuple[Package, ...],
) -> None:
    # Entries are (line, emitter); the sort is stable so same-line entries keep
    # the category order below.
    entries: list[tuple[int, Callable[[], None]]] = []
    for package in packages:
        entries.append((package.line, lambda p=package: _render_package(writer, p)))
    for entity in entities:
        if not entity.is_placeholder:
            entries.append((entity.line, lambda e=entity: _render_entity(writer, e)))
    for note in notes:
        entries.append((note.line, lambda n=note: _render_note(writer, n, scope)))
    for rel in relationships:
        entries.append((rel.line, lambda r=rel: _render_relationship(writer, r, scope)))
    for _, emit in sorted(entries, key=lambda entry: entry[0]):
        emit()


def _render_package(writer: _Writer, package: Package) -> None:
    header = f"package {_name(package.name)}"
    for stereotype in package.stereotypes:
        header += f" <<{stereotype}>>"
    writer.writeln(header + " {")
    writer.indent()
    _render_scope(
        writer,
        package.qualified_name,
        package.entities,
        package.relationships,
        package.notes,
        package.packages,
    )
    writer.dedent()
    writer.writeln("}")


def _render_entity(writer: _Writer, entity: Entity) -> None:
    if entity.label is not None:
        header = f'{_KIND_KEYWORDS[entity.kind]} "{entity.label}" as {_name(entity.name)}'
    else:
        header = f"{_KIND_KEYWORDS[entity.kind]} {_name(entity.name)}"
    if entity.generics is not None:
        header += "<" + ", ".join(entity.generics) + ">"
    for stereotype in entity.stereotypes:
        header += f" <<{stereotype}>>"
    if not entity.members:
        writer.writeln(header)
        return
    writer.writeln(header + " {")
    writer.indent()
    for member in entity.members:
        writer.writeln(_member_text(member, entity.kind == EntityKind.ENUM))
    writer.dedent()
    writer.writeln("}")


def _member_text(member: Member, in_enum: bool) -> str:
    if in_enum and not member.is_method:
        return member.name
    prefix = ""
    if member.is_static:
        prefix += "{static} "
    if member.is_abstract:
        prefix += "{abstract} "
    if not member.is_method and "(" in member.name:
        prefix += "{field} "
    prefix += member.visibility.value
    if member.is_method:
        params = ", ".join(p.name if p.type is None else f"{p.name}: {p.type}" for p in member.parameters)
        text = f"{prefix}{member.name}({params})"
        return text if member.return_type is None else f"{text} : {member.return_type}"
    return prefix + member.name if member.type is None else f"{prefix}{member.name} : {member.type}"


def _render_relationship(writer: _Writer, rel: Relationship, scope: str) -> None:
    if rel.direction == Direction.RIGHT_TO_LEFT:
        left, right = rel.target, rel.source
        left_m, right_m = rel.target_multiplicity, rel.source_multiplicity
    else:
        left, right = rel.source, rel.target
        left_m, right_m = rel.source_multiplicity, rel.target_multiplicity
    parts = [_reference(left, scope)]
    if left_m is not None:
        parts.append(f'"{left_m}"')
    parts.append(rel.arrow)
    if right_m is not None:
        parts.append(f'"{right_m}"')
    parts.append(_reference(right, scope))
    text = " ".join(parts)
    writer.writeln(text if rel.label is None else f"{text} : {rel.label}")


def _render_note(writer: _Writer, note: Note, scope: str) -> None:
    if note.alias is not None:
        writer.writeln(f"note as {_name(note.alias)}")
    elif note.attached_to is not None:
        position = f"{note.position.value} " if note.position is not None else ""
        writer.writeln(f"note {position}of {_reference(note.attached_to, scope)}")
    else:
        writer.writeln("note on link")
    writer.indent()
    for line in note.text.splitlines():
        writer.writeln(line)
    writer.dedent()
    writer.writeln("end note")
    if note.alias is not None and note.attached_to is not None:
        writer.writeln(f"{_name(note.alias)} .. {_reference(note.attached_to, scope)}")


def _render_opaque(writer: _Writer, block: OpaqueBlock) -> None:
    writer.writeln(f"@start{block.kind}")
    for line in block.text.splitlines():
        writer.writeln(line)
    writer.writeln(f"@end{block.kind}")
