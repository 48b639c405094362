# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagram model: entities, members, relationships, notes, and packages."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from pumlparse.model.diagnostics import Diagnostic, Severity

# ###############
# Public Interface
# ###############


class EntityKind(Enum):
    """The type-node flavours of a class diagram."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    ABSTRACT = "abstract"


class Visibility(Enum):
    """Member visibility as written with a leading symbol."""

    PUBLIC = "+"
    PRIVATE = "-"
    PROTECTED = "#"
    PACKAGE_PRIVATE = "~"
    UNSPECIFIED = ""


class RelationshipKind(Enum):
    """Edge semantics derived from the arrow lexeme."""

    ASSOCIATION = "association"
    AGGREGATION = "aggregation"
    COMPOSITION = "composition"
    INHERITANCE = "inheritance"
    REALIZATION = "realization"
    DEPENDENCY = "dependency"
    LINK = "link"


class Direction(Enum):
    """Which end of the arrow carries the head or decoration."""

    LEFT_TO_RIGHT = "left-to-right"
    RIGHT_TO_LEFT = "right-to-left"
    BIDIRECTIONAL = "bidirectional"
    NONE = "none"


class NotePosition(Enum):
    """Placement hint of a note relative to its entity."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    OVER = "over"


class Parameter(BaseModel):
    """One entry in a method's parameter list."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str | None = None


class Member(BaseModel):
    """An attribute or method declared inside an entity body."""

    model_config = ConfigDict(frozen=True)

    name: str
    visibility: Visibility = Visibility.UNSPECIFIED
    is_static: bool = False
    is_abstract: bool = False
    type: str | None = None
    is_method: bool = False
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None


class Entity(BaseModel):
    """A class, interface, enum, or abstract type node.

    ``is_placeholder`` is True when the entity was only ever referenced by a
    relationship and never declared.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    qualified_name: str
    kind: EntityKind = EntityKind.CLASS
    stereotypes: tuple[str, ...] = ()
    generics: tuple[str, ...] | None = None
    members: tuple[Member, ...] = ()
    package: str | None = None
    is_placeholder: bool = False
    label: str | None = None
    line: int = 0


class Relationship(BaseModel):
    """A directed or undirected edge between two entities, by qualified name."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    kind: RelationshipKind
    direction: Direction
    label: str | None = None
    source_multiplicity: str | None = None
    target_multiplicity: str | None = None
    arrow: str = "--"
    line: int = 0


class Note(BaseModel):
    """Free text, floating or attached to an entity."""

    model_config = ConfigDict(frozen=True)

    text: str
    attached_to: str | None = None
    position: NotePosition | None = None
    alias: str | None = None
    line: int = 0


class OpaqueBlock(BaseModel):
    """Verbatim body of a ``@startXXX`` block of an unsupported diagram type."""

    model_config = ConfigDict(frozen=True)

    kind: str
    text: str
    line: int = 0


class Package(BaseModel):
    """A named scope owning nested entities, relationships, notes, and packages."""

    model_config = ConfigDict(frozen=True)

    name: str
    qualified_name: str
    stereotypes: tuple[str, ...] = ()
    entities: tuple[Entity, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    notes: tuple[Note, ...] = ()
    packages: tuple[Package, ...] = ()
    line: int = 0


RelationshipRole = Literal["any", "source", "target"]


class Diagram(BaseModel):
    """Root of a parsed class diagram.

    All sequences keep declaration order. Diagnostics are ordered by line.
    Instances are immutable and safe to share between readers.
    """

    model_config = ConfigDict(frozen=True)

    entities: tuple[Entity, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    notes: tuple[Note, ...] = ()
    packages: tuple[Package, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    opaque_blocks: tuple[OpaqueBlock, ...] = ()

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_packages(self) -> Iterator[Package]:
        """Yield every package, depth-first in declaration order."""
        stack = list(reversed(self.packages))
        while stack:
            package = stack.pop()
            yield package
            stack.extend(reversed(package.packages))

    def iter_entities(self) -> Iterator[Entity]:
        """Yield top-level entities, then those of each package depth-first."""
        yield from self.entities
        for package in self.iter_packages():
            yield from package.entities

    def iter_relationships(self) -> Iterator[Relationship]:
        yield from self.relationships
        for package in self.iter_packages():
            yield from package.relationships

    def iter_notes(self) -> Iterator[Note]:
        yield from self.notes
        for package in self.iter_packages():
            yield from package.notes

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_entity(self, qualified_name: str) -> Entity | None:
        """Return the entity with *qualified_name* (``pkg.sub.Name``), if any."""
        for entity in self.iter_entities():
            if entity.qualified_name == qualified_name:
                return entity
        return None

    def get_package(self, qualified_name: str) -> Package | None:
        for package in self.iter_packages():
            if package.qualified_name == qualified_name:
                return package
        return None

    def relationships_by_kind(self, kind: RelationshipKind) -> list[Relationship]:
        """Return all relationships of *kind* across every scope."""
        return [rel for rel in self.iter_relationships() if rel.kind == kind]

    def relationships_for(self, qualified_name: str, role: RelationshipRole = "any") -> list[Relationship]:
        """Return relationships touching *qualified_name*.

        Args:
            qualified_name: The entity to filter on.
            role: ``"source"`` or ``"target"`` restricts the matching end;
                ``"any"`` matches either.
        """
        result: list[Relationship] = []
        for rel in self.iter_relationships():
            if role in ("any", "source") and rel.source == qualified_name:
                result.append(rel)
            elif role in ("any", "target") and rel.target == qualified_name:
                result.append(rel)
        return result

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    @property
    def infos(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.INFO]


# Resolve forward references in self-referential models.
Package.model_rebuild()
