# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Immutable diagram model returned by the parser."""

from pumlparse.model.diagnostics import Diagnostic, DiagnosticKind, Severity
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
    Parameter,
    Relationship,
    RelationshipKind,
    Visibility,
)

__all__ = [
    # Diagnostics
    "Diagnostic",
    "DiagnosticKind",
    "Severity",
    # Diagram
    "Diagram",
    "Direction",
    "Entity",
    "EntityKind",
    "Member",
    "Note",
    "NotePosition",
    "OpaqueBlock",
    "Package",
    "Parameter",
    "Relationship",
    "RelationshipKind",
    "Visibility",
]
