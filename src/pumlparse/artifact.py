# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization and deserialization of parsed Diagram artifacts.

Artifacts are stored as compact JSON for portability and human-readability.
Optional fields are omitted when unset.  The format is versioned so future
schema changes can be detected.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

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

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"
ARTIFACT_SUFFIX = ".puml.json"


def serialize(diagram: Diagram) -> str:
    """Serialize a Diagram to a compact JSON string."""
    return json.dumps(_diagram_to_dict(diagram), separators=(",", ":"))


def deserialize(data: str) -> Diagram:
    """Deserialize a Diagram from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`Diagram`.

    Raises:
        ValueError: If the artifact format version is not recognised.
    """
    obj = json.loads(data)
    version = obj.get("v") if isinstance(obj, dict) else None
    if version != ARTIFACT_FORMAT_VERSION:
        raise ValueError(f"Unsupported artifact format version: {version!r}")
    return _diagram_from_dict(obj)


def write_artifact(diagram: Diagram, path: Path) -> None:
    """Write an artifact to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(diagram), encoding="utf-8")


def read_artifact(path: Path) -> Diagram:
    """Read and deserialize an artifact from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################


def _put(d: dict[str, Any], key: str, value: Any) -> None:
    """Store *value* under *key* unless it is None."""
    if value is not None:
        d[key] = value


def _diagram_to_dict(diagram: Diagram) -> dict[str, Any]:
    return {
        "v": ARTIFACT_FORMAT_VERSION,
        "entities": [_entity_to_dict(e) for e in diagram.entities],
        "relationships": [_relationship_to_dict(r) for r in diagram.relationships],
        "notes": [_note_to_dict(n) for n in diagram.notes],
        "packages": [_package_to_dict(p) for p in diagram.packages],
        "diagnostics": [_diagnostic_to_dict(d) for d in diagram.diagnostics],
        "opaque": [_opaque_to_dict(b) for b in diagram.opaque_blocks],
    }


def _diagram_from_dict(obj: dict[str, Any]) -> Diagram:
    return Diagram(
        entities=tuple(_entity_from_dict(e) for e in obj.get("entities", [])),
        relationships=tuple(_relationship_from_dict(r) for r in obj.get("relationships", [])),
        notes=tuple(_note_from_dict(n) for n in obj.get("notes", [])),
        packages=tuple(_package_from_dict(p) for p in obj.get("packages", [])),
        diagnostics=tuple(_diagnostic_from_dict(d) for d in obj.get("diagnostics", [])),
        opaque_blocks=tuple(_opaque_from_dict(b) for b in obj.get("opaque", [])),
    )


def _parameter_to_dict(param: Parameter) -> dict[str, Any]:
    d: dict[str, Any] = {"name": param.name}
    _put(d, "type", param.type)
    return d


def _parameter_from_dict(obj: dict[str, Any]) -> Parameter:
    return Parameter(name=obj["name"], type=obj.get("type"))


def _member_to_dict(member: Member) -> dict[str, Any]:
    d: dict[str, Any] = {"name": member.name, "vis": member.visibility.value}
    if member.is_static:
        d["static"] = True
    if member.is_abstract:
        d["abstract"] = True
    _put(d, "type", member.type)
    if member.is_method:
        d["params"] = [_parameter_to_dict(p) for p in member.parameters]
        _put(d, "returns", member.return_type)
    return d


def _member_from_dict(obj: dict[str, Any]) -> Member:
    return Member(
        name=obj["name"],
        visibility=Visibility(obj.get("vis", "")),
        is_static=obj.get("static", False),
        is_abstract=obj.get("abstract", False),
        type=obj.get("type"),
        is_method="params" in obj,
        parameters=tuple(_parameter_from_dict(p) for p in obj.get("params", [])),
        return_type=obj.get("returns"),
    )


def _entity_to_dict(entity: Entity) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": entity.name,
        "qname": entity.qualified_name,
        "kind": entity.kind.value,
        "stereotypes": list(entity.stereotypes),
        "members": [_member_to_dict(m) for m in entity.members],
        "line": entity.line,
    }
    if entity.generics is not None:
        d["generics"] = list(entity.generics)
    if entity.is_placeholder:
        d["placeholder"] = True
    _put(d, "package", entity.package)
    _put(d, "label", entity.label)
    return d


def _entity_from_dict(obj: dict[str, Any]) -> Entity:
    generics = obj.get("generics")
    return Entity(
        name=obj["name"],
        qualified_name=obj["qname"],
        kind=EntityKind(obj["kind"]),
        stereotypes=tuple(obj.get("stereotypes", [])),
        generics=tuple(generics) if generics is not None else None,
        members=tuple(_member_from_dict(m) for m in obj.get("members", [])),
        package=obj.get("package"),
        is_placeholder=obj.get("placeholder", False),
        label=obj.get("label"),
        line=obj.get("line", 0),
    )


def _relationship_to_dict(rel: Relationship) -> dict[str, Any]:
    d: dict[str, Any] = {
        "source": rel.source,
        "target": rel.target,
        "kind": rel.kind.value,
        "dir": rel.direction.value,
        "arrow": rel.arrow,
        "line": rel.line,
    }
    _put(d, "label", rel.label)
    _put(d, "sm", rel.source_multiplicity)
    _put(d, "tm", rel.target_multiplicity)
    return d


def _relationship_from_dict(obj: dict[str, Any]) -> Relationship:
    return Relationship(
        source=obj["source"],
        target=obj["target"],
        kind=RelationshipKind(obj["kind"]),
        direction=Direction(obj["dir"]),
        label=obj.get("label"),
        source_multiplicity=obj.get("sm"),
        target_multiplicity=obj.get("tm"),
        arrow=obj.get("arrow", "--"),
        line=obj.get("line", 0),
    )


def _note_to_dict(note: Note) -> dict[str, Any]:
    d: dict[str, Any] = {"text": note.text, "line": note.line}
    _put(d, "of", note.attached_to)
    _put(d, "pos", note.position.value if note.position is not None else None)
    _put(d, "alias", note.alias)
    return d


def _note_from_dict(obj: dict[str, Any]) -> Note:
    position = obj.get("pos")
    return Note(
        text=obj["text"],
        attached_to=obj.get("of"),
        position=NotePosition(position) if position is not None else None,
        alias=obj.get("alias"),
        line=obj.get("line", 0),
    )


def _package_to_dict(package: Package) -> dict[str, Any]:
    return {
        "name": package.name,
        "qname": package.qualified_name,
        "stereotypes": list(package.stereotypes),
        "entities": [_entity_to_dict(e) for e in package.entities],
        "relationships": [_relationship_to_dict(r) for r in package.relationships],
        "notes": [_note_to_dict(n) for n in package.notes],
        "packages": [_package_to_dict(p) for p in package.packages],
        "line": package.line,
    }


def _package_from_dict(obj: dict[str, Any]) -> Package:
    return Package(
        name=obj["name"],
        qualified_name=obj["qname"],
        stereotypes=tuple(obj.get("stereotypes", [])),
        entities=tuple(_entity_from_dict(e) for e in obj.get("entities", [])),
        relationships=tuple(_relationship_from_dict(r) for r in obj.get("relationships", [])),
        notes=tuple(_note_from_dict(n) for n in obj.get("notes", [])),
        packages=tuple(_package_from_dict(p) for p in obj.get("packages", [])),
        line=obj.get("line", 0),
    )


def _diagnostic_to_dict(diag: Diagnostic) -> dict[str, Any]:
    d: dict[str, Any] = {
        "line": diag.line,
        "message": diag.message,
        "severity": diag.severity.value,
        "kind": diag.kind.value,
    }
    _put(d, "source", diag.source)
    return d


def _diagnostic_from_dict(obj: dict[str, Any]) -> Diagnostic:
    return Diagnostic(
        line=obj["line"],
        message=obj["message"],
        severity=Severity(obj["severity"]),
        kind=DiagnosticKind(obj["kind"]),
        source=obj.get("source"),
    )


def _opaque_to_dict(block: OpaqueBlock) -> dict[str, Any]:
    return {"kind": block.kind, "text": block.text, "line": block.line}


def _opaque_from_dict(obj: dict[str, Any]) -> OpaqueBlock:
    return OpaqueBlock(kind=obj["kind"], text=obj["text"], line=obj.get("line", 0))
