# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Model checks for parsed class diagrams.

These checks run on a finished Diagram and report modelling problems that the
tolerant parser deliberately lets through.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pumlparse.model.diagram import Diagram, RelationshipKind

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal modelling issue.

    Attributes:
        message: Human-readable description of the warning.
        line: Line of the offending declaration, 0 if unknown.
    """

    message: str
    line: int = 0


@dataclass(frozen=True)
class ValidationError:
    """A modelling error that makes the diagram inconsistent.

    Attributes:
        message: Human-readable description of the error.
        line: Line of the offending declaration, 0 if unknown.
    """

    message: str
    line: int = 0


@dataclass
class ValidationResult:
    """Result of running the model checks.

    Attributes:
        warnings: Non-fatal issues found during validation.
        errors: Errors that indicate an inconsistent diagram.
    """

    warnings: list[ValidationWarning] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return True if any validation errors were found."""
        return len(self.errors) > 0


def validate(diagram: Diagram) -> ValidationResult:
    """Run all model checks on a parsed Diagram.

    Checks performed:

    1. **Placeholder entities** (warning): entities that were referenced by a
       relationship or note but never declared.

    2. **Dangling endpoints** (error): relationship ends that name no entity
       in the diagram.  The parser never produces these, but artifacts edited
       by hand can.

    3. **Generalization cycles** (error): cycles in the graph formed by
       inheritance and realization relationships, including an entity that
       extends itself.

    Args:
        diagram: The Diagram to validate.

    Returns:
        A :class:`ValidationResult` containing any warnings and errors found.
    """
    warnings: list[ValidationWarning] = []
    errors: list[ValidationError] = []

    warnings.extend(_check_placeholders(diagram))
    errors.extend(_check_dangling_endpoints(diagram))
    errors.extend(_check_generalization_cycles(diagram))

    return ValidationResult(warnings=warnings, errors=errors)


# ################
# Implementation
# ################

_GENERALIZATION_KINDS = frozenset({RelationshipKind.INHERITANCE, RelationshipKind.REALIZATION})


def _detect_cycle(graph: dict[str, list[str]]) -> list[str] | None:
    """Detect a cycle in a directed graph using DFS.

    Uses a three-colour marking scheme (white/grey/black) to distinguish
    unvisited, in-progress, and fully-explored nodes.

    Args:
        graph: Adjacency list mapping each node to its direct neighbours.
            Nodes that appear only as neighbours are treated as having no
            outgoing edges.

    Returns:
        The nodes forming the cycle with the start node repeated at the end
        (e.g. ``["A", "B", "A"]``), or ``None`` if the graph is acyclic.
    """
    WHITE, GREY, BLACK = 0, 1, 2
    color: dict[str, int] = {}
    path: list[str] = []

    def _dfs(node: str) -> list[str] | None:
        color[node] = GREY
        path.append(node)
        for neighbor in graph.get(node, []):
            state = color.get(neighbor, WHITE)
            if state == GREY:
                cycle_start = path.index(neighbor)
                return path[cycle_start:] + [neighbor]
            if state == WHITE:
                result = _dfs(neighbor)
                if result is not None:
                    return result
        path.pop()
        color[node] = BLACK
        return None

    for node in graph:
        if color.get(node, WHITE) == WHITE:
            result = _dfs(node)
            if result is not None:
                return result
    return None


def _check_placeholders(diagram: Diagram) -> list[ValidationWarning]:
    """Return warnings for entities that were referenced but never declared."""
    return [
        ValidationWarning(
            message=f"Entity '{entity.qualified_name}' is referenced but never declared.",
            line=entity.line,
        )
        for entity in diagram.iter_entities()
        if entity.is_placeholder
    ]


def _check_dangling_endpoints(diagram: Diagram) -> list[ValidationError]:
    """Return errors for relationship ends that name no entity."""
    known = {entity.qualified_name for entity in diagram.iter_entities()}
    errors: list[ValidationError] = []
    for rel in diagram.iter_relationships():
        for end in (rel.source, rel.target):
            if end not in known:
                errors.append(
                    ValidationError(
                        message=f"Relationship refers to unknown entity '{end}'.",
                        line=rel.line,
                    )
                )
    return errors


def _check_generalization_cycles(diagram: Diagram) -> list[ValidationError]:
    """Return an error for a cycle among inheritance and realization edges."""
    graph: dict[str, list[str]] = {}
    for rel in diagram.iter_relationships():
        if rel.kind in _GENERALIZATION_KINDS:
            graph.setdefault(rel.source, []).append(rel.target)

    cycle = _detect_cycle(graph)
    if cycle is None:
        return []
    cycle_str = " -> ".join(cycle)
    return [ValidationError(message=f"Generalization cycle detected: {cycle_str}.")]
