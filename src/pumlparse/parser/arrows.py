# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Relationship arrow alphabet and the lexeme-to-kind table.

The lexer recognizes arrows by longest-prefix match against
:data:`ARROW_SPELLINGS`.  The parser classifies a matched lexeme with
:func:`classify_arrow`, which normalizes the body to two characters and looks
the result up in :data:`ARROW_RULES` in order.
"""

from __future__ import annotations

from typing import NamedTuple

from pumlparse.model.diagram import Direction, RelationshipKind

# ###############
# Public Interface
# ###############


class ArrowRule(NamedTuple):
    """One row of the arrow table."""

    pattern: str
    kind: RelationshipKind
    direction: Direction


class ArrowSpec(NamedTuple):
    """The classification of a concrete arrow lexeme."""

    kind: RelationshipKind
    direction: Direction


LEFT_HEADS: tuple[str, ...] = ("<|", "<", "*", "o")
RIGHT_HEADS: tuple[str, ...] = ("|>", ">", "*", "o")
MAX_BODY_LENGTH = 4

# Checked top to bottom; the first pattern equal to the normalized lexeme wins.
ARROW_RULES: tuple[ArrowRule, ...] = (
    ArrowRule("<-->", RelationshipKind.ASSOCIATION, Direction.BIDIRECTIONAL),
    ArrowRule("<..>", RelationshipKind.DEPENDENCY, Direction.BIDIRECTIONAL),
    ArrowRule("<|--", RelationshipKind.INHERITANCE, Direction.RIGHT_TO_LEFT),
    ArrowRule("--|>", RelationshipKind.INHERITANCE, Direction.LEFT_TO_RIGHT),
    ArrowRule("<|..", RelationshipKind.REALIZATION, Direction.RIGHT_TO_LEFT),
    ArrowRule("..|>", RelationshipKind.REALIZATION, Direction.LEFT_TO_RIGHT),
    ArrowRule("*--", RelationshipKind.COMPOSITION, Direction.RIGHT_TO_LEFT),
    ArrowRule("--*", RelationshipKind.COMPOSITION, Direction.LEFT_TO_RIGHT),
    ArrowRule("*..", RelationshipKind.COMPOSITION, Direction.RIGHT_TO_LEFT),
    ArrowRule("..*", RelationshipKind.COMPOSITION, Direction.LEFT_TO_RIGHT),
    ArrowRule("o--", RelationshipKind.AGGREGATION, Direction.RIGHT_TO_LEFT),
    ArrowRule("--o", RelationshipKind.AGGREGATION, Direction.LEFT_TO_RIGHT),
    ArrowRule("o..", RelationshipKind.AGGREGATION, Direction.RIGHT_TO_LEFT),
    ArrowRule("..o", RelationshipKind.AGGREGATION, Direction.LEFT_TO_RIGHT),
    ArrowRule("..>", RelationshipKind.DEPENDENCY, Direction.LEFT_TO_RIGHT),
    ArrowRule("<..", RelationshipKind.DEPENDENCY, Direction.RIGHT_TO_LEFT),
    ArrowRule("-->", RelationshipKind.ASSOCIATION, Direction.LEFT_TO_RIGHT),
    ArrowRule("<--", RelationshipKind.ASSOCIATION, Direction.RIGHT_TO_LEFT),
    ArrowRule("--", RelationshipKind.LINK, Direction.NONE),
    ArrowRule("..", RelationshipKind.LINK, Direction.NONE),
)


def normalize_arrow(lexeme: str) -> str | None:
    """Collapse the body of *lexeme* to two characters.

    Returns None if *lexeme* has no dash or dot body, or mixes the two.
    """
    start = 0
    while start < len(lexeme) and lexeme[start] not in "-.":
        start += 1
    end = start
    while end < len(lexeme) and lexeme[end] in "-.":
        end += 1
    body = lexeme[start:end]
    if not body or len(set(body)) != 1:
        return None
    return lexeme[:start] + body[0] * 2 + lexeme[end:]


def classify_arrow(lexeme: str) -> ArrowSpec | None:
    """Return the relationship kind and direction for an arrow lexeme.

    Examples:
        >>> classify_arrow("<|---")
        ArrowSpec(kind=<RelationshipKind.INHERITANCE: 'inheritance'>, direction=<Direction.RIGHT_TO_LEFT: 'right-to-left'>)
    """
    normalized = normalize_arrow(lexeme)
    if normalized is None:
        return None
    for rule in ARROW_RULES:
        if rule.pattern == normalized:
            return ArrowSpec(rule.kind, rule.direction)
    return None


# ################
# Implementation
# ################


def _build_spellings() -> tuple[str, ...]:
    spellings: set[str] = set()
    for length in range(1, MAX_BODY_LENGTH + 1):
        for char in "-.":
            body = char * length
            if length >= 2:
                spellings.add(body)
            for head in LEFT_HEADS:
                spellings.add(head + body)
            for head in RIGHT_HEADS:
                spellings.add(body + head)
            spellings.add("<" + body + ">")
    # Longest first so that a prefix scan finds the longest match.
    return tuple(sorted(spellings, key=lambda s: (-len(s), s)))


ARROW_SPELLINGS: tuple[str, ...] = _build_spellings()
