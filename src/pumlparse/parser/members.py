# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Grammar for the member lines of an entity body.

Accepted forms (all parts optional except the name)::

    [{static}|{abstract}|{field}|{method}] [static] [abstract] [+-#~] name [: type]
    ... [+-#~] type name
    ... [+-#~] name(param, param: type, type param) [: return-type]
    ... [+-#~] return-type name(params)

Enum bodies hold one constant per line; a trailing comma is dropped.
"""

from __future__ import annotations

import re

from pumlparse.model.diagram import Member, Parameter, Visibility

# ###############
# Public Interface
# ###############

VISIBILITY_SYMBOLS: dict[str, Visibility] = {
    "+": Visibility.PUBLIC,
    "-": Visibility.PRIVATE,
    "#": Visibility.PROTECTED,
    "~": Visibility.PACKAGE_PRIVATE,
}


def parse_member(text: str, in_enum: bool = False) -> Member | None:
    """Parse one member line.

    Args:
        text: The member line with comments removed.
        in_enum: True inside an enum body, where plain lines are constants.

    Returns:
        The parsed Member, or None if the line has no usable name.
    """
    rest = text.strip()
    if in_enum and "(" not in rest:
        name = rest.rstrip(",").strip()
        return Member(name=name) if _is_plausible_name(name) else None

    flags = _Flags()
    rest = _strip_prefixes(rest, flags)
    if not rest:
        return None

    is_method = flags.force_method or (not flags.force_field and "(" in rest and ")" in rest)
    if is_method:
        return _parse_method(rest, flags)
    return _parse_attribute(rest, flags)


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split *text* on *separator* outside of ``<>``, ``()`` and ``[]`` nesting."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "<([":
            depth += 1
        elif ch in ">)]" and depth > 0:
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


# ################
# Implementation
# ################

_MODIFIER_RE = re.compile(r"^\{\s*(static|classifier|abstract|field|method)\s*\}", re.IGNORECASE)
_KEYWORD_RE = re.compile(r"^(static|abstract)\s+", re.IGNORECASE)


class _Flags:
    """Modifiers collected from the front of a member line."""

    def __init__(self) -> None:
        self.visibility = Visibility.UNSPECIFIED
        self.is_static = False
        self.is_abstract = False
        self.force_field = False
        self.force_method = False


def _is_plausible_name(name: str) -> bool:
    return bool(name) and not any(ch in name for ch in "{}")


def _strip_prefixes(rest: str, flags: _Flags) -> str:
    """Consume modifiers, modifier keywords, and the visibility symbol in any order."""
    while rest:
        modifier = _MODIFIER_RE.match(rest)
        keyword = _KEYWORD_RE.match(rest)
        if modifier is not None:
            word = modifier.group(1).lower()
            if word in ("static", "classifier"):
                flags.is_static = True
            elif word == "abstract":
                flags.is_abstract = True
            elif word == "field":
                flags.force_field = True
            else:
                flags.force_method = True
            rest = rest[modifier.end() :].lstrip()
        elif keyword is not None:
            if keyword.group(1).lower() == "static":
                flags.is_static = True
            else:
                flags.is_abstract = True
            rest = rest[keyword.end() :].lstrip()
        elif rest[0] in VISIBILITY_SYMBOLS and flags.visibility == Visibility.UNSPECIFIED:
            flags.visibility = VISIBILITY_SYMBOLS[rest[0]]
            rest = rest[1:].lstrip()
        else:
            break
    return rest


def _split_name_and_type(words: str) -> tuple[str, str | None]:
    """Split ``type name`` into ``(name, type)``; a single word is just a name."""
    pieces = words.split()
    if len(pieces) <= 1:
        return words.strip(), None
    return pieces[-1], " ".join(pieces[:-1])


def _parse_parameter(text: str) -> Parameter:
    if ":" in text:
        name, _, type_text = text.partition(":")
        return Parameter(name=name.strip(), type=type_text.strip() or None)
    name, type_text = _split_name_and_type(text)
    return Parameter(name=name, type=type_text)


def _parse_method(rest: str, flags: _Flags) -> Member | None:
    open_index = rest.find("(")
    close_index = rest.rfind(")")
    if open_index == -1 or close_index < open_index:
        head, params_text, tail = rest, "", ""
    else:
        head = rest[:open_index]
        params_text = rest[open_index + 1 : close_index]
        tail = rest[close_index + 1 :].strip()

    name, return_type = _split_name_and_type(head)
    if tail.startswith(":"):
        return_type = tail[1:].strip() or None
    if not _is_plausible_name(name):
        return None

    return Member(
        name=name,
        visibility=flags.visibility,
        is_static=flags.is_static,
        is_abstract=flags.is_abstract,
        is_method=True,
        parameters=tuple(_parse_parameter(p) for p in split_top_level(params_text)),
        return_type=return_type,
    )


def _parse_attribute(rest: str, flags: _Flags) -> Member | None:
    if ":" in rest:
        name, _, type_text = rest.partition(":")
        name = name.strip()
        declared_type: str | None = type_text.strip() or None
    else:
        name, declared_type = _split_name_and_type(rest)
    if not _is_plausible_name(name):
        return None
    return Member(
        name=name,
        visibility=flags.visibility,
        is_static=flags.is_static,
        is_abstract=flags.is_abstract,
        type=declared_type,
    )
