# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parser configuration and its YAML loader."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".pumlparse.yaml"
DEFAULT_MAX_INCLUDE_DEPTH = 16


class ConfigError(Exception):
    """Raised when a configuration file is invalid or cannot be loaded."""


class RedefinitionPolicy(enum.Enum):
    """What happens to the members of an entity that is declared again."""

    MERGE = "merge"
    REPLACE = "replace"


@dataclass(frozen=True)
class ParserConfig:
    """Tunable parsing policy.

    Attributes:
        max_include_depth: Maximum nesting of ``!include`` directives.
        redefinition: Whether a redeclared entity appends or replaces members.
        case_insensitive_keywords: Recognize ``CLASS`` and ``Class`` as keywords.
    """

    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH
    redefinition: RedefinitionPolicy = RedefinitionPolicy.MERGE
    case_insensitive_keywords: bool = True


def load_parser_config(path: Path) -> ParserConfig:
    """Load and parse a parser configuration file.

    Args:
        path: Path to the ``.pumlparse.yaml`` file.

    Returns:
        A ParserConfig populated from the file; absent keys keep their defaults.

    Raises:
        ConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}") from None
    except OSError as exc:
        raise ConfigError(f"Cannot read config file: {exc}") from exc

    return parse_parser_config(text, source_label=str(path))


def parse_parser_config(text: str, source_label: str = "<string>") -> ParserConfig:
    """Parse configuration YAML text into a ParserConfig.

    An empty document yields the defaults.

    Raises:
        ConfigError: If the YAML is invalid, not a mapping, has unknown keys,
            or a value has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return ParserConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{source_label}: parser config must be a YAML mapping")

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"{source_label}: unknown config key(s): {', '.join(unknown)}")

    defaults = ParserConfig()
    return ParserConfig(
        max_include_depth=_optional_depth(data, source_label, defaults.max_include_depth),
        redefinition=_optional_policy(data, source_label, defaults.redefinition),
        case_insensitive_keywords=_optional_bool(
            data, "case-insensitive-keywords", source_label, defaults.case_insensitive_keywords
        ),
    )


# ################
# Implementation
# ################

_KNOWN_KEYS = frozenset({"max-include-depth", "redefinition", "case-insensitive-keywords"})


def _optional_depth(mapping: dict[str, object], source_label: str, default: int) -> int:
    if "max-include-depth" not in mapping:
        return default
    value = mapping["max-include-depth"]
    # bool is a subclass of int; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"{source_label}: 'max-include-depth' must be a non-negative integer")
    return value


def _optional_policy(mapping: dict[str, object], source_label: str, default: RedefinitionPolicy) -> RedefinitionPolicy:
    if "redefinition" not in mapping:
        return default
    value = mapping["redefinition"]
    choices = [policy.value for policy in RedefinitionPolicy]
    if not isinstance(value, str) or value.lower() not in choices:
        raise ConfigError(f"{source_label}: 'redefinition' must be one of {', '.join(choices)}")
    return RedefinitionPolicy(value.lower())


def _optional_bool(mapping: dict[str, object], key: str, source_label: str, default: bool) -> bool:
    if key not in mapping:
        return default
    value = mapping[key]
    if not isinstance(value, bool):
        raise ConfigError(f"{source_label}: '{key}' must be a boolean")
    return value
