# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tokenizer and structural parser for PlantUML class diagrams."""

from pumlparse.config import ParserConfig, RedefinitionPolicy
from pumlparse.model import Diagnostic, Diagram
from pumlparse.parser import IncludeResolver, parse

__all__ = [
    "parse",
    "Diagram",
    "Diagnostic",
    "IncludeResolver",
    "ParserConfig",
    "RedefinitionPolicy",
]
