# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer and structural parser for PlantUML class diagrams."""

from pumlparse.parser.arrows import ArrowSpec, classify_arrow
from pumlparse.parser.lexer import IncludeResolver, Lexer, Token, TokenType, tokenize
from pumlparse.parser.parser import parse

__all__ = [
    "parse",
    "tokenize",
    "Lexer",
    "Token",
    "TokenType",
    "IncludeResolver",
    "ArrowSpec",
    "classify_arrow",
]
