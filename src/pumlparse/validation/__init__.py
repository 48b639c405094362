# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Consistency checks for parsed diagrams (placeholders, inheritance cycles, etc.)."""

from pumlparse.validation.checks import (
    ValidationError,
    ValidationResult,
    ValidationWarning,
    validate,
)

__all__ = [
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "validate",
]
