# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Non-fatal observations recorded while scanning and parsing a diagram."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

# ###############
# Public Interface
# ###############


class Severity(Enum):
    """How seriously a consumer should take a diagnostic."""

    WARNING = "warning"
    INFO = "info"


class DiagnosticKind(Enum):
    """Category of a diagnostic."""

    LEXICAL_ODDITY = "lexical-oddity"
    STRUCTURAL_ODDITY = "structural-oddity"
    UNBALANCED_SCOPE = "unbalanced-scope"
    UNRESOLVED_INCLUDE = "unresolved-include"
    INCLUDE_DEPTH_EXCEEDED = "include-depth-exceeded"


# The severity each kind is reported with.
DEFAULT_SEVERITY: dict[DiagnosticKind, Severity] = {
    DiagnosticKind.LEXICAL_ODDITY: Severity.INFO,
    DiagnosticKind.STRUCTURAL_ODDITY: Severity.INFO,
    DiagnosticKind.UNBALANCED_SCOPE: Severity.WARNING,
    DiagnosticKind.UNRESOLVED_INCLUDE: Severity.WARNING,
    DiagnosticKind.INCLUDE_DEPTH_EXCEEDED: Severity.WARNING,
}


class Diagnostic(BaseModel):
    """A non-fatal parse issue.

    Attributes:
        line: 1-based line number within ``source``.
        message: Human-readable description.
        severity: WARNING for recoverable oddities, INFO for ignored constructs.
        kind: The diagnostic category.
        source: The include path the line came from, or None for the root text.
    """

    model_config = ConfigDict(frozen=True)

    line: int
    message: str
    severity: Severity
    kind: DiagnosticKind
    source: str | None = None

    @classmethod
    def of(cls, kind: DiagnosticKind, line: int, message: str, source: str | None = None) -> Diagnostic:
        """Build a diagnostic with the default severity for *kind*."""
        return cls(line=line, message=message, severity=DEFAULT_SEVERITY[kind], kind=kind, source=source)

    def format(self, label: str = "<input>") -> str:
        """Render as ``label:line: severity: message``."""
        where = self.source if self.source is not None else label
        return f"{where}:{self.line}: {self.severity.value}: {self.message}"
