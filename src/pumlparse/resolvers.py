# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Include resolvers that supply the text of ``!include`` targets.

The parser itself never touches the file system; these collaborators are
handed to :func:`pumlparse.parse` by callers that want includes spliced.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class MappingIncludeResolver:
    """Resolves include paths from an in-memory mapping of path to text."""

    def __init__(self, files: Mapping[str, str]) -> None:
        self._files = dict(files)

    def resolve(self, path: str) -> str | None:
        return self._files.get(path)


class DirectoryIncludeResolver:
    """Resolves include paths relative to a base directory.

    Paths that leave the base directory, missing files, and files that cannot
    be read or decoded as UTF-8 resolve to None.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir.resolve()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def resolve(self, path: str) -> str | None:
        candidate = (self._base_dir / path).resolve()
        if not candidate.is_relative_to(self._base_dir):
            logger.debug("Refusing include outside %s: %s", self._base_dir, path)
            return None
        if not candidate.is_file():
            return None
        try:
            return candidate.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Cannot read include %s: %s", candidate, exc)
            return None
