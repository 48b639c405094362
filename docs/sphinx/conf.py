# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for the pumlparse documentation."""

project = "pumlparse"
author = "PumlParse Contributors"
release = "0.1.0"

# API pages are generated from the docstrings in src/pumlparse.
extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.doctest"]
autodoc_member_order = "bysource"

html_theme = "alabaster"
