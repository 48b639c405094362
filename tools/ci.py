#!/usr/bin/env python3
# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run all CI checks locally: format, lint, type check, tests, doctests, and build.

Usage: ``tools/ci.py [--skip NAME ...]`` where NAME is a step key such as
``types`` or ``build``.
"""

import argparse
import pathlib
import subprocess
import sys
import time

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: list[tuple[str, str, list[str]]] = [
    ("format", "Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/"]),
    ("lint", "Lint", ["uv", "run", "ruff", "check", "src/", "tests/"]),
    ("types", "Type check", ["uv", "run", "ty", "check", "src/"]),
    ("tests", "Tests", ["uv", "run", "pytest", "--cov=pumlparse", "--cov-report=term-missing"]),
    ("doctest", "Doctests", ["uv", "run", "pytest", "--doctest-modules", "src/pumlparse/parser/arrows.py"]),
    ("build", "Build", ["uv", "build"]),
]


def main() -> int:
    """Run the selected CI steps and report results."""
    parser = argparse.ArgumentParser(description="Run the pumlparse CI steps locally.")
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        choices=[key for key, _, _ in STEPS],
        help="Step to skip; may be given more than once",
    )
    args = parser.parse_args()

    results: list[tuple[str, bool, float]] = []
    for key, name, cmd in STEPS:
        if key in args.skip:
            continue
        _banner(name)
        start = time.monotonic()
        proc = subprocess.run(cmd, cwd=_repo_root())
        results.append((name, proc.returncode == 0, time.monotonic() - start))

    _banner("  Summary")
    for name, passed, elapsed in results:
        paint = chalk.green if passed else chalk.red
        print(paint(f"  {'PASS' if passed else 'FAIL'}  {name} ({elapsed:.1f}s)"))
    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}")
    print(chalk.blue(title))
    print(sep)


def _repo_root() -> str:
    return str(pathlib.Path(__file__).parent.parent)


if __name__ == "__main__":
    sys.exit(main())
