# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the pumlparse command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from pumlparse.artifact import serialize
from pumlparse.config import CONFIG_FILE_NAME, ConfigError, ParserConfig, load_parser_config
from pumlparse.model.diagnostics import Diagnostic, Severity
from pumlparse.model.diagram import Diagram
from pumlparse.parser.parser import parse
from pumlparse.render import render
from pumlparse.resolvers import DirectoryIncludeResolver
from pumlparse.validation.checks import validate

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the pumlparse CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("file", help="PlantUML class-diagram file to read")
    common.add_argument(
        "--config",
        default=None,
        help=f"Parser configuration file (default: {CONFIG_FILE_NAME} next to FILE, if present)",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Log include resolution and parser progress to stderr",
    )

    parser = argparse.ArgumentParser(
        prog="pumlparse",
        description="pumlparse: PlantUML class-diagram parser",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Report parse diagnostics and model problems",
        description="Parse a diagram and report diagnostics and validation results.",
    )
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when any warning-level diagnostic is reported",
    )

    # format subcommand
    subparsers.add_parser(
        "format",
        parents=[common],
        help="Print the diagram as normalized PlantUML",
        description="Parse a diagram and print its normalized PlantUML text.",
    )

    # dump subcommand
    subparsers.add_parser(
        "dump",
        parents=[common],
        help="Print the parsed diagram as JSON",
        description="Parse a diagram and print the versioned JSON artifact.",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "format":
        return _cmd_format(args)
    if args.command == "dump":
        return _cmd_dump(args)
    return 0


def _load(args: argparse.Namespace) -> tuple[Path, Diagram, list[Diagnostic]] | None:
    """Read, configure, and parse the input file; print an error and return None on failure."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file '{path}' does not exist.", file=sys.stderr)
        return None

    config = ParserConfig()
    config_path = Path(args.config) if args.config is not None else path.parent / CONFIG_FILE_NAME
    if args.config is not None or config_path.exists():
        try:
            config = load_parser_config(config_path)
        except ConfigError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: cannot read '{path}': {exc}", file=sys.stderr)
        return None

    diagram, diagnostics = parse(text, DirectoryIncludeResolver(path.parent), config)
    return path, diagram, diagnostics


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    loaded = _load(args)
    if loaded is None:
        return 1
    path, diagram, diagnostics = loaded

    for diagnostic in diagnostics:
        print(diagnostic.format(label=str(path)))

    result = validate(diagram)
    for warning in result.warnings:
        print(f"Warning: {_located(path, warning.line)}{warning.message}")
    for error in result.errors:
        print(f"Error: {_located(path, error.line)}{error.message}", file=sys.stderr)

    if result.has_errors:
        return 1
    if args.strict and any(d.severity == Severity.WARNING for d in diagnostics):
        return 1

    print("No errors found.")
    return 0


def _located(path: Path, line: int) -> str:
    return f"{path}:{line}: " if line else ""


def _cmd_format(args: argparse.Namespace) -> int:
    """Handle the format subcommand."""
    loaded = _load(args)
    if loaded is None:
        return 1
    _, diagram, _ = loaded
    print(render(diagram), end="")
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    """Handle the dump subcommand."""
    loaded = _load(args)
    if loaded is None:
        return 1
    _, diagram, _ = loaded
    print(serialize(diagram))
    return 0
