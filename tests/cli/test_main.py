# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the pumlparse CLI entry point."""

import json
import sys
from pathlib import Path

import pytest

from pumlparse.cli.main import main

# ###############
# Test Helpers
# ###############


def _write(tmp_path: Path, content: str, name: str = "diagram.puml") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def _run(monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
    """Run main() with *args* and return its exit code."""
    monkeypatch.setattr(sys, "argv", ["pumlparse", *args])
    with pytest.raises(SystemExit) as exc_info:
        main()
    code = exc_info.value.code
    assert isinstance(code, int)
    return code


# ###############
# Public Interface
# ###############


def test_main_no_args_prints_help_and_exits(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    """main() with no subcommand prints help and exits with code 0."""
    assert _run(monkeypatch) == 0
    assert "pumlparse" in capsys.readouterr().out


def test_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    assert _run(monkeypatch, "check", str(tmp_path / "nope.puml")) == 1
    assert "does not exist" in capsys.readouterr().err


# -------- check tests --------


def test_check_clean_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    """check exits with code 0 when the diagram has no problems."""
    path = _write(tmp_path, "@startuml\nclass A\nclass B\nA --> B\n@enduml\n")
    assert _run(monkeypatch, "check", str(path)) == 0
    assert "No errors found." in capsys.readouterr().out


def test_check_reports_diagnostics(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    """Parse diagnostics are printed with the file name and line."""
    path = _write(tmp_path, "class A\n}\n")
    assert _run(monkeypatch, "check", str(path)) == 0
    out = capsys.readouterr().out
    assert f"{path}:2: warning: Unmatched '}}' ignored" in out


def test_check_strict_fails_on_warning(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "class A\n}\n")
    assert _run(monkeypatch, "check", "--strict", str(path)) == 1


def test_check_strict_ignores_infos(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "hide empty members\nclass A\n")
    assert _run(monkeypatch, "check", "--strict", str(path)) == 0


def test_check_placeholder_warning(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    path = _write(tmp_path, "class A\nA --> Ghost\n")
    assert _run(monkeypatch, "check", str(path)) == 0
    out = capsys.readouterr().out
    assert f"Warning: {path}:2: Entity 'Ghost' is referenced but never declared." in out


def test_check_cycle_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    """A generalization cycle is a validation error and fails the check."""
    path = _write(tmp_path, "class A extends B\nclass B extends A\n")
    assert _run(monkeypatch, "check", str(path)) == 1
    captured = capsys.readouterr()
    assert "Error: Generalization cycle detected: A -> B -> A." in captured.err
    assert "No errors found." not in captured.out


def test_check_resolves_includes_next_to_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "class Base\n", name="common.puml")
    path = _write(tmp_path, "!include common.puml\nclass Derived extends Base\n")
    assert _run(monkeypatch, "check", "--strict", str(path)) == 0


def test_check_verbose(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "class A\n")
    assert _run(monkeypatch, "check", "--verbose", str(path)) == 0


# -------- configuration --------


def test_config_detected_next_to_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    """A .pumlparse.yaml beside the input file is applied automatically."""
    _write(tmp_path, "case-insensitive-keywords: false\n", name=".pumlparse.yaml")
    path = _write(tmp_path, "CLASS A\n")
    assert _run(monkeypatch, "check", str(path)) == 0
    assert f"{path}:1: info:" in capsys.readouterr().out


def test_explicit_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    config = _write(tmp_path, "redefinition: replace\n", name="custom.yaml")
    path = _write(tmp_path, "class A {\n+x: int\n}\nclass A {\n+y: int\n}\n")
    assert _run(monkeypatch, "format", "--config", str(config), str(path)) == 0
    out = capsys.readouterr().out
    assert "+y" in out
    assert "+x" not in out


def test_invalid_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    _write(tmp_path, "unknown-key: 1\n", name=".pumlparse.yaml")
    path = _write(tmp_path, "class A\n")
    assert _run(monkeypatch, "check", str(path)) == 1
    assert "Error:" in capsys.readouterr().err


def test_missing_explicit_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    path = _write(tmp_path, "class A\n")
    assert _run(monkeypatch, "check", "--config", str(tmp_path / "none.yaml"), str(path)) == 1
    assert "not found" in capsys.readouterr().err


# -------- format and dump --------


def test_format(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    path = _write(tmp_path, "class A {\n+name: String\n}\nclass B\nA --> B\n")
    assert _run(monkeypatch, "format", str(path)) == 0
    assert capsys.readouterr().out == "@startuml\nclass A {\n    +name : String\n}\nclass B\nA --> B\n@enduml\n"


def test_dump(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    path = _write(tmp_path, "class A\nA --> B\n")
    assert _run(monkeypatch, "dump", str(path)) == 0
    obj = json.loads(capsys.readouterr().out)
    assert obj["v"] == "1"
    assert [e["name"] for e in obj["entities"]] == ["A", "B"]
    assert obj["relationships"][0]["kind"] == "association"
