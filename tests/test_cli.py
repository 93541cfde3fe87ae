"""Tests for the command-line interface."""

import json

from notecalc_pkg.cli import main_entry
from notecalc_pkg.config import VERSION


def test_eval_prints_result(capsys):
    assert main_entry(["-e", "2 + 3 =>"]) == 0
    assert capsys.readouterr().out == "5\n"


def test_eval_error_exit_code(capsys):
    assert main_entry(["-e", "1 / 0 =>"]) == 1
    assert capsys.readouterr().out == "Error: Division by zero\n"


def test_eval_empty_input(capsys):
    assert main_entry(["-e", "   "]) == 1
    assert "Empty input" in capsys.readouterr().out


def test_eval_json(capsys):
    assert main_entry(["-e", "x = 5", "--format", "json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {"ok": True, "kind": "variable", "result": "5", "type": "number", "variable": "x"}


def test_precision_flag(capsys):
    assert main_entry(["-e", "PI =>", "-p", "2"]) == 0
    assert capsys.readouterr().out == "3.14\n"


def test_file(tmp_path, capsys):
    document = tmp_path / "budget.txt"
    document.write_text("# budget\nrent = 1200\nrent * 12 =>\n", encoding="utf-8")
    assert main_entry(["-f", str(document)]) == 0
    assert capsys.readouterr().out.splitlines() == ["# budget", "rent = 1200", "rent * 12 => 14400", ""]


def test_file_with_error_line(tmp_path, capsys):
    document = tmp_path / "broken.txt"
    document.write_text("(1 + 2 =>", encoding="utf-8")
    assert main_entry(["-f", str(document)]) == 1
    assert "Unmatched opening parenthesis" in capsys.readouterr().out


def test_missing_file(tmp_path, capsys):
    assert main_entry(["-f", str(tmp_path / "nope.txt")]) == 2
    assert capsys.readouterr().out.startswith("Error: cannot read")


def test_version(capsys):
    assert main_entry(["--version"]) == 0
    assert capsys.readouterr().out.strip() == VERSION
