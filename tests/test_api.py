"""Tests for the public API: single lines, notepad sessions and documents."""

from datetime import datetime

import pytest

from notecalc_pkg.api import Notepad, evaluate, evaluate_document
from notecalc_pkg.temporal import fixed_clock

CLOCK = fixed_clock(datetime(2024, 1, 5, 12, 0))


class TestEvaluate:
    """Test the single-line evaluate() entry point."""

    def test_percentage_phrase(self):
        result = evaluate("20% of 100")
        assert result.ok
        assert result.kind == "mathResult"
        assert result.result == "20"

    def test_error(self):
        result = evaluate("1 / 0 =>")
        assert not result.ok
        assert result.error == "Division by zero"

    def test_plain_text(self):
        result = evaluate("Hello there")
        assert result.ok
        assert result.kind == "text"
        assert result.result is None

    def test_variable_assignment(self):
        result = evaluate("x = 5")
        assert result.kind == "variable"
        assert result.result == "5"
        assert result.variable == "x"
        assert result.value_type == "number"
        assert result.to_dict() == {
            "ok": True, "kind": "variable", "result": "5", "type": "number", "variable": "x",
        }

    def test_date_math_uses_clock(self):
        assert evaluate("today + 3 business days", clock=CLOCK).result == "2024-01-10"

    def test_explicit_solve(self):
        assert evaluate("solve x in y = 2*x + 3, y = 11 =>").result == "4"

    def test_input_too_long(self):
        result = evaluate("1" * 10001)
        assert not result.ok
        assert result.error == "Input too long (max 10000 characters)"


class TestNotepad:
    """Lines evaluated in sequence share variables, functions and equations."""

    @pytest.fixture
    def pad(self):
        return Notepad(clock=CLOCK)

    def lines(self, pad, *texts):
        return [pad.evaluate_line(text).display_text for text in texts]

    def test_percentage_on_variable(self, pad):
        assert self.lines(pad, "price = 100", "price + 10% =>") == [
            "price = 100",
            "price + 10% => 110",
        ]

    def test_combined_assignment(self, pad):
        assert pad.evaluate_line("y = 2 * 3 =>").display_text == "y = 2 * 3 => 6"
        assert pad.variable_snapshot() == {"y": "6"}

    def test_invalid_variable_value(self, pad):
        rendered = pad.evaluate_line("z = 1 / 0")
        assert rendered.display_text == "z => ⚠️ Invalid variable value: Division by zero"
        assert "z" not in pad.variables

    def test_implicit_solve(self, pad):
        shown = self.lines(pad, "total = price * qty", "qty = 4", "total = 120", "price =>")
        assert shown[-1] == "price => 30"

    def test_unknown_name_without_equation(self, pad):
        rendered = pad.evaluate_line("x =>")
        assert rendered.type == "error"
        assert rendered.error == 'Cannot solve: no equation found for "x"'

    def test_user_function(self, pad):
        shown = self.lines(pad, "f(x) = x^2 + 1", "f(3) =>")
        assert shown == ["f(x) = x^2 + 1", "f(3) => 10"]

    def test_named_and_default_arguments(self, pad):
        shown = self.lines(pad, "area(w, h = 2) = w * h", "area(4) =>", "area(h: 3, w: 2) =>")
        assert shown[1:] == ["area(4) => 8", "area(h: 3, w: 2) => 6"]

    def test_runaway_recursion(self, pad):
        pad.evaluate_line("f(x) = f(x)")
        rendered = pad.evaluate_line("f(1) =>")
        assert rendered.type == "error"
        assert "Maximum function call depth exceeded" in rendered.error

    def test_recursion_error_is_reported_once(self, pad):
        pad.evaluate_line("f(n) = n * f(n - 1)")
        rendered = pad.evaluate_line("f(3) =>")
        assert rendered.error == (
            "Maximum function call depth exceeded (20). Check 'f' for unbounded recursion"
        )
        assert "Cannot multiply with error" not in rendered.display_text

    def test_reset(self, pad):
        pad.evaluate_line("a = 1")
        pad.reset()
        assert pad.variable_snapshot() == {}

    def test_document_starts_from_empty_stores(self, pad):
        pad.evaluate_line("x = 1")
        pad.evaluate_document("y = 2")
        assert pad.variable_snapshot() == {"y": "2"}


class TestEvaluateDocument:
    def test_lines_and_variables(self):
        result = evaluate_document("a = 2\nb = a * 3\nb + 1 =>")
        assert result.ok
        assert [line["display_text"] for line in result.lines] == [
            "a = 2",
            "b = 6",
            "b + 1 => 7",
        ]
        assert result.variables == {"a": "2", "b": "6"}

    def test_error_line_marks_document(self):
        result = evaluate_document("1 / 0 =>\n2 + 2 =>")
        assert not result.ok
        assert result.lines[1]["display_text"] == "2 + 2 => 4"
