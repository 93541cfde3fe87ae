"""Unit tests for solver module."""

import pytest

from notecalc_pkg.expression import EvaluationContext
from notecalc_pkg.solver import (
    Equation,
    format_tree,
    parse_solve_command,
    solve_explicit,
    solve_for,
    substitute_known_values,
    tree_from_text,
)
from notecalc_pkg.types import SolverError
from notecalc_pkg.values import NumberValue


class TestSolveFor:
    """Isolate a target in a single equation."""

    def test_linear(self):
        assert format_tree(solve_for(Equation("y", "m*x + b"), "x")) == "(y - b) / m"

    def test_square_becomes_sqrt(self):
        assert format_tree(solve_for(Equation("a", "s^2"), "s")) == "sqrt(a)"

    def test_exponent_becomes_log_ratio(self):
        assert format_tree(solve_for(Equation("v", "10^t"), "t")) == "log(v) / log(10)"

    def test_constants_are_substituted(self):
        solved = solve_for(Equation("y", "2*x + 3"), "x", {"y": 11})
        assert format_tree(solved) == "(11 - 3) / 2"

    def test_target_on_both_sides(self):
        with pytest.raises(SolverError, match="variable appears on both sides"):
            solve_for(Equation("x + x", "4"), "x")

    def test_target_missing(self):
        with pytest.raises(SolverError, match='no equation found for "x"'):
            solve_for(Equation("y", "5"), "x")


class TestFormatTree:
    def test_minimal_parentheses(self):
        assert format_tree(tree_from_text("a - (b - c)")) == "a - (b - c)"
        assert format_tree(tree_from_text("(a * b) + c")) == "a * b + c"


class TestParseSolveCommand:
    def test_equations_and_helpers(self):
        command = parse_solve_command("solve x in y = 2*x + 3, y = 11")
        assert command.target == "x"
        assert command.equations == (Equation("y", "2*x + 3"), Equation("y", "11"))
        assert command.where == ()

    def test_where_clause(self):
        command = parse_solve_command("solve x in y = k * x where k = 2, y = 10")
        assert command.equations == (Equation("y", "k * x"),)
        assert command.where == (Equation("k", "2"), Equation("y", "10"))

    def test_not_a_solve_command(self):
        assert parse_solve_command("x = 5") is None
        assert parse_solve_command("solve x") is None


class TestSolveExplicit:
    def setup_method(self):
        self.context = EvaluationContext()

    def test_with_helper_equation(self):
        assert solve_explicit("solve x in y = 2*x + 3, y = 11", self.context).to_string() == "4"

    def test_with_where_clause(self):
        value = solve_explicit("solve x in y = k * x where k = 2, y = 10", self.context)
        assert value.to_string() == "5"

    def test_symbolic_answer_when_values_are_unknown(self):
        value = solve_explicit("solve x in y = m*x + b", self.context)
        assert value.kind == "symbolic"
        assert value.to_string() == "(y - b) / m"

    def test_no_real_solution(self):
        value = solve_explicit("solve x in x^2 = -4", self.context)
        assert value.message == "Cannot solve: no real solution"

    def test_no_equation_for_target(self):
        value = solve_explicit("solve x in y = 5", self.context)
        assert value.message == 'Cannot solve: no equation found for "x"'

    def test_conversion_suffix_applies_to_answer(self):
        value = solve_explicit("solve d in d = v * t where v = 10 m/s, t = 20 s to km", self.context)
        assert value.kind == "unit"
        assert value.to_string() == "0.2 km"

    def test_conversion_suffix_is_not_part_of_equation(self):
        value = solve_explicit("solve x in 2*x = 10 to m", self.context)
        assert value.kind == "error"
        assert value.message == "Cannot convert a plain number to m"

    def test_failing_helper_keeps_its_error_type(self):
        value = solve_explicit("solve x in y = k * x where k = (), y = 10", self.context)
        assert value.error_type == "parse"
        assert value.message == "Empty parentheses"


def test_substitute_known_values_respects_name_boundaries():
    result = substitute_known_values("rate * rate2", {"rate": NumberValue(2)})
    assert result == "2 * rate2"
