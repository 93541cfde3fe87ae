"""Unit tests for expression evaluation."""

import unittest
from datetime import datetime

from notecalc_pkg.expression import EvaluationContext, apply_conversion, evaluate_text
from notecalc_pkg.temporal import fixed_clock
from notecalc_pkg.values import ListValue, NumberValue


class ExpressionTestCase(unittest.TestCase):
    def setUp(self):
        self.context = EvaluationContext(clock=fixed_clock(datetime(2024, 1, 5, 12, 0)))

    def set_variable(self, name, value):
        self.context.variables.set_variable_with_semantic_value(name, value)

    def assertResult(self, expression, expected):
        value = evaluate_text(expression, self.context)
        self.assertEqual(value.to_string(self.context.options), expected, expression)

    def assertError(self, expression, message):
        value = evaluate_text(expression, self.context)
        self.assertEqual(value.kind, "error", expression)
        self.assertEqual(value.message, message)


class TestPrecedence(ExpressionTestCase):
    def test_unary_minus_binds_looser_than_power(self):
        self.assertResult("-2 ^ 2", "-4")

    def test_power_is_right_associative(self):
        self.assertResult("2 ^ 3 ^ 2", "512")

    def test_constants(self):
        self.assertResult("PI", "3.141593")

    def test_implicit_multiplication(self):
        self.set_variable("x", NumberValue(3))
        self.assertResult("2 x", "6")


class TestSymbolic(ExpressionTestCase):
    def test_unknown_name_stays_symbolic(self):
        self.assertResult("x + 1", "x + 1")


class TestUnitsAndMoney(ExpressionTestCase):
    def test_conversion(self):
        self.assertResult("1 km to m", "1000 m")

    def test_mixed_length_sum(self):
        self.assertResult("50 m + 20 ft", "56.096 m")

    def test_speed(self):
        self.assertResult("10 m / 2 s", "5 m/s")

    def test_currency_rate_times_area(self):
        self.assertResult("$100/m^2 * 5 m^2", "$500")

    def test_currency_scaling(self):
        self.assertResult("$10 * 3", "$30")

    def test_as_percent(self):
        self.assertResult("0.25 as %", "25%")

    def test_plain_number_has_no_unit_to_convert(self):
        value = apply_conversion(NumberValue(5), "km")
        self.assertEqual(value.message, "Cannot convert a plain number to km")


class TestFunctions(ExpressionTestCase):
    def test_sqrt(self):
        self.assertResult("sqrt(16)", "4")
        self.assertError("sqrt(-1)", "sqrt(-1) has no real value")

    def test_aggregates(self):
        self.assertResult("sum(1, 2, 3)", "6")
        self.assertResult("avg(2, 4)", "3")
        self.assertError("max()", "Cannot compute max of an empty list")

    def test_unknown_function(self):
        self.assertError("foo(2)", "Unknown function: foo")


class TestListsAndRanges(ExpressionTestCase):
    def setUp(self):
        super().setUp()
        items = ListValue.create([NumberValue(10), NumberValue(20), NumberValue(30)])
        self.set_variable("xs", items)

    def test_range_with_step(self):
        self.assertResult("1..10 step 3", "1, 4, 7, 10")

    def test_index_is_one_based(self):
        self.assertResult("xs[1]", "10")
        self.assertError("xs[0]", "List indexes start at 1")

    def test_index_out_of_range(self):
        self.assertError("xs[5]", "List index 5 out of range (list has 3 items)")


class TestDates(ExpressionTestCase):
    def test_today(self):
        self.assertResult("today", "2024-01-05")


if __name__ == "__main__":
    unittest.main()
