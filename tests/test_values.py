"""Unit tests for semantic values and their arithmetic."""

import unittest

from notecalc_pkg.units import parse_unit
from notecalc_pkg.values import (
    CurrencyUnitValue,
    CurrencyValue,
    ErrorValue,
    ListValue,
    NumberValue,
    PercentageValue,
    SymbolicValue,
    UnitValue,
    make_number,
)


class TestNumberArithmetic(unittest.TestCase):
    """Test plain number arithmetic."""

    def test_basic_operations(self):
        self.assertEqual(NumberValue(2).add(NumberValue(3)).to_string(), "5")
        self.assertEqual(NumberValue(2).subtract(NumberValue(3)).to_string(), "-1")
        self.assertEqual(NumberValue(2).multiply(NumberValue(3)).to_string(), "6")
        self.assertEqual(NumberValue(3).divide(NumberValue(2)).to_string(), "1.5")

    def test_add_percentage_scales(self):
        self.assertEqual(NumberValue(100).add(PercentageValue(10)).to_string(), "110")
        self.assertEqual(NumberValue(100).subtract(PercentageValue(10)).to_string(), "90")

    def test_division_by_zero(self):
        result = NumberValue(1).divide(NumberValue(0))
        self.assertIsInstance(result, ErrorValue)
        self.assertEqual(result.message, "Division by zero")
        self.assertEqual(result.error_type, "semantic")

    def test_power(self):
        self.assertEqual(NumberValue(2).power(10).to_string(), "1024")
        self.assertEqual(NumberValue(-8).power(0.5).kind, "error")

    def test_non_finite_result_is_error(self):
        self.assertEqual(make_number(float("inf")).kind, "error")


class TestErrorPropagation(unittest.TestCase):
    """Errors absorb every operation they take part in."""

    def test_error_on_right(self):
        error = ErrorValue.semantic_error("bad")
        result = NumberValue(1).add(error)
        self.assertEqual(result.message, "Cannot add with error: bad")
        self.assertIs(result.root_cause(), error)

    def test_two_errors(self):
        left = ErrorValue.semantic_error("a")
        right = ErrorValue.semantic_error("b")
        self.assertEqual(left.multiply(right).message, "Multiple errors in multiply: a; b")

    def test_user_message_includes_suggestion(self):
        error = ErrorValue.semantic_error("Cannot add", suggestion="Give both sides units")
        self.assertEqual(error.user_message(), "Cannot add. Give both sides units")

    def test_chain(self):
        error = ErrorValue.runtime_error("inner")
        chained = error.chain("In argument of f")
        self.assertEqual(chained.message, "In argument of f: inner")
        self.assertIs(chained.cause, error)


class TestSymbolicValues(unittest.TestCase):
    """Unknown names defer evaluation and keep minimal parentheses."""

    def test_number_times_symbol(self):
        self.assertEqual(NumberValue(2).multiply(SymbolicValue("x")).to_string(), "2 * x")

    def test_sum_then_product_is_parenthesized(self):
        value = SymbolicValue("x").add(NumberValue(1)).multiply(NumberValue(2))
        self.assertEqual(value.to_string(), "(x + 1) * 2")

    def test_right_subtraction_is_parenthesized(self):
        inner = SymbolicValue("b").subtract(SymbolicValue("c"))
        self.assertEqual(SymbolicValue("a").subtract(inner).to_string(), "a - (b - c)")

    def test_negate(self):
        self.assertEqual(SymbolicValue("x").negate().to_string(), "-x")


class TestPercentages(unittest.TestCase):
    def test_of_on_off(self):
        base = NumberValue(100)
        self.assertEqual(PercentageValue(20).of(base).to_string(), "20")
        self.assertEqual(PercentageValue(20).on(base).to_string(), "120")
        self.assertEqual(PercentageValue(20).off(base).to_string(), "80")

    def test_what_percent_of(self):
        result = PercentageValue.what_percent_of(NumberValue(20), NumberValue(80))
        self.assertEqual(result.to_string(), "25%")

    def test_percentage_of_currency_keeps_currency(self):
        self.assertEqual(PercentageValue(10).of(CurrencyValue("$", 50)).to_string(), "$5")


class TestCurrency(unittest.TestCase):
    def test_same_currency_sum(self):
        total = CurrencyValue("$", 10).add(CurrencyValue("$", 5.5))
        self.assertEqual(total.to_string(), "$15.5")

    def test_different_currencies(self):
        result = CurrencyValue("$", 1).add(CurrencyValue("€", 1))
        self.assertEqual(result.kind, "error")
        self.assertEqual(result.message, "Cannot add $ and €: different currencies")

    def test_suffix_currency(self):
        self.assertEqual(CurrencyValue("CHF", 100).to_string(), "100 CHF")

    def test_rate_times_area_cancels_to_money(self):
        rate = CurrencyUnitValue("$", 100, parse_unit("m^2"))
        self.assertEqual(rate.to_string(), "$100/m^2")
        self.assertEqual(rate.multiply(UnitValue.of(5, "m^2")).to_string(), "$500")

    def test_money_divided_by_unit_is_rate(self):
        rate = CurrencyValue("$", 30).divide(UnitValue.of(3, "m"))
        self.assertEqual(rate.kind, "currencyUnit")
        self.assertEqual(rate.to_string(), "$10/m")


class TestUnitValues(unittest.TestCase):
    def test_display_rescales(self):
        self.assertEqual(UnitValue.of(1500, "m").to_string(), "1.5 km")

    def test_explicit_conversion_is_kept(self):
        self.assertEqual(UnitValue.of(5, "m").convert_to("cm").to_string(), "500 cm")

    def test_plain_number_cannot_be_added(self):
        result = UnitValue.of(5, "m").add(NumberValue(3))
        self.assertEqual(result.kind, "error")
        self.assertEqual(result.message, "Cannot add a plain number and m")

    def test_dimensionless_ratio_becomes_number(self):
        ratio = UnitValue.of(1, "m").divide(UnitValue.of(50, "cm"))
        self.assertEqual(ratio.kind, "number")
        self.assertEqual(ratio.to_string(), "2")


class TestLists(unittest.TestCase):
    def _numbers(self, *values):
        return ListValue.create(NumberValue(value) for value in values)

    def test_broadcast(self):
        self.assertEqual(self._numbers(1, 2, 3).multiply(NumberValue(2)).to_string(), "2, 4, 6")
        self.assertEqual(NumberValue(10).subtract(self._numbers(1, 2)).to_string(), "9, 8")

    def test_zip(self):
        self.assertEqual(self._numbers(1, 2).add(self._numbers(10, 20)).to_string(), "11, 22")

    def test_length_mismatch(self):
        result = self._numbers(1, 2).add(self._numbers(1, 2, 3))
        self.assertEqual(result.message, "Cannot add lists of different lengths (2 and 3)")

    def test_numbers_adopt_list_unit(self):
        items = ListValue.create([UnitValue.of(1, "m"), NumberValue(2)])
        self.assertEqual(items.to_string(), "1 m, 2 m")

    def test_too_long(self):
        result = ListValue.create((NumberValue(1) for _ in range(5)), max_length=3)
        self.assertEqual(result.kind, "error")


if __name__ == "__main__":
    unittest.main()
