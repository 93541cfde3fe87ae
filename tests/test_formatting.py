"""Unit tests for number formatting."""

import unittest

from notecalc_pkg.formatting import (
    DEFAULT_OPTIONS,
    DisplayOptions,
    format_fixed,
    format_number,
    pluralize_unit,
)


class TestFormatNumber(unittest.TestCase):
    def test_integers_have_no_decimal_point(self):
        self.assertEqual(format_number(42.0), "42")
        self.assertEqual(format_number(0.0), "0")
        self.assertEqual(format_number(-7.0), "-7")

    def test_trailing_zeros_are_trimmed(self):
        self.assertEqual(format_number(2.5), "2.5")
        self.assertEqual(format_number(1 / 3), "0.333333")

    def test_scientific_outside_thresholds(self):
        self.assertEqual(format_number(1e15), "1e+15")
        self.assertEqual(format_number(1e-5), "1e-5")

    def test_precision_option(self):
        self.assertEqual(format_number(3.14159, DEFAULT_OPTIONS.with_precision(2)), "3.14")

    def test_grouping(self):
        options = DisplayOptions(group_thousands=True)
        self.assertEqual(format_number(1234567.5, options), "1,234,567.5")
        self.assertEqual(format_number(-1234567.5, options), "-1,234,567.5")

    def test_non_finite(self):
        self.assertEqual(format_number(float("inf")), "Infinity")
        self.assertEqual(format_number(float("nan")), "NaN")


class TestFormatFixed(unittest.TestCase):
    def test_money_rounding(self):
        self.assertEqual(format_fixed(12.3, 2), "12.3")
        self.assertEqual(format_fixed(3.9999999999, 2), "4")


class TestPluralizeUnit(unittest.TestCase):
    def test_word_units(self):
        self.assertEqual(pluralize_unit("day", 3), "days")
        self.assertEqual(pluralize_unit("day", 1), "day")
        self.assertEqual(pluralize_unit("foot", 2), "feet")

    def test_symbols_and_composites_are_unchanged(self):
        self.assertEqual(pluralize_unit("km", 5), "km")
        self.assertEqual(pluralize_unit("m/s", 5), "m/s")


if __name__ == "__main__":
    unittest.main()
