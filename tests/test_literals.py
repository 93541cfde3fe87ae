"""Unit tests for literal parsing."""

import unittest

from notecalc_pkg.literals import (
    parse_currency,
    parse_duration_phrase,
    parse_literal,
    parse_literal_or_error,
    parse_number,
)


class TestParseLiteral(unittest.TestCase):
    """Test the ordered literal parsers."""

    def test_currency_rate(self):
        value = parse_literal("$8/m^2")
        self.assertEqual(value.kind, "currencyUnit")
        self.assertEqual(value.amount, 8)
        self.assertEqual(str(value.unit), "m^2")

    def test_numeric_rate(self):
        value = parse_literal("5 per s")
        self.assertEqual(value.kind, "unit")
        self.assertEqual(str(value.unit), "1/s")
        self.assertEqual(value.quantity.value, 5)

    def test_percentage(self):
        value = parse_literal("20%")
        self.assertEqual(value.kind, "percentage")
        self.assertEqual(value.value, 20)

    def test_time_of_day(self):
        value = parse_literal("9:30")
        self.assertEqual(value.kind, "time")
        self.assertEqual(value.to_string(), "09:30")

    def test_calendar_duration(self):
        value = parse_literal("3 business days")
        self.assertEqual(value.kind, "duration")
        self.assertEqual(value.parts, (("businessDay", 3.0),))

    def test_plain_time_unit_stays_a_quantity(self):
        value = parse_literal("3 days")
        self.assertEqual(value.kind, "unit")
        self.assertEqual(str(value.unit), "day")

    def test_unit_quantity(self):
        value = parse_literal("9.81 m/s^2")
        self.assertEqual(value.kind, "unit")
        self.assertEqual(str(value.unit), "m/s^2")

    def test_grouped_number(self):
        value = parse_literal("1,500")
        self.assertEqual(value.kind, "number")
        self.assertEqual(value.value, 1500)

    def test_unparseable(self):
        self.assertIsNone(parse_literal("hello"))
        error = parse_literal_or_error("hello")
        self.assertEqual(error.kind, "error")
        self.assertEqual(error.message, 'Cannot parse "hello" as any semantic value type')

    def test_empty(self):
        self.assertEqual(parse_literal_or_error("  ").message, "Empty value provided for parsing")


class TestCurrencyLiterals(unittest.TestCase):
    def test_prefix_symbol_with_grouping(self):
        value = parse_currency("€1,250.50")
        self.assertEqual(value.symbol, "€")
        self.assertEqual(value.amount, 1250.5)

    def test_negative(self):
        self.assertEqual(parse_currency("-$5").amount, -5)

    def test_code(self):
        value = parse_currency("20 usd")
        self.assertEqual(value.symbol, "$")
        self.assertEqual(value.amount, 20)

    def test_not_currency(self):
        self.assertIsNone(parse_currency("20"))


class TestDurationPhrases(unittest.TestCase):
    def test_compound(self):
        value = parse_duration_phrase("1 year 2 months")
        self.assertEqual(value.parts, (("year", 1.0), ("month", 2.0)))

    def test_single_plain_part_needs_opt_in(self):
        self.assertIsNone(parse_duration_phrase("90 min"))
        value = parse_duration_phrase("90 min", require_calendar=False)
        self.assertEqual(value.parts, (("minute", 90.0),))


class TestNumbers(unittest.TestCase):
    def test_scientific(self):
        self.assertEqual(parse_number("1.5e3").value, 1500)

    def test_rejects_text(self):
        self.assertIsNone(parse_number("12abc"))


if __name__ == "__main__":
    unittest.main()
