"""Unit tests for parser module."""

import unittest

from notecalc_pkg.parser import (
    RANGE_FUNCTION,
    ConversionSuffix,
    components_to_text,
    find_top_level_keyword,
    is_balanced,
    parse,
    rewrite_ranges,
    split_conversion_suffix,
    split_top_level_commas,
    tokenize,
)
from notecalc_pkg.types import ParseError


class TestTokenize(unittest.TestCase):
    """Test the lexer."""

    def test_arithmetic(self):
        tokens = tokenize("2 + 3 * 4")
        self.assertEqual([t.type for t in tokens], ["number", "operator", "number", "operator", "number"])

    def test_unit_after_number(self):
        tokens = tokenize("5 km")
        self.assertEqual([(t.type, t.value) for t in tokens], [("number", "5"), ("unit", "km")])

    def test_phrase_identifier(self):
        tokens = tokenize("tax rate * 2")
        self.assertEqual(tokens[0].type, "identifier")
        self.assertEqual(tokens[0].value, "tax rate")

    def test_grouped_number(self):
        self.assertEqual(tokenize("1,500")[0].value, "1500")

    def test_iso_date_and_clock_time(self):
        self.assertEqual(tokenize("2024-03-10")[0].type, "date")
        self.assertEqual(tokenize("9:30")[0].type, "time")

    def test_unexpected_character(self):
        with self.assertRaises(ParseError):
            tokenize("2 # 3")


class TestParse(unittest.TestCase):
    """Test component tree building."""

    def test_unmatched_parentheses(self):
        with self.assertRaises(ParseError) as ctx:
            parse("(1 + 2")
        self.assertEqual(ctx.exception.message, "Unmatched opening parenthesis")
        with self.assertRaises(ParseError) as ctx:
            parse("1 + 2)")
        self.assertEqual(ctx.exception.message, "Unmatched closing parenthesis")

    def test_currency_rate_literal(self):
        components = parse("$100/m^2 * 5 m^2")
        self.assertEqual([c.type for c in components], ["literal", "operator", "literal"])
        self.assertEqual(components[0].parsed_value.kind, "currencyUnit")
        self.assertEqual(components[2].parsed_value.kind, "unit")

    def test_percentage_literal(self):
        components = parse("20%")
        self.assertEqual(components[0].parsed_value.kind, "percentage")

    def test_number_then_unknown_name(self):
        components = parse("2 x")
        self.assertEqual([c.type for c in components], ["literal", "variable"])

    def test_named_arguments(self):
        (call,) = parse("area(h: 3, w: 2)")
        self.assertEqual(call.type, "function")
        self.assertEqual([arg.name for arg in call.args], ["h", "w"])

    def test_top_level_commas_make_a_list(self):
        (items,) = parse("1, 2, 3")
        self.assertEqual(items.type, "list")
        self.assertEqual(len(items.children), 3)

    def test_list_access(self):
        (access,) = parse("prices[2]")
        self.assertEqual(access.type, "listAccess")
        self.assertEqual(access.access.kind, "index")

    def test_empty_parentheses(self):
        with self.assertRaises(ParseError):
            parse("2 * ()")

    def test_round_trip_text(self):
        self.assertEqual(components_to_text(parse("2 * (x + 1)")), "2 * (x + 1)")


class TestStringHelpers(unittest.TestCase):
    def test_split_top_level_commas(self):
        self.assertEqual(split_top_level_commas("f(a, b), c"), ["f(a, b)", "c"])

    def test_is_balanced(self):
        self.assertEqual(is_balanced("(1+2)"), (True, None))
        self.assertEqual(is_balanced("(1+2"), (False, 0))

    def test_find_top_level_keyword(self):
        self.assertEqual(find_top_level_keyword("solve x in y = x", "in"), 8)
        self.assertEqual(find_top_level_keyword("f(a in b)", "in"), -1)

    def test_rewrite_ranges(self):
        self.assertEqual(rewrite_ranges("1..5"), f"{RANGE_FUNCTION}(1, 5)")
        self.assertEqual(rewrite_ranges("1..10 step 3"), f"{RANGE_FUNCTION}(1, 10, 3)")


class TestConversionSuffix(unittest.TestCase):
    def test_unit_target(self):
        self.assertEqual(
            split_conversion_suffix("50 m + 20 ft to km"),
            ConversionSuffix("50 m + 20 ft", "to", "km"),
        )

    def test_zone_target(self):
        suffix = split_conversion_suffix("now in UTC")
        self.assertEqual(suffix.target, "UTC")

    def test_non_unit_words_are_left_alone(self):
        self.assertIsNone(split_conversion_suffix("distance to home"))


if __name__ == "__main__":
    unittest.main()
