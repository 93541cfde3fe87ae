"""Unit tests for the units module."""

import unittest

from notecalc_pkg.types import UnitError
from notecalc_pkg.units import (
    Quantity,
    category_of,
    is_unit_string,
    parse_unit,
)


class TestParseUnit(unittest.TestCase):
    """Test unit string parsing."""

    def test_compound_unit(self):
        self.assertEqual(parse_unit("m/s^2").components, (("m", 1), ("s", -2)))

    def test_per_spelling(self):
        self.assertEqual(parse_unit("km per h").components, (("km", 1), ("h", -1)))

    def test_shorthand_alias(self):
        self.assertEqual(parse_unit("sqm"), parse_unit("m^2"))

    def test_word_aliases_map_to_symbols(self):
        self.assertEqual(parse_unit("meters").components, (("m", 1),))
        self.assertEqual(parse_unit("HOURS").components, (("h", 1),))

    def test_unknown_short_token_is_rejected(self):
        with self.assertRaises(UnitError):
            parse_unit("xy")

    def test_is_unit_string(self):
        self.assertTrue(is_unit_string("kg"))
        self.assertFalse(is_unit_string("home"))

    def test_string_form(self):
        self.assertEqual(str(parse_unit("kg*m/s^2")), "kg*m/s^2")
        self.assertEqual(str(parse_unit("1/s")), "1/s")


class TestQuantityConversion(unittest.TestCase):
    """Test conversions between compatible units."""

    def test_length(self):
        self.assertAlmostEqual(Quantity.of(1, "km").convert_to("m").value, 1000)

    def test_temperature_is_offset_aware(self):
        self.assertAlmostEqual(Quantity.of(100, "°C").convert_to("°F").value, 212)

    def test_incompatible_dimensions(self):
        with self.assertRaises(UnitError):
            Quantity.of(1, "m").convert_to("kg")

    def test_add_uses_left_unit(self):
        total = Quantity.of(50, "m").add(Quantity.of(20, "ft"))
        self.assertEqual(str(total.unit), "m")
        self.assertAlmostEqual(total.value, 56.096)

    def test_add_incompatible(self):
        with self.assertRaises(UnitError):
            Quantity.of(1, "m").add(Quantity.of(1, "s"))


class TestQuantityArithmetic(unittest.TestCase):
    """Test multiplication, division and normalization."""

    def test_mixed_length_product_folds_into_left_unit(self):
        area = Quantity.of(1, "m").multiply(Quantity.of(1, "ft"))
        self.assertEqual(str(area.unit), "m^2")
        self.assertAlmostEqual(area.value, 0.3048)

    def test_same_unit_product_squares(self):
        area = Quantity.of(3, "m").multiply(Quantity.of(4, "m"))
        self.assertEqual(str(area.unit), "m^2")
        self.assertAlmostEqual(area.value, 12)

    def test_force_collapses_to_newton(self):
        force = Quantity.of(2, "kg").multiply(Quantity.of(3, "m/s^2"))
        self.assertEqual(str(force.unit), "N")
        self.assertAlmostEqual(force.value, 6)

    def test_speed(self):
        speed = Quantity.of(10, "m").divide(Quantity.of(2, "s"))
        self.assertEqual(str(speed.unit), "m/s")
        self.assertAlmostEqual(speed.value, 5)

    def test_fractional_power_of_unit(self):
        with self.assertRaises(UnitError):
            Quantity.of(2, "m").power(0.5)

    def test_temperature_product_rejected(self):
        with self.assertRaises(UnitError):
            Quantity.of(20, "°C").multiply(Quantity.of(2, "m"))


class TestBestDisplay(unittest.TestCase):
    """Test the display-only rescaling policy."""

    def test_large_length(self):
        shown = Quantity.of(1500, "m").best_display()
        self.assertEqual(str(shown.unit), "km")
        self.assertAlmostEqual(shown.value, 1.5)

    def test_small_length(self):
        shown = Quantity.of(0.005, "m").best_display()
        self.assertEqual(str(shown.unit), "mm")
        self.assertAlmostEqual(shown.value, 5)

    def test_seconds_to_minutes(self):
        shown = Quantity.of(90, "s").best_display()
        self.assertEqual(str(shown.unit), "min")
        self.assertAlmostEqual(shown.value, 1.5)

    def test_in_range_value_unchanged(self):
        quantity = Quantity.of(56, "m")
        self.assertEqual(quantity.best_display(), quantity)


class TestCategories(unittest.TestCase):
    def test_single_unit_category(self):
        self.assertEqual(category_of(parse_unit("ft")), "length")

    def test_derived_category(self):
        self.assertEqual(category_of(parse_unit("m/s")), "speed")
        self.assertEqual(category_of(parse_unit("kg*m/s^2")), "force")


if __name__ == "__main__":
    unittest.main()
