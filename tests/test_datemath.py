"""Unit tests for date, time and duration arithmetic."""

import unittest
from datetime import datetime

from notecalc_pkg.api import Notepad
from notecalc_pkg.datemath import (
    evaluate_date_expression,
    looks_like_date_expression,
    starts_with_month_day_date,
)
from notecalc_pkg.temporal import (
    UTC,
    DateValue,
    DurationValue,
    TimeValue,
    add_business_days,
    fixed_clock,
    parse_zone,
)

# Friday, 2024-01-05 12:00 local
CLOCK = fixed_clock(datetime(2024, 1, 5, 12, 0))


def evaluate(expression, variables=None):
    return evaluate_date_expression(expression, variables, clock=CLOCK)


class TestDateExpressions(unittest.TestCase):
    """Test anchors followed by duration and date steps."""

    def test_business_days_skip_weekend(self):
        self.assertEqual(evaluate("today + 3 business days").to_string(), "2024-01-10")

    def test_date_difference_in_days(self):
        self.assertEqual(evaluate("2024-03-10 - 2024-03-01").to_string(), "9 days")

    def test_month_addition_clamps_to_month_end(self):
        self.assertEqual(evaluate("2024-01-31 + 1 month").to_string(), "2024-02-29")

    def test_next_weekday(self):
        self.assertEqual(evaluate("next monday").to_string(), "2024-01-08")

    def test_time_on_date_only_value(self):
        result = evaluate("today + 2 h")
        self.assertEqual(result.kind, "error")
        self.assertEqual(result.message, "Cannot add time to a date-only value")

    def test_zoned_datetime(self):
        self.assertEqual(
            evaluate("2024-03-10 09:00 UTC + 90 min").to_string(), "2024-03-10 10:30 UTC"
        )

    def test_zone_conversion(self):
        self.assertEqual(
            evaluate("2024-03-10 09:00 UTC to +05:30").to_string(), "2024-03-10 14:30 +05:30"
        )

    def test_date_variable_anchor(self):
        variables = {"start": DateValue.from_parts(2024, 1, 1)}
        self.assertEqual(evaluate("start + 1 week", variables).to_string(), "2024-01-08")

    def test_not_a_date(self):
        self.assertIsNone(evaluate("3 days"))


class TestLongFormDates(unittest.TestCase):
    """Month-first dates carry a comma that is part of the date itself."""

    def setUp(self):
        self.pad = Notepad(clock=CLOCK)

    def test_month_day_year(self):
        self.assertEqual(evaluate("March 5, 2024").to_string(), "2024-03-05")
        self.assertEqual(self.pad.evaluate_line("March 5, 2024 =>").display_text, "March 5, 2024 => 2024-03-05")

    def test_month_day_year_plus_days(self):
        rendered = self.pad.evaluate_line("March 5, 2024 + 3 days =>")
        self.assertEqual(rendered.type, "mathResult")
        self.assertEqual(rendered.display_text, "March 5, 2024 + 3 days => 2024-03-08")

    def test_detection(self):
        self.assertTrue(starts_with_month_day_date("March 5, 2024 + 3 days"))
        self.assertFalse(starts_with_month_day_date("max 5, 2024"))


class TestClockTimes(unittest.TestCase):
    def test_add_hours(self):
        self.assertEqual(evaluate("9:30 + 2 h").to_string(), "11:30")

    def test_wraps_past_midnight(self):
        self.assertEqual(evaluate("22:00 + 3 h").to_string(), "01:00 (+1 day)")

    def test_invalid_clock_time(self):
        self.assertIsNone(TimeValue.parse("25:00"))


class TestLooksLikeDate(unittest.TestCase):
    def test_detection(self):
        self.assertTrue(looks_like_date_expression("next friday"))
        self.assertTrue(looks_like_date_expression("2024-03-10"))
        self.assertFalse(looks_like_date_expression("2 + 2"))


class TestTemporalValues(unittest.TestCase):
    def test_duration_breakdown(self):
        self.assertEqual(DurationValue.from_seconds(5400).to_string(), "1 h 30 min")

    def test_single_part_duration(self):
        self.assertEqual(DurationValue.from_parts({"day": 9}).to_string(), "9 days")
        self.assertEqual(DurationValue.from_parts({"day": 1}).to_string(), "1 day")

    def test_zones(self):
        self.assertEqual(parse_zone("+05:30").label, "+05:30")
        self.assertIs(parse_zone("UTC"), UTC)

    def test_business_days_from_friday(self):
        friday = datetime(2024, 1, 5)
        self.assertEqual(add_business_days(friday, 1), datetime(2024, 1, 8))

    def test_impossible_date(self):
        self.assertIsNone(DateValue.from_parts(2023, 2, 29))


if __name__ == "__main__":
    unittest.main()
