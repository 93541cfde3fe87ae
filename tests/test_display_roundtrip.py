"""Displayed values read back as the same value, and re-evaluate unchanged."""

from datetime import datetime

import pytest

from notecalc_pkg.api import Notepad
from notecalc_pkg.config import NUMERIC_TOLERANCE
from notecalc_pkg.datemath import evaluate_date_expression
from notecalc_pkg.expression import EvaluationContext, evaluate_text
from notecalc_pkg.literals import parse_literal
from notecalc_pkg.temporal import UTC, DateValue, DurationValue, TimeValue, fixed_clock
from notecalc_pkg.units import parse_unit
from notecalc_pkg.values import (
    CurrencyUnitValue,
    CurrencyValue,
    ListValue,
    NumberValue,
    PercentageValue,
    UnitValue,
)

CLOCK = fixed_clock(datetime(2024, 1, 5, 12, 0))

LITERAL_VALUES = [
    NumberValue(1234.5),
    NumberValue(42),
    PercentageValue(12.5),
    CurrencyValue("$", 12.5),
    CurrencyUnitValue("$", 8, parse_unit("m^2")),
    UnitValue.of(5, "m"),
    UnitValue.of(1500, "m"),
    UnitValue.of(9.81, "m/s^2"),
    DurationValue.from_parts({"month": 2}),
    DurationValue.from_parts({"year": 1, "month": 2}),
    DurationValue.from_parts({"businessDay": 3}),
    TimeValue.parse("09:30"),
]


@pytest.mark.parametrize("value", LITERAL_VALUES, ids=lambda value: value.to_string())
def test_literal_reads_back(value):
    parsed = parse_literal(value.to_string())
    assert parsed is not None
    assert parsed.kind == value.kind
    assert value.equals(parsed, NUMERIC_TOLERANCE)


def test_rescaled_unit_reads_back_in_display_unit():
    shown = UnitValue.of(1500, "m").to_string()
    assert shown == "1.5 km"
    assert parse_literal(shown).quantity.value == 1.5


@pytest.mark.parametrize(
    "value",
    [
        DateValue.from_parts(2024, 3, 5),
        DateValue.from_parts(2024, 3, 10, 9, 0, UTC),
    ],
    ids=lambda value: value.to_string(),
)
def test_date_reads_back(value):
    parsed = evaluate_date_expression(value.to_string(), clock=CLOCK)
    assert value.equals(parsed)


def test_list_reads_back():
    value = ListValue.create([NumberValue(1), NumberValue(4), NumberValue(7)])
    parsed = evaluate_text(value.to_string(), EvaluationContext())
    assert parsed.kind == "list"
    assert value.equals(parsed)


def test_time_past_midnight_does_not_read_back():
    value = TimeValue.parse("22:00").shifted(3 * 3600)
    assert value.to_string() == "01:00 (+1 day)"
    assert parse_literal(value.to_string()) is None


@pytest.mark.parametrize(
    "expression",
    [
        "50 m + 20 ft",
        "$100/m^2 * 5 m^2",
        "0.25 as %",
        "1..10 step 3",
        "today + 3 business days",
        "2024-03-10 - 2024-03-01",
        "9:30 + 2 h",
    ],
)
def test_result_reevaluates_to_itself(expression):
    pad = Notepad(clock=CLOCK)
    first = pad.evaluate_line(f"{expression} =>")
    assert first.type == "mathResult"
    again = pad.evaluate_line(f"{first.result} =>")
    assert again.type == "mathResult"
    assert again.result == first.result
