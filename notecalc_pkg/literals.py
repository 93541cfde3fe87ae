"""Parse literal text ("$8/m^2", "20%", "3 business days", "5 km") into semantic values."""

from __future__ import annotations

import re

from . import config
from .temporal import DurationValue, TimeValue
from .types import UnitError
from .units import Quantity, parse_unit
from .values import (
    CurrencyUnitValue,
    CurrencyValue,
    ErrorValue,
    NumberValue,
    PercentageValue,
    SemanticValue,
    UnitValue,
    normalize_currency_symbol,
)

_AMOUNT = r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?|\.\d+"
_SYMBOLS = re.escape(config.CURRENCY_SYMBOLS)
_CODES = "|".join(config.CURRENCY_CODES)

CURRENCY_PREFIX_RE = re.compile(rf"^(-)?\s*([{_SYMBOLS}])\s*(-)?\s*({_AMOUNT})$")
CURRENCY_SUFFIX_RE = re.compile(rf"^(-)?\s*({_AMOUNT})\s*([{_SYMBOLS}])$")
CURRENCY_CODE_RE = re.compile(rf"^(-)?\s*({_AMOUNT})\s+({_CODES})$", re.IGNORECASE)
PER_SPLIT_RE = re.compile(r"^(.*?)\bper\b(.+)$", re.IGNORECASE)
PLAIN_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?$")
UNIT_QUANTITY_RE = re.compile(
    r"^(-?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*([^\d\s].*)$"
)

# Longest spelling first so "mins" is not read as "min" + "s"
DURATION_ALIASES = (
    ("business days", "businessDay"), ("business day", "businessDay"),
    ("years", "year"), ("year", "year"), ("yrs", "year"), ("yr", "year"), ("y", "year"),
    ("months", "month"), ("month", "month"), ("mos", "month"), ("mo", "month"),
    ("weeks", "week"), ("week", "week"), ("wks", "week"), ("wk", "week"), ("w", "week"),
    ("days", "day"), ("day", "day"), ("d", "day"),
    ("hours", "hour"), ("hour", "hour"), ("hrs", "hour"), ("hr", "hour"), ("h", "hour"),
    ("minutes", "minute"), ("minute", "minute"), ("mins", "minute"), ("min", "minute"),
    ("seconds", "second"), ("second", "second"), ("secs", "second"), ("sec", "second"),
    ("ms", "millisecond"), ("s", "second"),
)
_DURATION_UNIT_PATTERN = "|".join(
    re.escape(alias).replace(r"\ ", r"\s+")
    for alias, _ in sorted(DURATION_ALIASES, key=lambda item: -len(item[0]))
)
DURATION_COMPONENT_RE = re.compile(
    rf"\s*([+-]?)\s*(\d+(?:\.\d+)?)\s*({_DURATION_UNIT_PATTERN})(?![A-Za-z])", re.IGNORECASE
)
_ALIAS_TO_PART = {alias: part for alias, part in DURATION_ALIASES}

# Parts that never become plain time quantities
CALENDAR_PARTS = ("businessDay", "month", "year")


def _amount(text: str) -> float:
    return float(text.replace(",", ""))


def parse_number(text: str) -> NumberValue | None:
    """Plain number, allowing "1,000" grouping and scientific notation."""
    cleaned = text.strip()
    if not config.NUMBER_REGEX.match(cleaned):
        return None
    try:
        return NumberValue(_amount(cleaned))
    except ValueError:
        return None


def parse_percentage(text: str) -> PercentageValue | None:
    match = config.PERCENT_REGEX.match(text.strip())
    if not match:
        return None
    return PercentageValue(float(match.group(1)))


def parse_currency(text: str) -> CurrencyValue | None:
    """$100, -$5, €1,250.50, 100$, 100 CHF, 20 usd."""
    cleaned = text.strip()
    match = CURRENCY_PREFIX_RE.match(cleaned)
    if match:
        negative = bool(match.group(1) or match.group(3))
        amount = _amount(match.group(4))
        return CurrencyValue(match.group(2), -amount if negative else amount)
    match = CURRENCY_SUFFIX_RE.match(cleaned)
    if match:
        amount = _amount(match.group(2))
        return CurrencyValue(match.group(3), -amount if match.group(1) else amount)
    match = CURRENCY_CODE_RE.match(cleaned)
    if match:
        symbol = normalize_currency_symbol(match.group(3))
        if symbol is None:
            return None
        amount = _amount(match.group(2))
        return CurrencyValue(symbol, -amount if match.group(1) else amount)
    return None


def _split_rate(text: str) -> tuple[str, str] | None:
    match = PER_SPLIT_RE.match(text)
    if match:
        left, unit_part = match.group(1).strip(), match.group(2).strip()
    elif "/" in text:
        left, _, unit_part = text.partition("/")
        left, unit_part = left.strip(), unit_part.strip()
    else:
        return None
    if not left or not unit_part or not re.search(r"[A-Za-z°µμΩ]", unit_part):
        return None
    return left, unit_part.replace(" ", "")


def parse_currency_rate(text: str) -> CurrencyUnitValue | None:
    """$8/m^2 or $8 per m^2."""
    split = _split_rate(text.strip())
    if split is None:
        return None
    currency = parse_currency(split[0])
    if currency is None:
        return None
    try:
        unit = parse_unit(split[1])
    except UnitError:
        return None
    if unit.is_dimensionless:
        return None
    return CurrencyUnitValue(currency.symbol, currency.amount, unit, per_unit=True)


def parse_numeric_rate(text: str) -> UnitValue | None:
    """5 per s or 60/min, i.e. a number over a unit."""
    split = _split_rate(text.strip())
    if split is None or not PLAIN_NUMBER_RE.match(split[0]):
        return None
    try:
        unit = parse_unit(split[1])
    except UnitError:
        return None
    if unit.is_dimensionless:
        return None
    return UnitValue(Quantity(float(split[0]), unit.power(-1)))


def parse_duration_phrase(text: str, require_calendar: bool = True) -> DurationValue | None:
    """Parse "3 business days", "2 months", "1 year 2 months", "1 day 2 h".

    Single-part phrases in plain time units ("3 days", "90 min") are left to
    the units layer unless ``require_calendar`` is False.
    """
    cleaned = text.strip()
    if not cleaned:
        return None
    parts: dict[str, float] = {}
    position = 0
    count = 0
    while position < len(cleaned):
        match = DURATION_COMPONENT_RE.match(cleaned, position)
        if not match:
            return None
        sign = -1 if match.group(1) == "-" else 1
        alias = re.sub(r"\s+", " ", match.group(3).lower())
        part = _ALIAS_TO_PART[alias]
        parts[part] = parts.get(part, 0) + sign * float(match.group(2))
        position = match.end()
        count += 1
        while position < len(cleaned) and cleaned[position].isspace():
            position += 1
    if count == 0:
        return None
    if require_calendar and count == 1 and not any(part in CALENDAR_PARTS for part in parts):
        return None
    return DurationValue.from_parts(parts)


def parse_unit_quantity(text: str) -> UnitValue | None:
    """5 m, 9.81 m/s^2, 20 °C, 1,500 km."""
    match = UNIT_QUANTITY_RE.match(text.strip())
    if not match:
        return None
    try:
        unit = parse_unit(match.group(2))
    except UnitError:
        return None
    if unit.is_dimensionless:
        return None
    return UnitValue(Quantity(_amount(match.group(1)), unit))


def parse_literal(text: str) -> SemanticValue | None:
    """Parse ``text`` as a single semantic literal, or return None.

    Tried in order: currency rate, numeric rate, percentage, currency, time
    of day, calendar duration phrase, unit quantity, plain number.
    """
    if not text or not text.strip():
        return None
    for parser in (
        parse_currency_rate,
        parse_numeric_rate,
        parse_percentage,
        parse_currency,
        TimeValue.parse,
        parse_duration_phrase,
        parse_unit_quantity,
        parse_number,
    ):
        value = parser(text)
        if value is not None:
            return value
    return None


def parse_literal_or_error(text: str) -> SemanticValue:
    if not text or not text.strip():
        return ErrorValue.parse_error("Empty value provided for parsing")
    value = parse_literal(text)
    if value is None:
        return ErrorValue.parse_error(f'Cannot parse "{text}" as any semantic value type')
    return value
