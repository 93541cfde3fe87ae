"""Date and duration arithmetic over free text.

Evaluates lines such as ``today + 3 business days``,
``2024-03-10 09:00 UTC + 90 min to +05:30``, ``next friday - today`` and
``9:30 + 2 h``: an anchor (keyword, weekday, ISO/long/numeric date, clock time
or date variable) followed by a left-to-right chain of ``+/- duration``,
``- date`` and ``+ time`` steps, with an optional trailing ``to|in`` target.
"""

from __future__ import annotations

import re
from typing import Mapping

from . import config
from .logging_config import get_logger
from .temporal import (
    Clock,
    DateValue,
    DurationValue,
    TimeValue,
    is_zone,
    parse_weekday,
    parse_zone,
    system_clock,
    MONTH_NAMES,
)
from .values import ErrorValue, SemanticValue

logger = get_logger("datemath")

KEYWORD_RE = re.compile(r"^(today|tomorrow|yesterday|now)\b", re.IGNORECASE)
RELATIVE_RE = re.compile(r"^(next|last)\s+(\w+)\b", re.IGNORECASE)
ISO_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})(?:[ T](\d{2}):(\d{2}))?"
    r"(?:\s*(Z|UTC|GMT|local|[+-]\d{2}:?\d{2})(?![A-Za-z0-9]))?",
    re.IGNORECASE,
)
DAY_MONTH_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})")
MONTH_DAY_RE = re.compile(r"^([A-Za-z]+)\s+(\d{1,2}),?\s+(\d{4})")
NUMERIC_DATE_RE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})")
CLOCK_RE = re.compile(r"^(\d{1,2}:\d{2}(?::\d{2})?)(?![\d:])")
DURATION_RE = re.compile(
    r"^(\d+(?:\.\d+)?)\s*(business\s+days?|years?|months?|weeks?|days?|hours?|hrs?|hr|"
    r"minutes?|mins?|min|seconds?|secs?|sec|h|d|w|y)\b",
    re.IGNORECASE,
)
CONVERSION_RE = re.compile(r"\b(to|in)\b\s*(.*)$", re.IGNORECASE)
OPERATOR_RE = re.compile(r"^\s*([+-])")

_LOOKS_LIKE_DATE = (
    re.compile(r"\b(today|tomorrow|yesterday|now|next|last)\b", re.IGNORECASE),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(r"\b\d{1,2}[/.-]\d{1,2}[/.-]\d{4}\b"),
    re.compile(r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\b", re.IGNORECASE),
    re.compile(r"\b(years?|months?|weeks?|days?|hours?|minutes?|business\s+days?)\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*(h|d|w|y)\b", re.IGNORECASE),
    re.compile(r"\b(UTC|GMT|Z|local)\b", re.IGNORECASE),
    re.compile(r"[+-]\d{2}:?\d{2}\b"),
    re.compile(r"\b\d{1,2}:\d{2}\b"),
)


def looks_like_date_expression(expression: str) -> bool:
    """Cheap pre-check used by the line classifier and the date evaluator."""
    text = expression.strip()
    return bool(text) and any(pattern.search(text) for pattern in _LOOKS_LIKE_DATE)


def starts_with_month_day_date(expression: str) -> bool:
    """True for ``March 5, 2024 ...``, whose comma is part of the date."""
    match = MONTH_DAY_RE.match(expression.strip())
    return bool(match) and match.group(1).lower() in MONTH_NAMES


def _duration_part(raw_unit: str) -> str:
    unit = raw_unit.lower()
    if unit.startswith("business"):
        return "businessDay"
    if unit.startswith("year") or unit == "y":
        return "year"
    if unit.startswith("month"):
        return "month"
    if unit.startswith("week") or unit == "w":
        return "week"
    if unit.startswith("day") or unit == "d":
        return "day"
    if unit.startswith("hour") or unit.startswith("hr") or unit == "h":
        return "hour"
    if unit.startswith("min"):
        return "minute"
    return "second"


def parse_duration_at_start(text: str) -> tuple[DurationValue, int] | None:
    """Match one ``<number> <unit>`` duration at the start of ``text``."""
    stripped = text.lstrip()
    offset = len(text) - len(stripped)
    match = DURATION_RE.match(stripped)
    if not match:
        return None
    duration = DurationValue.from_parts({_duration_part(match.group(2)): float(match.group(1))})
    return duration, offset + match.end()


def parse_date_at_start(
    text: str,
    variables: Mapping[str, SemanticValue] | None = None,
    clock: Clock = system_clock,
    date_order: str = config.DATE_ORDER,
) -> tuple[SemanticValue, int] | None:
    """Parse a date/time anchor at the start of ``text``.

    Returns:
        (value, consumed length) or None when ``text`` does not start with one
    """
    stripped = text.lstrip()
    offset = len(text) - len(stripped)

    match = KEYWORD_RE.match(stripped)
    if match:
        value = DateValue.from_keyword(match.group(1), clock)
        if value is not None:
            return value, offset + match.end()

    match = RELATIVE_RE.match(stripped)
    if match:
        weekday = parse_weekday(match.group(2))
        if weekday is not None:
            return DateValue.relative_weekday(match.group(1), weekday, clock), offset + match.end()

    match = ISO_RE.match(stripped)
    if match:
        hour = int(match.group(4)) if match.group(4) else None
        minute = int(match.group(5)) if match.group(5) else None
        zone = parse_zone(match.group(6) or "local")
        value = DateValue.from_parts(
            int(match.group(1)), int(match.group(2)), int(match.group(3)), hour, minute, zone
        )
        if value is not None:
            return value, offset + match.end()

    match = DAY_MONTH_RE.match(stripped)
    if match and match.group(2).lower() in MONTH_NAMES:
        value = DateValue.from_parts(
            int(match.group(3)), MONTH_NAMES[match.group(2).lower()], int(match.group(1))
        )
        if value is not None:
            return value, offset + match.end()

    match = MONTH_DAY_RE.match(stripped)
    if match and match.group(1).lower() in MONTH_NAMES:
        value = DateValue.from_parts(
            int(match.group(3)), MONTH_NAMES[match.group(1).lower()], int(match.group(2))
        )
        if value is not None:
            return value, offset + match.end()

    match = NUMERIC_DATE_RE.match(stripped)
    if match:
        first, second, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
        day, month = (first, second) if date_order == "dmy" else (second, first)
        value = DateValue.from_parts(year, month, day)
        if value is not None:
            return value, offset + match.end()

    match = CLOCK_RE.match(stripped)
    if match:
        value = TimeValue.parse(match.group(1))
        if value is not None:
            return value, offset + match.end()

    if variables:
        for name in sorted(variables, key=len, reverse=True):
            if not stripped.startswith(name):
                continue
            boundary = stripped[len(name):len(name) + 1]
            if boundary and not re.match(r"[\s+\-]", boundary):
                continue
            value = variables[name]
            if value.kind in ("date", "time"):
                return value, offset + len(name)
    return None


def _split_conversion(expression: str) -> tuple[str, str | None, str | None]:
    match = CONVERSION_RE.search(expression)
    if not match:
        return expression, None, None
    return expression[:match.start()].strip(), match.group(1).lower(), match.group(2).strip()


def _apply_conversion(value: SemanticValue, target: str, keyword: str) -> SemanticValue:
    if not target:
        return ErrorValue.semantic_error(f"Expected unit after '{keyword}'")
    if value.kind == "date":
        if not is_zone(target):
            return ErrorValue.semantic_error(f"Expected time zone after '{keyword}'")
        return value.with_zone(parse_zone(target))
    if value.kind == "duration":
        return value.convert_to(target)
    if value.kind == "time":
        return ErrorValue.semantic_error("Cannot convert a time of day")
    return ErrorValue.semantic_error("Invalid date conversion")


def evaluate_date_expression(
    expression: str,
    variables: Mapping[str, SemanticValue] | None = None,
    clock: Clock = system_clock,
    date_order: str = config.DATE_ORDER,
) -> SemanticValue | None:
    """Evaluate a date/time/duration expression.

    Args:
        expression: Line text without assignment or "=>"
        variables: Known variable values, used for date-typed names
        clock: Source of "today"/"now"
        date_order: "mdy" or "dmy" for numeric dates

    Returns:
        Date, Time, Duration or Error value; None when the text does not start
        with a date or time anchor
    """
    text = expression.strip()
    if not text:
        return None
    base, keyword, target = _split_conversion(text)
    anchor = parse_date_at_start(base, variables, clock, date_order)
    if anchor is None:
        return None
    current, cursor = anchor

    while cursor < len(base):
        rest = base[cursor:]
        if not rest.strip():
            break
        operator = OPERATOR_RE.match(rest)
        if not operator:
            return ErrorValue.semantic_error(f'Invalid date expression near "{rest.strip()}"')
        sign = operator.group(1)
        cursor += operator.end()
        remaining = base[cursor:]

        duration = parse_duration_at_start(remaining)
        if duration is not None:
            step = current.add(duration[0]) if sign == "+" else current.subtract(duration[0])
            if step.kind == "error":
                return step
            current = step
            cursor += duration[1]
            continue

        other = parse_date_at_start(remaining, variables, clock, date_order)
        if other is not None:
            cursor += other[1]
            if sign == "-":
                trailing = base[cursor:].strip()
                if trailing:
                    return ErrorValue.semantic_error(
                        f'Unexpected token after date difference: "{trailing}"'
                    )
                current = current.subtract(other[0])
                break
            if other[0].kind == "time":
                current = current.add(other[0])
                if current.kind == "error":
                    return current
                continue

        return ErrorValue.semantic_error(f"Expected duration after '{sign}'")

    if keyword is not None:
        logger.debug("Converting %s %s %s", current, keyword, target)
        return _apply_conversion(current, target or "", keyword)
    return current
