"""Date, time-of-day and duration values.

This module provides:
- DateZone: UTC, local or fixed-offset display zone (dateutil.tz backed)
- DateValue: a calendar date, optionally with time of day, in a zone
- TimeValue: a clock time with a day-offset that tracks midnight wrap-around
- DurationValue: a signed mix of calendar parts (years, months, business days...)
- Clock helpers so "today"/"now" can be pinned in tests
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, ClassVar

from dateutil import tz
from dateutil.relativedelta import relativedelta

from . import config
from .formatting import DisplayOptions, format_number
from .types import UnitError
from .units import Quantity, lookup_definition, parse_unit
from .values import (
    ErrorValue,
    SemanticValue,
    UnitValue,
    make_number,
)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current local time as an aware datetime."""
    return datetime.now(tz.tzlocal())


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns ``moment`` (naive values are taken as local)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz.tzlocal())
    return lambda: moment


MONTH_NAMES = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6, "jul": 7, "july": 7,
    "aug": 8, "august": 8, "sep": 9, "sept": 9, "september": 9, "oct": 10,
    "october": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
}

# datetime.weekday(): Monday is 0
WEEKDAY_NAMES = {
    "monday": 0, "mon": 0, "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2, "thursday": 3, "thu": 3, "thur": 3,
    "friday": 4, "fri": 4, "saturday": 5, "sat": 5, "sunday": 6, "sun": 6,
}


def parse_weekday(name: str) -> int | None:
    return WEEKDAY_NAMES.get(name.lower())


@dataclass(frozen=True)
class DateZone:
    """Display zone for a date: ``utc``, ``local`` or a fixed ``offset``."""

    zone_type: str
    label: str
    offset_minutes: int = 0

    def tzinfo(self):
        if self.zone_type == "utc":
            return tz.tzutc()
        if self.zone_type == "offset":
            return tz.tzoffset(self.label, self.offset_minutes * 60)
        return tz.tzlocal()


UTC = DateZone("utc", "UTC")
LOCAL = DateZone("local", "local")

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def is_zone(text: str) -> bool:
    return bool(config.ZONE_REGEX.match(text.strip()))


def parse_zone(text: str) -> DateZone:
    """Parse "UTC", "GMT", "Z", "local" or "+05:30"; anything else is local."""
    cleaned = text.strip()
    if cleaned.upper() in ("UTC", "GMT", "Z"):
        return UTC
    match = _OFFSET_RE.match(cleaned)
    if match:
        sign = -1 if match.group(1) == "-" else 1
        hours, minutes = int(match.group(2)), int(match.group(3))
        label = f"{match.group(1)}{hours:02d}:{minutes:02d}"
        return DateZone("offset", label, sign * (hours * 60 + minutes))
    return LOCAL


# Seconds per fixed-length duration part (months and years use 30/365 days)
FIXED_SECONDS = {
    "year": 365 * 86400,
    "month": 30 * 86400,
    "week": 7 * 86400,
    "day": 86400,
    "businessDay": 86400,
    "hour": 3600,
    "minute": 60,
    "second": 1,
    "millisecond": 0.001,
}

PART_ORDER = (
    "year", "month", "week", "businessDay", "day", "hour", "minute", "second", "millisecond",
)
SUB_DAY_PARTS = ("hour", "minute", "second", "millisecond")

# Duration part <-> unit symbol in the units table
PART_UNIT_SYMBOLS = {
    "year": "year",
    "month": "month",
    "week": "week",
    "day": "day",
    "hour": "h",
    "minute": "min",
    "second": "s",
    "millisecond": "ms",
}
_UNIT_SYMBOL_PARTS = {symbol: part for part, symbol in PART_UNIT_SYMBOLS.items()}

_PART_LABELS = {
    "year": ("year", "years"),
    "month": ("month", "months"),
    "week": ("week", "weeks"),
    "day": ("day", "days"),
    "businessDay": ("business day", "business days"),
    "hour": ("h", "h"),
    "minute": ("min", "min"),
    "second": ("s", "s"),
    "millisecond": ("ms", "ms"),
}


def duration_part_for_unit(unit_text: str) -> str | None:
    """Map a unit spelling ("days", "h", "minutes") onto a duration part name."""
    definition = lookup_definition(unit_text.strip())
    if definition is None:
        return None
    return _UNIT_SYMBOL_PARTS.get(definition.symbol)


@dataclass(frozen=True)
class DurationValue(SemanticValue):
    """A signed duration made of calendar parts."""

    kind: ClassVar[str] = "duration"
    parts: tuple[tuple[str, float], ...] = ()

    @classmethod
    def from_parts(cls, parts: dict[str, float]) -> "DurationValue":
        ordered = tuple(
            (name, float(parts[name])) for name in PART_ORDER if parts.get(name)
        )
        return cls(ordered)

    @classmethod
    def from_seconds(cls, seconds: float) -> "DurationValue":
        return cls.from_parts({"second": seconds})

    @classmethod
    def from_quantity(cls, quantity: Quantity) -> "DurationValue":
        """Build a duration from a time quantity such as 3 day or 90 min."""
        if quantity.category != "duration":
            raise UnitError(f"{quantity.unit} is not a duration", "NOT_A_DURATION")
        components = quantity.unit.components
        if len(components) == 1 and components[0][1] == 1:
            part = _UNIT_SYMBOL_PARTS.get(components[0][0])
            if part is not None:
                return cls.from_parts({part: quantity.value})
        return cls.from_seconds(quantity.convert_to("s").value)

    def parts_dict(self) -> dict[str, float]:
        return dict(self.parts)

    @property
    def total_seconds(self) -> float:
        return sum(FIXED_SECONDS[name] * value for name, value in self.parts)

    @property
    def has_sub_day_parts(self) -> bool:
        return any(name in SUB_DAY_PARTS for name, _ in self.parts)

    @property
    def is_numeric(self) -> bool:
        return True

    def numeric_value(self) -> float:
        return self.total_seconds

    def to_string(self, options: DisplayOptions | None = None) -> str:
        total = self.total_seconds
        if total == 0:
            return "0 s"
        if len(self.parts) == 1 and self.parts[0][0] not in ("minute", "second"):
            name, value = self.parts[0]
            singular, plural = _PART_LABELS[name]
            label = singular if abs(value) == 1 else plural
            return f"{format_number(value, options)} {label}"
        sign = "-" if total < 0 else ""
        remaining = abs(total)
        pieces = []
        for name in ("year", "month", "week", "day", "hour", "minute", "second"):
            size = FIXED_SECONDS[name]
            count = math.floor(remaining / size + 1e-9)
            if count > 0:
                singular, plural = _PART_LABELS[name]
                pieces.append(f"{count} {singular if count == 1 else plural}")
                remaining -= count * size
        milliseconds = round(remaining * 1000)
        if milliseconds:
            pieces.append(f"{milliseconds} ms")
        return sign + " ".join(pieces)

    def equals(self, other: SemanticValue, tolerance: float = config.NUMERIC_TOLERANCE) -> bool:
        if other.kind != "duration":
            return False
        return abs(self.total_seconds - other.total_seconds) <= tolerance

    def scaled(self, factor: float) -> "DurationValue":
        return DurationValue.from_parts({name: value * factor for name, value in self.parts})

    def merged(self, other: "DurationValue", sign: int = 1) -> "DurationValue":
        combined = self.parts_dict()
        for name, value in other.parts:
            combined[name] = combined.get(name, 0) + sign * value
        return DurationValue.from_parts(combined)

    def as_unit(self) -> UnitValue:
        """The same span as a time quantity (single parts keep their unit)."""
        if len(self.parts) == 1 and self.parts[0][0] in PART_UNIT_SYMBOLS:
            name, value = self.parts[0]
            return UnitValue(Quantity.of(value, PART_UNIT_SYMBOLS[name]))
        return UnitValue(Quantity.of(self.total_seconds, "s"))

    def convert_to(self, target: str) -> SemanticValue:
        """Express the duration in one unit, e.g. 2 weeks to days -> 14 days."""
        part = duration_part_for_unit(target)
        if part is not None:
            value = self.total_seconds / FIXED_SECONDS[part]
            return UnitValue(Quantity.of(value, PART_UNIT_SYMBOLS[part]), fixed_display=True)
        try:
            unit = parse_unit(target)
        except UnitError as exc:
            return ErrorValue.conversion_error(str(exc))
        return UnitValue(Quantity.of(self.total_seconds, "s")).convert_to(unit)

    def _add(self, other):
        if other.kind == "duration":
            return self.merged(other)
        if other.kind == "unit" and other.quantity.category == "duration":
            return self.merged(DurationValue.from_quantity(other.quantity))
        if other.kind in ("date", "time"):
            return other.add(self)
        return self._unsupported("add", other)

    def _subtract(self, other):
        if other.kind == "duration":
            return self.merged(other, sign=-1)
        if other.kind == "unit" and other.quantity.category == "duration":
            return self.merged(DurationValue.from_quantity(other.quantity), sign=-1)
        return self._unsupported("subtract", other)

    def _multiply(self, other):
        if other.kind == "number":
            return self.scaled(other.value)
        if other.kind == "percentage":
            return self.scaled(other.decimal)
        if other.kind == "unit":
            return self.as_unit().multiply(other)
        return self._unsupported("multiply", other)

    def _divide(self, other):
        if other.kind == "number":
            if other.value == 0:
                raise ZeroDivisionError
            return self.scaled(1 / other.value)
        if other.kind == "duration":
            if other.total_seconds == 0:
                raise ZeroDivisionError
            return make_number(self.total_seconds / other.total_seconds)
        if other.kind == "unit":
            return self.as_unit().divide(other)
        return self._unsupported("divide", other)

    def _power(self, exponent: float):
        return ErrorValue.semantic_error("Cannot raise a duration to a power")


def _duration_operand(value: SemanticValue) -> DurationValue | None:
    if value.kind == "duration":
        return value
    if value.kind == "unit" and value.quantity.category == "duration":
        return DurationValue.from_quantity(value.quantity)
    return None


@dataclass(frozen=True)
class TimeValue(SemanticValue):
    """A clock time (seconds from midnight) plus how many days it wrapped."""

    kind: ClassVar[str] = "time"
    seconds: int
    show_seconds: bool = False
    day_offset: int = 0

    @classmethod
    def parse(cls, text: str) -> "TimeValue | None":
        match = config.TIME_OF_DAY_REGEX.match(text.strip())
        if not match:
            return None
        hours, minutes = int(match.group(1)), int(match.group(2))
        seconds = int(match.group(3) or 0)
        if hours > 23 or minutes > 59 or seconds > 59:
            return None
        return cls(hours * 3600 + minutes * 60 + seconds, match.group(3) is not None)

    @property
    def absolute_seconds(self) -> int:
        return self.seconds + self.day_offset * 86400

    def to_string(self, options: DisplayOptions | None = None) -> str:
        hours, rest = divmod(self.seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        text = f"{hours:02d}:{minutes:02d}"
        if self.show_seconds or seconds:
            text += f":{seconds:02d}"
        if self.day_offset:
            days = abs(self.day_offset)
            sign = "+" if self.day_offset > 0 else "-"
            text += f" ({sign}{days} {'day' if days == 1 else 'days'})"
        return text

    def shifted(self, delta_seconds: float) -> "TimeValue":
        total = self.absolute_seconds + int(round(delta_seconds))
        day_offset, seconds = divmod(total, 86400)
        return TimeValue(seconds, self.show_seconds or bool(seconds % 60), day_offset)

    def _add(self, other):
        if other.kind == "time":
            return ErrorValue.semantic_error(
                "Cannot add two clock times", suggestion="Add a duration such as 2 h instead"
            )
        duration = _duration_operand(other)
        if duration is not None:
            return self.shifted(duration.total_seconds)
        return self._unsupported("add", other)

    def _subtract(self, other):
        if other.kind == "time":
            return DurationValue.from_seconds(self.absolute_seconds - other.absolute_seconds)
        duration = _duration_operand(other)
        if duration is not None:
            return self.shifted(-duration.total_seconds)
        return self._unsupported("subtract", other)


@dataclass(frozen=True)
class DateValue(SemanticValue):
    """A calendar date (optionally with time of day) shown in ``zone``."""

    kind: ClassVar[str] = "date"
    moment: datetime
    zone: DateZone = LOCAL
    has_time: bool = False

    # -- construction ---------------------------------------------------------
    @classmethod
    def from_keyword(cls, keyword: str, clock: Clock = system_clock) -> "DateValue | None":
        """today, tomorrow, yesterday or now relative to ``clock``."""
        word = keyword.lower()
        now = clock().astimezone(tz.tzlocal())
        if word == "now":
            return cls(now, LOCAL, True)
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        offsets = {"today": 0, "tomorrow": 1, "yesterday": -1}
        if word not in offsets:
            return None
        return cls(midnight + relativedelta(days=offsets[word]), LOCAL, False)

    @classmethod
    def relative_weekday(
        cls, direction: str, weekday: int, clock: Clock = system_clock
    ) -> "DateValue":
        """next/last <weekday>: strictly after or before today."""
        step = 1 if direction.lower() == "next" else -1
        cursor = clock().astimezone(tz.tzlocal()).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        cursor += timedelta(days=step)
        while cursor.weekday() != weekday:
            cursor += timedelta(days=step)
        return cls(cursor, LOCAL, False)

    @classmethod
    def from_parts(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int | None = None,
        minute: int | None = None,
        zone: DateZone = LOCAL,
    ) -> "DateValue | None":
        """Build a date, returning None for impossible calendar values."""
        try:
            moment = datetime(year, month, day, hour or 0, minute or 0, tzinfo=zone.tzinfo())
        except ValueError:
            return None
        return cls(moment, zone, hour is not None)

    # -- projection / display ---------------------------------------------------
    @property
    def local_moment(self) -> datetime:
        return self.moment.astimezone(self.zone.tzinfo())

    def to_string(self, options: DisplayOptions | None = None) -> str:
        shown = self.local_moment
        date_format = options.date_format if options else config.DATE_FORMAT
        if date_format == "locale":
            order = options.date_order if options else config.DATE_ORDER
            if order == "dmy":
                text = f"{shown.day:02d}/{shown.month:02d}/{shown.year:04d}"
            else:
                text = f"{shown.month:02d}/{shown.day:02d}/{shown.year:04d}"
        else:
            text = f"{shown.year:04d}-{shown.month:02d}-{shown.day:02d}"
        if not self.has_time:
            return text
        return f"{text} {shown.hour:02d}:{shown.minute:02d} {self.zone.label}"

    def equals(self, other: SemanticValue, tolerance: float = config.NUMERIC_TOLERANCE) -> bool:
        return (
            other.kind == "date"
            and self.moment == other.moment
            and self.has_time == other.has_time
            and self.zone.label == other.zone.label
        )

    def with_zone(self, zone: DateZone) -> "DateValue":
        return DateValue(self.moment.astimezone(zone.tzinfo()), zone, self.has_time)

    def at_time(self, time_value: TimeValue) -> "DateValue":
        base = self.local_moment.replace(hour=0, minute=0, second=0, microsecond=0)
        moment = base + timedelta(days=time_value.day_offset, seconds=time_value.seconds)
        return DateValue(moment, self.zone, True)

    # -- calendar arithmetic ----------------------------------------------------
    def plus_duration(self, duration: DurationValue, sign: int = 1) -> SemanticValue:
        """Apply each duration part with calendar rules.

        Years and months move the calendar (clamping to month end), weeks and
        days count calendar days, business days skip Saturday and Sunday, and
        sub-day parts require the date to carry a time of day.
        """
        if duration.has_sub_day_parts and not self.has_time:
            return ErrorValue.semantic_error("Cannot add time to a date-only value")
        cursor = self.local_moment
        for name, raw in duration.parts:
            value = raw * sign
            if name in ("year", "month"):
                if not float(value).is_integer():
                    return ErrorValue.semantic_error(
                        f"Cannot add a fractional number of {name}s to a date"
                    )
                cursor = cursor + relativedelta(**{f"{name}s": int(value)})
            elif name in ("week", "day"):
                days = value * 7 if name == "week" else value
                if not float(days).is_integer() and not self.has_time:
                    return ErrorValue.semantic_error("Cannot add time to a date-only value")
                cursor = cursor + timedelta(days=days)
            elif name == "businessDay":
                if not float(value).is_integer():
                    return ErrorValue.semantic_error("Business days must be a whole number")
                cursor = add_business_days(cursor, int(value))
            else:
                cursor = cursor + timedelta(seconds=value * FIXED_SECONDS[name])
        return DateValue(cursor, self.zone, self.has_time)

    def difference(self, other: "DateValue") -> DurationValue:
        """Whole days between date-only values, exact span otherwise."""
        if not self.has_time and not other.has_time:
            days = (self.local_moment.date() - other.local_moment.date()).days
            return DurationValue.from_parts({"day": days})
        seconds = (self.moment - other.moment).total_seconds()
        return DurationValue.from_seconds(seconds)

    def _add(self, other):
        duration = _duration_operand(other)
        if duration is not None:
            return self.plus_duration(duration)
        if other.kind == "time":
            if self.has_time:
                return ErrorValue.semantic_error("Date already has a time of day")
            return self.at_time(other)
        if other.kind == "date":
            return ErrorValue.semantic_error("Cannot add two dates")
        return self._unsupported("add", other)

    def _subtract(self, other):
        duration = _duration_operand(other)
        if duration is not None:
            return self.plus_duration(duration, sign=-1)
        if other.kind == "date":
            return self.difference(other)
        return self._unsupported("subtract", other)


def add_business_days(moment: datetime, days: int) -> datetime:
    """Step one calendar day at a time, counting only Monday to Friday."""
    step = 1 if days >= 0 else -1
    remaining = abs(days)
    cursor = moment
    while remaining > 0:
        cursor += timedelta(days=step)
        if cursor.weekday() < 5:
            remaining -= 1
    return cursor


__all__ = [
    "Clock",
    "DateValue",
    "DateZone",
    "DurationValue",
    "TimeValue",
    "LOCAL",
    "UTC",
    "add_business_days",
    "fixed_clock",
    "parse_weekday",
    "parse_zone",
    "system_clock",
]
