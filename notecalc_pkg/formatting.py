"""Number and label formatting shared by all semantic values."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from . import config


@dataclass(frozen=True)
class DisplayOptions:
    """Formatting knobs passed down to ``SemanticValue.to_string``."""

    precision: int = config.OUTPUT_PRECISION
    scientific_upper_threshold: float = config.SCIENTIFIC_UPPER_THRESHOLD
    scientific_lower_threshold: float = config.SCIENTIFIC_LOWER_THRESHOLD
    scientific_trim_trailing_zeros: bool = config.SCIENTIFIC_TRIM_TRAILING_ZEROS
    group_thousands: bool = config.GROUP_THOUSANDS
    date_format: str = config.DATE_FORMAT
    date_order: str = config.DATE_ORDER
    prefer_base_unit: bool = False

    def with_precision(self, precision: int) -> "DisplayOptions":
        return replace(self, precision=precision)


DEFAULT_OPTIONS = DisplayOptions()


def _trim_zeros(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def _scientific(value: float, options: DisplayOptions) -> str:
    mantissa, exponent = f"{value:.{max(options.precision, 0)}e}".split("e")
    if options.scientific_trim_trailing_zeros:
        mantissa = _trim_zeros(mantissa)
    return f"{mantissa}e{int(exponent):+d}"


def _group(text: str) -> str:
    sign = ""
    if text.startswith("-"):
        sign, text = "-", text[1:]
    whole, dot, frac = text.partition(".")
    whole = f"{int(whole):,}"
    return f"{sign}{whole}{dot}{frac}"


def format_number(value: float, options: DisplayOptions | None = None) -> str:
    """Format a float for display.

    Integers print without a decimal point, values outside the scientific
    thresholds switch to exponent notation, everything else is rounded to
    ``options.precision`` decimals with trailing zeros removed.

    Args:
        value: Number to format
        options: Display options (defaults from config)

    Returns:
        Display string, e.g. "3.14159", "1e+15", "0"
    """
    options = options or DEFAULT_OPTIONS
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    magnitude = abs(value)
    if (
        magnitude >= options.scientific_upper_threshold
        or magnitude < options.scientific_lower_threshold
    ):
        return _scientific(value, options)
    if float(value).is_integer():
        text = str(int(value))
    else:
        text = _trim_zeros(f"{value:.{max(options.precision, 0)}f}")
        if text in ("0", "-0"):
            return _scientific(value, options)
    if options.group_thousands:
        text = _group(text)
    return text


def format_fixed(value: float, decimals: int) -> str:
    """Round to ``decimals`` places and strip trailing zeros."""
    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))
    return _trim_zeros(f"{value:.{decimals}f}")


# Unit labels that read as words and therefore take a plural form
_PLURAL_LABELS = {
    "day": "days",
    "week": "weeks",
    "month": "months",
    "year": "years",
    "hour": "hours",
    "minute": "minutes",
    "second": "seconds",
    "business day": "business days",
    "inch": "inches",
    "foot": "feet",
    "mile": "miles",
    "meter": "meters",
    "gram": "grams",
    "pound": "pounds",
}


def pluralize_unit(label: str, value: float) -> str:
    """Return the display label for ``value`` of unit ``label``.

    Composite labels containing '/', '^' or '*' are never pluralized.
    """
    if any(ch in label for ch in "/^*"):
        return label
    if abs(abs(value) - 1) < 1e-12:
        return label
    return _PLURAL_LABELS.get(label, label)
