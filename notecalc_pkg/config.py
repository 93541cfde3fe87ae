"""Centralized configuration for Notecalc.

This module defines:
- Display defaults (precision, scientific thresholds, grouping)
- Date parsing and display defaults
- Evaluation limits (list length, function call depth, input length)
- Built-in math functions backed by SymPy
- Regex patterns shared by the parsers

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with NOTECALC_)
"""

import os
import re

import sympy as sp

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("notecalc")
except Exception:
    # Fallback if package not installed
    VERSION = "0.1.0"

# Display configuration
OUTPUT_PRECISION = int(os.getenv("NOTECALC_OUTPUT_PRECISION", "6"))  # decimal places
SCIENTIFIC_UPPER_THRESHOLD = float(
    os.getenv("NOTECALC_SCIENTIFIC_UPPER_THRESHOLD", "1e12")
)
SCIENTIFIC_LOWER_THRESHOLD = float(
    os.getenv("NOTECALC_SCIENTIFIC_LOWER_THRESHOLD", "1e-4")
)
SCIENTIFIC_TRIM_TRAILING_ZEROS = (
    os.getenv("NOTECALC_SCIENTIFIC_TRIM_TRAILING_ZEROS", "true").lower() == "true"
)
GROUP_THOUSANDS = os.getenv("NOTECALC_GROUP_THOUSANDS", "false").lower() == "true"

# Dates
DATE_FORMAT = os.getenv("NOTECALC_DATE_FORMAT", "iso")  # "iso", "locale"
DATE_ORDER = os.getenv("NOTECALC_DATE_ORDER", "mdy")  # "mdy", "dmy"

# Evaluation limits
MAX_LIST_LENGTH = int(os.getenv("NOTECALC_MAX_LIST_LENGTH", "100"))
MAX_FUNCTION_CALL_DEPTH = int(os.getenv("NOTECALC_MAX_FUNCTION_CALL_DEPTH", "20"))
MAX_INPUT_LENGTH = int(os.getenv("NOTECALC_MAX_INPUT_LENGTH", "10000"))  # characters

# Numeric tolerance for value equality and solver checks
NUMERIC_TOLERANCE = float(os.getenv("NOTECALC_NUMERIC_TOLERANCE", "1e-10"))

ALLOWED_SYMPY_NAMES = {
    "sqrt": sp.sqrt,
    "cbrt": sp.cbrt,
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "log": sp.log,
    "ln": sp.log,
    "log10": lambda value: sp.log(value, 10),
    "exp": sp.exp,
    "abs": sp.Abs,
    "floor": sp.floor,
    "ceil": sp.ceiling,
    "round": lambda value, digits=0: sp.Float(round(float(value), int(digits))),
}

CONSTANTS = {
    "PI": sp.pi,
    "pi": sp.pi,
    "E": sp.E,
}

VAR_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*$")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\s]*$")

CURRENCY_SYMBOLS = "$€£¥₹₿"
CURRENCY_CODES = ("CHF", "CAD", "AUD", "USD", "EUR", "GBP", "JPY", "INR", "BTC")

PERCENT_REGEX = re.compile(r"^(-?\d+(?:\.\d+)?)\s*%$")
NUMBER_REGEX = re.compile(
    r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?(?:[eE][+-]?\d+)?$|^[+-]?\.\d+$"
)
ZONE_REGEX = re.compile(r"^(Z|UTC|GMT|local|[+-]\d{2}:?\d{2})$", re.IGNORECASE)
TIME_OF_DAY_REGEX = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
