"""Semantic values: typed results with type-directed arithmetic.

Every value is an immutable dataclass tagged with a ``kind``. Binary
operations go through ``SemanticValue._apply`` which handles the cross-cutting
rules once (errors absorb, symbolic operands defer, lists broadcast) before
handing off to the per-kind ``_add``/``_subtract``/``_multiply``/``_divide``
methods. Those methods dispatch on ``other.kind`` and fall through to a
type error for pairs that make no sense.

Date, time and duration kinds live in ``temporal.py``; the classes here only
refer to them by kind.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterable

from . import config
from .formatting import DEFAULT_OPTIONS, DisplayOptions, format_fixed, format_number, pluralize_unit
from .types import UnitError
from .units import CompositeUnit, Quantity, normalize, parse_unit

OPERATOR_SYMBOLS = {
    "add": "+",
    "subtract": "-",
    "multiply": "*",
    "divide": "/",
    "power": "^",
}

# Operator precedence used when rendering symbolic expressions
PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 3}
ATOM_PRECEDENCE = 4


class SemanticValue:
    """Base class for every evaluation result."""

    kind: ClassVar[str] = "value"

    # -- projection -------------------------------------------------------
    @property
    def is_numeric(self) -> bool:
        return False

    def numeric_value(self) -> float:
        raise TypeError(f"{self.kind} value has no numeric projection")

    def can_convert_to(self, target_kind: str) -> bool:
        return target_kind == self.kind

    # -- formatting -------------------------------------------------------
    def to_string(self, options: DisplayOptions | None = None) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_string()

    # -- comparison -------------------------------------------------------
    def equals(self, other: "SemanticValue", tolerance: float = config.NUMERIC_TOLERANCE) -> bool:
        if other.kind != self.kind:
            return False
        if self.is_numeric and other.is_numeric:
            return math.isclose(
                self.numeric_value(), other.numeric_value(), rel_tol=tolerance, abs_tol=tolerance
            )
        return self == other

    def clone(self) -> "SemanticValue":
        return dataclasses.replace(self)

    # -- arithmetic -------------------------------------------------------
    def add(self, other: "SemanticValue") -> "SemanticValue":
        return self._apply("add", other)

    def subtract(self, other: "SemanticValue") -> "SemanticValue":
        return self._apply("subtract", other)

    def multiply(self, other: "SemanticValue") -> "SemanticValue":
        return self._apply("multiply", other)

    def divide(self, other: "SemanticValue") -> "SemanticValue":
        return self._apply("divide", other)

    def power(self, exponent: float) -> "SemanticValue":
        try:
            return self._power(exponent)
        except UnitError as exc:
            return ErrorValue.semantic_error(str(exc))
        except (OverflowError, ZeroDivisionError):
            return ErrorValue.runtime_error("Numeric overflow in exponentiation")

    def negate(self) -> "SemanticValue":
        return self.multiply(NumberValue(-1.0))

    def _apply(self, operation: str, other: "SemanticValue") -> "SemanticValue":
        if other.kind == "error":
            return other.absorb(operation, left=self)
        if other.kind == "symbolic" and self.kind != "symbolic":
            return SymbolicValue.combine(self, OPERATOR_SYMBOLS[operation], other)
        if other.kind == "list" and self.kind != "list":
            return other.broadcast(operation, self, scalar_on_left=True)
        handler: Callable[[SemanticValue], SemanticValue] = getattr(self, f"_{operation}")
        try:
            return handler(other)
        except UnitError as exc:
            return ErrorValue.semantic_error(str(exc))
        except ZeroDivisionError:
            return ErrorValue.semantic_error("Division by zero")
        except OverflowError:
            return ErrorValue.runtime_error("Numeric overflow")

    def _add(self, other: "SemanticValue") -> "SemanticValue":
        return self._unsupported("add", other)

    def _subtract(self, other: "SemanticValue") -> "SemanticValue":
        return self._unsupported("subtract", other)

    def _multiply(self, other: "SemanticValue") -> "SemanticValue":
        return self._unsupported("multiply", other)

    def _divide(self, other: "SemanticValue") -> "SemanticValue":
        return self._unsupported("divide", other)

    def _power(self, exponent: float) -> "SemanticValue":
        return ErrorValue.type_error(
            f"Cannot raise {self.kind} to a power", "number", self.kind
        )

    def _unsupported(self, operation: str, other: "SemanticValue") -> "ErrorValue":
        return ErrorValue.type_error(
            f"Cannot {operation} {self.kind} and {other.kind}",
            expected=self.kind,
            actual=other.kind,
        )


def make_number(value: float) -> SemanticValue:
    """Build a NumberValue, turning NaN/infinity into a runtime error."""
    if not math.isfinite(value):
        return ErrorValue.runtime_error("Result is not a finite number")
    return NumberValue(float(value))


def _check_divisor(value: float) -> None:
    if value == 0:
        raise ZeroDivisionError


@dataclass(frozen=True)
class NumberValue(SemanticValue):
    """A plain dimensionless number."""

    kind: ClassVar[str] = "number"
    value: float

    def __post_init__(self):
        if not math.isfinite(self.value):
            raise ValueError("NumberValue must be finite")

    @property
    def is_numeric(self) -> bool:
        return True

    def numeric_value(self) -> float:
        return self.value

    def can_convert_to(self, target_kind: str) -> bool:
        return target_kind in ("number", "percentage", "currency", "unit")

    def to_string(self, options: DisplayOptions | None = None) -> str:
        return format_number(self.value, options)

    def _add(self, other):
        if other.kind == "number":
            return make_number(self.value + other.value)
        if other.kind == "percentage":
            return make_number(self.value * (1 + other.decimal))
        if other.kind in ("currency", "currencyUnit"):
            return other.add(self)
        if other.kind == "unit":
            return other.add(self)
        return self._unsupported("add", other)

    def _subtract(self, other):
        if other.kind == "number":
            return make_number(self.value - other.value)
        if other.kind == "percentage":
            return make_number(self.value * (1 - other.decimal))
        if other.kind == "unit":
            if self.value == 0:
                return other.negate()
            if other.quantity.value == 0:
                return self
            return ErrorValue.semantic_error(
                f"Cannot subtract {other.quantity.unit} from a plain number",
                suggestion="Give both sides units",
            )
        if other.kind == "currency":
            if self.value == 0:
                return other.negate()
            return ErrorValue.semantic_error("Cannot subtract currency from a plain number")
        return self._unsupported("subtract", other)

    def _multiply(self, other):
        if other.kind == "number":
            return make_number(self.value * other.value)
        if other.kind == "percentage":
            return make_number(self.value * other.decimal)
        if other.kind in ("currency", "currencyUnit", "unit", "duration"):
            return other.multiply(self)
        return self._unsupported("multiply", other)

    def _divide(self, other):
        if other.kind == "number":
            _check_divisor(other.value)
            return make_number(self.value / other.value)
        if other.kind == "percentage":
            _check_divisor(other.decimal)
            return make_number(self.value / other.decimal)
        if other.kind == "unit":
            _check_divisor(other.quantity.value)
            return UnitValue.wrap(
                Quantity(self.value / other.quantity.value, other.quantity.unit.power(-1))
            )
        if other.kind == "currency":
            return ErrorValue.semantic_error("Cannot divide a plain number by currency")
        return self._unsupported("divide", other)

    def _power(self, exponent: float):
        if self.value == 0 and exponent < 0:
            return ErrorValue.semantic_error("Division by zero")
        if self.value < 0 and not float(exponent).is_integer():
            return ErrorValue.semantic_error("Fractional power of a negative number is not real")
        return make_number(self.value**exponent)


@dataclass(frozen=True)
class PercentageValue(SemanticValue):
    """A percentage; ``value`` is the display form (20 for 20%)."""

    kind: ClassVar[str] = "percentage"
    value: float
    context: str = "standalone"  # "standalone", "of", "on", "off"

    @classmethod
    def from_decimal(cls, decimal: float) -> "PercentageValue":
        return cls(decimal * 100)

    @property
    def decimal(self) -> float:
        return self.value / 100

    @property
    def is_numeric(self) -> bool:
        return True

    def numeric_value(self) -> float:
        return self.decimal

    def can_convert_to(self, target_kind: str) -> bool:
        return target_kind in ("percentage", "number")

    def to_string(self, options: DisplayOptions | None = None) -> str:
        return f"{format_number(self.value, options)}%"

    def _add(self, other):
        if other.kind == "percentage":
            return PercentageValue(self.value + other.value)
        if other.kind == "number":
            return make_number(self.value + other.value)
        return self._unsupported("add", other)

    def _subtract(self, other):
        if other.kind == "percentage":
            return PercentageValue(self.value - other.value)
        if other.kind == "number":
            return make_number(self.value - other.value)
        return self._unsupported("subtract", other)

    def _multiply(self, other):
        if other.kind == "number":
            return PercentageValue(self.value * other.value)
        if other.kind == "percentage":
            return PercentageValue(self.value * other.decimal)
        if other.kind in ("currency", "currencyUnit", "unit"):
            return other.multiply(self)
        return self._unsupported("multiply", other)

    def _divide(self, other):
        if other.kind == "number":
            _check_divisor(other.value)
            return PercentageValue(self.value / other.value)
        if other.kind == "percentage":
            _check_divisor(other.value)
            return make_number(self.value / other.value)
        return self._unsupported("divide", other)

    def _power(self, exponent: float):
        return PercentageValue.from_decimal(self.decimal**exponent)

    # -- percentage phrasing ------------------------------------------------
    def of(self, base: SemanticValue) -> SemanticValue:
        """20% of 100 -> 20."""
        return self._scale_base(base, self.decimal, "of")

    def on(self, base: SemanticValue) -> SemanticValue:
        """20% on 100 -> 120."""
        return self._scale_base(base, 1 + self.decimal, "on")

    def off(self, base: SemanticValue) -> SemanticValue:
        """20% off 100 -> 80."""
        return self._scale_base(base, 1 - self.decimal, "off")

    def _scale_base(self, base: SemanticValue, factor: float, phrase: str) -> SemanticValue:
        if base.kind == "error":
            return base
        if base.kind in ("number", "currency", "currencyUnit", "unit", "list", "symbolic"):
            return base.multiply(NumberValue(factor))
        if base.kind == "percentage":
            return PercentageValue(base.value * factor)
        return ErrorValue.type_error(
            f"Cannot take a percentage {phrase} {base.kind}", "number", base.kind
        )

    @staticmethod
    def what_percent_of(part: SemanticValue, base: SemanticValue) -> SemanticValue:
        """20 is what % of 80 -> 25%."""
        for value in (part, base):
            if value.kind == "error":
                return value
        ratio = part.divide(base)
        if ratio.kind == "error":
            return ratio
        if ratio.kind != "number":
            return ErrorValue.type_error(
                "Percentage comparison needs compatible values", "number", ratio.kind
            )
        return PercentageValue.from_decimal(ratio.value)


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    decimals: int
    suffix: bool = False


CURRENCIES = {
    "$": CurrencyInfo("USD", 2),
    "€": CurrencyInfo("EUR", 2),
    "£": CurrencyInfo("GBP", 2),
    "¥": CurrencyInfo("JPY", 0),
    "₹": CurrencyInfo("INR", 2),
    "₿": CurrencyInfo("BTC", 8),
    "CHF": CurrencyInfo("CHF", 2, suffix=True),
    "CAD": CurrencyInfo("CAD", 2, suffix=True),
    "AUD": CurrencyInfo("AUD", 2, suffix=True),
}

_CODE_TO_SYMBOL = {info.code: symbol for symbol, info in CURRENCIES.items()}


def normalize_currency_symbol(raw: str) -> str | None:
    """Map "$", "usd", "EUR", "€" ... onto the canonical symbol."""
    if raw in CURRENCIES:
        return raw
    return _CODE_TO_SYMBOL.get(raw.upper())


def _format_money(symbol: str, amount: float, options: DisplayOptions | None) -> str:
    info = CURRENCIES.get(symbol, CurrencyInfo(symbol, 2))
    text = format_fixed(abs(amount), info.decimals)
    if options is not None and options.group_thousands:
        whole, dot, frac = text.partition(".")
        text = f"{int(whole):,}{dot}{frac}"
    sign = "-" if amount < 0 and text != "0" else ""
    if info.suffix:
        return f"{sign}{text} {symbol}"
    return f"{sign}{symbol}{text}"


@dataclass(frozen=True)
class CurrencyValue(SemanticValue):
    """An amount of money in one currency."""

    kind: ClassVar[str] = "currency"
    symbol: str
    amount: float

    @property
    def is_numeric(self) -> bool:
        return True

    def numeric_value(self) -> float:
        return self.amount

    def can_convert_to(self, target_kind: str) -> bool:
        return target_kind in ("currency", "number")

    def to_string(self, options: DisplayOptions | None = None) -> str:
        return _format_money(self.symbol, self.amount, options)

    def _same_currency(self, other: "CurrencyValue", operation: str) -> None:
        if other.symbol != self.symbol:
            raise UnitError(
                f"Cannot {operation} {self.symbol} and {other.symbol}: different currencies"
            )

    def _add(self, other):
        if other.kind == "currency":
            self._same_currency(other, "add")
            return CurrencyValue(self.symbol, self.amount + other.amount)
        if other.kind == "number":
            return CurrencyValue(self.symbol, self.amount + other.value)
        if other.kind == "percentage":
            return CurrencyValue(self.symbol, self.amount * (1 + other.decimal))
        return self._unsupported("add", other)

    def _subtract(self, other):
        if other.kind == "currency":
            self._same_currency(other, "subtract")
            return CurrencyValue(self.symbol, self.amount - other.amount)
        if other.kind == "number":
            return CurrencyValue(self.symbol, self.amount - other.value)
        if other.kind == "percentage":
            return CurrencyValue(self.symbol, self.amount * (1 - other.decimal))
        return self._unsupported("subtract", other)

    def _multiply(self, other):
        if other.kind == "number":
            return CurrencyValue(self.symbol, self.amount * other.value)
        if other.kind == "percentage":
            return CurrencyValue(self.symbol, self.amount * other.decimal)
        if other.kind == "currency":
            return ErrorValue.semantic_error("Cannot multiply currency by currency")
        if other.kind == "unit":
            return CurrencyUnitValue(
                self.symbol,
                self.amount * other.quantity.value,
                other.quantity.unit,
                per_unit=False,
            )
        return self._unsupported("multiply", other)

    def _divide(self, other):
        if other.kind == "number":
            _check_divisor(other.value)
            return CurrencyValue(self.symbol, self.amount / other.value)
        if other.kind == "percentage":
            _check_divisor(other.decimal)
            return CurrencyValue(self.symbol, self.amount / other.decimal)
        if other.kind == "currency":
            self._same_currency(other, "divide")
            _check_divisor(other.amount)
            return make_number(self.amount / other.amount)
        if other.kind == "unit":
            _check_divisor(other.quantity.value)
            return CurrencyUnitValue(
                self.symbol,
                self.amount / other.quantity.value,
                other.quantity.unit,
                per_unit=True,
            )
        return self._unsupported("divide", other)

    def _power(self, exponent: float):
        if exponent == 1:
            return self.clone()
        if exponent == 0:
            return NumberValue(1.0)
        return make_number(self.amount**exponent)


@dataclass(frozen=True)
class CurrencyUnitValue(SemanticValue):
    """Money combined with a unit: a rate ($8/m^2) or a product ($8*m^2)."""

    kind: ClassVar[str] = "currencyUnit"
    symbol: str
    amount: float
    unit: CompositeUnit
    per_unit: bool = True

    @property
    def is_numeric(self) -> bool:
        return True

    def numeric_value(self) -> float:
        return self.amount

    def unit_string(self) -> str:
        return str(self.unit)

    def to_string(self, options: DisplayOptions | None = None) -> str:
        unit_text = self.unit_string()
        if self.per_unit and len(self.unit.components) > 1 and "(" not in unit_text:
            unit_text = f"({unit_text})"
        separator = "/" if self.per_unit else "*"
        return f"{_format_money(self.symbol, self.amount, options)}{separator}{unit_text}"

    def convert_to(self, target: str | CompositeUnit) -> SemanticValue:
        """Re-express the rate against another unit ($1/ft -> $3.28/m)."""
        target_unit = parse_unit(target) if isinstance(target, str) else target
        factor = Quantity(1.0, target_unit).convert_to(self.unit).value
        amount = self.amount * factor if self.per_unit else self.amount / factor
        return CurrencyUnitValue(self.symbol, amount, target_unit, self.per_unit)

    def _compatible(self, other: "CurrencyUnitValue", operation: str) -> "CurrencyUnitValue":
        if other.symbol != self.symbol:
            raise UnitError(f"Cannot {operation} {self.symbol} and {other.symbol}: different currencies")
        if other.per_unit != self.per_unit or other.unit.dimension_key() != self.unit.dimension_key():
            raise UnitError(f"Cannot {operation} {self} and {other}: different units")
        return other.convert_to(self.unit)

    def _add(self, other):
        if other.kind == "currencyUnit":
            converted = self._compatible(other, "add")
            return dataclasses.replace(self, amount=self.amount + converted.amount)
        return self._unsupported("add", other)

    def _subtract(self, other):
        if other.kind == "currencyUnit":
            converted = self._compatible(other, "subtract")
            return dataclasses.replace(self, amount=self.amount - converted.amount)
        return self._unsupported("subtract", other)

    def _combine_with_unit(self, quantity: Quantity, dividing: bool) -> SemanticValue:
        # A rate times its own unit (or a product divided by it) cancels to money
        cancels = self.per_unit != dividing
        if cancels and quantity.unit.dimension_key() == self.unit.dimension_key():
            converted = quantity.convert_to(self.unit).value
            if dividing:
                _check_divisor(converted)
                return CurrencyValue(self.symbol, self.amount / converted)
            return CurrencyValue(self.symbol, self.amount * converted)
        own = Quantity(self.amount, self.unit if not self.per_unit else self.unit.power(-1))
        combined = normalize(
            Quantity(
                own.value / quantity.value if dividing else own.value * quantity.value,
                own.unit.divide(quantity.unit) if dividing else own.unit.multiply(quantity.unit),
            )
        )
        if combined.unit.dimension_key() == ():
            scale = combined.dimensionless_value() if combined.unit.components else combined.value
            return CurrencyValue(self.symbol, scale)
        exponents = [power for _, power in combined.unit.components]
        if all(power < 0 for power in exponents):
            return CurrencyUnitValue(self.symbol, combined.value, combined.unit.power(-1), per_unit=True)
        if all(power > 0 for power in exponents):
            return CurrencyUnitValue(self.symbol, combined.value, combined.unit, per_unit=False)
        return ErrorValue.semantic_error(f"Cannot express {self.symbol} with unit {combined.unit}")

    def _multiply(self, other):
        if other.kind == "number":
            return dataclasses.replace(self, amount=self.amount * other.value)
        if other.kind == "percentage":
            return dataclasses.replace(self, amount=self.amount * other.decimal)
        if other.kind == "unit":
            return self._combine_with_unit(other.quantity, dividing=False)
        return self._unsupported("multiply", other)

    def _divide(self, other):
        if other.kind == "number":
            _check_divisor(other.value)
            return dataclasses.replace(self, amount=self.amount / other.value)
        if other.kind == "percentage":
            _check_divisor(other.decimal)
            return dataclasses.replace(self, amount=self.amount / other.decimal)
        if other.kind == "unit":
            _check_divisor(other.quantity.value)
            return self._combine_with_unit(other.quantity, dividing=True)
        return self._unsupported("divide", other)


@dataclass(frozen=True)
class UnitValue(SemanticValue):
    """A physical quantity such as 5 m or 9.81 m/s^2."""

    kind: ClassVar[str] = "unit"
    quantity: Quantity
    # Set by explicit conversions so "7200 s" is not shown back as "2 h"
    fixed_display: bool = field(default=False, compare=False)

    @classmethod
    def of(cls, value: float, unit: str | CompositeUnit) -> "UnitValue":
        return cls(Quantity.of(value, unit))

    @staticmethod
    def wrap(quantity: Quantity) -> SemanticValue:
        """Wrap an arithmetic result, collapsing dimensionless quantities to numbers."""
        if quantity.unit.dimension_key() == ():
            if quantity.unit.is_dimensionless:
                return make_number(quantity.value)
            return make_number(quantity.dimensionless_value())
        if not math.isfinite(quantity.value):
            return ErrorValue.runtime_error("Result is not a finite number")
        return UnitValue(quantity)

    @property
    def is_numeric(self) -> bool:
        return True

    def numeric_value(self) -> float:
        return self.quantity.value

    @property
    def unit(self) -> CompositeUnit:
        return self.quantity.unit

    def can_convert_to(self, target_kind: str) -> bool:
        return target_kind in ("unit", "number")

    def to_string(self, options: DisplayOptions | None = None) -> str:
        options = options or DEFAULT_OPTIONS
        shown = self.quantity
        if not self.fixed_display:
            if options.prefer_base_unit and not shown.unit.is_offset:
                shown = shown.to_base_units()
            else:
                shown = shown.best_display()
        label = pluralize_unit(str(shown.unit), shown.value)
        return f"{format_number(shown.value, options)} {label}"

    def equals(self, other: SemanticValue, tolerance: float = config.NUMERIC_TOLERANCE) -> bool:
        if other.kind != "unit" or not self.quantity.is_compatible(other.quantity):
            return False
        converted = other.quantity.convert_to(self.quantity.unit).value
        return math.isclose(self.quantity.value, converted, rel_tol=tolerance, abs_tol=tolerance)

    def convert_to(self, target: str | CompositeUnit) -> SemanticValue:
        try:
            return UnitValue(self.quantity.convert_to(target), fixed_display=True)
        except UnitError as exc:
            return ErrorValue.conversion_error(str(exc))

    def _add(self, other):
        return self._additive(other, "add")

    def _subtract(self, other):
        return self._additive(other, "subtract")

    def _additive(self, other, operation: str):
        sign = 1 if operation == "add" else -1
        if other.kind == "unit":
            if other.quantity.value == 0:
                return self
            if self.quantity.value == 0 and not self.quantity.is_compatible(other.quantity):
                return other if sign > 0 else other.negate()
            combined = getattr(self.quantity, operation)(other.quantity)
            return UnitValue(combined)
        if other.kind == "number":
            if other.value == 0:
                return self
            if self.quantity.value == 0:
                return other if sign > 0 else other.negate()
            return ErrorValue.semantic_error(
                f"Cannot {operation} a plain number and {self.quantity.unit}",
                suggestion=f"Write the number with a unit, e.g. {format_number(other.value)} {self.quantity.unit}",
            )
        if other.kind == "percentage":
            return UnitValue(self.quantity.scale(1 + sign * other.decimal))
        if other.kind == "duration":
            return self._additive(other.as_unit(), operation)
        return self._unsupported(operation, other)

    def _multiply(self, other):
        if other.kind == "unit":
            return UnitValue.wrap(self.quantity.multiply(other.quantity))
        if other.kind == "number":
            return UnitValue(self.quantity.scale(other.value))
        if other.kind == "percentage":
            return UnitValue(self.quantity.scale(other.decimal))
        if other.kind in ("currency", "currencyUnit"):
            return other.multiply(self)
        if other.kind == "duration":
            return self._multiply(other.as_unit())
        return self._unsupported("multiply", other)

    def _divide(self, other):
        if other.kind == "unit":
            _check_divisor(other.quantity.value)
            return UnitValue.wrap(self.quantity.divide(other.quantity))
        if other.kind == "number":
            _check_divisor(other.value)
            return UnitValue(self.quantity.scale(1 / other.value))
        if other.kind == "percentage":
            _check_divisor(other.decimal)
            return UnitValue(self.quantity.scale(1 / other.decimal))
        if other.kind == "duration":
            return self._divide(other.as_unit())
        return self._unsupported("divide", other)

    def _power(self, exponent: float):
        return UnitValue.wrap(self.quantity.power(exponent))


def _needs_parentheses(child_precedence: int, operator: str, is_right: bool) -> bool:
    precedence = PRECEDENCE[operator]
    if child_precedence < precedence:
        return True
    if child_precedence == precedence:
        if operator == "^":
            return not is_right
        return is_right and operator in ("-", "/")
    return False


@dataclass(frozen=True)
class SymbolicValue(SemanticValue):
    """An unevaluated expression kept as text (unknown names defer evaluation)."""

    kind: ClassVar[str] = "symbolic"
    expression: str
    precedence: int = ATOM_PRECEDENCE

    def to_string(self, options: DisplayOptions | None = None) -> str:
        return self.expression

    @staticmethod
    def _operand(value: SemanticValue, operator: str, is_right: bool) -> str:
        if isinstance(value, SymbolicValue):
            text, precedence = value.expression, value.precedence
        else:
            text = value.to_string()
            precedence = 1 if text.startswith("-") else ATOM_PRECEDENCE
        if _needs_parentheses(precedence, operator, is_right):
            return f"({text})"
        return text

    @classmethod
    def combine(cls, left: SemanticValue, operator: str, right: SemanticValue) -> SemanticValue:
        """Render ``left operator right`` with minimal parentheses."""
        if left.kind == "error":
            return left
        if right.kind == "error":
            return right
        text = (
            f"{cls._operand(left, operator, False)} {operator} "
            f"{cls._operand(right, operator, True)}"
        )
        return cls(text, PRECEDENCE[operator])

    def negate(self) -> "SemanticValue":
        if self.precedence == ATOM_PRECEDENCE:
            return SymbolicValue(f"-{self.expression}", 2)
        return SymbolicValue(f"-({self.expression})", 2)

    def _add(self, other):
        return SymbolicValue.combine(self, "+", other)

    def _subtract(self, other):
        return SymbolicValue.combine(self, "-", other)

    def _multiply(self, other):
        return SymbolicValue.combine(self, "*", other)

    def _divide(self, other):
        return SymbolicValue.combine(self, "/", other)

    def _power(self, exponent: float):
        return SymbolicValue.combine(self, "^", NumberValue(float(exponent)))


@dataclass(frozen=True)
class ListValue(SemanticValue):
    """An ordered list of values; arithmetic broadcasts scalars and zips lists."""

    kind: ClassVar[str] = "list"
    items: tuple[SemanticValue, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls, items: Iterable[SemanticValue], max_length: int = config.MAX_LIST_LENGTH
    ) -> SemanticValue:
        """Build a list, flattening nested lists and unifying units.

        Returns an ErrorValue when the list is too long, contains an error, or
        mixes incompatible units.
        """
        flat: list[SemanticValue] = []
        for item in items:
            if item.kind == "list":
                flat.extend(item.items)
            else:
                flat.append(item)
        if len(flat) > max_length:
            return ErrorValue.semantic_error(
                f"List is too long ({len(flat)} items, maximum {max_length})"
            )
        for item in flat:
            if item.kind == "error":
                return item
        unit_items = [item for item in flat if item.kind == "unit"]
        if unit_items:
            reference = unit_items[0].quantity
            unified: list[SemanticValue] = []
            for item in flat:
                if item.kind == "number":
                    unified.append(UnitValue(Quantity(item.value, reference.unit)))
                elif item.kind == "unit":
                    if not item.quantity.is_compatible(reference):
                        return ErrorValue.semantic_error(
                            f"List items must share one unit dimension ({reference.unit} vs {item.quantity.unit})"
                        )
                    unified.append(item)
                else:
                    return ErrorValue.type_error(
                        "Cannot mix units and other values in a list", "unit", item.kind
                    )
            flat = unified
        return cls(tuple(flat))

    def __len__(self) -> int:
        return len(self.items)

    def to_string(self, options: DisplayOptions | None = None) -> str:
        if not self.items:
            return "()"
        return ", ".join(item.to_string(options) for item in self.items)

    def equals(self, other: SemanticValue, tolerance: float = config.NUMERIC_TOLERANCE) -> bool:
        if other.kind != "list" or len(other.items) != len(self.items):
            return False
        return all(a.equals(b, tolerance) for a, b in zip(self.items, other.items))

    def broadcast(self, operation: str, scalar: SemanticValue, scalar_on_left: bool) -> SemanticValue:
        results = []
        for item in self.items:
            left, right = (scalar, item) if scalar_on_left else (item, scalar)
            results.append(getattr(left, operation)(right))
        return ListValue.create(results)

    def _zip(self, operation: str, other: "ListValue") -> SemanticValue:
        if len(other.items) != len(self.items):
            return ErrorValue.semantic_error(
                f"Cannot {operation} lists of different lengths ({len(self.items)} and {len(other.items)})"
            )
        return ListValue.create(
            getattr(a, operation)(b) for a, b in zip(self.items, other.items)
        )

    def _elementwise(self, operation: str, other: SemanticValue) -> SemanticValue:
        if other.kind == "list":
            return self._zip(operation, other)
        return self.broadcast(operation, other, scalar_on_left=False)

    def _add(self, other):
        return self._elementwise("add", other)

    def _subtract(self, other):
        return self._elementwise("subtract", other)

    def _multiply(self, other):
        return self._elementwise("multiply", other)

    def _divide(self, other):
        return self._elementwise("divide", other)

    def _power(self, exponent: float):
        return ListValue.create(item.power(exponent) for item in self.items)


ERROR_KINDS = ("parse", "syntax", "semantic", "runtime", "type", "conversion")


@dataclass(frozen=True)
class ErrorValue(SemanticValue):
    """A failed evaluation carried through arithmetic like any other value."""

    kind: ClassVar[str] = "error"
    error_type: str
    message: str
    expression: str | None = None
    position: int | None = None
    expected_type: str | None = None
    actual_type: str | None = None
    suggestion: str | None = None
    cause: "ErrorValue | None" = None

    def to_string(self, options: DisplayOptions | None = None) -> str:
        text = f"⚠️ {self.message}"
        if self.expression:
            text += f' in "{self.expression}"'
        if self.suggestion:
            text += f" ({self.suggestion})"
        return text

    def user_message(self) -> str:
        if self.suggestion:
            return f"{self.message}. {self.suggestion}"
        return self.message

    def with_expression(self, expression: str) -> "ErrorValue":
        return dataclasses.replace(self, expression=expression)

    def chain(self, context: str) -> "ErrorValue":
        """Wrap this error with more context, keeping it as the cause."""
        return ErrorValue(self.error_type, f"{context}: {self.message}", cause=self)

    def root_cause(self) -> "ErrorValue":
        error = self
        while error.cause is not None:
            error = error.cause
        return error

    def absorb(self, operation: str, left: SemanticValue) -> "ErrorValue":
        """Result of ``left <operation> self`` where ``left`` is not an error."""
        return ErrorValue(
            self.error_type, f"Cannot {operation} with error: {self.message}", cause=self
        )

    def _apply(self, operation: str, other: SemanticValue) -> SemanticValue:
        if other.kind == "error":
            return ErrorValue(
                self.error_type,
                f"Multiple errors in {operation}: {self.message}; {other.message}",
                cause=self,
            )
        return ErrorValue(self.error_type, f"Cannot {operation} with error: {self.message}", cause=self)

    def power(self, exponent: float) -> SemanticValue:
        return self

    def negate(self) -> SemanticValue:
        return self

    # -- factories ------------------------------------------------------------
    @classmethod
    def parse_error(cls, message: str, expression: str | None = None, position: int | None = None):
        return cls("parse", message, expression=expression, position=position)

    @classmethod
    def syntax_error(cls, message: str, suggestion: str | None = None, expression: str | None = None):
        return cls("syntax", message, expression=expression, suggestion=suggestion)

    @classmethod
    def semantic_error(cls, message: str, suggestion: str | None = None):
        return cls("semantic", message, suggestion=suggestion)

    @classmethod
    def runtime_error(cls, message: str, cause: "ErrorValue | None" = None):
        return cls("runtime", message, cause=cause)

    @classmethod
    def type_error(cls, message: str, expected: str | None = None, actual: str | None = None):
        suggestion = f"Expected {expected} but got {actual}" if expected and actual else None
        return cls(
            "type", message, expected_type=expected, actual_type=actual, suggestion=suggestion
        )

    @classmethod
    def conversion_error(cls, message: str):
        return cls("conversion", message)

    @classmethod
    def from_exception(cls, exc: BaseException, error_type: str = "runtime") -> "ErrorValue":
        return cls(error_type, str(exc) or exc.__class__.__name__)


def is_error(value: Any) -> bool:
    return isinstance(value, ErrorValue)
