"""Dimensional units built on pint.

This module provides:
- A table of atomic units (display symbol, aliases, pint name, category)
- ``CompositeUnit``: products/quotients of atomic units with integer powers
- ``Quantity``: value + composite unit with dimension-checked arithmetic
- Derived-unit normalization (m*ft -> m^2, kg*m/s^2 -> N, V*A -> W)
- A display-only "best unit" policy (1500 m -> 1.5 km)

pint supplies scale factors, dimension vectors and offset-aware temperature
conversion. Angles are tracked as an extra "[angle]" dimension because pint
treats radians as dimensionless.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

import pint

from .logging_config import get_logger
from .types import UnitError

logger = get_logger("units")

ureg = pint.UnitRegistry(autoconvert_offset_to_baseunit=True)
Q_ = ureg.Quantity

ANGLE_DIMENSION = "[angle]"


@dataclass(frozen=True)
class UnitDefinition:
    """One atomic unit the notepad understands."""

    symbol: str
    pint_name: str
    category: str
    aliases: tuple[str, ...] = ()
    angle_power: int = 0

    @property
    def is_offset(self) -> bool:
        return self.category == "temperature" and self.symbol != "K"


UNIT_DEFINITIONS: tuple[UnitDefinition, ...] = (
    # Length
    UnitDefinition("m", "meter", "length", ("meter", "meters", "metre", "metres")),
    UnitDefinition("mm", "millimeter", "length", ("millimeter", "millimeters")),
    UnitDefinition("cm", "centimeter", "length", ("centimeter", "centimeters")),
    UnitDefinition("km", "kilometer", "length", ("kilometer", "kilometers")),
    UnitDefinition("in", "inch", "length", ("inch", "inches")),
    UnitDefinition("ft", "foot", "length", ("foot", "feet")),
    UnitDefinition("yd", "yard", "length", ("yard", "yards")),
    UnitDefinition("mi", "mile", "length", ("mile", "miles")),
    # Mass
    UnitDefinition("kg", "kilogram", "mass", ("kilogram", "kilograms")),
    UnitDefinition("g", "gram", "mass", ("gram", "grams")),
    UnitDefinition("mg", "milligram", "mass", ("milligram", "milligrams")),
    UnitDefinition("t", "metric_ton", "mass", ("tonne", "tonnes")),
    UnitDefinition("lb", "pound", "mass", ("lbs", "pound", "pounds")),
    UnitDefinition("oz", "ounce", "mass", ("ounce", "ounces")),
    # Duration
    UnitDefinition("s", "second", "duration", ("sec", "secs", "second", "seconds")),
    UnitDefinition("ms", "millisecond", "duration", ("millisecond", "milliseconds")),
    UnitDefinition("min", "minute", "duration", ("mins", "minute", "minutes")),
    UnitDefinition("h", "hour", "duration", ("hr", "hrs", "hour", "hours")),
    UnitDefinition("day", "day", "duration", ("days",)),
    UnitDefinition("week", "week", "duration", ("weeks", "wk")),
    UnitDefinition("month", "month", "duration", ("months",)),
    UnitDefinition("year", "year", "duration", ("years", "yr")),
    # Temperature
    UnitDefinition("K", "kelvin", "temperature", ("kelvin",)),
    UnitDefinition("°C", "degC", "temperature", ("C", "degC", "celsius")),
    UnitDefinition("°F", "degF", "temperature", ("F", "degF", "fahrenheit")),
    # Area and volume
    UnitDefinition("ha", "hectare", "area", ("hectare", "hectares")),
    UnitDefinition("acre", "acre", "area", ("acres",)),
    UnitDefinition("L", "liter", "volume", ("l", "liter", "liters", "litre", "litres")),
    UnitDefinition("mL", "milliliter", "volume", ("ml", "milliliter", "milliliters")),
    UnitDefinition("gal", "gallon", "volume", ("gallon", "gallons")),
    # Speed
    UnitDefinition("mph", "mile_per_hour", "speed"),
    UnitDefinition("kn", "knot", "speed", ("knot", "knots")),
    # Force and pressure
    UnitDefinition("N", "newton", "force", ("newton", "newtons")),
    UnitDefinition("kN", "kilonewton", "force"),
    UnitDefinition("lbf", "force_pound", "force"),
    UnitDefinition("Pa", "pascal", "pressure", ("pascal",)),
    UnitDefinition("kPa", "kilopascal", "pressure"),
    UnitDefinition("MPa", "megapascal", "pressure"),
    UnitDefinition("bar", "bar", "pressure"),
    UnitDefinition("psi", "psi", "pressure"),
    UnitDefinition("atm", "atmosphere", "pressure"),
    # Energy and power
    UnitDefinition("J", "joule", "energy", ("joule", "joules")),
    UnitDefinition("mJ", "millijoule", "energy"),
    UnitDefinition("kJ", "kilojoule", "energy"),
    UnitDefinition("MJ", "megajoule", "energy"),
    UnitDefinition("cal", "calorie", "energy", ("calorie", "calories")),
    UnitDefinition("kcal", "kilocalorie", "energy"),
    UnitDefinition("Wh", "watt_hour", "energy"),
    UnitDefinition("kWh", "kilowatt_hour", "energy"),
    UnitDefinition("W", "watt", "power", ("watt", "watts")),
    UnitDefinition("kW", "kilowatt", "power"),
    UnitDefinition("MW", "megawatt", "power"),
    UnitDefinition("hp", "horsepower", "power"),
    # Electrical
    UnitDefinition("A", "ampere", "current", ("amp", "amps", "ampere")),
    UnitDefinition("mA", "milliampere", "current"),
    UnitDefinition("uA", "microampere", "current", ("μA", "µA")),
    UnitDefinition("V", "volt", "potential", ("volt", "volts")),
    UnitDefinition("mV", "millivolt", "potential"),
    UnitDefinition("kV", "kilovolt", "potential"),
    UnitDefinition("ohm", "ohm", "resistance", ("Ω", "ohms")),
    UnitDefinition("kohm", "kiloohm", "resistance", ("kΩ",)),
    UnitDefinition("Mohm", "megaohm", "resistance", ("MΩ",)),
    # Frequency
    UnitDefinition("Hz", "hertz", "frequency", ("hertz",)),
    UnitDefinition("kHz", "kilohertz", "frequency"),
    UnitDefinition("MHz", "megahertz", "frequency"),
    UnitDefinition("GHz", "gigahertz", "frequency"),
    # Angle
    UnitDefinition("rad", "radian", "angle", ("radian", "radians"), angle_power=1),
    UnitDefinition("deg", "degree", "angle", ("°", "degree", "degrees"), angle_power=1),
    UnitDefinition("rev", "revolution", "angle", ("revolution", "revolutions"), angle_power=1),
    # Information
    UnitDefinition("bit", "bit", "information", ("bits",)),
    UnitDefinition("B", "byte", "information", ("byte", "bytes")),
    UnitDefinition("KB", "kilobyte", "information", ("kB",)),
    UnitDefinition("MB", "megabyte", "information"),
    UnitDefinition("GB", "gigabyte", "information"),
    UnitDefinition("TB", "terabyte", "information"),
    # Rotational speed
    UnitDefinition("rpm", "revolution / minute", "rotational speed", angle_power=1),
)

# Shorthands that expand to composite units
COMPOSITE_ALIASES = {
    "sqm": "m^2",
    "sqft": "ft^2",
    "kph": "km/h",
    "kmh": "km/h",
}

_BY_SYMBOL: dict[str, UnitDefinition] = {}
for _definition in UNIT_DEFINITIONS:
    _BY_SYMBOL[_definition.symbol] = _definition
    for _alias in _definition.aliases:
        _BY_SYMBOL.setdefault(_alias, _definition)

# Word aliases also match case-insensitively ("Meters", "HOURS")
_BY_LOWER_WORD = {
    alias.lower(): definition
    for alias, definition in _BY_SYMBOL.items()
    if len(alias) > 3
}

# Reference units for the named physical quantities
CATEGORY_REFERENCE_UNITS = {
    "length": "m",
    "mass": "kg",
    "duration": "s",
    "temperature": "K",
    "area": "m^2",
    "volume": "m^3",
    "speed": "m/s",
    "acceleration": "m/s^2",
    "force": "N",
    "pressure": "Pa",
    "energy": "J",
    "power": "W",
    "current": "A",
    "potential": "V",
    "resistance": "ohm",
    "frequency": "Hz",
    "angle": "rad",
    "information": "B",
    "rotational speed": "rpm",
}

# Multi-factor results in these categories collapse onto the named unit
DERIVED_TARGETS = {
    "force": "N",
    "pressure": "Pa",
    "energy": "J",
    "power": "W",
    "potential": "V",
    "resistance": "ohm",
}

# Display-only rescaling: (unit, ascending thresholds -> replacement unit)
BEST_DISPLAY_RULES = {
    "m": ((0.01, "mm", "below"), (1000, "km", "above")),
    "kg": ((0.001, "g", "below"), (1000, "t", "above")),
    "A": ((1e-6, "uA", "below_or_equal"), (1e-3, "mA", "below")),
    "W": ((1e6, "MW", "above"), (1e3, "kW", "above")),
    "s": ((3600, "h", "above"), (60, "min", "above")),
}

_FACTOR_RE = re.compile(r"^(?P<symbol>[^\^]+?)(?:\^(?P<power>-?\d+))?$")
_SUPERSCRIPTS = {"²": "^2", "³": "^3", "⁻¹": "^-1"}


def lookup_definition(symbol: str) -> UnitDefinition | None:
    """Return the atomic unit definition for ``symbol`` or one of its aliases."""
    definition = _BY_SYMBOL.get(symbol)
    if definition is None and len(symbol) > 3:
        definition = _BY_LOWER_WORD.get(symbol.lower())
    return definition


def _pint_unit(name: str):
    try:
        return ureg.parse_units(name)
    except Exception as exc:
        raise UnitError(f"Unknown unit: {name}", "UNKNOWN_UNIT") from exc


@dataclass(frozen=True)
class CompositeUnit:
    """Ordered product of (symbol, power) factors, e.g. kg*m/s^2."""

    components: tuple[tuple[str, int], ...] = ()

    @property
    def is_dimensionless(self) -> bool:
        return not self.components

    @property
    def is_offset(self) -> bool:
        """True for °C/°F, which cannot take part in linear composite arithmetic."""
        return any(
            (definition := lookup_definition(symbol)) is not None and definition.is_offset
            for symbol, _ in self.components
        )

    def to_pint(self):
        """Build the equivalent pint unit."""
        result = ureg.dimensionless
        for symbol, power in self.components:
            definition = lookup_definition(symbol)
            unit = _pint_unit(definition.pint_name if definition else symbol)
            result = result * unit**power if power != 1 else result * unit
        return result

    def dimension_key(self) -> tuple[tuple[str, float], ...]:
        """Dimension-exponent vector as a hashable tuple (pint dimensions + angle)."""
        dims: dict[str, float] = {}
        angle = 0
        for symbol, power in self.components:
            definition = lookup_definition(symbol)
            unit = _pint_unit(definition.pint_name if definition else symbol)
            for name, exponent in unit.dimensionality.items():
                dims[name] = dims.get(name, 0) + exponent * power
            if definition is not None:
                angle += definition.angle_power * power
        if angle:
            dims[ANGLE_DIMENSION] = angle
        return tuple(sorted((name, exp) for name, exp in dims.items() if exp != 0))

    def multiply(self, other: "CompositeUnit") -> "CompositeUnit":
        return _merge(self.components + other.components)

    def divide(self, other: "CompositeUnit") -> "CompositeUnit":
        return _merge(self.components + tuple((s, -p) for s, p in other.components))

    def power(self, exponent: float) -> "CompositeUnit":
        powered = []
        for symbol, power in self.components:
            raised = power * exponent
            if abs(raised - round(raised)) > 1e-9:
                raise UnitError(
                    f"Cannot raise {self} to a fractional power {exponent:g}",
                    "FRACTIONAL_POWER",
                )
            powered.append((symbol, int(round(raised))))
        return _merge(tuple(powered))

    def __str__(self) -> str:
        if not self.components:
            return ""
        numerator = [_format_factor(s, p) for s, p in self.components if p > 0]
        denominator = [_format_factor(s, -p) for s, p in self.components if p < 0]
        top = "*".join(numerator) if numerator else "1"
        if not denominator:
            return top
        bottom = denominator[0] if len(denominator) == 1 else f"({'*'.join(denominator)})"
        return f"{top}/{bottom}"


def _format_factor(symbol: str, power: int) -> str:
    return symbol if power == 1 else f"{symbol}^{power}"


def _merge(components: tuple[tuple[str, int], ...]) -> CompositeUnit:
    merged: dict[str, int] = {}
    for symbol, power in components:
        merged[symbol] = merged.get(symbol, 0) + power
    return CompositeUnit(tuple((s, p) for s, p in merged.items() if p != 0))


def _canonical_symbol(raw: str) -> str:
    definition = lookup_definition(raw)
    if definition is not None:
        return definition.symbol
    # Longer names pint understands are accepted under their own spelling;
    # short unknown tokens ("a", "c", "x") are variable names, not units
    if len(raw) < 3:
        raise UnitError(f"Unknown unit: {raw}", "UNKNOWN_UNIT")
    _pint_unit(raw)
    return raw


@lru_cache(maxsize=512)
def parse_unit(text: str) -> CompositeUnit:
    """Parse a unit string such as "m/s^2", "kg*m/s^2", "km per h" or "1/s".

    Args:
        text: Unit expression

    Returns:
        CompositeUnit with canonical symbols

    Raises:
        UnitError: If a factor is not a known unit
    """
    cleaned = text.strip()
    for sup, replacement in _SUPERSCRIPTS.items():
        cleaned = cleaned.replace(sup, replacement)
    cleaned = re.sub(r"\s+per\s+", "/", cleaned)
    cleaned = cleaned.replace("·", "*").replace(" ", "")
    if not cleaned:
        raise UnitError("Empty unit", "EMPTY_UNIT")
    if cleaned in COMPOSITE_ALIASES:
        return parse_unit(COMPOSITE_ALIASES[cleaned])
    if lookup_definition(cleaned) is not None:
        return CompositeUnit(((lookup_definition(cleaned).symbol, 1),))

    parts = cleaned.split("/")
    components: list[tuple[str, int]] = []
    for index, part in enumerate(parts):
        sign = 1 if index == 0 else -1
        part = part.strip("()")
        if not part:
            raise UnitError(f"Invalid unit: {text}", "INVALID_UNIT")
        for factor in part.split("*"):
            if factor == "1":
                continue
            match = _FACTOR_RE.match(factor)
            if not match:
                raise UnitError(f"Invalid unit: {text}", "INVALID_UNIT")
            raw_symbol = match.group("symbol")
            power = int(match.group("power") or 1)
            if raw_symbol in COMPOSITE_ALIASES:
                expanded = parse_unit(COMPOSITE_ALIASES[raw_symbol]).power(power * sign)
                components.extend(expanded.components)
                continue
            components.append((_canonical_symbol(raw_symbol), power * sign))
    return _merge(tuple(components))


def is_unit_string(text: str) -> bool:
    """Return True if ``text`` parses as a unit."""
    try:
        return not parse_unit(text).is_dimensionless
    except UnitError:
        return False


@lru_cache(maxsize=64)
def _category_index() -> dict[tuple, str]:
    return {
        parse_unit(unit).dimension_key(): name
        for name, unit in CATEGORY_REFERENCE_UNITS.items()
    }


def category_of(unit: CompositeUnit) -> str | None:
    """Name of the physical quantity ``unit`` measures, if it is a named one."""
    if len(unit.components) == 1 and unit.components[0][1] == 1:
        definition = lookup_definition(unit.components[0][0])
        if definition is not None:
            return definition.category
    return _category_index().get(unit.dimension_key())


def format_dimension(unit: CompositeUnit) -> str:
    """Dimension vector in readable form, e.g. "[length]/[time]^2"."""
    key = unit.dimension_key()
    numerator = [_format_factor(n, int(p)) for n, p in key if p > 0]
    denominator = [_format_factor(n, int(-p)) for n, p in key if p < 0]
    text = "*".join(numerator) or "1"
    if denominator:
        text += "/" + "/".join(denominator)
    return text


@dataclass(frozen=True)
class Quantity:
    """A numeric value carrying a composite unit."""

    value: float
    unit: CompositeUnit

    @classmethod
    def of(cls, value: float, unit: str | CompositeUnit) -> "Quantity":
        return cls(float(value), parse_unit(unit) if isinstance(unit, str) else unit)

    @property
    def category(self) -> str | None:
        return category_of(self.unit)

    def dimension_key(self):
        return self.unit.dimension_key()

    def is_compatible(self, other: "Quantity | CompositeUnit") -> bool:
        unit = other.unit if isinstance(other, Quantity) else other
        return self.unit.dimension_key() == unit.dimension_key()

    def convert_to(self, target: str | CompositeUnit) -> "Quantity":
        """Convert to ``target`` (offset-aware for temperatures).

        Raises:
            UnitError: If the dimensions differ
        """
        target_unit = parse_unit(target) if isinstance(target, str) else target
        if not self.is_compatible(target_unit):
            raise UnitError(
                f"Cannot convert {self.unit} to {target_unit}: incompatible dimensions",
                "INCOMPATIBLE_UNITS",
            )
        if target_unit == self.unit:
            return self
        try:
            magnitude = Q_(self.value, self.unit.to_pint()).to(target_unit.to_pint()).magnitude
        except (pint.DimensionalityError, pint.OffsetUnitCalculusError) as exc:
            raise UnitError(str(exc), "CONVERSION_FAILED") from exc
        return Quantity(float(magnitude), target_unit)

    def to_base_units(self) -> "Quantity":
        base = Q_(self.value, self.unit.to_pint()).to_base_units()
        return Quantity(float(base.magnitude), parse_unit(f"{base.units:~}".replace(" ", "").replace("**", "^")))

    def add(self, other: "Quantity") -> "Quantity":
        """Add ``other`` converted into this quantity's unit."""
        if not self.is_compatible(other):
            raise UnitError(
                f"Cannot add {other.unit} to {self.unit}: incompatible dimensions",
                "INCOMPATIBLE_UNITS",
            )
        return Quantity(self.value + other.convert_to(self.unit).value, self.unit)

    def subtract(self, other: "Quantity") -> "Quantity":
        """Subtract ``other``; for temperatures the result is the difference in this unit."""
        if not self.is_compatible(other):
            raise UnitError(
                f"Cannot subtract {other.unit} from {self.unit}: incompatible dimensions",
                "INCOMPATIBLE_UNITS",
            )
        return Quantity(self.value - other.convert_to(self.unit).value, self.unit)

    def scale(self, factor: float) -> "Quantity":
        return Quantity(self.value * factor, self.unit)

    def multiply(self, other: "Quantity") -> "Quantity":
        self._reject_offset(other, "multiply")
        if self.unit == other.unit and len(self.unit.components) == 1:
            return Quantity(self.value * other.value, self.unit.power(2))
        return normalize(Quantity(self.value * other.value, self.unit.multiply(other.unit)))

    def divide(self, other: "Quantity") -> "Quantity":
        self._reject_offset(other, "divide")
        return normalize(Quantity(self.value / other.value, self.unit.divide(other.unit)))

    def power(self, exponent: float) -> "Quantity":
        if self.unit.is_offset and exponent != 1:
            raise UnitError("Cannot raise a temperature to a power", "OFFSET_UNIT")
        return Quantity(self.value**exponent, self.unit.power(exponent))

    def _reject_offset(self, other: "Quantity", operation: str) -> None:
        if self.unit.is_offset or other.unit.is_offset:
            raise UnitError(
                f"Cannot {operation} temperatures in °C/°F; convert to K first",
                "OFFSET_UNIT",
            )

    def dimensionless_value(self) -> float:
        """Numeric value once all units cancel (e.g. m/ft -> 3.28...)."""
        return float(Q_(self.value, self.unit.to_pint()).to("dimensionless").magnitude)

    def best_display(self) -> "Quantity":
        """Rescale for display only, e.g. 1500 m -> 1.5 km."""
        if len(self.unit.components) != 1 or self.unit.components[0][1] != 1:
            return self
        rules = BEST_DISPLAY_RULES.get(self.unit.components[0][0])
        if not rules:
            return self
        magnitude = abs(self.value)
        if magnitude == 0:
            return self
        for threshold, replacement, mode in rules:
            if (
                (mode == "below" and magnitude < threshold)
                or (mode == "below_or_equal" and magnitude <= threshold)
                or (mode == "above" and magnitude >= threshold)
            ):
                return self.convert_to(replacement)
        return self

    def __str__(self) -> str:
        return f"{self.value:g} {self.unit}"


def normalize(quantity: Quantity) -> Quantity:
    """Tidy a freshly combined quantity.

    Factors sharing a base dimension are folded into the first one (left
    operand wins), then multi-factor results that measure force, pressure,
    energy, power, potential or resistance become the named SI unit.
    """
    components = list(quantity.unit.components)
    value = quantity.value
    keys = [CompositeUnit(((symbol, 1),)).dimension_key() for symbol, _ in components]
    folded: list[tuple[str, int]] = []
    folded_keys: list[tuple] = []
    for (symbol, power), key in zip(components, keys):
        target_index = next(
            (i for i, existing in enumerate(folded_keys) if existing == key and key),
            None,
        )
        if target_index is None:
            folded.append((symbol, power))
            folded_keys.append(key)
            continue
        target_symbol, target_power = folded[target_index]
        factor = Quantity.of(1, symbol).convert_to(target_symbol).value
        value *= factor**power
        folded[target_index] = (target_symbol, target_power + power)
    unit = _merge(tuple(folded))
    result = Quantity(value, unit)
    if len(unit.components) > 1:
        category = category_of(unit)
        target = DERIVED_TARGETS.get(category or "")
        if target is not None:
            logger.debug("Collapsing %s onto %s", unit, target)
            result = result.convert_to(target)
    return result
