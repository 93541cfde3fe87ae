"""Semantic expression evaluation over component trees.

This module provides:
- EvaluationContext: stores, line number, display options, clock and the
  user-function call depth for one evaluation
- evaluate_components(): precedence-climbing evaluator producing a
  SemanticValue (errors are returned, never raised)
- evaluate_text(): parse + evaluate, honoring a trailing ``to|in <target>``
- apply_conversion(): ``to km``, ``to $/m^2``, ``to UTC``, ``as %``

Precedence, loosest first: ``+ -``, ``* /`` (and implicit multiplication of
adjacent operands), unary ``+ -``, ``^`` (right-associative), postfix ``%``.
"""

from __future__ import annotations

import math
import re
import statistics
from dataclasses import dataclass, field, replace
from typing import Callable

import sympy as sp

from . import config
from .formatting import DEFAULT_OPTIONS, DisplayOptions
from .function_manager import FunctionStore, bind_arguments
from .literals import parse_literal_or_error
from .logging_config import get_logger
from .parser import (
    RANGE_FUNCTION,
    ConversionSuffix,
    ExpressionComponent,
    parse,
    split_conversion_suffix,
)
from .stores import EquationStore, VariableStore, normalize_variable_name
from .temporal import (
    Clock,
    DateValue,
    is_zone,
    parse_weekday,
    parse_zone,
    system_clock,
)
from .types import ParseError, UnitError, ValidationError
from .units import Quantity, parse_unit
from .values import (
    CurrencyValue,
    ErrorValue,
    ListValue,
    NumberValue,
    PercentageValue,
    SemanticValue,
    SymbolicValue,
    UnitValue,
    make_number,
    normalize_currency_symbol,
)

logger = get_logger("expression")

DEPTH_EXCEEDED = "Maximum function call depth exceeded"

DATE_KEYWORDS = ("today", "now", "tomorrow", "yesterday")
RELATIVE_DAY_RE = re.compile(r"^(next|last)\s+(\w+)$", re.IGNORECASE)
CURRENCY_TARGET_RE = re.compile(
    rf"^(?P<currency>[{re.escape(config.CURRENCY_SYMBOLS)}]|{'|'.join(config.CURRENCY_CODES)})"
    r"(?:\s*(?:/|per\s)\s*(?P<unit>.+))?$",
    re.IGNORECASE,
)
OPERAND_TYPES = ("literal", "variable", "function", "parentheses", "list", "listAccess")
BINARY_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 4}
UNARY_PRECEDENCE = 3

AGGREGATE_NAMES = {
    "sum": "sum", "total": "sum",
    "avg": "mean", "average": "mean", "mean": "mean",
    "median": "median", "min": "min", "max": "max",
    "count": "count", "stddev": "stddev", "sort": "sort",
}
# Functions that keep the unit or currency of their argument
MAGNITUDE_FUNCTIONS = ("abs", "round", "floor", "ceil")
TRIG_FUNCTIONS = ("sin", "cos", "tan")


@dataclass
class EvaluationContext:
    """Everything one line needs to evaluate.

    ``local_scope`` holds function parameters and ``where`` bindings and is
    consulted before the variable store.
    """

    variables: VariableStore = field(default_factory=VariableStore)
    functions: FunctionStore = field(default_factory=FunctionStore)
    equations: EquationStore = field(default_factory=EquationStore)
    line_number: int = 0
    options: DisplayOptions = DEFAULT_OPTIONS
    clock: Clock = system_clock
    call_depth: int = 0
    local_scope: dict[str, SemanticValue] = field(default_factory=dict)

    def lookup(self, name: str) -> SemanticValue | None:
        normalized = normalize_variable_name(name)
        if normalized in self.local_scope:
            return self.local_scope[normalized]
        return self.variables.get_value(normalized)

    def with_line(self, line_number: int) -> "EvaluationContext":
        return replace(self, line_number=line_number, call_depth=0, local_scope={})

    def child(self, scope: dict[str, SemanticValue]) -> "EvaluationContext":
        """Context for a nested user-function call."""
        return replace(self, call_depth=self.call_depth + 1, local_scope=dict(scope))

    def with_scope(self, scope: dict[str, SemanticValue]) -> "EvaluationContext":
        merged = dict(self.local_scope)
        merged.update(scope)
        return replace(self, local_scope=merged)


# -- public entry points -------------------------------------------------------------

def evaluate_text(expression: str, context: EvaluationContext) -> SemanticValue:
    """Parse and evaluate ``expression``, applying any conversion suffix.

    Args:
        expression: Expression text without assignment or "=>"
        context: Evaluation context

    Returns:
        The resulting SemanticValue (an ErrorValue on failure)
    """
    text = expression.strip()
    if not text:
        return ErrorValue.syntax_error("Empty expression")
    as_percent = re.match(r"^(?P<base>.+?)\s+as\s*%\s*$", text, re.IGNORECASE)
    conversion = (
        ConversionSuffix(as_percent.group("base").strip(), "as", "%")
        if as_percent
        else split_conversion_suffix(text)
    )
    base = conversion.base if conversion else text
    try:
        components = parse(base)
    except ParseError as exc:
        return ErrorValue.parse_error(exc.message, expression=text, position=exc.position)
    return evaluate_with_conversion(components, conversion, context)


def evaluate_with_conversion(
    components, conversion: ConversionSuffix | None, context: EvaluationContext
) -> SemanticValue:
    value = evaluate_components(components, context)
    if conversion is None or value.kind == "error":
        return value
    return apply_conversion(value, conversion.target, conversion.keyword)


def evaluate_components(components, context: EvaluationContext) -> SemanticValue:
    """Evaluate a component list with operator precedence."""
    items = with_implicit_multiplication(list(components))
    if not items:
        return ErrorValue.syntax_error("Empty expression")
    walker = _Walker(items, context)
    value = walker.expression(0)
    if walker.position < len(items):
        leftover = items[walker.position]
        return ErrorValue.syntax_error(
            f"Unexpected {leftover.type} '{leftover.value}'",
            suggestion="Check for a missing operator",
        )
    return value


# -- precedence climbing -----------------------------------------------------------

def with_implicit_multiplication(components: list[ExpressionComponent]) -> list[ExpressionComponent]:
    """Insert "*" between adjacent operands ("2 x", "3(4 + 1)", "2 PI")."""
    result: list[ExpressionComponent] = []
    for component in components:
        if result and component.type in OPERAND_TYPES:
            previous = result[-1]
            if previous.type in OPERAND_TYPES or (previous.type == "operator" and previous.value == "%"):
                result.append(ExpressionComponent("operator", "*"))
        result.append(component)
    return result


class _Walker:
    """Recursive precedence climbing over one flat component list."""

    def __init__(self, items: list[ExpressionComponent], context: EvaluationContext):
        self.items = items
        self.position = 0
        self.context = context

    def _peek(self) -> ExpressionComponent | None:
        return self.items[self.position] if self.position < len(self.items) else None

    def expression(self, min_precedence: int) -> SemanticValue:
        left = self.unary()
        while True:
            token = self._peek()
            if token is None or token.type != "operator" or token.value not in BINARY_PRECEDENCE:
                return left
            precedence = BINARY_PRECEDENCE[token.value]
            if precedence < min_precedence:
                return left
            self.position += 1
            next_min = precedence if token.value == "^" else precedence + 1
            right = self.expression(next_min)
            left = apply_operator(token.value, left, right)

    def unary(self) -> SemanticValue:
        token = self._peek()
        if token is not None and token.type == "operator" and token.value in "+-":
            self.position += 1
            operand = self.expression(UNARY_PRECEDENCE + 1)
            return operand.negate() if token.value == "-" else operand
        return self.postfix()

    def postfix(self) -> SemanticValue:
        token = self._peek()
        if token is None:
            return ErrorValue.syntax_error("Expression ends with an operator")
        if token.type == "operator":
            self.position += 1
            return ErrorValue.syntax_error(
                f"Unexpected operator '{token.value}'", suggestion="Add a value before it"
            )
        self.position += 1
        value = evaluate_component(token, self.context)
        while (following := self._peek()) is not None and following.type == "operator" and following.value == "%":
            self.position += 1
            value = _to_percentage(value)
        return value


def _to_percentage(value: SemanticValue) -> SemanticValue:
    if value.kind == "number":
        return PercentageValue(value.value)
    if value.kind in ("percentage", "error"):
        return value
    if value.kind == "symbolic":
        return SymbolicValue(f"{value.to_string()}%")
    return ErrorValue.type_error("Only numbers can be written as a percentage", "number", value.kind)


def apply_operator(operator: str, left: SemanticValue, right: SemanticValue) -> SemanticValue:
    """Dispatch one binary operator onto the semantic value methods."""
    if operator == "+":
        return left.add(right)
    if operator == "-":
        return left.subtract(right)
    if operator == "*":
        return left.multiply(right)
    if operator == "/":
        return left.divide(right)
    # Exponentiation
    if left.kind == "error":
        return left
    if right.kind == "error":
        return right
    if right.kind == "symbolic" or left.kind == "symbolic" and right.kind != "number":
        return SymbolicValue.combine(left, "^", right)
    if right.kind == "percentage":
        return left.power(right.decimal)
    if right.kind != "number":
        return ErrorValue.type_error("Exponent must be a plain number", "number", right.kind)
    return left.power(right.value)


# -- operands --------------------------------------------------------------------------

def evaluate_component(component: ExpressionComponent, context: EvaluationContext) -> SemanticValue:
    kind = component.type
    if kind == "literal":
        if component.parsed_value is not None:
            return component.parsed_value
        return parse_literal_or_error(component.value)
    if kind == "variable":
        return resolve_name(component.value, context)
    if kind == "parentheses":
        return evaluate_components(component.children, context)
    if kind == "list":
        items = [evaluate_components(item.children, context) for item in component.children]
        return ListValue.create(items, config.MAX_LIST_LENGTH)
    if kind == "function":
        return call_function(component, context)
    if kind == "listAccess":
        return _list_access(component, context)
    return ErrorValue.syntax_error(f"Unexpected {kind} '{component.value}'")


def _constant(name: str) -> SemanticValue | None:
    constant = config.CONSTANTS.get(name)
    if constant is None:
        return None
    return NumberValue(float(sp.N(constant)))


def _resolve_single(name: str, context: EvaluationContext) -> SemanticValue | None:
    value = context.lookup(name)
    if value is not None:
        return value
    constant = _constant(name)
    if constant is not None:
        return constant
    lowered = name.lower()
    if lowered in DATE_KEYWORDS:
        return DateValue.from_keyword(lowered, context.clock)
    relative = RELATIVE_DAY_RE.match(name)
    if relative:
        weekday = parse_weekday(relative.group(2))
        if weekday is not None:
            return DateValue.relative_weekday(relative.group(1), weekday, context.clock)
    return None


def _split_phrase(words: list[str], context: EvaluationContext) -> list[SemanticValue] | None:
    """Cover ``words`` with known names, longest first ("qty price" -> qty * price)."""
    if not words:
        return []
    for end in range(len(words), 0, -1):
        value = _resolve_single(" ".join(words[:end]), context)
        if value is None:
            continue
        rest = _split_phrase(words[end:], context)
        if rest is not None:
            return [value] + rest
    return None


def resolve_name(name: str, context: EvaluationContext) -> SemanticValue:
    """Variable, constant, date keyword, or a symbolic placeholder for unknowns."""
    normalized = normalize_variable_name(name)
    value = _resolve_single(normalized, context)
    if value is not None:
        return value
    words = normalized.split(" ")
    if len(words) > 1:
        parts = _split_phrase(words, context)
        if parts is not None:
            product = parts[0]
            for part in parts[1:]:
                product = product.multiply(part)
            return product
    return SymbolicValue(normalized)


# -- functions ---------------------------------------------------------------------------

def _argument_values(component: ExpressionComponent, context: EvaluationContext) -> list[SemanticValue]:
    return [evaluate_components(arg.components, context) for arg in component.args]


def _first_error(values: list[SemanticValue]) -> SemanticValue | None:
    return next((value for value in values if value.kind == "error"), None)


def call_function(component: ExpressionComponent, context: EvaluationContext) -> SemanticValue:
    name = normalize_variable_name(component.value)
    if name == RANGE_FUNCTION:
        return _range(_argument_values(component, context))
    definition = context.functions.get(name)
    if definition is not None:
        return _call_user_function(definition, component, context)
    aggregate = AGGREGATE_NAMES.get(name.lower())
    if aggregate is not None:
        return _aggregate(aggregate, name, _argument_values(component, context))
    if name in config.ALLOWED_SYMPY_NAMES:
        return _call_builtin(name, _argument_values(component, context))
    return ErrorValue.semantic_error(f"Unknown function: {name}")


def _call_user_function(definition, component: ExpressionComponent, context: EvaluationContext) -> SemanticValue:
    if context.call_depth >= config.MAX_FUNCTION_CALL_DEPTH:
        return ErrorValue.semantic_error(
            f"{DEPTH_EXCEEDED} ({config.MAX_FUNCTION_CALL_DEPTH})",
            suggestion=f"Check '{definition.name}' for unbounded recursion",
        )
    positional: list[SemanticValue] = []
    named: dict[str, SemanticValue] = {}
    for arg in component.args:
        value = evaluate_components(arg.components, context)
        if value.kind == "error":
            return value.chain(f"In argument of {definition.name}")
        if arg.name is None:
            positional.append(value)
        else:
            named[arg.name] = value
    try:
        bound = bind_arguments(definition, positional, named)
    except ValidationError as exc:
        return ErrorValue.semantic_error(exc.message)
    scope = dict(bound.values)
    for param in bound.defaults:
        default = evaluate_components(param.default_components, context.with_scope(scope))
        if default.kind == "error":
            return default.chain(f"Default for '{param.name}'")
        scope[param.name] = default
    if not definition.components:
        return ErrorValue.semantic_error(f"Function '{definition.name}' has no body")
    logger.debug("Calling %s at depth %d", definition.name, context.call_depth + 1)
    result = evaluate_components(definition.components, context.child(scope))
    if result.kind == "error" and result.root_cause().message.startswith(DEPTH_EXCEEDED):
        # the depth error surfaces unwrapped from every frame
        return result.root_cause()
    return result


def _magnitude(value: SemanticValue) -> float | None:
    if value.kind in ("number", "percentage"):
        return value.numeric_value()
    return None


def _sympy_real(name: str, args: list[float]) -> SemanticValue:
    function: Callable = config.ALLOWED_SYMPY_NAMES[name]
    try:
        result = sp.N(function(*[sp.Float(arg) if not float(arg).is_integer() else sp.Integer(int(arg)) for arg in args]))
    except (TypeError, ValueError) as exc:
        return ErrorValue.runtime_error(f"{name}: {exc}")
    if result.is_real is False or not result.is_finite:
        rendered = ", ".join(NumberValue(arg).to_string() for arg in args)
        if result.is_finite is False or result.has(sp.zoo, sp.oo, sp.nan):
            return ErrorValue.semantic_error(f"{name}({rendered}) is undefined")
        return ErrorValue.semantic_error(f"{name}({rendered}) has no real value")
    return make_number(float(result))


def _call_builtin(name: str, args: list[SemanticValue]) -> SemanticValue:
    error = _first_error(args)
    if error is not None:
        return error
    if not args:
        return ErrorValue.semantic_error(f"Missing argument for {name}()")
    if any(arg.kind == "symbolic" for arg in args):
        rendered = ", ".join(arg.to_string() for arg in args)
        return SymbolicValue(f"{name}({rendered})")
    first = args[0]
    extra = [_magnitude(arg) for arg in args[1:]]
    if any(value is None for value in extra):
        return ErrorValue.type_error(f"{name}() options must be plain numbers", "number", "unit")

    if first.kind == "unit":
        if name in MAGNITUDE_FUNCTIONS:
            result = _sympy_real(name, [first.quantity.value] + extra)
            if result.kind == "error":
                return result
            return UnitValue(Quantity(result.value, first.quantity.unit))
        if name == "sqrt":
            return first.power(0.5)
        if name == "cbrt":
            return first.power(1 / 3)
        if name in TRIG_FUNCTIONS and first.quantity.category == "angle":
            return _sympy_real(name, [first.quantity.convert_to("rad").value])
        return ErrorValue.type_error(f"{name}() needs a plain number", "number", "unit")
    if first.kind == "currency":
        if name in MAGNITUDE_FUNCTIONS:
            result = _sympy_real(name, [first.amount] + extra)
            if result.kind == "error":
                return result
            return CurrencyValue(first.symbol, result.value)
        return ErrorValue.type_error(f"{name}() needs a plain number", "number", "currency")
    if first.kind == "list":
        return ListValue.create(_call_builtin(name, [item] + args[1:]) for item in first.items)
    magnitude = _magnitude(first)
    if magnitude is None:
        return ErrorValue.type_error(f"{name}() needs a plain number", "number", first.kind)
    return _sympy_real(name, [magnitude] + extra)


# -- aggregates and ranges -------------------------------------------------------------------

def _aggregate_items(args: list[SemanticValue]) -> list[SemanticValue]:
    if len(args) == 1 and args[0].kind == "list":
        return list(args[0].items)
    items: list[SemanticValue] = []
    for arg in args:
        items.extend(arg.items if arg.kind == "list" else [arg])
    return items


def _sort_key(reference: SemanticValue) -> Callable[[SemanticValue], float]:
    if reference.kind == "unit":
        return lambda item: item.quantity.convert_to(reference.quantity.unit).value
    return lambda item: item.numeric_value()


def _rebuild(reference: SemanticValue, magnitude: float) -> SemanticValue:
    if reference.kind == "unit":
        return UnitValue(Quantity(magnitude, reference.quantity.unit))
    if reference.kind == "currency":
        return CurrencyValue(reference.symbol, magnitude)
    if reference.kind == "percentage":
        return PercentageValue.from_decimal(magnitude)
    return make_number(magnitude)


def _aggregate(operation: str, name: str, args: list[SemanticValue]) -> SemanticValue:
    error = _first_error(args)
    if error is not None:
        return error
    items = _aggregate_items(args)
    error = _first_error(items)
    if error is not None:
        return error
    if operation == "count":
        return NumberValue(float(len(items)))
    if operation == "sum":
        if not items:
            return NumberValue(0.0)
        total = items[0]
        for item in items[1:]:
            total = total.add(item)
        return total
    if not items:
        return ErrorValue.semantic_error(f"Cannot compute {name} of an empty list")
    if any(item.kind == "symbolic" for item in items):
        rendered = ", ".join(item.to_string() for item in items)
        return SymbolicValue(f"{name}({rendered})")
    if any(not item.is_numeric or item.kind == "duration" for item in items):
        offender = next(item for item in items if not item.is_numeric or item.kind == "duration")
        return ErrorValue.type_error(f"{name}() needs numeric values", "number", offender.kind)
    reference = items[0]
    if any(item.kind != reference.kind for item in items):
        return ErrorValue.type_error(
            f"{name}() needs values of one type", reference.kind,
            next(item.kind for item in items if item.kind != reference.kind),
        )
    if reference.kind == "currency" and any(item.symbol != reference.symbol for item in items):
        return ErrorValue.semantic_error(f"Cannot compute {name} of different currencies")
    try:
        key = _sort_key(reference)
        ordered = sorted(items, key=key)
        magnitudes = [key(item) for item in items]
    except UnitError as exc:
        return ErrorValue.semantic_error(str(exc))

    if operation == "sort":
        return ListValue.create(ordered)
    if operation == "min":
        return ordered[0]
    if operation == "max":
        return ordered[-1]
    if operation == "mean":
        return _rebuild(reference, statistics.fmean(magnitudes))
    if operation == "median":
        return _rebuild(reference, statistics.median(magnitudes))
    # stddev: sample standard deviation
    if len(magnitudes) < 2:
        return ErrorValue.semantic_error("stddev() needs at least two values")
    return _rebuild(reference, statistics.stdev(magnitudes))


def _range(args: list[SemanticValue]) -> SemanticValue:
    error = _first_error(args)
    if error is not None:
        return error
    if len(args) not in (2, 3):
        return ErrorValue.syntax_error("Range needs a start and an end", suggestion="Write 1..10 or 0..1 step 0.25")
    start, end = args[0], args[1]
    unit = None
    if start.kind == "unit" or end.kind == "unit":
        unit_value = start if start.kind == "unit" else end
        unit = unit_value.quantity.unit
        try:
            bounds = [
                arg.quantity.convert_to(unit).value if arg.kind == "unit" else arg.numeric_value()
                for arg in args
                if arg.kind in ("unit", "number")
            ]
        except UnitError as exc:
            return ErrorValue.semantic_error(str(exc))
        if len(bounds) != len(args):
            return ErrorValue.type_error("Range bounds must be numbers", "number", "unit")
    else:
        if any(arg.kind != "number" for arg in args):
            offender = next(arg for arg in args if arg.kind != "number")
            return ErrorValue.type_error("Range bounds must be numbers", "number", offender.kind)
        bounds = [arg.value for arg in args]
    low, high = bounds[0], bounds[1]
    step = bounds[2] if len(bounds) == 3 else (1.0 if high >= low else -1.0)
    if step == 0:
        return ErrorValue.semantic_error("Range step cannot be zero")
    if (high - low) * step < 0:
        return ErrorValue.semantic_error("Range step moves away from the end")
    count = int(math.floor((high - low) / step + 1e-9)) + 1
    if count > config.MAX_LIST_LENGTH:
        return ErrorValue.semantic_error(
            f"Range is too long ({count} items, maximum {config.MAX_LIST_LENGTH})"
        )
    values = [round(low + index * step, 12) for index in range(count)]
    if unit is not None:
        return ListValue.create(UnitValue(Quantity(value, unit)) for value in values)
    return ListValue.create(NumberValue(value) for value in values)


# -- list access ---------------------------------------------------------------------------------

def _list_position(value: SemanticValue, length: int) -> int | ErrorValue:
    """1-based (negative counts from the end) -> 0-based index."""
    if value.kind == "error":
        return value
    if value.kind != "number" or not float(value.value).is_integer():
        return ErrorValue.type_error("List index must be a whole number", "number", value.kind)
    index = int(value.value)
    if index == 0:
        return ErrorValue.semantic_error("List indexes start at 1")
    position = index - 1 if index > 0 else length + index
    if position < 0 or position >= length:
        return ErrorValue.semantic_error(f"List index {index} out of range (list has {length} items)")
    return position


def _list_access(component: ExpressionComponent, context: EvaluationContext) -> SemanticValue:
    access = component.access
    base = evaluate_component(access.base, context)
    if base.kind in ("error", "symbolic"):
        return base
    if base.kind != "list":
        return ErrorValue.type_error("Only lists can be indexed", "list", base.kind)
    length = len(base.items)
    if access.kind == "index":
        position = _list_position(evaluate_components(access.index, context), length)
        if isinstance(position, ErrorValue):
            return position
        return base.items[position]
    start = _list_position(evaluate_components(access.start, context), length)
    if isinstance(start, ErrorValue):
        return start
    end = _list_position(evaluate_components(access.end, context), length)
    if isinstance(end, ErrorValue):
        return end
    if end < start:
        return ListValue(())
    return ListValue(base.items[start:end + 1])


# -- conversions -------------------------------------------------------------------------------------

def apply_conversion(value: SemanticValue, target: str, keyword: str = "to") -> SemanticValue:
    """Convert ``value`` for ``<value> to|in|as <target>``."""
    target = target.strip()
    if not target:
        return ErrorValue.syntax_error(f"Expected unit after '{keyword}'")
    if value.kind == "error":
        return value
    if value.kind == "symbolic":
        return SymbolicValue(f"{value.to_string()} {keyword} {target}", 0)
    if value.kind == "list":
        return ListValue.create(apply_conversion(item, target, keyword) for item in value.items)
    if target == "%":
        if value.kind == "percentage":
            return value
        if value.kind == "number":
            return PercentageValue.from_decimal(value.value)
        return ErrorValue.conversion_error(f"Cannot express {value.kind} as a percentage")
    if is_zone(target):
        if value.kind != "date":
            return ErrorValue.conversion_error(f"Cannot convert {value.kind} to time zone {target}")
        return value.with_zone(parse_zone(target))

    currency = CURRENCY_TARGET_RE.match(target)
    if currency:
        return _convert_currency(value, currency.group("currency"), currency.group("unit"))

    unit_text = re.sub(r"^per\s+", "1/", target, flags=re.IGNORECASE)
    if value.kind in ("unit", "duration"):
        return value.convert_to(unit_text)
    if value.kind == "currencyUnit":
        try:
            return value.convert_to(parse_unit(unit_text))
        except UnitError as exc:
            return ErrorValue.conversion_error(str(exc))
    if value.kind == "number":
        return ErrorValue.conversion_error(f"Cannot convert a plain number to {target}")
    return ErrorValue.conversion_error(f"Cannot convert {value.kind} to {target}")


def _convert_currency(value: SemanticValue, raw_symbol: str, unit_text: str | None) -> SemanticValue:
    symbol = normalize_currency_symbol(raw_symbol)
    if value.kind not in ("currency", "currencyUnit"):
        return ErrorValue.conversion_error(f"Cannot convert {value.kind} to {raw_symbol}")
    if symbol != value.symbol:
        return ErrorValue.conversion_error(
            f"Cannot convert {value.symbol} to {raw_symbol}: exchange rates are not available"
        )
    if unit_text is None:
        if value.kind == "currencyUnit":
            return ErrorValue.conversion_error(f"Cannot convert {value} to plain {raw_symbol}")
        return value
    if value.kind == "currency":
        return ErrorValue.conversion_error(f"Cannot convert {value} to {raw_symbol}/{unit_text}")
    try:
        return value.convert_to(parse_unit(unit_text))
    except UnitError as exc:
        return ErrorValue.conversion_error(str(exc))


__all__ = [
    "EvaluationContext",
    "apply_conversion",
    "apply_operator",
    "call_function",
    "evaluate_component",
    "evaluate_components",
    "evaluate_text",
    "evaluate_with_conversion",
    "resolve_name",
]
