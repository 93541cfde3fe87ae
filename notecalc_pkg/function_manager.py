"""User-defined function definitions.

This module provides:

1. Function Definition:
   - Parse ``name(params) = body`` lines (e.g., f(x) = 2*x, tip(amount, rate = 15%) = amount * rate)
   - Validation of function names, parameter names and default expressions
   - Built-in math names (sqrt, sin, ...) cannot be redefined

2. Function Storage:
   - FunctionStore: per-document name -> FunctionDefinition map
   - Redefinition overwrites the previous body and logs a warning

3. Argument Binding:
   - bind_arguments(): match positional and named call arguments to
     parameters, falling back to defaults

Examples:
    Define: f(x) = x^2 + 1, area(w, h = 2) = w * h
    Call: f(3) → 10, area(4) → 8, area(h: 3, w: 2) → 6
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from .config import ALLOWED_SYMPY_NAMES
from .logging_config import get_logger
from .parser import ExpressionComponent, parse, split_top_level_commas
from .types import ParseError, ValidationError

# Built-in function names that should not be used as user-defined function names
BUILTIN_FUNCTION_NAMES = set(ALLOWED_SYMPY_NAMES.keys()) | {
    "sum", "total", "avg", "average", "mean", "median", "min", "max",
    "count", "stddev", "sort",
}

FUNCTION_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9\s_]*$")


@dataclass(frozen=True)
class FunctionParameter:
    """One parameter, optionally with a default expression (``rate = 15%``)."""

    name: str
    default: str | None = None
    default_components: tuple[ExpressionComponent, ...] = ()


@dataclass
class FunctionDefinition:
    name: str
    params: tuple[FunctionParameter, ...]
    expression: str
    components: tuple[ExpressionComponent, ...] = ()
    line: int = 0

    @property
    def param_names(self) -> list[str]:
        return [param.name for param in self.params]


def _split_top_level_assignment(text: str) -> tuple[str, str] | None:
    depth = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif char == "=" and depth == 0:
            return text[:index].strip(), text[index + 1:].strip()
    return None


def _parse_params(params_raw: str) -> list[FunctionParameter]:
    params: list[FunctionParameter] = []
    for part in split_top_level_commas(params_raw):
        name, _, default = part.partition("=")
        name = re.sub(r"\s+", " ", name.strip())
        default = default.strip() or None
        if not FUNCTION_NAME_RE.match(name):
            raise ValidationError(f"Invalid parameter name: {name}", "INVALID_PARAMETER_NAME")
        if any(existing.name == name for existing in params):
            raise ValidationError(f"Duplicate parameter name: {name}", "DUPLICATE_PARAMETER")
        components: tuple[ExpressionComponent, ...] = ()
        if default is not None:
            try:
                components = tuple(parse(default))
            except ParseError as exc:
                raise ValidationError(
                    f"Invalid default for {name}: {exc.message}", "INVALID_DEFAULT"
                ) from exc
        params.append(FunctionParameter(name, default, components))
    return params


def parse_function_definition(expr: str) -> tuple[str, list[FunctionParameter], str] | None:
    """Parse a function definition like 'f(x) = 2*x' or 'g(x, y = 1) = x + y'.

    Args:
        expr: Line text (must contain "(" and "=", and no "=>")

    Returns:
        Tuple of (function_name, parameters, body_string) if the line is a
        definition, None otherwise

    Raises:
        ValidationError: If the line is shaped like a definition but the name,
            parameters or body are invalid
    """
    text = expr.strip()
    if "(" not in text or "=" not in text or "=>" in text:
        return None
    assignment = _split_top_level_assignment(text)
    if assignment is None:
        return None
    left, body = assignment
    open_index = left.find("(")
    close_index = left.rfind(")")
    if open_index == -1 or close_index == -1 or close_index < open_index:
        return None
    # Trailing text after ")" means this is an equation, not a definition
    if left[close_index + 1:].strip():
        return None

    name = re.sub(r"\s+", " ", left[:open_index].strip())
    if not name:
        raise ValidationError("Missing function name", "MISSING_FUNCTION_NAME")
    if not FUNCTION_NAME_RE.match(name):
        raise ValidationError(f"Invalid function name: {name}", "INVALID_FUNCTION_NAME")
    if name in BUILTIN_FUNCTION_NAMES:
        return None
    if not body:
        raise ValidationError("Missing function body", "MISSING_FUNCTION_BODY")

    params = _parse_params(left[open_index + 1:close_index].strip())
    return name, params, body


class FunctionStore:
    """Name -> FunctionDefinition map owned by one document evaluation."""

    def __init__(self, logger: logging.Logger | None = None):
        self._functions: dict[str, FunctionDefinition] = {}
        self._logger = logger or get_logger("functions")

    def define(self, definition: FunctionDefinition) -> bool:
        """Store ``definition``; returns True if it replaced an existing one."""
        name = re.sub(r"\s+", " ", definition.name).strip()
        redefined = name in self._functions
        if redefined:
            self._logger.warning("Function redefined: %s", name)
        self._functions[name] = definition
        return redefined

    def get(self, name: str) -> FunctionDefinition | None:
        return self._functions.get(re.sub(r"\s+", " ", name).strip())

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        return len(self._functions)

    def names(self) -> list[str]:
        return list(self._functions)

    def clear(self) -> None:
        """Clear all defined functions."""
        self._functions.clear()

    def list_functions(self) -> dict[str, tuple[list[str], str]]:
        """List all defined functions.

        Returns:
            Dictionary mapping function names to (parameters, body_string) tuples
        """
        return {
            name: (definition.param_names, definition.expression)
            for name, definition in self._functions.items()
        }


@dataclass
class BoundArguments:
    """Result of matching a call to a definition."""

    values: dict[str, Any] = field(default_factory=dict)
    defaults: list[FunctionParameter] = field(default_factory=list)


def bind_arguments(
    definition: FunctionDefinition,
    positional: list[Any],
    named: dict[str, Any],
) -> BoundArguments:
    """Match call arguments to parameters.

    Args:
        definition: Function being called
        positional: Positional argument values, in order
        named: Named argument values (``f(x: 2)``)

    Returns:
        BoundArguments with supplied values and the parameters that still need
        their default expression evaluated

    Raises:
        ValidationError: On too many arguments, unknown or duplicate names, or
            a missing argument without a default
    """
    if len(positional) > len(definition.params):
        raise ValidationError(
            f"Function '{definition.name}' expects {len(definition.params)} argument(s) "
            f"({', '.join(definition.param_names)}), but got {len(positional)} argument(s).",
            "WRONG_ARGUMENT_COUNT",
        )
    bound = BoundArguments()
    for param, value in zip(definition.params, positional):
        bound.values[param.name] = value
    for name, value in named.items():
        normalized = re.sub(r"\s+", " ", name).strip()
        if normalized not in definition.param_names:
            raise ValidationError(
                f"Unknown parameter '{normalized}' for function '{definition.name}'",
                "UNKNOWN_PARAMETER",
            )
        if normalized in bound.values:
            raise ValidationError(
                f"Parameter '{normalized}' given more than once", "DUPLICATE_ARGUMENT"
            )
        bound.values[normalized] = value
    for param in definition.params:
        if param.name in bound.values:
            continue
        if param.default is None:
            raise ValidationError(
                f"Missing argument for parameter '{param.name}' in function '{definition.name}'",
                "MISSING_ARGUMENT",
            )
        bound.defaults.append(param)
    return bound
