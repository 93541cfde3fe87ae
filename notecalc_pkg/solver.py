"""Algebraic equation solving by symbolic inversion.

This module provides:
- An equation tree (Literal, Variable, Unary, Binary, Function nodes) built from
  parser components, separate from the numeric evaluator
- invert(): isolate a target name by peeling the outermost operation that
  contains it and moving its inverse to the other side
- format_tree(): precedence-correct text with minimal parentheses
- solve_explicit(): ``solve x in y = 2*x + 3, y = 11 [where ...]``
- solve_implicit(): a bare reference to an unassigned name, resolved from the
  equation history

Examples:
    y = m*x + b, target x  ->  (y - b) / m
    a = s^2, target s      ->  sqrt(a)
    v = 10^t, target t     ->  log(v) / log(10)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

from .expression import (
    EvaluationContext,
    apply_conversion,
    evaluate_components,
    evaluate_text,
    with_implicit_multiplication,
)
from .logging_config import get_logger
from .parser import (
    ConversionSuffix,
    ExpressionComponent,
    find_top_level_keyword,
    parse,
    split_conversion_suffix,
    split_top_level_commas,
)
from .stores import EquationEntry, normalize_variable_name
from .types import ParseError, SolverError
from .values import ErrorValue, NumberValue, SemanticValue, SymbolicValue

logger = get_logger("solver")

PRECEDENCE = {"^": 3, "*": 2, "/": 2, "+": 1, "-": 1}
SOLVE_RE = re.compile(r"^solve\b", re.IGNORECASE)
VARIABLE_REFERENCE_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_\s]*$")
SUBSTITUTION_BOUNDARY_RE = re.compile(r"[\s+\-*/^%()=<>!,]")
CONSTANT_NAMES = ("PI", "E")
SUMMING_FUNCTIONS = ("sum", "total")

# function -> inverse applied to the other side
FUNCTION_INVERSES = {
    "exp": "ln",
    "log": "exp",
    "ln": "exp",
    "sin": "asin",
    "cos": "acos",
    "tan": "atan",
    "asin": "sin",
    "acos": "cos",
    "atan": "tan",
}


# -- equation tree ------------------------------------------------------------------

@dataclass(frozen=True)
class Literal:
    text: str
    value: SemanticValue | None = None


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Function:
    name: str
    args: tuple["Node", ...]


Node = Union[Literal, Variable, Unary, Binary, Function]


def number_literal(value: float) -> Literal:
    if float(value).is_integer() and abs(value) < 1e15:
        text = str(int(value))
    else:
        text = repr(float(value))
    return Literal(text, NumberValue(float(value)))


@dataclass(frozen=True)
class Equation:
    left: str
    right: str


@dataclass(frozen=True)
class SolveCommand:
    target: str
    equations: tuple[Equation, ...]
    where: tuple[Equation, ...] = ()


# -- building -------------------------------------------------------------------------

def _should_reduce(stack_op: str, current_op: str) -> bool:
    stacked = PRECEDENCE.get(stack_op, 0)
    current = PRECEDENCE.get(current_op, 0)
    return stacked > current or (stacked == current and current_op != "^")


def _component_node(component: ExpressionComponent) -> Node:
    if component.type == "literal":
        return Literal(component.value, component.parsed_value)
    if component.type == "variable":
        return Variable(normalize_variable_name(component.value))
    if component.type == "parentheses":
        if not component.children:
            raise SolverError("Empty parentheses", "EMPTY_PARENTHESES")
        return build_tree(component.children)
    if component.type == "function":
        args = tuple(build_tree(arg.components) for arg in component.args)
        if component.value.lower() in SUMMING_FUNCTIONS:
            if not args:
                return number_literal(0)
            total = args[0]
            for arg in args[1:]:
                total = Binary("+", total, arg)
            return total
        return Function(component.value, args)
    raise SolverError(f'Unsupported component: "{component.type}"', "UNSUPPORTED_COMPONENT")


def build_tree(components) -> Node:
    """Shunting-yard over a component list.

    Raises:
        SolverError: If the components do not form one expression
    """
    values: list[Node] = []
    operators: list[str] = []
    expect_value = True
    pending_unary: str | None = None

    def reduce() -> None:
        op = operators.pop()
        if len(values) < 2:
            raise SolverError("Invalid expression", "INVALID_EXPRESSION")
        right = values.pop()
        left = values.pop()
        values.append(Binary(op, left, right))

    for component in with_implicit_multiplication(list(components)):
        if component.type == "operator":
            op = component.value
            if op == "%" and not expect_value:
                last = values.pop()
                if not isinstance(last, Literal):
                    raise SolverError('Unexpected operator: "%"', "UNEXPECTED_OPERATOR")
                values.append(Literal(f"{last.text}%"))
                continue
            if expect_value:
                if op in "+-" and pending_unary is None:
                    pending_unary = op
                    continue
                raise SolverError(f'Unexpected operator: "{op}"', "UNEXPECTED_OPERATOR")
            while operators and _should_reduce(operators[-1], op):
                reduce()
            operators.append(op)
            expect_value = True
            continue

        node = _component_node(component)
        if pending_unary is not None:
            node = Unary(pending_unary, node)
            pending_unary = None
        values.append(node)
        expect_value = False

    if pending_unary is not None:
        raise SolverError("Dangling unary operator", "DANGLING_UNARY")
    while operators:
        reduce()
    if len(values) != 1:
        raise SolverError("Invalid expression", "INVALID_EXPRESSION")
    return values[0]


def tree_from_text(text: str) -> Node:
    try:
        return build_tree(parse(text))
    except ParseError as exc:
        raise SolverError(exc.message, exc.code) from exc


# -- inspection -------------------------------------------------------------------------

def count_target(node: Node, target: str) -> int:
    if isinstance(node, Variable):
        return int(node.name == target)
    if isinstance(node, Binary):
        return count_target(node.left, target) + count_target(node.right, target)
    if isinstance(node, Unary):
        return count_target(node.operand, target)
    if isinstance(node, Function):
        return sum(count_target(arg, target) for arg in node.args)
    return 0


def contains_target(node: Node, target: str) -> bool:
    return count_target(node, target) > 0


def numeric_value(node: Node) -> float | None:
    """Value of a tree made only of plain numbers, else None."""
    if isinstance(node, Literal):
        if node.value is not None and node.value.kind == "number":
            return node.value.value
        try:
            return float(node.text)
        except ValueError:
            return None
    if isinstance(node, Unary):
        value = numeric_value(node.operand)
        if value is None:
            return None
        return -value if node.op == "-" else value
    if isinstance(node, Binary):
        left = numeric_value(node.left)
        right = numeric_value(node.right)
        if left is None or right is None:
            return None
        try:
            if node.op == "+":
                return left + right
            if node.op == "-":
                return left - right
            if node.op == "*":
                return left * right
            if node.op == "/":
                return None if right == 0 else left / right
            result = left**right
        except (OverflowError, ZeroDivisionError):
            return None
        return result if isinstance(result, float) and math.isfinite(result) else None
    return None


def has_negative_radicand(node: Node) -> bool:
    if isinstance(node, Function):
        if node.name.lower() == "sqrt" and len(node.args) == 1:
            value = numeric_value(node.args[0])
            if value is not None and value < 0:
                return True
        return any(has_negative_radicand(arg) for arg in node.args)
    if isinstance(node, Binary):
        return has_negative_radicand(node.left) or has_negative_radicand(node.right)
    if isinstance(node, Unary):
        return has_negative_radicand(node.operand)
    return False


# -- formatting -------------------------------------------------------------------------

def _wrap(text: str) -> str:
    return text if text.startswith("(") and text.endswith(")") else f"({text})"


def format_tree(node: Node, parent_op: str | None = None, is_right: bool = False) -> str:
    """Render ``node`` with the fewest parentheses that keep its meaning."""
    if isinstance(node, Literal):
        return node.text
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Function):
        return f"{node.name}({', '.join(format_tree(arg) for arg in node.args)})"
    if isinstance(node, Unary):
        child = format_tree(node.operand, "u")
        return f"{node.op}({child})" if isinstance(node.operand, Binary) else f"{node.op}{child}"

    precedence = PRECEDENCE[node.op]
    left = format_tree(node.left, node.op, False)
    right = format_tree(node.right, node.op, True)
    if isinstance(node.left, Binary):
        left_precedence = PRECEDENCE[node.left.op]
        if left_precedence < precedence or (node.op == "^" and left_precedence == precedence):
            left = _wrap(left)
    if isinstance(node.right, Binary):
        right_precedence = PRECEDENCE[node.right.op]
        if right_precedence < precedence or (
            right_precedence == precedence and node.op in ("-", "/", "^")
        ):
            right = _wrap(right)
    text = f"{left} {node.op} {right}"
    if parent_op is None or parent_op == "u":
        return text
    parent_precedence = PRECEDENCE.get(parent_op, 0)
    if precedence < parent_precedence:
        return _wrap(text)
    if precedence == parent_precedence and is_right and parent_op in ("-", "/"):
        return _wrap(text)
    return text


# -- inversion --------------------------------------------------------------------------

def _divided_by_difference(node: Binary, target: str, other: Node) -> Node | None:
    """x / (c - x) = k  ->  x = c*k / (1 + k)."""
    if node.op != "/" or not isinstance(node.left, Variable) or node.left.name != target:
        return None
    denominator = node.right
    if not isinstance(denominator, Binary) or denominator.op != "-":
        return None
    if contains_target(denominator.left, target) or not contains_target(denominator.right, target):
        return None
    constant = numeric_value(denominator.left)
    if constant is None:
        return None
    numerator = other if constant == 1 else Binary("*", number_literal(constant), other)
    return Binary("/", numerator, Binary("+", number_literal(1), other))


def invert(node: Node, target: str, other: Node) -> Node:
    """Solve ``node = other`` for ``target``.

    Raises:
        SolverError: When the target cannot be isolated
    """
    if isinstance(node, Variable):
        if node.name == target:
            return other
        raise SolverError(f"Cannot solve: expected {target}", "TARGET_EXPECTED")

    if isinstance(node, Unary):
        if node.op == "-":
            return invert(node.operand, target, Unary("-", other))
        return invert(node.operand, target, other)

    if isinstance(node, Function):
        argument = next((arg for arg in node.args if contains_target(arg, target)), None)
        if argument is None:
            raise SolverError("Cannot solve: variable not found", "TARGET_NOT_FOUND")
        name = node.name.lower()
        if name == "sqrt":
            return invert(argument, target, Binary("^", other, number_literal(2)))
        if name == "log10":
            return invert(argument, target, Binary("^", number_literal(10), other))
        if name in FUNCTION_INVERSES:
            return invert(argument, target, Function(FUNCTION_INVERSES[name], (other,)))
        raise SolverError("Cannot solve: unsupported function", "UNSUPPORTED_FUNCTION")

    if not isinstance(node, Binary):
        raise SolverError("Cannot solve: unsupported expression", "UNSUPPORTED_EXPRESSION")

    left_has = contains_target(node.left, target)
    right_has = contains_target(node.right, target)
    if left_has and right_has:
        special = _divided_by_difference(node, target, other)
        if special is not None:
            return special
        raise SolverError("Cannot solve: variable appears on both sides", "TARGET_ON_BOTH_SIDES")
    if not left_has and not right_has:
        raise SolverError("Cannot solve: variable not found", "TARGET_NOT_FOUND")

    op = node.op
    if left_has:
        if op == "+":
            return invert(node.left, target, Binary("-", other, node.right))
        if op == "-":
            return invert(node.left, target, Binary("+", other, node.right))
        if op == "*":
            return invert(node.left, target, Binary("/", other, node.right))
        if op == "/":
            return invert(node.left, target, Binary("*", other, node.right))
        exponent = numeric_value(node.right)
        if exponent is None:
            raise SolverError("Cannot solve: exponent must be numeric", "NON_NUMERIC_EXPONENT")
        if abs(exponent - 2) < 1e-12:
            return invert(node.left, target, Function("sqrt", (other,)))
        if exponent == 0:
            root: Node = Binary("/", number_literal(1), number_literal(0))
        else:
            root = number_literal(1 / exponent)
        return invert(node.left, target, Binary("^", other, root))

    if op == "+":
        return invert(node.right, target, Binary("-", other, node.left))
    if op == "-":
        return invert(node.right, target, Binary("-", node.left, other))
    if op == "*":
        return invert(node.right, target, Binary("/", other, node.left))
    if op == "/":
        return invert(node.right, target, Binary("/", node.left, other))
    base = numeric_value(node.left)
    if base is None:
        raise SolverError("Cannot solve: exponent requires constant base", "NON_CONSTANT_BASE")
    return invert(
        node.right,
        target,
        Binary("/", Function("log", (other,)), Function("log", (number_literal(base),))),
    )


def _exponent_product(inner: Node, outer: Node) -> Node:
    if isinstance(outer, Binary) and outer.op == "/" and isinstance(outer.left, Literal) and outer.left.text == "1":
        return Binary("/", inner, outer.right)
    outer_value = numeric_value(outer) if isinstance(outer, Literal) else None
    if outer_value:
        reciprocal = 1 / outer_value
        rounded = round(reciprocal)
        if rounded != 0 and abs(reciprocal - rounded) < 1e-12:
            return Binary("/", inner, number_literal(rounded))
    return Binary("*", inner, outer)


def simplify(node: Node) -> Node:
    """Fold (10 ^ a) ^ (1/n) into 10 ^ (a / n)."""
    if isinstance(node, Binary):
        rebuilt = Binary(node.op, simplify(node.left), simplify(node.right))
        if (
            rebuilt.op == "^"
            and isinstance(rebuilt.left, Binary)
            and rebuilt.left.op == "^"
            and isinstance(rebuilt.left.left, Literal)
            and rebuilt.left.left.text == "10"
        ):
            return Binary("^", rebuilt.left.left, _exponent_product(rebuilt.left.right, rebuilt.right))
        return rebuilt
    if isinstance(node, Unary):
        return Unary(node.op, simplify(node.operand))
    if isinstance(node, Function):
        return Function(node.name, tuple(simplify(arg) for arg in node.args))
    return node


def substitute_constants(node: Node, constants: dict[str, float], target: str) -> Node:
    if isinstance(node, Variable):
        if node.name == target or node.name not in constants:
            return node
        return number_literal(constants[node.name])
    if isinstance(node, Binary):
        return Binary(
            node.op,
            substitute_constants(node.left, constants, target),
            substitute_constants(node.right, constants, target),
        )
    if isinstance(node, Unary):
        return Unary(node.op, substitute_constants(node.operand, constants, target))
    if isinstance(node, Function):
        return Function(node.name, tuple(substitute_constants(arg, constants, target) for arg in node.args))
    return node


def solve_for(equation: Equation, target: str, constants: dict[str, float] | None = None) -> Node:
    """Isolate ``target`` in ``equation`` after substituting numeric ``constants``.

    Raises:
        SolverError: If the equation is malformed or cannot be inverted
    """
    try:
        left = tree_from_text(equation.left)
        right = tree_from_text(equation.right)
    except SolverError as exc:
        raise SolverError("Cannot solve: equation is not valid", "INVALID_EQUATION") from exc
    constants = constants or {}
    left = substitute_constants(left, constants, target)
    right = substitute_constants(right, constants, target)
    left_has = contains_target(left, target)
    right_has = contains_target(right, target)
    if left_has and right_has:
        raise SolverError("Cannot solve: variable appears on both sides", "TARGET_ON_BOTH_SIDES")
    if not left_has and not right_has:
        raise SolverError(f'Cannot solve: no equation found for "{target}"', "NO_EQUATION")
    if left_has:
        return invert(left, target, right)
    return invert(right, target, left)


# -- text helpers -------------------------------------------------------------------------

def is_solve_command(text: str) -> bool:
    return bool(SOLVE_RE.match(text.strip()))


def is_variable_reference(text: str) -> bool:
    return bool(VARIABLE_REFERENCE_RE.match(text.strip()))


def split_equation(text: str) -> Equation | None:
    depth = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif char == "=" and depth == 0:
            left, right = text[:index].strip(), text[index + 1:].strip()
            if not left or not right:
                return None
            return Equation(left, right)
    return None


def _split_equations(section: str) -> tuple[Equation, ...] | None:
    section = section.strip()
    if not section or section.endswith(","):
        return None
    equations = []
    for raw in split_top_level_commas(section):
        equation = split_equation(raw) if raw.strip() else None
        if equation is None:
            return None
        equations.append(equation)
    return tuple(equations) or None


def parse_solve_command(text: str) -> SolveCommand | None:
    """Parse ``solve <target> in <eq>[, <eq>...] [where <eq>, ...]``."""
    stripped = text.strip()
    if not is_solve_command(stripped):
        return None
    after = re.sub(r"^solve\s+", "", stripped, flags=re.IGNORECASE)
    in_index = find_top_level_keyword(after, "in")
    if in_index < 0:
        return None
    target = after[:in_index].strip()
    rest = after[in_index + 2:].strip()
    if not target or not rest:
        return None
    where_index = find_top_level_keyword(rest, "where")
    equation_section = rest if where_index < 0 else rest[:where_index]
    equations = _split_equations(equation_section)
    if equations is None:
        return None
    where: tuple[Equation, ...] = ()
    if where_index >= 0:
        where = _split_equations(rest[where_index + len("where"):]) or ()
        if not where:
            return None
    return SolveCommand(normalize_variable_name(target), equations, where)


def substitute_known_values(expression: str, values: dict[str, SemanticValue], options=None) -> str:
    """Replace known names in ``expression`` by their formatted values.

    Longest names are tried first and a name only matches between operator,
    bracket or whitespace boundaries, so ``rate`` never rewrites ``rate2``.
    """
    substitutions: dict[str, str] = {}
    for name, value in values.items():
        if value.kind in ("symbolic", "error"):
            continue
        formatted = value.to_string(options)
        if re.search(r"[+\-*/^]", formatted):
            formatted = f"({formatted})"
        substitutions[normalize_variable_name(name)] = formatted
    if not substitutions:
        return expression
    names = sorted(substitutions, key=len, reverse=True)

    def is_boundary(char: str | None) -> bool:
        return char is None or bool(SUBSTITUTION_BOUNDARY_RE.match(char))

    result: list[str] = []
    pos = 0
    while pos < len(expression):
        for name in names:
            if not expression.startswith(name, pos):
                continue
            before = expression[pos - 1] if pos > 0 else None
            end = pos + len(name)
            after = expression[end] if end < len(expression) else None
            if is_boundary(before) and is_boundary(after):
                result.append(substitutions[name])
                pos = end
                break
        else:
            result.append(expression[pos])
            pos += 1
    return "".join(result)


# -- evaluation ------------------------------------------------------------------------------

def _known_values(context: EvaluationContext, local_values: dict[str, SemanticValue]) -> dict[str, SemanticValue]:
    known = {variable.name: variable.value for variable in context.variables}
    known.update(context.local_scope)
    known.update(local_values)
    return known


def _numeric_constants(known: dict[str, SemanticValue], target: str) -> dict[str, float]:
    return {
        name: value.value
        for name, value in known.items()
        if name != target and value.kind == "number"
    }


def _solution_scope(context: EvaluationContext, local_values: dict[str, SemanticValue]) -> dict[str, SemanticValue]:
    """Symbolic variables stay as bare names while the solution is evaluated."""
    scope = {
        variable.name: SymbolicValue(variable.name)
        for variable in context.variables
        if variable.value.kind == "symbolic"
    }
    scope.update(local_values)
    return scope


def _evaluate_solution(
    solved: Node,
    context: EvaluationContext,
    local_values: dict[str, SemanticValue],
    conversion: ConversionSuffix | None,
) -> SemanticValue:
    simplified = simplify(solved)
    if has_negative_radicand(simplified):
        return ErrorValue.semantic_error("Cannot solve: no real solution")
    text = format_tree(simplified)
    logger.debug("Solved form: %s", text)
    try:
        value = evaluate_components(parse(text), context.with_scope(_solution_scope(context, local_values)))
    except ParseError as exc:
        value = ErrorValue.parse_error(exc.message, expression=text)

    if value.kind == "error" and not re.search(r"[a-zA-Z]", text):
        return value
    if value.kind in ("error", "symbolic"):
        known = _known_values(context, local_values)
        substituted = SymbolicValue(substitute_known_values(text, known, context.options))
        if conversion is not None:
            return apply_conversion(substituted, conversion.target, conversion.keyword)
        return substituted
    if conversion is not None:
        return apply_conversion(value, conversion.target, conversion.keyword)
    return value


def solve_explicit(text: str, context: EvaluationContext) -> SemanticValue:
    """Evaluate ``solve X in eq[, helper...] [where ...] [to <unit>]``."""
    conversion = split_conversion_suffix(text)
    if conversion is not None and parse_solve_command(conversion.base) is not None:
        text = conversion.base
    else:
        conversion = None
    command = parse_solve_command(text)
    if command is None:
        return ErrorValue.semantic_error("Cannot solve: equation is not valid")
    target = command.target
    target_equation: Equation | None = None
    helpers: list[Equation] = list(command.where)
    try:
        for equation in command.equations:
            mentions = contains_target(tree_from_text(equation.left), target) or contains_target(
                tree_from_text(equation.right), target
            )
            if not mentions:
                helpers.append(equation)
            elif target_equation is not None:
                return ErrorValue.semantic_error("Cannot solve: multiple equations for target")
            else:
                target_equation = equation
    except SolverError:
        return ErrorValue.semantic_error("Cannot solve: equation is not valid")
    if target_equation is None:
        return ErrorValue.semantic_error(f'Cannot solve: no equation found for "{target}"')

    local_values: dict[str, SemanticValue] = {}
    for helper in helpers:
        try:
            name_node = tree_from_text(helper.left)
        except SolverError:
            return ErrorValue.semantic_error("Cannot solve: equation is not valid")
        if not isinstance(name_node, Variable):
            return ErrorValue.semantic_error("Cannot solve: equation is not valid")
        value = evaluate_text(helper.right, context.with_scope(local_values))
        if value.kind == "error":
            return value
        local_values[name_node.name] = value

    try:
        constants = _numeric_constants(_known_values(context, local_values), target)
        solved = solve_for(target_equation, target, constants)
    except SolverError as exc:
        return ErrorValue.semantic_error(exc.message)
    return _evaluate_solution(solved, context, local_values, conversion)


def find_equation(target: str, line: int, entries: list[EquationEntry]) -> EquationEntry | None:
    """Most recent equation before ``line`` that defines or mentions ``target``."""
    for entry in entries:
        if entry.source_line >= line:
            continue
        if entry.variable_name == target:
            return entry
        equation = split_equation(entry.expression)
        sides = (equation.left, equation.right) if equation else (entry.expression,)
        for side in sides:
            try:
                if contains_target(tree_from_text(side), target):
                    return entry
            except SolverError:
                continue
    return None


def _equation_for_entry(entry: EquationEntry) -> Equation:
    if entry.variable_name:
        return Equation(entry.variable_name, entry.expression)
    return split_equation(entry.expression) or Equation(entry.variable_name, entry.expression)


def _values_from_equations(
    context: EvaluationContext, exclude_line: int, target: str
) -> dict[str, SemanticValue]:
    """Values bound by earlier ``name = a = expr`` style entries."""
    known: dict[str, SemanticValue] = {}
    for entry in context.equations.entries():
        if entry.source_line >= context.line_number or entry.source_line == exclude_line:
            continue
        equation = split_equation(entry.expression)
        if equation is None:
            continue
        name = normalize_variable_name(equation.left)
        if name == target:
            continue
        try:
            if contains_target(tree_from_text(equation.right), target):
                continue
        except SolverError:
            continue
        value = evaluate_text(equation.right, context.with_scope(known))
        if value.kind in ("error", "symbolic"):
            continue
        known[name] = value
    return known


def solve_implicit(
    target: str, context: EvaluationContext, conversion: ConversionSuffix | None = None
) -> SemanticValue:
    """Solve for ``target`` using the most recent earlier equation that mentions it."""
    target = normalize_variable_name(target)
    entry = find_equation(target, context.line_number, context.equations.before(context.line_number))
    if entry is None:
        return ErrorValue.semantic_error(f'Cannot solve: no equation found for "{target}"')
    local_values = _values_from_equations(context, entry.source_line, target)
    try:
        constants = _numeric_constants(_known_values(context, local_values), target)
        solved = solve_for(_equation_for_entry(entry), target, constants)
    except SolverError as exc:
        return ErrorValue.semantic_error(exc.message)
    return _evaluate_solution(solved, context, local_values, conversion)
