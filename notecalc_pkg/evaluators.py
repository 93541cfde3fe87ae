"""Line evaluators, tried in priority order by the pipeline.

This module provides one evaluator per kind of line:

1. CommentEvaluator: ``# notes`` are shown as text
2. PercentageEvaluator: ``20% of 100``, ``5% off price``, ``20 is what % of 80``,
   ``0.25 as %``
3. DateMathEvaluator: ``today + 3 business days``, ``9:30 + 2 h``
4. SolveEvaluator: ``solve x in y = 2*x + 3, y = 11`` and bare unknowns
5. UnitsEvaluator: expressions carrying units or money rates
6. CombinedAssignmentEvaluator: ``name = expr =>``
7. FunctionDefinitionEvaluator: ``f(x) = x^2``
8. VariableEvaluator: ``name = expr``
9. ExpressionEvaluator: any remaining expression
10. ErrorEvaluator / PlainTextEvaluator: fallbacks

Each evaluator has a cheap, side-effect-free ``can_handle`` and an
``evaluate`` that returns a render node, or None to let later evaluators try.
"""

from __future__ import annotations

import re

from .datemath import (
    evaluate_date_expression,
    looks_like_date_expression,
    starts_with_month_day_date,
)
from .expression import (
    EvaluationContext,
    apply_conversion,
    evaluate_text,
    evaluate_with_conversion,
    resolve_name,
)
from .function_manager import FunctionDefinition
from .lines import AS_PERCENT_RE, LineNode, is_percentage_phrase
from .parser import ExpressionComponent, parse, split_top_level_commas
from .render import (
    WARNING_SIGN,
    ErrorRenderNode,
    RenderNode,
    combined_node,
    error_node,
    math_result_node,
    text_node,
    variable_node,
)
from .solver import CONSTANT_NAMES, is_solve_command, is_variable_reference, solve_explicit, solve_implicit
from .stores import normalize_variable_name
from .types import ParseError
from .values import PercentageValue, SemanticValue

VALUE_NODE_TYPES = ("expression", "combinedAssignment", "variableAssignment")
UNIT_BEARING_KINDS = ("unit", "currencyUnit", "duration")

WHAT_PERCENT_PATTERNS = (
    re.compile(r"^(?P<part>.+?)\s+is\s+what\s*%\s+of\s+(?P<base>.+)$", re.IGNORECASE),
    re.compile(r"^what\s*%\s+is\s+(?P<part>.+?)\s+of\s+(?P<base>.+)$", re.IGNORECASE),
    re.compile(r"^(?P<part>.+?)\s+of\s+(?P<base>.+?)\s+is\s*%$", re.IGNORECASE),
)
PERCENT_PREPOSITION_RE = re.compile(r"\b(of|on|off)\b", re.IGNORECASE)


def node_value(node: LineNode, context: EvaluationContext) -> SemanticValue:
    """Evaluate the node's expression, re-parsing text when no tree is attached."""
    if node.parse_failed or not node.components:
        return evaluate_text(node.expression, context)
    return evaluate_with_conversion(node.components, node.conversion, context)


def render_value(node: LineNode, value: SemanticValue, context: EvaluationContext) -> RenderNode:
    """Turn a value into the node's render form, storing assignments."""
    options = context.options
    if node.type == "combinedAssignment":
        shown = f"{node.variable_name} = {node.expression}"
        if value.kind == "error":
            return error_node(node.line, shown, value.user_message(), value.error_type, node.raw)
        stored = context.variables.set_variable_with_semantic_value(
            node.variable_name, value, node.expression
        )
        if not stored["success"]:
            return error_node(node.line, shown, stored["error"], "semantic", node.raw)
        return combined_node(
            node.line, node.variable_name, node.expression, value.to_string(options), node.raw
        )

    if node.type == "variableAssignment":
        if value.kind == "error":
            return error_node(
                node.line,
                node.variable_name,
                f"Invalid variable value: {value.user_message()}",
                value.error_type,
                node.raw,
            )
        stored = context.variables.set_variable_with_semantic_value(
            node.variable_name, value, node.expression
        )
        if not stored["success"]:
            return error_node(node.line, node.variable_name, stored["error"], "semantic", node.raw)
        return variable_node(node.line, node.variable_name, value.to_string(options), node.raw)

    if value.kind == "error":
        return error_node(node.line, node.expression, value.user_message(), value.error_type, node.raw)
    return math_result_node(node.line, node.expression, value.to_string(options), node.raw)


class NodeEvaluator:
    """Base class: decline everything."""

    handles: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def can_handle(self, node: LineNode) -> bool:
        return node.type in self.handles

    def evaluate(self, node: LineNode, context: EvaluationContext) -> RenderNode | None:
        return None

    def __repr__(self) -> str:
        return f"{self.name}()"


class CommentEvaluator(NodeEvaluator):
    handles = ("comment",)

    def evaluate(self, node, context):
        return text_node(node.line, node.raw)


class PercentageEvaluator(NodeEvaluator):
    """Percentage phrasing where operands are full sub-expressions.

    ``X% of Y`` takes a share, ``on`` adds it, ``off`` removes it. The left side
    may be any expression that evaluates to a percentage (``discount off base
    price`` works when ``discount = 20%``).
    """

    handles = ("expression", "combinedAssignment")

    def can_handle(self, node):
        return super().can_handle(node) and is_percentage_phrase(node.expression)

    def evaluate(self, node, context):
        value = self._phrase_value(node.expression.strip(), context)
        if value is None:
            return None
        return render_value(node, value, context)

    def _phrase_value(self, text: str, context: EvaluationContext) -> SemanticValue | None:
        as_percent = AS_PERCENT_RE.match(text)
        if as_percent:
            value = evaluate_text(as_percent.group("base"), context)
            if value.kind == "error":
                return value
            return apply_conversion(value, "%", "as")

        for pattern in WHAT_PERCENT_PATTERNS:
            match = pattern.match(text)
            if match:
                part = evaluate_text(match.group("part"), context)
                base = evaluate_text(match.group("base"), context)
                return PercentageValue.what_percent_of(part, base)

        for match in PERCENT_PREPOSITION_RE.finditer(text):
            left = text[:match.start()].strip()
            right = text[match.end():].strip()
            if not left or not right:
                continue
            percentage = evaluate_text(left, context)
            if percentage.kind != "percentage":
                continue
            base = evaluate_text(right, context)
            preposition = match.group(1).lower()
            if preposition == "of":
                return percentage.of(base)
            if preposition == "on":
                return percentage.on(base)
            return percentage.off(base)
        return None


class DateMathEvaluator(NodeEvaluator):
    handles = VALUE_NODE_TYPES

    def can_handle(self, node):
        if not super().can_handle(node):
            return False
        expression = node.expression
        if ".." in expression:
            return False
        if len(split_top_level_commas(expression)) > 1 and not starts_with_month_day_date(expression):
            return False
        return looks_like_date_expression(expression)

    def evaluate(self, node, context):
        variables = {variable.name: variable.value for variable in context.variables}
        variables.update(context.local_scope)
        value = evaluate_date_expression(
            node.expression, variables, context.clock, context.options.date_order
        )
        if value is None:
            return None
        return render_value(node, value, context)


class SolveEvaluator(NodeEvaluator):
    """Explicit ``solve`` lines and bare references to unassigned names."""

    handles = ("expression",)

    def can_handle(self, node):
        if not super().can_handle(node):
            return False
        base = node.conversion.base if node.conversion else node.expression
        return is_solve_command(node.expression) or is_variable_reference(base)

    def evaluate(self, node, context):
        if is_solve_command(node.expression):
            value = solve_explicit(node.expression, context)
            return self._render(node, value, context)
        base = node.conversion.base if node.conversion else node.expression
        if not is_variable_reference(base):
            return None
        target = normalize_variable_name(base)
        if target in CONSTANT_NAMES or context.functions.get(target) is not None:
            return None
        if resolve_name(target, context).kind != "symbolic":
            return None
        value = solve_implicit(target, context, node.conversion)
        return self._render(node, value, context)

    def _render(self, node: LineNode, value: SemanticValue, context: EvaluationContext) -> RenderNode:
        if value.kind == "error":
            return error_node(node.line, node.expression, value.message, value.error_type, node.raw)
        return math_result_node(node.line, node.expression, value.to_string(context.options), node.raw)


def _has_unit_bearing_literal(components) -> bool:
    for component in components:
        if component.parsed_value is not None and component.parsed_value.kind in UNIT_BEARING_KINDS:
            return True
        nested: list[ExpressionComponent] = list(component.children)
        for arg in component.args:
            nested.extend(arg.components)
        if nested and _has_unit_bearing_literal(nested):
            return True
    return False


class UnitsEvaluator(NodeEvaluator):
    """Expressions whose literals carry units (``50 m + 20 ft``, ``$100/m^2 * 5 m^2``)."""

    handles = VALUE_NODE_TYPES

    def can_handle(self, node):
        if not super().can_handle(node) or not node.components:
            return False
        if node.conversion is not None and node.conversion.target != "%":
            return True
        return _has_unit_bearing_literal(node.components)

    def evaluate(self, node, context):
        return render_value(node, node_value(node, context), context)


class CombinedAssignmentEvaluator(NodeEvaluator):
    handles = ("combinedAssignment",)

    def evaluate(self, node, context):
        return render_value(node, node_value(node, context), context)


class FunctionDefinitionEvaluator(NodeEvaluator):
    handles = ("functionDefinition",)

    def evaluate(self, node, context):
        components = node.components
        if not components:
            try:
                components = tuple(parse(node.expression))
            except ParseError as exc:
                return error_node(
                    node.line, node.raw.strip(), f"Invalid function body: {exc.message}", "parse", node.raw
                )
        definition = FunctionDefinition(
            name=node.function_name,
            params=node.params,
            expression=node.expression,
            components=components,
            line=node.line,
        )
        context.functions.define(definition)
        return text_node(node.line, node.raw)


class VariableEvaluator(NodeEvaluator):
    handles = ("variableAssignment",)

    def evaluate(self, node, context):
        return render_value(node, node_value(node, context), context)


class ExpressionEvaluator(NodeEvaluator):
    handles = ("expression",)

    def evaluate(self, node, context):
        return render_value(node, node_value(node, context), context)


class ErrorEvaluator(NodeEvaluator):
    """Lines the classifier already rejected."""

    handles = ("error",)

    def evaluate(self, node, context):
        return ErrorRenderNode(
            node.line,
            node.raw,
            f"{node.raw.strip()} {WARNING_SIGN} {node.error}",
            error=node.error or "Invalid line",
            error_kind=node.error_kind or "syntax",
        )


class PlainTextEvaluator(NodeEvaluator):
    handles = ("plainText",)

    def evaluate(self, node, context):
        return text_node(node.line, node.raw)


def default_evaluators() -> list[NodeEvaluator]:
    """The evaluators in priority order."""
    return [
        CommentEvaluator(),
        PercentageEvaluator(),
        DateMathEvaluator(),
        SolveEvaluator(),
        UnitsEvaluator(),
        CombinedAssignmentEvaluator(),
        FunctionDefinitionEvaluator(),
        VariableEvaluator(),
        ExpressionEvaluator(),
        ErrorEvaluator(),
        PlainTextEvaluator(),
    ]
