"""Line classification: raw notepad text -> LineNode.

This module provides:
- parse_line(): classify one line (plain text, comment, function definition,
  assignment, combined assignment, expression) and attach its component tree
- parse_document(): classify every line of a document
- needs_expression_evaluation(): heuristic deciding whether unmarked text is
  worth evaluating
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .datemath import looks_like_date_expression
from .function_manager import FunctionParameter, parse_function_definition
from .parser import ConversionSuffix, ExpressionComponent, parse, split_conversion_suffix
from .types import ParseError, ValidationError

ARROW = "=>"

NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9\s_]*$")
CONSTANT_RE = re.compile(r"\b(PI|E)\b")
UNIT_EXPRESSION_RE = re.compile(
    r"\b\d+(?:\.\d+)?\s*[a-zA-Z°]+(?:/[a-zA-Z°]+)?(?:\^?\d+)?(?:\s+to\s+[a-zA-Z°]+)?\b"
)
PERCENT_PHRASE_RE = re.compile(r"%|\b(of|on|off)\b|\bas\s+%|\bis\s+%", re.IGNORECASE)
AS_PERCENT_RE = re.compile(r"^(?P<base>.+?)\s+as\s*%\s*$", re.IGNORECASE)
SOLVE_RE = re.compile(r"^solve\b", re.IGNORECASE)

# Words that turn "x = 5 is good" into prose rather than an assignment
PROSE_WORDS = (
    "is", "are", "was", "were", "the", "a", "an", "some", "seems", "wrong",
    "secure", "good", "bad", "maybe", "think", "very", "quite", "really",
)
PROSE_AFTER_NUMBER_RE = re.compile(
    rf"^-?[\d.,]+\s+({'|'.join(PROSE_WORDS)})\b", re.IGNORECASE
)


@dataclass
class LineNode:
    """One classified line.

    ``type`` is plainText, comment, functionDefinition, expression,
    variableAssignment, combinedAssignment or error.
    """

    type: str
    line: int
    raw: str
    expression: str = ""
    variable_name: str | None = None
    components: tuple[ExpressionComponent, ...] = ()
    conversion: ConversionSuffix | None = None
    function_name: str | None = None
    params: tuple[FunctionParameter, ...] = ()
    error: str | None = None
    error_kind: str | None = None
    parse_failed: bool = field(default=False, repr=False)

    @property
    def shows_result(self) -> bool:
        return ARROW in self.raw


def is_percentage_phrase(expression: str) -> bool:
    return bool(PERCENT_PHRASE_RE.search(expression))


def needs_expression_evaluation(line: str) -> bool:
    """True if ``line`` should be evaluated even though it has no "=>".

    Constants, number-unit literals and arithmetic mixed with names all count.
    """
    text = line.strip()
    if not text:
        return False
    if ARROW in text:
        return True
    if CONSTANT_RE.search(text):
        return True
    if UNIT_EXPRESSION_RE.search(text):
        return True
    if not text.startswith("//") and re.search(r"[+\-*/^]", text) and re.search(r"[a-zA-Z]", text):
        return True
    return False


def _extract_expression(text: str) -> str:
    index = text.find(ARROW)
    if index == -1:
        return text.strip()
    return text[:index].strip()


def _split_assignment(text: str) -> tuple[str, str, bool] | None:
    """Split ``name = expr [=>]`` into (name, expression, shows_result)."""
    shows_result = ARROW in text
    body = _extract_expression(text) if shows_result else text.strip()
    index = body.find("=")
    if index <= 0:
        return None
    # "a == b", "a <= b", "a >= b" and "a != b" are not assignments
    if body[index + 1:index + 2] == "=" or body[index - 1] in "<>!":
        return None
    name = body[:index].strip()
    expression = body[index + 1:].strip()
    if not name or not NAME_RE.match(name):
        return None
    if not expression:
        return None
    if PROSE_AFTER_NUMBER_RE.match(expression):
        return None
    return re.sub(r"\s+", " ", name), expression, shows_result


def _is_prose_assignment(text: str) -> bool:
    """``x = 5 is good``: shaped like an assignment but reads as a sentence."""
    name, separator, rest = text.partition("=")
    return (
        bool(separator)
        and bool(NAME_RE.match(name.strip()))
        and bool(PROSE_AFTER_NUMBER_RE.match(rest.strip()))
    )


def _attach_components(node: LineNode) -> LineNode:
    """Parse the node's expression into components, or turn it into an error node."""
    expression = node.expression
    if SOLVE_RE.match(expression):
        return node
    as_percent = AS_PERCENT_RE.match(expression)
    if as_percent:
        node.conversion = ConversionSuffix(as_percent.group("base").strip(), "as", "%")
    else:
        node.conversion = split_conversion_suffix(expression)
    base = node.conversion.base if node.conversion else expression
    try:
        node.components = tuple(parse(base))
    except ParseError as exc:
        if is_percentage_phrase(expression) or looks_like_date_expression(expression):
            node.parse_failed = True
            return node
        return LineNode(
            "error",
            node.line,
            node.raw,
            expression=expression,
            variable_name=node.variable_name,
            error=f"Parse error: {exc.message}",
            error_kind="parse",
        )
    return node


def parse_line(text: str, line_number: int = 1) -> LineNode:
    """Classify a single line.

    Args:
        text: Raw line text
        line_number: 1-based line number

    Returns:
        LineNode with components attached for expression-like lines
    """
    stripped = text.strip()
    if not stripped:
        return LineNode("plainText", line_number, text)
    if stripped.startswith("#"):
        return LineNode("comment", line_number, text)

    if SOLVE_RE.match(stripped):
        return LineNode("expression", line_number, text, expression=_extract_expression(stripped))

    try:
        definition = parse_function_definition(stripped)
    except ValidationError as exc:
        return LineNode("error", line_number, text, error=exc.message, error_kind="syntax")
    if definition is not None:
        name, params, body = definition
        node = LineNode(
            "functionDefinition",
            line_number,
            text,
            expression=body,
            function_name=name,
            params=tuple(params),
        )
        return _attach_components(node)

    assignment = _split_assignment(stripped)
    if assignment is not None:
        name, expression, shows_result = assignment
        node_type = "combinedAssignment" if shows_result else "variableAssignment"
        node = LineNode(node_type, line_number, text, expression=expression, variable_name=name)
        return _attach_components(node)
    if _is_prose_assignment(stripped):
        return LineNode("plainText", line_number, text)

    if needs_expression_evaluation(stripped) or re.search(r"\d\s*%", stripped):
        expression = _extract_expression(stripped)
        if not expression:
            return LineNode(
                "error",
                line_number,
                text,
                error="Missing expression before =>",
                error_kind="syntax",
            )
        return _attach_components(LineNode("expression", line_number, text, expression=expression))

    return LineNode("plainText", line_number, text)


def parse_document(text: str) -> list[LineNode]:
    return [parse_line(line, index) for index, line in enumerate(text.split("\n"), start=1)]
