"""Render nodes: what the notepad shows for each evaluated line.

Every line yields exactly one node. ``display_text`` is the full line as it
should appear (``2 + 3 => 5``, ``x = 5``, ``y = x * 2 => 10``,
``1 / 0 => ⚠️ Division by zero``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

WARNING_SIGN = "⚠️"


@dataclass(frozen=True)
class RenderNode:
    line: int
    original_raw: str
    display_text: str

    type = "node"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {"type": self.type}
        data.update(asdict(self))
        return data


@dataclass(frozen=True)
class TextRenderNode(RenderNode):
    content: str = ""

    type = "text"


@dataclass(frozen=True)
class ErrorRenderNode(RenderNode):
    error: str = ""
    error_kind: str = "runtime"  # parse, syntax, semantic, runtime, type, conversion

    type = "error"


@dataclass(frozen=True)
class MathResultRenderNode(RenderNode):
    expression: str = ""
    result: str = ""

    type = "mathResult"


@dataclass(frozen=True)
class VariableRenderNode(RenderNode):
    variable_name: str = ""
    value: str = ""

    type = "variable"


@dataclass(frozen=True)
class CombinedRenderNode(RenderNode):
    variable_name: str = ""
    expression: str = ""
    result: str = ""

    type = "combined"


def text_node(line: int, raw: str) -> TextRenderNode:
    return TextRenderNode(line, raw, raw, content=raw)


def math_result_node(line: int, expression: str, result: str, raw: str | None = None) -> MathResultRenderNode:
    return MathResultRenderNode(
        line,
        raw if raw is not None else expression,
        f"{expression} => {result}",
        expression=expression,
        result=result,
    )


def variable_node(line: int, name: str, value: str, raw: str) -> VariableRenderNode:
    return VariableRenderNode(line, raw, f"{name} = {value}", variable_name=name, value=value)


def combined_node(line: int, name: str, expression: str, result: str, raw: str) -> CombinedRenderNode:
    return CombinedRenderNode(
        line,
        raw,
        f"{name} = {expression} => {result}",
        variable_name=name,
        expression=expression,
        result=result,
    )


def error_node(line: int, shown: str, message: str, kind: str = "runtime", raw: str | None = None) -> ErrorRenderNode:
    """Error node displayed as ``<shown> => ⚠️ <message>``.

    Args:
        line: 1-based line number
        shown: Text before the arrow (expression, or ``name = expression``)
        message: Error message
        kind: Error kind
        raw: Original line text (defaults to ``shown``)
    """
    return ErrorRenderNode(
        line,
        raw if raw is not None else shown,
        f"{shown} => {WARNING_SIGN} {message}",
        error=message,
        error_kind=kind,
    )
