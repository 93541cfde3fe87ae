"""Public API for Notecalc - returns structured objects for lines and documents."""

from __future__ import annotations

import logging

from . import config
from .expression import EvaluationContext
from .formatting import DEFAULT_OPTIONS, DisplayOptions
from .function_manager import FunctionStore
from .lines import parse_document, parse_line
from .logging_config import get_logger
from .pipeline import EvaluationPipeline, evaluate_nodes
from .render import RenderNode, error_node
from .stores import EquationStore, VariableStore
from .temporal import Clock, system_clock
from .types import DocumentResult, EvalResult


class Notepad:
    """A notepad session: variable, function and equation stores plus a pipeline.

    Lines evaluated one at a time with ``evaluate_line`` share state with the
    lines before them. ``evaluate_document`` starts from empty stores, so a
    whole document always evaluates the same way.

    Example:
        >>> pad = Notepad()
        >>> pad.evaluate_line("price = 100").display_text
        'price = 100'
        >>> pad.evaluate_line("price + 10% =>").display_text
        'price + 10% => 110'
    """

    def __init__(
        self,
        options: DisplayOptions | None = None,
        clock: Clock = system_clock,
        logger: logging.Logger | None = None,
    ):
        self.options = options or DEFAULT_OPTIONS
        self.clock = clock
        self.logger = logger or get_logger("notepad")
        self.variables = VariableStore()
        self.functions = FunctionStore(self.logger)
        self.equations = EquationStore()
        self.pipeline = EvaluationPipeline(logger=self.logger)
        self._line_count = 0

    def reset(self) -> None:
        """Forget all variables, functions and equations."""
        self.variables.clear()
        self.functions.clear()
        self.equations.clear()
        self._line_count = 0

    def _context(self) -> EvaluationContext:
        return EvaluationContext(
            variables=self.variables,
            functions=self.functions,
            equations=self.equations,
            options=self.options,
            clock=self.clock,
        )

    def evaluate_line(self, text: str) -> RenderNode:
        """Evaluate the next line of the session.

        Args:
            text: One line of notepad text

        Returns:
            The render node for the line
        """
        self._line_count += 1
        line_number = self._line_count
        if len(text) > config.MAX_INPUT_LENGTH:
            return error_node(
                line_number,
                text[:40] + "...",
                f"Input too long (max {config.MAX_INPUT_LENGTH} characters)",
                "syntax",
                text,
            )
        node = parse_line(text, line_number)
        return self.pipeline.render(node, self._context().with_line(line_number))

    def evaluate_document(self, text: str) -> list[RenderNode]:
        """Evaluate a whole document from empty stores.

        Args:
            text: Multi-line notepad text

        Returns:
            One render node per line, in order
        """
        self.reset()
        nodes = parse_document(text)
        self._line_count = len(nodes)
        return evaluate_nodes(nodes, self.pipeline, self._context())

    def variable_snapshot(self) -> dict[str, str]:
        """Current variables formatted for display."""
        return {
            variable.name: variable.value.to_string(self.options) for variable in self.variables
        }


def _eval_result(node: RenderNode, pad: Notepad) -> EvalResult:
    data = node.to_dict()
    kind = data["type"]
    if kind == "error":
        return EvalResult(ok=False, kind=kind, error=data["error"])
    if kind == "text":
        return EvalResult(ok=True, kind=kind)

    variable = data.get("variable_name")
    value_type = None
    if variable:
        stored = pad.variables.get(variable)
        value_type = stored.value.kind if stored else None
    result = data["value"] if kind == "variable" else data["result"]
    return EvalResult(ok=True, kind=kind, result=result, value_type=value_type, variable=variable)


def evaluate(
    expression: str,
    options: DisplayOptions | None = None,
    clock: Clock = system_clock,
) -> EvalResult:
    """Evaluate a single line in a fresh notepad.

    Args:
        expression: One line (e.g., "20% of 100", "50 m + 20 ft =>", "x = 5")
        options: Display options (precision, date format)
        clock: Clock used for today/now

    Returns:
        EvalResult with the displayed result or the error message

    Example:
        >>> from notecalc_pkg.api import evaluate
        >>> evaluate("20% of 100").result
        '20'
        >>> evaluate("1 / 0 =>").error
        'Division by zero'
    """
    pad = Notepad(options, clock)
    return _eval_result(pad.evaluate_line(expression), pad)


def evaluate_document(
    text: str,
    options: DisplayOptions | None = None,
    clock: Clock = system_clock,
) -> DocumentResult:
    """Evaluate a multi-line document.

    Args:
        text: Notepad text, one entry per line
        options: Display options (precision, date format)
        clock: Clock used for today/now

    Returns:
        DocumentResult with one rendered entry per line and the final variables
    """
    pad = Notepad(options, clock)
    nodes = pad.evaluate_document(text)
    return DocumentResult(
        lines=[node.to_dict() for node in nodes],
        variables=pad.variable_snapshot(),
    )
