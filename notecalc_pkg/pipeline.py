"""Evaluation pipeline: route each classified line to the first evaluator that accepts it.

This module provides:
- EvaluationPipeline: ordered evaluator list with logging and exception capture
- evaluate_nodes: evaluate a whole document in order, sharing stores between lines
"""

from __future__ import annotations

import logging
from typing import Iterable

from .evaluators import NodeEvaluator, default_evaluators
from .expression import EvaluationContext
from .lines import LineNode
from .logging_config import get_logger
from .render import RenderNode, error_node, text_node

ASSIGNMENT_NODE_TYPES = ("variableAssignment", "combinedAssignment")


def _shown_text(node: LineNode) -> str:
    if node.type == "combinedAssignment" and node.variable_name:
        return f"{node.variable_name} = {node.expression}"
    return node.expression or node.raw.strip()


class EvaluationPipeline:
    """Try evaluators in priority order until one produces a node.

    An evaluator that raises produces an error node naming it; the line after
    it is still evaluated. A node no evaluator accepts is shown as text and
    logged as a warning.
    """

    def __init__(
        self,
        evaluators: Iterable[NodeEvaluator] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.evaluators = list(evaluators) if evaluators is not None else default_evaluators()
        self.logger = logger or get_logger("pipeline")

    def evaluate(self, node: LineNode, context: EvaluationContext) -> RenderNode | None:
        """Evaluate one node, or return None when nothing handles it."""
        for evaluator in self.evaluators:
            if not evaluator.can_handle(node):
                continue
            try:
                rendered = evaluator.evaluate(node, context)
            except Exception as exc:
                self.logger.exception(
                    "%s raised on line %d: %s", evaluator.name, node.line, node.raw.strip()
                )
                return error_node(
                    node.line,
                    _shown_text(node),
                    f"Evaluation error in {evaluator.name}: {exc}",
                    "runtime",
                    node.raw,
                )
            if rendered is not None:
                self.logger.debug("Line %d handled by %s", node.line, evaluator.name)
                return rendered
            self.logger.debug("%s declined line %d", evaluator.name, node.line)
        self.logger.warning("No evaluator handled line %d (%s)", node.line, node.type)
        return None

    def render(self, node: LineNode, context: EvaluationContext) -> RenderNode:
        """Evaluate one node and record assignment equations; always returns a node."""
        rendered = self.evaluate(node, context)
        if node.type in ASSIGNMENT_NODE_TYPES and node.variable_name and node.expression:
            context.equations.record(node.variable_name, node.expression, node.line)
        return rendered if rendered is not None else text_node(node.line, node.raw)


def evaluate_nodes(
    nodes: Iterable[LineNode],
    pipeline: EvaluationPipeline,
    base_context: EvaluationContext,
) -> list[RenderNode]:
    """Evaluate ``nodes`` top to bottom.

    Args:
        nodes: Classified lines in document order
        pipeline: Pipeline used for every line
        base_context: Context carrying the shared stores, options and clock

    Returns:
        Exactly one render node per input node, in order
    """
    rendered = []
    for node in nodes:
        context = base_context.with_line(node.line)
        rendered.append(pipeline.render(node, context))
    return rendered
