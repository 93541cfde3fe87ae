"""Unit tests for the evaluation pipeline and its evaluators."""

import unittest

from notecalc_pkg.evaluators import ExpressionEvaluator, NodeEvaluator, default_evaluators
from notecalc_pkg.expression import EvaluationContext
from notecalc_pkg.lines import parse_document, parse_line
from notecalc_pkg.pipeline import EvaluationPipeline, evaluate_nodes


class ExplodingEvaluator(NodeEvaluator):
    handles = ("expression",)

    def evaluate(self, node, context):
        raise RuntimeError("boom")


class DecliningEvaluator(NodeEvaluator):
    handles = ("expression",)


class TestEvaluationPipeline(unittest.TestCase):
    def setUp(self):
        self.context = EvaluationContext()

    def render(self, pipeline, text, line=1):
        return pipeline.render(parse_line(text, line), self.context.with_line(line))

    def test_default_order(self):
        names = [evaluator.name for evaluator in default_evaluators()]
        self.assertEqual(names[0], "CommentEvaluator")
        self.assertEqual(names[-1], "PlainTextEvaluator")
        self.assertLess(names.index("PercentageEvaluator"), names.index("ExpressionEvaluator"))

    def test_exception_becomes_error_node(self):
        pipeline = EvaluationPipeline([ExplodingEvaluator(), ExpressionEvaluator()])
        with self.assertLogs("notecalc.pipeline", "ERROR"):
            rendered = self.render(pipeline, "2 + 2 =>")
        self.assertEqual(rendered.type, "error")
        self.assertEqual(rendered.error_kind, "runtime")
        self.assertEqual(
            rendered.display_text, "2 + 2 => ⚠️ Evaluation error in ExplodingEvaluator: boom"
        )

    def test_unhandled_node_falls_back_to_text(self):
        pipeline = EvaluationPipeline([DecliningEvaluator()])
        with self.assertLogs("notecalc.pipeline", "WARNING"):
            rendered = self.render(pipeline, "2 + 2 =>")
        self.assertEqual(rendered.type, "text")
        self.assertEqual(rendered.display_text, "2 + 2 =>")

    def test_assignments_record_equations(self):
        pipeline = EvaluationPipeline()
        self.render(pipeline, "total = price * qty")
        entries = self.context.equations.entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].variable_name, "total")
        self.assertEqual(entries[0].expression, "price * qty")

    def test_division_by_zero(self):
        rendered = self.render(EvaluationPipeline(), "1 / 0 =>")
        self.assertEqual(rendered.display_text, "1 / 0 => ⚠️ Division by zero")

    def test_classifier_error_line(self):
        rendered = self.render(EvaluationPipeline(), "f(1) = 2")
        self.assertEqual(rendered.display_text, "f(1) = 2 ⚠️ Invalid parameter name: 1")
        self.assertEqual(rendered.error_kind, "syntax")


class TestEvaluateNodes(unittest.TestCase):
    def test_variables_flow_between_lines(self):
        nodes = parse_document("price = 100\nprice + 10% =>\n\n# done")
        rendered = evaluate_nodes(nodes, EvaluationPipeline(), EvaluationContext())
        self.assertEqual(
            [node.display_text for node in rendered],
            ["price = 100", "price + 10% => 110", "", "# done"],
        )


if __name__ == "__main__":
    unittest.main()
