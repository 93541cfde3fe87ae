"""Unit tests for line classification."""

import unittest

from notecalc_pkg.lines import needs_expression_evaluation, parse_document, parse_line


class TestParseLine(unittest.TestCase):
    """Test how raw lines are classified."""

    def test_blank_and_prose(self):
        self.assertEqual(parse_line("").type, "plainText")
        self.assertEqual(parse_line("Groceries for the week").type, "plainText")

    def test_pure_arithmetic_needs_arrow(self):
        self.assertEqual(parse_line("2 + 2").type, "plainText")
        node = parse_line("2 + 2 =>")
        self.assertEqual(node.type, "expression")
        self.assertEqual(node.expression, "2 + 2")
        self.assertTrue(node.shows_result)
        self.assertEqual(len(node.components), 3)

    def test_comment(self):
        self.assertEqual(parse_line("# budget").type, "comment")

    def test_variable_assignment(self):
        node = parse_line("tax  rate = 8%")
        self.assertEqual(node.type, "variableAssignment")
        self.assertEqual(node.variable_name, "tax rate")
        self.assertEqual(node.expression, "8%")

    def test_combined_assignment(self):
        node = parse_line("y = 2 * 3 =>")
        self.assertEqual(node.type, "combinedAssignment")
        self.assertEqual(node.variable_name, "y")
        self.assertEqual(node.expression, "2 * 3")

    def test_prose_assignment_is_text(self):
        self.assertEqual(parse_line("x = 5 is good").type, "plainText")

    def test_function_definition(self):
        node = parse_line("area(w, h = 2) = w * h")
        self.assertEqual(node.type, "functionDefinition")
        self.assertEqual(node.function_name, "area")
        self.assertEqual([param.name for param in node.params], ["w", "h"])
        self.assertEqual(node.params[1].default, "2")
        self.assertEqual(node.expression, "w * h")

    def test_invalid_function_definition(self):
        node = parse_line("f(1) = 2")
        self.assertEqual(node.type, "error")
        self.assertEqual(node.error, "Invalid parameter name: 1")
        self.assertEqual(node.error_kind, "syntax")

    def test_solve_line(self):
        node = parse_line("solve x in y = 2*x + 3")
        self.assertEqual(node.type, "expression")
        self.assertEqual(node.components, ())

    def test_parse_error(self):
        node = parse_line("(1 + 2 =>")
        self.assertEqual(node.type, "error")
        self.assertEqual(node.error, "Parse error: Unmatched opening parenthesis")
        self.assertEqual(node.error_kind, "parse")

    def test_missing_expression_before_arrow(self):
        node = parse_line("=>")
        self.assertEqual(node.type, "error")
        self.assertEqual(node.error, "Missing expression before =>")

    def test_conversion_suffix(self):
        node = parse_line("50 m + 20 ft to km =>")
        self.assertEqual(node.conversion.target, "km")
        self.assertEqual(node.conversion.base, "50 m + 20 ft")

    def test_as_percent(self):
        node = parse_line("0.25 as %")
        self.assertEqual(node.type, "expression")
        self.assertEqual(node.conversion.keyword, "as")
        self.assertEqual(node.conversion.target, "%")


class TestNeedsExpressionEvaluation(unittest.TestCase):
    def test_triggers(self):
        self.assertTrue(needs_expression_evaluation("PI * 2"))
        self.assertTrue(needs_expression_evaluation("5 km"))
        self.assertTrue(needs_expression_evaluation("price + tax"))
        self.assertTrue(needs_expression_evaluation("anything =>"))

    def test_plain_words(self):
        self.assertFalse(needs_expression_evaluation("hello there"))
        self.assertFalse(needs_expression_evaluation("   "))


class TestParseDocument(unittest.TestCase):
    def test_line_numbers_are_one_based(self):
        nodes = parse_document("# title\nx = 1\n\nx * 2 =>")
        self.assertEqual([node.line for node in nodes], [1, 2, 3, 4])
        self.assertEqual(
            [node.type for node in nodes],
            ["comment", "variableAssignment", "plainText", "expression"],
        )


if __name__ == "__main__":
    unittest.main()
