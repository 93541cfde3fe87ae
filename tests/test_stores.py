"""Unit tests for the variable and equation stores."""

import unittest

from notecalc_pkg.stores import EquationStore, VariableStore, normalize_variable_name
from notecalc_pkg.units import Quantity
from notecalc_pkg.values import NumberValue, UnitValue


class TestVariableStore(unittest.TestCase):
    def setUp(self):
        self.store = VariableStore()

    def test_whitespace_is_normalized(self):
        result = self.store.set_variable_with_semantic_value("tax  rate", NumberValue(5))
        self.assertEqual(result, {"success": True})
        self.assertTrue(self.store.has("tax rate"))
        self.assertEqual(self.store.get_value(" tax rate ").to_string(), "5")

    def test_invalid_name_is_reported_not_raised(self):
        result = self.store.set_variable_with_semantic_value("1abc", NumberValue(5))
        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "Invalid variable name: '1abc'")
        self.assertEqual(len(self.store), 0)

    def test_overwrite_keeps_creation_time(self):
        self.store.set_variable_with_semantic_value("x", NumberValue(1))
        created = self.store.get("x").created_at
        self.store.set_variable_with_semantic_value("x", NumberValue(2))
        self.assertEqual(self.store.get("x").created_at, created)
        self.assertEqual(self.store.get_value("x").to_string(), "2")

    def test_unit_values_carry_quantity(self):
        self.store.set_variable_with_semantic_value("d", UnitValue.of(5, "km"))
        self.assertEqual(self.store.get("d").quantity, Quantity.of(5, "km"))

    def test_insertion_order_and_delete(self):
        for name in ("b", "a", "c"):
            self.store.set_variable_with_semantic_value(name, NumberValue(0))
        self.assertEqual(self.store.names(), ["b", "a", "c"])
        self.assertTrue(self.store.delete("a"))
        self.assertFalse(self.store.delete("a"))
        self.assertEqual([variable.name for variable in self.store], ["b", "c"])

    def test_normalize_variable_name(self):
        self.assertEqual(normalize_variable_name("  unit   price "), "unit price")


class TestEquationStore(unittest.TestCase):
    def test_before_is_most_recent_first(self):
        store = EquationStore()
        store.record("total", "price * qty", 1)
        store.record("total", "120", 3)
        store.record("later", "1", 5)
        self.assertEqual(
            [(entry.variable_name, entry.expression) for entry in store.before(4)],
            [("total", "120"), ("total", "price * qty")],
        )

    def test_blank_expression_is_ignored(self):
        store = EquationStore()
        store.record("x", "   ", 1)
        self.assertEqual(len(store), 0)


if __name__ == "__main__":
    unittest.main()
