"""Unit tests for function_manager module."""

import pytest

from notecalc_pkg.function_manager import (
    FunctionDefinition,
    FunctionParameter,
    FunctionStore,
    bind_arguments,
    parse_function_definition,
)
from notecalc_pkg.types import ValidationError


class TestParseFunctionDefinition:
    """Test parsing of ``name(params) = body`` lines."""

    def test_simple(self):
        name, params, body = parse_function_definition("f(x) = x^2 + 1")
        assert name == "f"
        assert [param.name for param in params] == ["x"]
        assert body == "x^2 + 1"

    def test_default_parameter(self):
        name, params, body = parse_function_definition("tip(amount, rate = 15%) = amount * rate")
        assert name == "tip"
        assert params[1].default == "15%"
        assert params[1].default_components[0].parsed_value.kind == "percentage"

    def test_not_a_definition(self):
        assert parse_function_definition("x = 5") is None
        assert parse_function_definition("f(x) + 1 = 3") is None
        assert parse_function_definition("f(3) =>") is None

    def test_builtin_names_are_not_redefined(self):
        assert parse_function_definition("sqrt(x) = 2") is None

    def test_invalid_parameter(self):
        with pytest.raises(ValidationError, match="Invalid parameter name: 1"):
            parse_function_definition("f(1) = 2")

    def test_duplicate_parameter(self):
        with pytest.raises(ValidationError, match="Duplicate parameter name: x"):
            parse_function_definition("f(x, x) = x")

    def test_missing_name_and_body(self):
        with pytest.raises(ValidationError, match="Missing function name"):
            parse_function_definition("(x) = 2")
        with pytest.raises(ValidationError, match="Missing function body"):
            parse_function_definition("f(x) =")


class TestFunctionStore:
    def test_define_and_redefine(self):
        store = FunctionStore()
        assert store.define(FunctionDefinition("f", (FunctionParameter("x"),), "x")) is False
        assert store.define(FunctionDefinition("f", (FunctionParameter("x"),), "2 * x")) is True
        assert len(store) == 1
        assert store.list_functions() == {"f": (["x"], "2 * x")}

    def test_lookup_normalizes_whitespace(self):
        store = FunctionStore()
        store.define(FunctionDefinition("net  price", (FunctionParameter("x"),), "x"))
        assert "net price" in store


class TestBindArguments:
    definition = FunctionDefinition(
        "area", (FunctionParameter("w"), FunctionParameter("h", "2")), "w * h"
    )

    def test_positional_with_default(self):
        bound = bind_arguments(self.definition, [4], {})
        assert bound.values == {"w": 4}
        assert [param.name for param in bound.defaults] == ["h"]

    def test_named(self):
        bound = bind_arguments(self.definition, [], {"h": 3, "w": 2})
        assert bound.values == {"h": 3, "w": 2}
        assert bound.defaults == []

    def test_too_many(self):
        with pytest.raises(ValidationError, match="expects 2 argument"):
            bind_arguments(self.definition, [1, 2, 3], {})

    def test_unknown_name(self):
        with pytest.raises(ValidationError, match="Unknown parameter 'd'"):
            bind_arguments(self.definition, [1], {"d": 2})

    def test_given_twice(self):
        with pytest.raises(ValidationError, match="given more than once"):
            bind_arguments(self.definition, [1], {"w": 2})

    def test_missing_required(self):
        with pytest.raises(ValidationError, match="Missing argument for parameter 'w'"):
            bind_arguments(self.definition, [], {"h": 1})
