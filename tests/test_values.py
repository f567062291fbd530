"""Tests for the template value model."""

from datetime import date
from decimal import Decimal

import pytest

from printforge.templating.values import (
    FALSE,
    NULL,
    TRUE,
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    is_truthy,
    to_python,
    to_text,
    to_value,
)


# =============================================================================
# Construction
# =============================================================================


class TestNumberValue:
    """Tests for decimal numbers."""

    def test_float_converted_without_binary_drift(self):
        assert NumberValue(10.5).value == Decimal("10.5")
        assert NumberValue(0.1).value == Decimal("0.1")

    def test_int_converted(self):
        assert NumberValue(3).value == Decimal(3)

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            NumberValue(True)

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            NumberValue(Decimal("NaN"))
        with pytest.raises(ValueError):
            NumberValue(float("inf"))

    def test_equal_regardless_of_scale(self):
        assert NumberValue(Decimal("1.50")) == NumberValue(Decimal("1.5"))


class TestObjectValue:
    """Tests for object key lookup."""

    def test_get_is_case_insensitive(self):
        obj = ObjectValue({"Name": StringValue("Ann")})
        assert obj.get("name") == StringValue("Ann")
        assert obj.get("NAME") == StringValue("Ann")

    def test_exact_match_wins(self):
        obj = ObjectValue({"name": StringValue("lower"), "NAME": StringValue("upper")})
        assert obj.get("NAME") == StringValue("upper")
        assert obj.get("name") == StringValue("lower")

    def test_get_exact_is_case_sensitive(self):
        obj = ObjectValue({"Name": StringValue("Ann")})
        assert obj.get_exact("Name") == StringValue("Ann")
        assert obj.get_exact("name") == NULL

    def test_missing_key_returns_null(self):
        assert ObjectValue().get("missing") is NULL

    def test_keys_are_stripped(self):
        obj = ObjectValue({"  total ": NumberValue(1)})
        assert list(obj.keys()) == ["total"]
        assert "total" in obj

    def test_equality_ignores_insertion_order(self):
        a = ObjectValue({"x": NumberValue(1), "y": NumberValue(2)})
        b = ObjectValue({"y": NumberValue(2), "x": NumberValue(1)})
        assert a == b
        assert hash(a) == hash(b)


# =============================================================================
# Equality and truthiness
# =============================================================================


class TestEquality:
    """Tests for equality across variants."""

    @pytest.mark.parametrize(
        "left,right",
        [
            (NULL, FALSE),
            (NumberValue(0), FALSE),
            (StringValue("1"), NumberValue(1)),
            (StringValue(""), NULL),
            (ArrayValue(()), ObjectValue()),
        ],
    )
    def test_different_variants_never_equal(self, left, right):
        assert left != right
        assert right != left

    def test_arrays_compare_deeply(self):
        a = ArrayValue((NumberValue(1), ObjectValue({"k": StringValue("v")})))
        b = ArrayValue([NumberValue(1), ObjectValue({"k": StringValue("v")})])
        assert a == b


class TestTruthiness:
    """Tests for is_truthy."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (NULL, False),
            (TRUE, True),
            (FALSE, False),
            (StringValue(""), False),
            (StringValue("x"), True),
            (StringValue("false"), True),
            (NumberValue(0), False),
            (NumberValue(Decimal("0.00")), False),
            (NumberValue(-1), True),
            (ArrayValue(()), False),
            (ArrayValue((NULL,)), True),
            (ObjectValue(), False),
            (ObjectValue({"a": NULL}), True),
        ],
    )
    def test_truthiness(self, value, expected):
        assert is_truthy(value) is expected


# =============================================================================
# Conversion
# =============================================================================


class TestToText:
    """Tests for stringifying values into property text."""

    def test_null_is_empty(self):
        assert to_text(NULL) == ""

    def test_bool_is_lowercase(self):
        assert to_text(TRUE) == "true"
        assert to_text(FALSE) == "false"

    def test_number_keeps_its_own_scale(self):
        assert to_text(NumberValue(Decimal("31.5"))) == "31.5"
        assert to_text(NumberValue(24)) == "24"

    def test_number_never_uses_exponent(self):
        assert to_text(NumberValue(Decimal("1E+3"))) == "1000"

    def test_negative_zero_has_no_sign(self):
        assert to_text(NumberValue(Decimal("-0"))) == "0"
        assert to_text(NumberValue(Decimal("-0.00"))) == "0.00"

    def test_containers_are_empty(self):
        assert to_text(ArrayValue((StringValue("a"),))) == ""
        assert to_text(ObjectValue({"a": StringValue("b")})) == ""


class TestConversion:
    """Tests for to_value and to_python."""

    def test_to_value_nested(self):
        value = to_value({"items": [{"price": 10.5, "qty": 3}], "paid": True, "note": None})

        assert isinstance(value, ObjectValue)
        items = value.get("items")
        assert isinstance(items, ArrayValue)
        assert items[0].get("price") == NumberValue(Decimal("10.5"))
        assert value.get("paid") is TRUE
        assert isinstance(value.get("note"), NullValue)

    def test_to_value_dates_become_iso_text(self):
        assert to_value(date(2024, 3, 15)) == StringValue("2024-03-15")

    def test_to_value_passes_values_through(self):
        value = StringValue("x")
        assert to_value(value) is value

    def test_to_value_rejects_unknown_types(self):
        with pytest.raises(TypeError):
            to_value(object())

    def test_to_python(self):
        data = {"a": [1, "two", None, False]}
        assert to_python(to_value(data)) == {"a": [Decimal(1), "two", None, False]}

    def test_bool_is_not_a_number(self):
        assert isinstance(to_value(True), BoolValue)
